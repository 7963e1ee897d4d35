"""
Tests para la limpieza de sesiones y el reporte de calidad
"""

from pathlib import Path
import sys

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from cyberdemand.config.settings import UNKNOWN_USER_ID
from cyberdemand.models.records import UsageRecord
from cyberdemand.pipeline.cleaning import (
    UsageDataCleaner, DataQualityReport, rejection_reasons, clean_usage_records
)


def make_record(duration=60, pc_id='PC-1', user_id='user-1', hour=10):
    return UsageRecord(pc_id=pc_id, user_id=user_id, duration_minutes=duration, hour_of_day=hour)


class TestRejectionReasons:

    def test_valid_record_has_no_reasons(self):
        assert rejection_reasons(make_record()) == []

    def test_multiple_reasons(self):
        reasons = rejection_reasons(make_record(duration=5, user_id=UNKNOWN_USER_ID))
        assert reasons == ['duracion_fuera_de_rango', 'usuario_desconocido']

    def test_malformed(self):
        assert rejection_reasons({'duration': 60}) == ['registro_mal_formado']


class TestUsageDataCleaner:

    @pytest.fixture
    def mixed_records(self):
        return [
            make_record(duration=45),
            make_record(duration=120, pc_id='PC-2', user_id='user-2'),
            make_record(duration=300),
            make_record(pc_id=''),
            make_record(user_id=UNKNOWN_USER_ID),
            None,
        ]

    def test_clean_keeps_valid_records(self, mixed_records):
        clean, report = UsageDataCleaner().clean(mixed_records)

        assert len(clean) == 2
        assert report.stats['registros_entrada'] == 6
        assert report.stats['registros_validos'] == 2
        assert report.stats['registros_eliminados'] == 4

    def test_rejections_by_reason(self, mixed_records):
        _, report = UsageDataCleaner().clean(mixed_records)

        assert report.stats['duracion_fuera_de_rango'] == 1
        assert report.stats['pc_faltante'] == 1
        assert report.stats['usuario_desconocido'] == 1
        assert report.stats['registro_mal_formado'] == 1

    def test_high_invalid_ratio_is_reported(self, mixed_records):
        _, report = UsageDataCleaner().clean(mixed_records)

        issue_types = [issue['type'] for issue in report.issues]
        assert 'HIGH_INVALID_RATIO' in issue_types
        assert report.passed

    def test_dataset_stats(self, mixed_records):
        _, report = UsageDataCleaner().clean(mixed_records)

        assert report.stats['duracion_min'] == 45
        assert report.stats['duracion_max'] == 120
        assert report.stats['pcs_distintas'] == 2
        assert report.stats['usuarios_distintos'] == 2

    def test_empty_dataset(self):
        clean, report = clean_usage_records([])

        assert clean == []
        assert report.passed
        assert [issue['type'] for issue in report.issues] == ['EMPTY_DATASET']

    def test_custom_threshold(self):
        records = [make_record(), make_record(duration=5)]
        _, report = UsageDataCleaner(config={'max_invalid_percentage': 0.6}).clean(records)

        assert report.issues == []
        assert report.stats['porcentaje_eliminado'] == 50.0


class TestDataQualityReport:

    def test_error_issue_fails_report(self):
        report = DataQualityReport()
        report.add_issue('BROKEN', 'algo falló')
        assert not report.passed

    def test_to_dict_and_summary(self):
        report = DataQualityReport()
        report.add_stat('registros_validos', 3)
        report.add_warning('pocas sesiones')

        data = report.to_dict()
        assert data == {
            'passed': True,
            'issues_count': 0,
            'warnings_count': 1,
            'stats': {'registros_validos': 3}
        }
        assert 'PASSED' in report.summary()
