"""
Tests del pipeline completo: carga -> limpieza -> entrenamiento -> guardado
"""

import json
from datetime import datetime
from pathlib import Path
import sys

import pytest

# Agregar src al path
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from cyberdemand.models.records import SessionLog, UsageRecord
from cyberdemand.pipeline.connectors import generate_sample_records
from cyberdemand.pipeline.orchestrator import (
    DemandAnalysisOrchestrator, run_demand_analysis, records_to_frame
)
from cyberdemand.storage.repository import InMemoryRepository


@pytest.fixture
def dirs(tmp_path):
    return {'output_dir': tmp_path / 'reports', 'logs_dir': tmp_path / 'logs'}


@pytest.fixture
def sample_records():
    return generate_sample_records(120, seed=11, reference_time=datetime(2024, 3, 18, 12, 0))


class TestDemandAnalysisPipeline:

    def test_pipeline_with_records(self, sample_records, dirs):
        """Prueba el pipeline completo sobre una lista de registros"""
        result, report = run_demand_analysis(sample_records, log_to_file=False, **dirs)

        # 1. Verificar que hay datos
        assert result.records_used == 120
        assert len(result.predictions) == 24

        # 2. Verificar resumen de datos
        assert report['data_summary'] == {
            'input_records': 120,
            'cleaned_records': 120,
            'removed_records': 0
        }

        # 3. Verificar que la calidad de datos pasó
        assert report['quality_report']['passed']

        # 4. Verificar etapas
        assert [s['name'] for s in report['stages']] == [
            'data_loading', 'data_cleaning', 'training', 'saving_outputs'
        ]
        assert all(s['status'] == 'SUCCESS' for s in report['stages'])

        # 5. Verificar archivos de salida
        result_path = Path(report['outputs']['training_result_path'])
        assert result_path.exists()
        saved = json.loads(result_path.read_text(encoding='utf-8'))
        assert saved['peak_hours'] == result.peak_hours
        assert Path(report['outputs']['clean_records_path']).exists()
        assert (dirs['logs_dir'] / 'pipeline_execution_demand_analysis_latest.json').exists()

    def test_pipeline_with_csv(self, tmp_path, dirs):
        csv_path = tmp_path / 'sesiones.csv'
        csv_path.write_text(
            "pcId,userId,duration,hour,day,timestamp\n"
            "PC-1,user-1,30,10,2024-03-18,2024-03-18T10:00:00\n"
            "PC-2,user-2,60,10,2024-03-18,2024-03-18T10:30:00\n"
            "PC-3,user-3,90,10,2024-03-18,2024-03-18T10:45:00\n"
            "PC-4,user-unknown,60,11,2024-03-18,2024-03-18T11:00:00\n",
            encoding='utf-8'
        )

        result, report = run_demand_analysis(csv_path, log_to_file=False, **dirs)

        assert result.predictions[10].average_duration_minutes == 60
        assert result.peak_hours == [10]
        assert report['data_summary']['removed_records'] == 1

    def test_pipeline_with_repository(self, dirs):
        repo = InMemoryRepository(SessionLog, 'cybercafe_sessions', items=[
            SessionLog(id='s1', pc_id='PC-1', user_id='user-1',
                       start_time=datetime(2024, 3, 18, 19, 0), duration=120),
            SessionLog(id='s2', pc_id='PC-2', user_id='user-2',
                       start_time=datetime(2024, 3, 18, 19, 30), duration=60),
        ])

        result, _ = run_demand_analysis(repo, save_outputs=False, log_to_file=False, **dirs)

        assert result.records_used == 2
        assert result.predictions[19].average_duration_minutes == 90

    def test_empty_input(self, dirs):
        result, report = run_demand_analysis([], save_outputs=False, log_to_file=False, **dirs)

        assert result.records_used == 0
        assert result.average_duration_overall == 0
        assert result.peak_hours == []
        assert report['outputs'] == {}
        assert report['weekly_stats']['weekly_peak'] == 0

    def test_sample_padding(self, dirs):
        few = generate_sample_records(5, seed=1)
        result, report = run_demand_analysis(
            few, pad_samples=True, seed=2, save_outputs=False, log_to_file=False, **dirs
        )

        assert report['data_summary']['input_records'] == 100
        assert result.records_used == 100

    def test_missing_file_fails_stage(self, tmp_path, dirs):
        orchestrator = DemandAnalysisOrchestrator(
            tmp_path / 'no_existe.csv', log_to_file=False, **dirs
        )

        with pytest.raises(FileNotFoundError):
            orchestrator.run()

        assert orchestrator.tracker.stages[0]['status'] == 'FAILED'
        assert orchestrator.tracker.logger.alerts[-1]['alert_type'] == 'PROCESSING_ERROR'

    def test_weekly_profile_is_built(self, sample_records, dirs):
        orchestrator = DemandAnalysisOrchestrator(sample_records, log_to_file=False, pc_count=10, **dirs)
        orchestrator.run(save_outputs=False)

        assert orchestrator.weekly_profile.pc_count == 10
        assert len(orchestrator.weekly_profile.entries(day='Lunes')) == 16

    def test_run_demand_analysis_forwards_pc_count(self, dirs):
        records = [
            UsageRecord(pc_id=f'PC-{i}', user_id='user-1', duration_minutes=60,
                        hour_of_day=18, timestamp=datetime(2024, 3, 18, 18, 10 * i))
            for i in range(2)
        ]

        _, report = run_demand_analysis(
            records, pc_count=5, save_outputs=False, log_to_file=False, **dirs
        )

        # 2 sesiones / 5 PCs en un lunes observado
        assert report['weekly_stats']['weekly_peak'] == 40


class TestRecordsToFrame:

    def test_uses_external_column_names(self, sample_records):
        df = records_to_frame(sample_records[:3])

        assert list(df.columns) == ['pcId', 'userId', 'duration', 'hour', 'day', 'timestamp']
        assert len(df) == 3
