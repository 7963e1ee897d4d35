"""
Limpieza y validación de sesiones de uso
Elimina registros no funcionales (duraciones fuera de rango, PC o usuario
faltante) y genera un reporte de calidad de datos
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

from cyberdemand.config.settings import (
    MIN_SESSION_MINUTES, MAX_SESSION_MINUTES, UNKNOWN_USER_ID, DATA_QUALITY_THRESHOLDS
)
from cyberdemand.models.records import UsageRecord
from cyberdemand.prediction.aggregator import filter_valid, is_valid_record

logger = logging.getLogger(__name__)


class DataQualityReport:
    """Clase para almacenar el reporte de calidad de datos"""

    def __init__(self):
        self.timestamp = datetime.now()
        self.issues = []
        self.warnings = []
        self.stats = {}
        self.passed = True

    def add_issue(self, issue_type: str, description: str, severity: str = 'ERROR'):
        """Añade un problema detectado"""
        self.issues.append({
            'type': issue_type,
            'description': description,
            'severity': severity,
            'timestamp': datetime.now()
        })
        if severity == 'ERROR':
            self.passed = False
        logger.warning(f"[{severity}] {issue_type}: {description}")

    def add_warning(self, warning: str):
        """Añade una advertencia"""
        self.warnings.append({
            'description': warning,
            'timestamp': datetime.now()
        })
        logger.warning(f"[WARNING] {warning}")

    def add_stat(self, key: str, value):
        """Añade una estadística al reporte"""
        self.stats[key] = value

    def to_dict(self) -> Dict:
        return {
            'passed': self.passed,
            'issues_count': len(self.issues),
            'warnings_count': len(self.warnings),
            'stats': self.stats
        }

    def summary(self) -> str:
        """Genera un resumen del reporte"""
        status = "✓ PASSED" if self.passed else "✗ FAILED"
        summary = f"\n{'='*60}\n"
        summary += f"DATA QUALITY REPORT - {status}\n"
        summary += f"Timestamp: {self.timestamp}\n"
        summary += f"{'='*60}\n\n"

        if self.stats:
            summary += "STATISTICS:\n"
            for key, value in self.stats.items():
                summary += f"  • {key}: {value}\n"
            summary += "\n"

        if self.issues:
            summary += f"ISSUES FOUND: {len(self.issues)}\n"
            for issue in self.issues:
                summary += f"  [{issue['severity']}] {issue['type']}: {issue['description']}\n"
            summary += "\n"

        if self.warnings:
            summary += f"WARNINGS: {len(self.warnings)}\n"
            for warning in self.warnings:
                summary += f"  • {warning['description']}\n"

        return summary


def rejection_reasons(record) -> List[str]:
    """Motivos por los que un registro no es válido (vacío si es válido)"""
    if not isinstance(record, UsageRecord):
        return ['registro_mal_formado']

    reasons = []
    duration = record.duration_minutes
    if not MIN_SESSION_MINUTES <= duration <= MAX_SESSION_MINUTES:
        reasons.append('duracion_fuera_de_rango')
    if not record.pc_id:
        reasons.append('pc_faltante')
    if not record.user_id or record.user_id == UNKNOWN_USER_ID:
        reasons.append('usuario_desconocido')
    return reasons


class UsageDataCleaner:
    """Limpiador de sesiones: paso 'Eliminación de Datos No Funcionales'"""

    def __init__(self, config: Optional[Dict] = None):
        self.config = config or DATA_QUALITY_THRESHOLDS
        self.report = DataQualityReport()

    def clean(self, records: Sequence) -> Tuple[List[UsageRecord], DataQualityReport]:
        """
        Ejecuta la limpieza de sesiones

        Args:
            records: Registros crudos (pueden incluir registros mal formados)

        Returns:
            Tuple con registros válidos (orden original) y reporte de calidad
        """
        logger.info("Iniciando limpieza de sesiones...")
        self.report = DataQualityReport()
        records = list(records)

        # 1. Filtro de validez
        clean_records = filter_valid(records)

        # 2. Motivos de descarte
        self._count_rejections(records)

        # 3. Estadísticas y umbrales
        self._calculate_final_stats(records, clean_records)

        logger.info(f"✓ Limpieza completada: {len(clean_records)} registros válidos")
        return clean_records, self.report

    def _count_rejections(self, records: List):
        """Cuenta los registros descartados por cada motivo"""
        counts = {
            'duracion_fuera_de_rango': 0,
            'pc_faltante': 0,
            'usuario_desconocido': 0,
            'registro_mal_formado': 0,
        }
        for record in records:
            if is_valid_record(record):
                continue
            reasons = rejection_reasons(record) or ['registro_mal_formado']
            for reason in reasons:
                counts[reason] += 1

        for reason, count in counts.items():
            self.report.add_stat(reason, count)

    def _calculate_final_stats(self, records: List, clean_records: List[UsageRecord]):
        """Calcula estadísticas finales del conjunto limpio"""
        total = len(records)
        removed = total - len(clean_records)

        self.report.add_stat('registros_entrada', total)
        self.report.add_stat('registros_validos', len(clean_records))
        self.report.add_stat('registros_eliminados', removed)

        if not clean_records:
            self.report.add_issue(
                'EMPTY_DATASET',
                "No quedaron registros válidos; la predicción será cero para todas las horas",
                'WARNING'
            )
            return

        invalid_ratio = removed / total
        self.report.add_stat('porcentaje_eliminado', round(invalid_ratio * 100, 2))

        max_invalid = self.config.get('max_invalid_percentage', 0.30)
        if invalid_ratio > max_invalid:
            self.report.add_issue(
                'HIGH_INVALID_RATIO',
                f"{invalid_ratio*100:.1f}% de los registros fueron descartados (umbral: {max_invalid*100:.0f}%)",
                'WARNING'
            )

        durations = [r.duration_minutes for r in clean_records]
        self.report.add_stat('duracion_min', min(durations))
        self.report.add_stat('duracion_max', max(durations))
        self.report.add_stat('pcs_distintas', len({r.pc_id for r in clean_records}))
        self.report.add_stat('usuarios_distintos', len({r.user_id for r in clean_records}))


# ============== FUNCIÓN DE UTILIDAD ==============

def clean_usage_records(records: Sequence) -> Tuple[List[UsageRecord], DataQualityReport]:
    """Limpia un lote de sesiones con la configuración por defecto"""
    return UsageDataCleaner().clean(records)
