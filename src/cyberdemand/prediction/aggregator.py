"""
Agregador de Demanda por Hora

Convierte un lote de sesiones históricas en una tabla de 24 duraciones
promedio (una por hora del día) y detecta las horas pico.

Flujo: registros -> filtro de validez -> agrupación por hora -> horas pico

Todas las funciones son puras: no leen ni escriben almacenamiento y nunca
lanzan excepciones sobre su dominio documentado.
"""

import logging
from typing import Any, Iterable, List, Optional

import pandas as pd

from cyberdemand.config.settings import (
    HOURS_PER_DAY, MIN_SESSION_MINUTES, MAX_SESSION_MINUTES,
    PEAK_MULTIPLIER, UNKNOWN_USER_ID
)
from cyberdemand.models.metrics import calculate_all_metrics, accuracy_from_mape
from cyberdemand.models.records import UsageRecord, HourlyPrediction, TrainingResult

logger = logging.getLogger(__name__)


def round_half_up(total: int, count: int) -> int:
    """
    Promedio entero total/count redondeado hacia arriba en empates (x.5 -> x+1).

    Usa aritmética entera para que el resultado no dependa de errores de
    punto flotante. Retorna 0 si count es 0.
    """
    if count <= 0:
        return 0
    return (2 * int(total) + int(count)) // (2 * int(count))


def is_valid_record(record: Any) -> bool:
    """
    Verifica si un registro cumple el invariante de validez:
    duración en [MIN_SESSION_MINUTES, MAX_SESSION_MINUTES], PC no vacía,
    usuario no vacío y distinto del centinela.

    Cualquier objeto que no sea un UsageRecord bien formado retorna False.
    """
    if not isinstance(record, UsageRecord):
        return False

    duration = record.duration_minutes
    if isinstance(duration, bool) or not isinstance(duration, int):
        return False
    if not MIN_SESSION_MINUTES <= duration <= MAX_SESSION_MINUTES:
        return False

    if not isinstance(record.pc_id, str) or not record.pc_id:
        return False

    user_id = record.user_id
    if not isinstance(user_id, str) or not user_id or user_id == UNKNOWN_USER_ID:
        return False

    hour = record.hour_of_day
    return isinstance(hour, int) and 0 <= hour < HOURS_PER_DAY


def filter_valid(records: Optional[Iterable[Any]]) -> List[UsageRecord]:
    """
    Conserva solo los registros válidos, en el orden de entrada.

    Los registros mal formados se descartan, nunca se rechazan con error.
    """
    if records is None:
        return []
    return [record for record in records if is_valid_record(record)]


def _hourly_totals(records: Iterable[UsageRecord]) -> pd.DataFrame:
    """Suma y conteo de duraciones por hora, con las 24 horas presentes"""
    df = pd.DataFrame(
        [(r.hour_of_day, r.duration_minutes) for r in records],
        columns=['hour', 'duration'],
        dtype='int64'
    )

    totals = df.groupby('hour')['duration'].agg(['sum', 'count'])
    return totals.reindex(range(HOURS_PER_DAY), fill_value=0).astype('int64')


def aggregate_by_hour(records: Iterable[UsageRecord]) -> List[HourlyPrediction]:
    """
    Calcula la duración promedio por hora del día.

    Args:
        records: Registros ya validados

    Returns:
        Exactamente 24 HourlyPrediction ordenadas por hora (0-23).
        Las horas sin registros tienen promedio 0.
    """
    totals = _hourly_totals(records)

    return [
        HourlyPrediction(
            hour=int(hour),
            average_duration_minutes=round_half_up(row['sum'], row['count'])
        )
        for hour, row in totals.iterrows()
    ]


def detect_peak_hours(predictions: Iterable[HourlyPrediction]) -> List[int]:
    """
    Detecta las horas cuyo promedio supera PEAK_MULTIPLIER veces el
    promedio de las 24 horas (las horas sin demanda cuentan como 0).

    Returns:
        Horas pico en orden ascendente, sin repetir. Vacío si no hay demanda.
    """
    predictions = list(predictions)
    mean_all = sum(p.average_duration_minutes for p in predictions) / HOURS_PER_DAY
    threshold = PEAK_MULTIPLIER * mean_all

    return sorted({
        p.hour for p in predictions
        if p.average_duration_minutes > threshold
    })


def summarize(records: Optional[Iterable[Any]]) -> TrainingResult:
    """
    Ejecuta el análisis completo: filtro, agregación por hora y horas pico.

    La precisión se calcula comparando cada sesión válida con el promedio
    de su hora (1 - MAPE/100), por lo que el resultado es reproducible.

    Args:
        records: Lote de registros, puede contener registros inválidos

    Returns:
        TrainingResult; con entrada vacía todas las predicciones son 0
    """
    valid = filter_valid(records)
    predictions = aggregate_by_hour(valid)
    peak_hours = detect_peak_hours(predictions)

    durations = [r.duration_minutes for r in valid]
    fitted = [predictions[r.hour_of_day].average_duration_minutes for r in valid]
    metrics = calculate_all_metrics(durations, fitted)

    return TrainingResult(
        accuracy_score=accuracy_from_mape(metrics['mape']) if valid else 0.0,
        predictions=predictions,
        peak_hours=peak_hours,
        average_duration_overall=round_half_up(sum(durations), len(durations)),
        records_used=len(valid),
        metrics=metrics
    )


class DemandAggregator:
    """
    Envoltorio con interfaz fit/predict sobre summarize().

    Cada instancia guarda solo su último resultado; instancias distintas no
    comparten estado.
    """

    def __init__(self):
        self.result: Optional[TrainingResult] = None
        self.is_fitted = False

    def fit(self, records: Iterable[Any]) -> TrainingResult:
        """Calcula el resultado para un lote de registros"""
        records = list(records)
        logger.info(f"Agregando demanda horaria con {len(records)} registros...")

        self.result = summarize(records)
        self.is_fitted = True

        logger.info(
            f"✓ Análisis completado: {self.result.records_used} registros válidos, "
            f"{len(self.result.peak_hours)} horas pico, "
            f"precisión {self.result.accuracy_score * 100:.1f}%"
        )
        return self.result

    def predict(self, hour: int) -> int:
        """Duración promedio estimada para una hora del día"""
        if not self.is_fitted:
            raise RuntimeError("El agregador no ha sido entrenado. Ejecute .fit() primero.")
        if not 0 <= hour < HOURS_PER_DAY:
            raise ValueError(f"Hora fuera de rango: {hour}")
        return self.result.prediction_for(hour).average_duration_minutes

    def peak_hours_labels(self) -> List[str]:
        """Horas pico en formato HH:00"""
        if not self.is_fitted:
            return []
        return [f"{hour:02d}:00" for hour in self.result.peak_hours]
