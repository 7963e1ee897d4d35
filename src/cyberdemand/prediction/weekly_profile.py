"""
Perfil Semanal de Ocupación

Estima el porcentaje de ocupación del local para cada día de la semana y
cada hora del horario de atención, a partir de las sesiones históricas.

ocupación(día, hora) = 100 * sesiones iniciadas en (día, hora)
                       / (número de PCs * fechas observadas de ese día)

El resultado se recorta a [0, 100] y se clasifica en demanda baja, media o alta.
"""

import logging
from typing import Dict, Iterable, List, Optional

import pandas as pd

from cyberdemand.config.settings import (
    WEEKDAY_NAMES, OPENING_HOURS, TOTAL_PCS, DEMAND_LEVEL_THRESHOLDS
)
from cyberdemand.models.records import UsageRecord, DemandLevel, WeeklyDemandEntry
from cyberdemand.prediction.aggregator import round_half_up

logger = logging.getLogger(__name__)


def classify_demand(predicted_usage: int) -> DemandLevel:
    """Clasifica un porcentaje de ocupación (> 70 alta, > 40 media)"""
    if predicted_usage > DEMAND_LEVEL_THRESHOLDS['alta']:
        return DemandLevel.ALTA
    elif predicted_usage > DEMAND_LEVEL_THRESHOLDS['media']:
        return DemandLevel.MEDIA
    else:
        return DemandLevel.BAJA


def _sessions_frame(records: Iterable[UsageRecord]) -> pd.DataFrame:
    """DataFrame (fecha, día de la semana, hora) de los registros con timestamp"""
    # Hora local de la sesión (se descarta la zona horaria)
    rows = [
        (r.timestamp.replace(tzinfo=None), r.hour_of_day)
        for r in records
        if r.timestamp is not None
    ]
    df = pd.DataFrame(rows, columns=['timestamp', 'hour'])
    df['timestamp'] = pd.to_datetime(df['timestamp'])
    df['fecha'] = df['timestamp'].dt.date
    df['dayofweek'] = df['timestamp'].dt.dayofweek
    return df


class WeeklyDemandProfile:
    """
    Perfil de ocupación por día de la semana y hora.

    Uso:
        profile = WeeklyDemandProfile(pc_count=20).fit(records)
        entries = profile.entries(day='Lunes')
    """

    def __init__(self, pc_count: Optional[int] = None, opening_hours: Optional[List[int]] = None):
        """
        Args:
            pc_count: Número de PCs del local (por defecto TOTAL_PCS)
            opening_hours: Horas a incluir en el perfil (por defecto OPENING_HOURS)
        """
        self.pc_count = pc_count or TOTAL_PCS
        self.opening_hours = list(opening_hours) if opening_hours is not None else list(OPENING_HOURS)
        self.table: Optional[pd.DataFrame] = None
        self.is_fitted = False

        if self.pc_count < 1:
            raise ValueError(f"pc_count debe ser positivo: {self.pc_count}")

    def fit(self, records: Iterable[UsageRecord]) -> 'WeeklyDemandProfile':
        """
        Calcula la tabla de ocupación (7 días x horas de atención).

        Returns:
            self
        """
        df = _sessions_frame(records)
        logger.info(f"Calculando perfil semanal con {len(df)} sesiones con fecha...")

        # Sesiones por (día de la semana, hora)
        counts = df.groupby(['dayofweek', 'hour']).size()

        # Fechas distintas observadas para cada día de la semana
        observed_dates = df.groupby('dayofweek')['fecha'].nunique()

        rows = []
        for dayofweek, day_name in enumerate(WEEKDAY_NAMES):
            n_dates = int(observed_dates.get(dayofweek, 0))
            capacity = self.pc_count * max(n_dates, 1)
            for hour in self.opening_hours:
                sessions = int(counts.get((dayofweek, hour), 0))
                usage = min(100, round_half_up(100 * sessions, capacity))
                rows.append({
                    'day': day_name,
                    'hour': hour,
                    'predicted_usage': usage,
                    'level': classify_demand(usage)
                })

        self.table = pd.DataFrame(rows, columns=['day', 'hour', 'predicted_usage', 'level'])
        self.is_fitted = True

        logger.info(f"✓ Perfil semanal calculado: {len(self.table)} franjas")
        return self

    def entries(self, day: Optional[str] = None) -> List[WeeklyDemandEntry]:
        """
        Retorna las franjas del perfil, opcionalmente de un solo día.

        Raises:
            RuntimeError: Si el perfil no ha sido calculado
            ValueError: Si el día no existe
        """
        if not self.is_fitted:
            raise RuntimeError("El perfil no ha sido calculado. Ejecute .fit() primero.")

        table = self.table
        if day is not None:
            if day not in WEEKDAY_NAMES:
                raise ValueError(f"Día inválido: {day}. Usar uno de {WEEKDAY_NAMES}")
            table = table[table['day'] == day]

        return [
            WeeklyDemandEntry(
                day=row['day'],
                hour=int(row['hour']),
                predicted_usage=int(row['predicted_usage']),
                level=row['level']
            )
            for row in table.to_dict('records')
        ]


def weekly_stats(entries: List[WeeklyDemandEntry]) -> Dict[str, int]:
    """
    Estadísticas globales del perfil semanal

    Returns:
        Dict con weekly_peak, avg_weekly y low_demand_hours (franjas de
        demanda baja por día, promedio de la semana)
    """
    if not entries:
        return {'weekly_peak': 0, 'avg_weekly': 0, 'low_demand_hours': 0}

    usages = [e.predicted_usage for e in entries]
    low_slots = sum(1 for u in usages if u < DEMAND_LEVEL_THRESHOLDS['media'])

    return {
        'weekly_peak': max(usages),
        'avg_weekly': round_half_up(sum(usages), len(usages)),
        'low_demand_hours': round_half_up(low_slots, len(WEEKDAY_NAMES))
    }


def day_average(entries: List[WeeklyDemandEntry], day: str) -> int:
    """Ocupación promedio (%) de un día de la semana; 0 si no tiene franjas"""
    usages = [e.predicted_usage for e in entries if e.day == day]
    return round_half_up(sum(usages), len(usages))
