"""
Módulo de Predicción de Demanda
===============================

Agregación horaria de sesiones y perfil semanal de ocupación
"""

from .aggregator import (
    DemandAggregator, filter_valid, aggregate_by_hour, detect_peak_hours, summarize
)
from .weekly_profile import WeeklyDemandProfile, classify_demand, weekly_stats, day_average

__all__ = [
    'DemandAggregator',
    'filter_valid',
    'aggregate_by_hour',
    'detect_peak_hours',
    'summarize',
    'WeeklyDemandProfile',
    'classify_demand',
    'weekly_stats',
    'day_average'
]
