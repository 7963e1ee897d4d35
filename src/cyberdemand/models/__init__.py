"""
Modelos del dominio y métricas de ajuste
Sistema de Análisis de Demanda del Cibercafé
"""

from cyberdemand.models.records import (
    UsageRecord, HourlyPrediction, TrainingResult, SessionLog, SessionStatus,
    PC, PCStatus, DemandLevel, WeeklyDemandEntry
)
from cyberdemand.models.metrics import calculate_mape, calculate_correlation, calculate_all_metrics

__all__ = [
    'UsageRecord',
    'HourlyPrediction',
    'TrainingResult',
    'SessionLog',
    'SessionStatus',
    'PC',
    'PCStatus',
    'DemandLevel',
    'WeeklyDemandEntry',
    'calculate_mape',
    'calculate_correlation',
    'calculate_all_metrics'
]
