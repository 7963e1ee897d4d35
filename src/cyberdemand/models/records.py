"""
Registros del dominio: sesiones de uso, predicciones horarias y resultados

Los modelos validan únicamente la forma (tipos y rangos estructurales).
Las reglas de negocio (duración mínima/máxima, usuario desconocido) se
aplican en el filtro de validez del agregador.
"""
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from cyberdemand.config.settings import WEEKDAY_NAMES


class UsageRecord(BaseModel):
    """Una sesión observada en una PC del cibercafé"""
    pc_id: str = Field("", description="Identificador de la PC (ej: 'PC-7')")
    user_id: str = Field("", description="Identificador del usuario de la sesión")
    duration_minutes: int = Field(..., description="Minutos de uso activo")
    hour_of_day: int = Field(..., ge=0, le=23, description="Hora de inicio de la sesión (0-23)")
    timestamp: Optional[datetime] = Field(None, description="Fecha y hora de inicio (ISO-8601)")
    day: Optional[str] = Field(None, description="Etiqueta de fecha tal como venía en la fuente")


class HourlyPrediction(BaseModel):
    """Duración promedio estimada para una hora del día"""
    hour: int = Field(..., ge=0, le=23)
    average_duration_minutes: int = Field(..., ge=0, description="Promedio redondeado (0 si no hay datos)")


class TrainingResult(BaseModel):
    """Resultado del análisis de demanda por hora"""
    accuracy_score: float = Field(..., ge=0.0, le=1.0, description="1 - MAPE/100 del promedio horario")
    predictions: List[HourlyPrediction] = Field(..., description="24 predicciones ordenadas por hora")
    peak_hours: List[int] = Field(default_factory=list, description="Horas pico, orden ascendente")
    average_duration_overall: int = Field(0, description="Duración promedio de los registros válidos")
    records_used: int = Field(0, description="Registros válidos usados en el cálculo")
    metrics: Dict[str, float] = Field(default_factory=dict, description="Métricas de ajuste del promedio horario")

    def prediction_for(self, hour: int) -> HourlyPrediction:
        return self.predictions[hour]


class SessionStatus(str, Enum):
    """Estados de una sesión almacenada"""
    ACTIVE = "active"
    ENDED = "ended"


class SessionLog(BaseModel):
    """Sesión almacenada en el repositorio (colección cybercafe_sessions)"""
    id: str
    pc_id: Optional[str] = None
    user_id: Optional[str] = None
    start_time: Optional[datetime] = None
    duration: Optional[int] = Field(None, description="Duración en minutos")
    status: SessionStatus = SessionStatus.ACTIVE


class PCStatus(str, Enum):
    """Estados posibles de una PC"""
    LIBRE = "libre"
    OCUPADA = "ocupada"
    MANTENIMIENTO = "mantenimiento"


class PC(BaseModel):
    """Estación de trabajo del cibercafé (colección cybercafe_pcs)"""
    id: str
    number: int = Field(..., ge=1)
    status: PCStatus = PCStatus.LIBRE
    location: str = ""
    specs: str = ""


class DemandLevel(str, Enum):
    """Clasificación de la ocupación prevista"""
    BAJA = "baja"
    MEDIA = "media"
    ALTA = "alta"


class WeeklyDemandEntry(BaseModel):
    """Ocupación prevista para un día de la semana y una hora"""
    day: str
    hour: int = Field(..., ge=0, le=23)
    predicted_usage: int = Field(..., ge=0, le=100, description="Porcentaje de ocupación")
    level: DemandLevel

    @field_validator('day')
    @classmethod
    def validate_day(cls, v: str) -> str:
        """Valida que el día sea un nombre de día de la semana"""
        if v not in WEEKDAY_NAMES:
            raise ValueError(f"Día inválido: {v}. Usar uno de {WEEKDAY_NAMES}")
        return v
