"""
API del Sistema de Análisis de Demanda del Cibercafé
====================================================

Endpoints:
    POST /analyze - Analiza un lote de sesiones (demanda por hora y horas pico)
    POST /analyze/sessions - Analiza las sesiones almacenadas
    GET /demand/weekly - Perfil semanal de ocupación
    GET/POST/DELETE /sessions - Administración de sesiones
    GET/POST/PATCH/DELETE /pcs - Administración de PCs
    GET /health - Estado del sistema

Versión: 1.0.0
"""

from fastapi import FastAPI, HTTPException, Depends, status
from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime
import logging
import traceback

from cyberdemand.config.settings import (
    API_VERSION, API_HOST, API_PORT, LOG_FORMAT, LOG_LEVEL,
    SESSIONS_COLLECTION, PCS_COLLECTION, WEEKDAY_NAMES
)
from cyberdemand.models.records import (
    UsageRecord, TrainingResult, SessionLog, PC, PCStatus, WeeklyDemandEntry
)
from cyberdemand.pipeline.connectors import RepositoryConnector
from cyberdemand.pipeline.cleaning import UsageDataCleaner
from cyberdemand.prediction.aggregator import summarize
from cyberdemand.prediction.weekly_profile import WeeklyDemandProfile, weekly_stats, day_average
from cyberdemand.storage.repository import Repository, create_repository, end_session

logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Cybercafe Demand Analysis API",
    description="API de análisis de demanda por hora para el cibercafé",
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc"
)

# ============================================================================
# SCHEMAS DE REQUEST/RESPONSE
# ============================================================================

class AnalyzeRequest(BaseModel):
    """Schema para solicitud de análisis"""
    records: List[UsageRecord] = Field(
        default_factory=list,
        description="Sesiones a analizar (los registros inválidos se descartan)"
    )


class AnalyzeResponse(BaseModel):
    """Schema para respuesta de análisis"""
    status: str = Field(..., description="Estado de la operación")
    message: str = Field(..., description="Mensaje descriptivo")
    result: TrainingResult
    quality: Dict[str, Any] = Field(..., description="Estadísticas de limpieza")
    recommendation: Optional[str] = Field(None, description="Sugerencia para las horas pico")


class WeeklyDemandResponse(BaseModel):
    """Schema para el perfil semanal"""
    day: Optional[str] = None
    pc_count: int
    entries: List[WeeklyDemandEntry]
    stats: Dict[str, int]
    day_average: Optional[int] = Field(None, description="Ocupación promedio del día consultado")


class PCStatusUpdate(BaseModel):
    """Schema para cambiar el estado de una PC"""
    status: PCStatus = Field(..., description="Nuevo estado: libre, ocupada o mantenimiento")


class HealthResponse(BaseModel):
    """Schema para respuesta de health check"""
    status: str
    timestamp: str
    version: str
    components: Dict[str, Dict[str, Any]]


# ============================================================================
# DEPENDENCIAS
# ============================================================================

_repositories: Dict[str, Repository] = {}


def get_session_repository() -> Repository[SessionLog]:
    """Repositorio de sesiones (se reemplaza en pruebas)"""
    if SESSIONS_COLLECTION not in _repositories:
        _repositories[SESSIONS_COLLECTION] = create_repository(SESSIONS_COLLECTION, SessionLog)
    return _repositories[SESSIONS_COLLECTION]


def get_pc_repository() -> Repository[PC]:
    """Repositorio de PCs (se reemplaza en pruebas)"""
    if PCS_COLLECTION not in _repositories:
        _repositories[PCS_COLLECTION] = create_repository(PCS_COLLECTION, PC)
    return _repositories[PCS_COLLECTION]


def _peak_recommendation(result: TrainingResult) -> Optional[str]:
    if not result.peak_hours:
        return None
    hours = ', '.join(f"{hour:02d}:00" for hour in result.peak_hours)
    return f"Horas pico: {hours}. Considera aumentar personal o recursos durante estas horas"


def _analyze(records: List[UsageRecord]) -> AnalyzeResponse:
    clean_records, report = UsageDataCleaner().clean(records)
    result = summarize(clean_records)

    return AnalyzeResponse(
        status="success",
        message=f"Análisis completado con {result.records_used} registros válidos de {len(records)}",
        result=result,
        quality=report.to_dict(),
        recommendation=_peak_recommendation(result)
    )


# ============================================================================
# ENDPOINTS
# ============================================================================

@app.post("/analyze", response_model=AnalyzeResponse, status_code=status.HTTP_200_OK)
async def analyze_records(request: AnalyzeRequest):
    """
    Analiza un lote de sesiones

    Flujo:
    1. Elimina registros no funcionales (duración fuera de 15-240 min, PC o usuario faltante)
    2. Calcula la duración promedio para cada hora (0-23)
    3. Detecta horas pico (> 1.5 veces el promedio de las 24 horas)
    """
    logger.info(f"📊 Analizando {len(request.records)} registros recibidos")
    return _analyze(request.records)


@app.post("/analyze/sessions", response_model=AnalyzeResponse, status_code=status.HTTP_200_OK)
async def analyze_stored_sessions(repository: Repository[SessionLog] = Depends(get_session_repository)):
    """Analiza las sesiones almacenadas en el repositorio"""
    try:
        records = RepositoryConnector({'repository': repository}).read_records()
    except ValueError as e:
        logger.error(f"❌ Error leyendo sesiones: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error leyendo sesiones: {str(e)}"
        )
    return _analyze(records)


@app.get("/demand/weekly", response_model=WeeklyDemandResponse, status_code=status.HTTP_200_OK)
async def weekly_demand(day: Optional[str] = None,
                        sessions: Repository[SessionLog] = Depends(get_session_repository),
                        pcs: Repository[PC] = Depends(get_pc_repository)):
    """
    Perfil semanal de ocupación (porcentaje por día y hora)

    Args:
        day: (Opcional) Día de la semana, ej: 'Lunes'
    """
    if day is not None and day not in WEEKDAY_NAMES:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Día inválido: {day}. Usar uno de {WEEKDAY_NAMES}"
        )

    records = RepositoryConnector({'repository': sessions}).read_records()
    clean_records, _ = UsageDataCleaner().clean(records)

    profile = WeeklyDemandProfile(pc_count=pcs.count() or None).fit(clean_records)
    week = profile.entries()
    entries = [e for e in week if e.day == day] if day else week

    return WeeklyDemandResponse(
        day=day,
        pc_count=profile.pc_count,
        entries=entries,
        stats=weekly_stats(week),
        day_average=day_average(week, day) if day else None
    )


@app.get("/sessions", response_model=List[SessionLog], status_code=status.HTTP_200_OK)
async def list_sessions(repository: Repository[SessionLog] = Depends(get_session_repository)):
    """Lista las sesiones almacenadas"""
    return repository.list()


@app.post("/sessions", response_model=SessionLog, status_code=status.HTTP_201_CREATED)
async def create_session(session: SessionLog,
                         repository: Repository[SessionLog] = Depends(get_session_repository)):
    """Registra una sesión nueva"""
    try:
        return repository.insert(session)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@app.post("/sessions/{session_id}/end", response_model=SessionLog, status_code=status.HTTP_200_OK)
async def finish_session(session_id: str,
                         repository: Repository[SessionLog] = Depends(get_session_repository)):
    """Finaliza una sesión activa"""
    try:
        return end_session(repository, session_id)
    except KeyError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Sesión no encontrada: {session_id}"
        )


@app.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(session_id: str,
                         repository: Repository[SessionLog] = Depends(get_session_repository)):
    """Elimina una sesión"""
    try:
        repository.delete(session_id)
    except KeyError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Sesión no encontrada: {session_id}"
        )


@app.get("/pcs", response_model=List[PC], status_code=status.HTTP_200_OK)
async def list_pcs(repository: Repository[PC] = Depends(get_pc_repository)):
    """Lista las PCs del local"""
    return repository.list()


@app.post("/pcs", response_model=PC, status_code=status.HTTP_201_CREATED)
async def create_pc(pc: PC, repository: Repository[PC] = Depends(get_pc_repository)):
    """Registra una PC nueva"""
    try:
        return repository.insert(pc)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@app.patch("/pcs/{pc_id}", response_model=PC, status_code=status.HTTP_200_OK)
async def update_pc_status(pc_id: str, update: PCStatusUpdate,
                           repository: Repository[PC] = Depends(get_pc_repository)):
    """Cambia el estado de una PC (libre, ocupada, mantenimiento)"""
    try:
        return repository.update(pc_id, {'status': update.status})
    except KeyError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"PC no encontrada: {pc_id}"
        )


@app.delete("/pcs/{pc_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_pc(pc_id: str, repository: Repository[PC] = Depends(get_pc_repository)):
    """Elimina una PC"""
    try:
        repository.delete(pc_id)
    except KeyError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"PC no encontrada: {pc_id}"
        )


@app.get("/health", response_model=HealthResponse, status_code=status.HTTP_200_OK)
async def health_check(sessions: Repository[SessionLog] = Depends(get_session_repository),
                       pcs: Repository[PC] = Depends(get_pc_repository)):
    """
    Health check del sistema

    Verifica que los repositorios de sesiones y PCs se puedan leer
    """
    components = {}

    for name, repository in (('sessions', sessions), ('pcs', pcs)):
        try:
            components[name] = {
                'status': 'healthy',
                'collection': repository.collection,
                'count': repository.count()
            }
        except (ValueError, OSError) as e:
            logger.error(f"❌ Repositorio '{repository.collection}' no disponible: {str(e)}")
            logger.error(traceback.format_exc())
            components[name] = {
                'status': 'unavailable',
                'collection': repository.collection,
                'error': str(e)
            }

    all_healthy = all(comp.get('status') == 'healthy' for comp in components.values())

    return HealthResponse(
        status='healthy' if all_healthy else 'degraded',
        timestamp=datetime.now().isoformat(),
        version=API_VERSION,
        components=components
    )


@app.get("/", status_code=status.HTTP_200_OK)
async def root():
    """
    Endpoint raíz con información de la API
    """
    return {
        "api": "Cybercafe Demand Analysis API",
        "version": API_VERSION,
        "status": "operational",
        "docs": "/docs",
        "endpoints": {
            "POST /analyze": "Analiza un lote de sesiones",
            "POST /analyze/sessions": "Analiza las sesiones almacenadas",
            "GET /demand/weekly": "Perfil semanal de ocupación",
            "GET /sessions": "Lista de sesiones",
            "POST /sessions": "Registra una sesión",
            "POST /sessions/{id}/end": "Finaliza una sesión",
            "DELETE /sessions/{id}": "Elimina una sesión",
            "GET /pcs": "Lista de PCs",
            "POST /pcs": "Registra una PC",
            "PATCH /pcs/{id}": "Cambia el estado de una PC",
            "DELETE /pcs/{id}": "Elimina una PC",
            "GET /health": "Estado del sistema"
        }
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=API_HOST, port=API_PORT)
