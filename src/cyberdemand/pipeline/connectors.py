"""
Conectores automatizados para lectura de sesiones desde múltiples fuentes
Soporta: CSV, JSON, repositorio de sesiones (extensible)

Todos los conectores entregan UsageRecord tipados. Las filas que no se pueden
tipar (duración no numérica, hora fuera de 0-23) se descartan en esta frontera
y se cuentan en `rejected_rows`; las reglas de negocio se aplican después, en
la etapa de limpieza.
"""
import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from cyberdemand.config.settings import (
    USAGE_COLUMN_MAPPING, UNKNOWN_USER_ID, SAMPLE_DATA_CONFIG
)
from cyberdemand.models.records import UsageRecord, SessionLog
from cyberdemand.storage.repository import Repository

logger = logging.getLogger(__name__)


def _clean_identifier(value, default: str) -> str:
    """Normaliza un identificador: NaN/None/vacío -> default"""
    if value is None or (isinstance(value, float) and np.isnan(value)):
        return default
    value = str(value).strip()
    return value or default


def _parse_timestamp(value) -> Optional[datetime]:
    """
    Lee un timestamp conservando su propio offset, de modo que .hour y
    .weekday() son la hora local en que empezó la sesión. None si no se
    puede leer.
    """
    if value is None or (isinstance(value, float) and np.isnan(value)):
        return None
    try:
        timestamp = pd.Timestamp(value)
    except (ValueError, TypeError):
        return None
    return None if pd.isna(timestamp) else timestamp.to_pydatetime()


def records_from_dataframe(df: pd.DataFrame) -> Tuple[List[UsageRecord], int]:
    """
    Convierte un DataFrame con columnas pcId,userId,duration,hour,day,timestamp
    en UsageRecord tipados.

    Args:
        df: DataFrame crudo (columnas faltantes se tratan como vacías)

    Returns:
        Tuple con (registros, número de filas rechazadas)
    """
    df = df.rename(columns=USAGE_COLUMN_MAPPING).copy()
    for column in USAGE_COLUMN_MAPPING.values():
        if column not in df.columns:
            df[column] = None

    # Conversión de tipos; lo que no se puede convertir queda como NaN/None
    df['duration_minutes'] = pd.to_numeric(df['duration_minutes'], errors='coerce')
    df['hour_of_day'] = pd.to_numeric(df['hour_of_day'], errors='coerce')
    df['timestamp'] = pd.Series(
        [_parse_timestamp(value) for value in df['timestamp']], index=df.index, dtype=object
    )

    # Hora derivada del timestamp cuando no viene explícita (hora local de la sesión)
    timestamp_hours = pd.Series(
        [np.nan if ts is None else ts.hour for ts in df['timestamp']], index=df.index, dtype=float
    )
    df['hour_of_day'] = df['hour_of_day'].fillna(timestamp_hours)

    typed = (
        df['duration_minutes'].notna()
        & (df['duration_minutes'] % 1 == 0)
        & df['hour_of_day'].notna()
        & (df['hour_of_day'] % 1 == 0)
        & df['hour_of_day'].between(0, 23)
    )
    rejected = int((~typed).sum())
    if rejected:
        logger.warning(f"⚠ {rejected} filas no pudieron ser tipadas y fueron descartadas")

    records = []
    for row in df[typed].to_dict('records'):
        timestamp = row['timestamp']
        records.append(UsageRecord(
            pc_id=_clean_identifier(row['pc_id'], ''),
            user_id=_clean_identifier(row['user_id'], UNKNOWN_USER_ID),
            duration_minutes=int(row['duration_minutes']),
            hour_of_day=int(row['hour_of_day']),
            timestamp=timestamp if isinstance(timestamp, datetime) else None,
            day=_clean_identifier(row['day'], '') or None
        ))

    return records, rejected


def session_to_record(session: SessionLog) -> Optional[UsageRecord]:
    """
    Convierte una sesión almacenada en UsageRecord.

    La hora y la fecha se toman de start_time; un usuario faltante se marca
    con el centinela y una PC faltante queda vacía para que el filtro de
    validez la descarte. Sin start_time o sin duración no hay registro.
    """
    if session.start_time is None or session.duration is None:
        return None

    return UsageRecord(
        pc_id=_clean_identifier(session.pc_id, ''),
        user_id=_clean_identifier(session.user_id, UNKNOWN_USER_ID),
        duration_minutes=session.duration,
        hour_of_day=session.start_time.hour,
        timestamp=session.start_time,
        day=session.start_time.date().isoformat()
    )


class DataConnector(ABC):
    """Clase base abstracta para todos los conectores de sesiones"""

    def __init__(self, config: Dict):
        self.config = config
        self.last_read_timestamp = None
        self.rejected_rows = 0

    @abstractmethod
    def read_records(self) -> List[UsageRecord]:
        """Método abstracto para leer registros"""
        pass

    @abstractmethod
    def validate_connection(self) -> bool:
        """Valida que la conexión a la fuente de datos sea válida"""
        pass

    def log_read(self, rows: int, source: str):
        """Registra información sobre la lectura de datos"""
        self.last_read_timestamp = datetime.now()
        logger.info(f"✓ Datos leídos desde {source}: {rows} registros a las {self.last_read_timestamp}")


class FileConnector(DataConnector):
    """Base para conectores de archivos locales"""

    def __init__(self, config: Dict):
        super().__init__(config)
        self.file_path = Path(config.get('path', ''))

    def validate_connection(self) -> bool:
        """Valida que el archivo existe"""
        if self.file_path.is_file():
            logger.info(f"✓ Archivo encontrado: {self.file_path}")
            return True
        else:
            logger.error(f"✗ Archivo no encontrado: {self.file_path}")
            return False

    @abstractmethod
    def _read_frame(self) -> pd.DataFrame:
        pass

    def read_records(self) -> List[UsageRecord]:
        """Lee el archivo y lo convierte en registros tipados"""
        if not self.validate_connection():
            raise FileNotFoundError(f"Archivo no encontrado: {self.file_path}")

        self.rejected_rows = 0
        try:
            df = self._read_frame()
        except Exception as e:
            logger.error(f"Error leyendo {self.file_path}: {str(e)}")
            raise

        records, rejected = records_from_dataframe(df)
        self.rejected_rows += rejected
        self.log_read(len(records), str(self.file_path))
        return records


class CSVConnector(FileConnector):
    """Conector para archivos CSV (pcId,userId,duration,hour,day,timestamp)"""

    def _read_frame(self) -> pd.DataFrame:
        return pd.read_csv(self.file_path, dtype={'pcId': str, 'userId': str, 'day': str})


class JSONConnector(FileConnector):
    """Conector para archivos JSON con un arreglo de objetos de sesión"""

    def _read_frame(self) -> pd.DataFrame:
        with open(self.file_path, 'r', encoding='utf-8') as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(f"JSON inválido en {self.file_path}: {e}") from e

        if not isinstance(data, list):
            raise ValueError(f"Se esperaba un arreglo JSON en {self.file_path}")

        # Elementos que no son objetos no se pueden tipar
        rows = [item for item in data if isinstance(item, dict)]
        self.rejected_rows = len(data) - len(rows)
        return pd.DataFrame(rows)


class RepositoryConnector(DataConnector):
    """Conector que lee sesiones desde un repositorio (cybercafe_sessions)"""

    def __init__(self, config: Dict):
        super().__init__(config)
        self.repository: Repository[SessionLog] = config['repository']

    def validate_connection(self) -> bool:
        return self.repository is not None

    def read_records(self) -> List[UsageRecord]:
        self.rejected_rows = 0
        sessions = self.repository.list()
        records = []
        for session in sessions:
            record = session_to_record(session)
            if record is None:
                self.rejected_rows += 1
            else:
                records.append(record)

        self.log_read(len(records), f"repositorio '{self.repository.collection}'")
        return records


class DataConnectorFactory:
    """Factory para crear conectores según tipo de fuente"""

    @staticmethod
    def create_connector(source_type: str, config: Dict) -> DataConnector:
        """
        Crea un conector según el tipo de fuente

        Args:
            source_type: Tipo de fuente ('csv', 'json', 'repository')
            config: Configuración del conector

        Returns:
            Instancia del conector apropiado
        """
        connector_map = {
            'csv': CSVConnector,
            'json': JSONConnector,
            'repository': RepositoryConnector,
        }

        connector_class = connector_map.get(source_type.lower())

        if not connector_class:
            raise ValueError(f"Tipo de conector no soportado: {source_type}")

        logger.info(f"✓ Creando conector de tipo: {source_type}")
        return connector_class(config)

    @staticmethod
    def for_path(file_path: Union[str, Path]) -> DataConnector:
        """Crea el conector apropiado según la extensión del archivo"""
        suffix = Path(file_path).suffix.lower().lstrip('.')
        if suffix not in ('csv', 'json'):
            raise ValueError(f"Formato de archivo no soportado: {file_path}")
        return DataConnectorFactory.create_connector(suffix, {'path': str(file_path)})


# ============== FUNCIONES DE UTILIDAD ==============

def load_usage_records(file_path: Union[str, Path]) -> List[UsageRecord]:
    """
    Función de utilidad para cargar sesiones desde CSV o JSON

    Args:
        file_path: Ruta al archivo (.csv o .json)

    Returns:
        Lista de UsageRecord tipados (aún sin filtro de validez)
    """
    connector = DataConnectorFactory.for_path(file_path)
    return connector.read_records()


def generate_sample_records(n: int = 100,
                            seed: Optional[int] = None,
                            reference_time: Optional[datetime] = None) -> List[UsageRecord]:
    """
    Genera sesiones de ejemplo reproducibles (demostraciones y pruebas)

    Args:
        n: Número de registros
        seed: Semilla aleatoria (por defecto SAMPLE_DATA_CONFIG['random_seed'])
        reference_time: Fecha de referencia; las sesiones caen en los
            días anteriores (por defecto ahora)

    Returns:
        Lista de UsageRecord
    """
    cfg = SAMPLE_DATA_CONFIG
    rng = np.random.default_rng(cfg['random_seed'] if seed is None else seed)
    reference_time = reference_time or datetime.now()

    records = []
    for _ in range(n):
        days_ago = int(rng.integers(0, cfg['days_back']))
        hour = int(rng.integers(0, 24))
        minute = int(rng.integers(0, 60))
        start = (reference_time - timedelta(days=days_ago)).replace(
            hour=hour, minute=minute, second=0, microsecond=0
        )
        records.append(UsageRecord(
            pc_id=f"PC-{int(rng.integers(1, cfg['pc_count'] + 1))}",
            user_id=f"user-{int(rng.integers(1, cfg['user_count'] + 1))}",
            duration_minutes=int(rng.integers(30, 150)),
            hour_of_day=hour,
            timestamp=start,
            day=start.date().isoformat()
        ))

    return records


def pad_with_samples(records: Sequence[UsageRecord],
                     minimum: Optional[int] = None,
                     target: Optional[int] = None,
                     seed: Optional[int] = None) -> List[UsageRecord]:
    """
    Completa con sesiones de ejemplo cuando hay menos de `minimum` registros

    Args:
        records: Registros reales
        minimum: Umbral mínimo (por defecto SAMPLE_DATA_CONFIG['min_records'])
        target: Total deseado tras el relleno (por defecto 'target_records')
        seed: Semilla aleatoria

    Returns:
        Registros reales seguidos de los de ejemplo (si hicieron falta)
    """
    minimum = SAMPLE_DATA_CONFIG['min_records'] if minimum is None else minimum
    target = SAMPLE_DATA_CONFIG['target_records'] if target is None else target

    records = list(records)
    if len(records) >= minimum:
        return records

    missing = max(target - len(records), 0)
    logger.info(f"Solo {len(records)} registros; agregando {missing} sesiones de ejemplo")
    return records + generate_sample_records(missing, seed=seed)
