"""
Configuración central del Sistema de Análisis de Demanda del Cibercafé
"""
from pathlib import Path
from typing import Dict
import os

from dotenv import load_dotenv

# Variables de entorno (.env en el directorio de trabajo)
load_dotenv()

# ============== RUTAS DEL PROYECTO ==============
BASE_DIR = Path(os.getenv('CYBERDEMAND_HOME', Path.cwd()))
DATA_DIR = BASE_DIR / "data"
LOGS_DIR = BASE_DIR / "logs"
REPORTS_DIR = BASE_DIR / "reports"
STORAGE_DIR = DATA_DIR / "storage"

# ============== CONFIGURACIÓN DE DATOS ==============

# Columnas esperadas en los archivos de sesiones (CSV o JSON)
USAGE_COLUMNS = ['pcId', 'userId', 'duration', 'hour', 'day', 'timestamp']

# Mapeo de columnas externas a campos de UsageRecord
USAGE_COLUMN_MAPPING = {
    'pcId': 'pc_id',
    'userId': 'user_id',
    'duration': 'duration_minutes',
    'hour': 'hour_of_day',
    'day': 'day',
    'timestamp': 'timestamp',
}

# Identificador centinela para sesiones sin usuario
UNKNOWN_USER_ID = 'user-unknown'

HOURS_PER_DAY = 24

# Días de la semana (0=Lunes, 6=Domingo)
WEEKDAY_NAMES = ['Lunes', 'Martes', 'Miércoles', 'Jueves', 'Viernes', 'Sábado', 'Domingo']

# ============== CONFIGURACIÓN DE LIMPIEZA ==============

# Duración válida de una sesión (minutos)
MIN_SESSION_MINUTES = 15
MAX_SESSION_MINUTES = 240  # 4 horas

DATA_QUALITY_THRESHOLDS = {
    'max_invalid_percentage': 0.30,  # 30% máximo de registros descartados
    'outlier_iqr_factor': 1.5,
    'max_outlier_percentage': 5.0,
}

# ============== CONFIGURACIÓN DE PREDICCIÓN ==============

# Una hora es pico si supera PEAK_MULTIPLIER veces el promedio de las 24 horas
PEAK_MULTIPLIER = 1.5

# Horario de atención para el perfil semanal
OPENING_HOURS = list(range(8, 24))

# Número de PCs del local (si no hay repositorio de PCs)
TOTAL_PCS = 20

# Umbrales de ocupación (%) para clasificar la demanda
DEMAND_LEVEL_THRESHOLDS = {
    'alta': 70,
    'media': 40,
}

# Datos de ejemplo (relleno opcional cuando hay pocas sesiones)
SAMPLE_DATA_CONFIG = {
    'random_seed': 42,
    'min_records': 50,
    'target_records': 100,
    'pc_count': 20,
    'user_count': 50,
    'days_back': 30,
}

# ============== CONFIGURACIÓN DE LOGGING ==============

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
LOG_LEVEL = os.getenv('CYBERDEMAND_LOG_LEVEL', 'INFO')
LOG_TO_FILE = os.getenv('CYBERDEMAND_LOG_TO_FILE', 'true').lower() in ('1', 'true', 'yes')

# ============== CONFIGURACIÓN DE ALMACENAMIENTO ==============

# 'memory' o 'json'
STORAGE_BACKEND = os.getenv('CYBERDEMAND_STORAGE_BACKEND', 'json')

# Colecciones (mismos nombres que usaba la aplicación web)
SESSIONS_COLLECTION = 'cybercafe_sessions'
PCS_COLLECTION = 'cybercafe_pcs'

# ============== CONFIGURACIÓN DE LA API ==============

API_VERSION = '1.0.0'
API_HOST = os.getenv('CYBERDEMAND_API_HOST', '0.0.0.0')
API_PORT = int(os.getenv('CYBERDEMAND_API_PORT', '8000'))


# ============== EXPORTAR CONFIGURACIÓN ==============

def get_config() -> Dict:
    """Retorna todas las configuraciones como diccionario"""
    return {
        'paths': {
            'base_dir': str(BASE_DIR),
            'data_dir': str(DATA_DIR),
            'logs_dir': str(LOGS_DIR),
            'reports_dir': str(REPORTS_DIR),
            'storage_dir': str(STORAGE_DIR),
        },
        'data': {
            'usage_columns': USAGE_COLUMNS,
            'unknown_user_id': UNKNOWN_USER_ID,
        },
        'cleaning': {
            'min_session_minutes': MIN_SESSION_MINUTES,
            'max_session_minutes': MAX_SESSION_MINUTES,
        },
        'quality': DATA_QUALITY_THRESHOLDS,
        'prediction': {
            'peak_multiplier': PEAK_MULTIPLIER,
            'opening_hours': OPENING_HOURS,
            'total_pcs': TOTAL_PCS,
            'demand_levels': DEMAND_LEVEL_THRESHOLDS,
        },
        'storage': {
            'backend': STORAGE_BACKEND,
            'collections': [SESSIONS_COLLECTION, PCS_COLLECTION],
        },
    }


if __name__ == "__main__":
    config = get_config()
    print("✓ Configuración cargada exitosamente")
    print(f"✓ Directorio base: {config['paths']['base_dir']}")
    print(f"✓ Horario de atención: {OPENING_HOURS[0]}:00 - {OPENING_HOURS[-1]}:00")
