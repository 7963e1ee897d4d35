"""Configuración del sistema de análisis de demanda"""

from .settings import *
