"""
Sistema de Análisis de Demanda - Cibercafé
==========================================

Agregación horaria de sesiones de uso, detección de horas pico y
perfil semanal de ocupación.
"""

__version__ = "1.0.0"
