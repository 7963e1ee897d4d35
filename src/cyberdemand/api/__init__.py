"""API REST del análisis de demanda"""
