"""Pipeline de análisis: conectores, limpieza, monitoreo y orquestación"""
