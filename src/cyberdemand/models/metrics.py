"""
Métricas de Ajuste del Modelo de Demanda Horaria

El "modelo" asigna a cada sesión la duración promedio de su hora de inicio.
Estas métricas miden qué tan bien ese promedio describe las sesiones reales
y reemplazan la precisión aleatoria que mostraba la interfaz original.

Todas las funciones retornan valores finitos (0.0) ante entradas vacías o
degeneradas para que el resultado sea serializable a JSON.
"""

import numpy as np
import pandas as pd
from typing import Union, Dict
from scipy.stats import pearsonr
from sklearn.metrics import mean_absolute_error, mean_squared_error, r2_score


ArrayLike = Union[np.ndarray, pd.Series, list]


def calculate_mape(y_true: ArrayLike,
                   y_pred: ArrayLike,
                   epsilon: float = 1e-10) -> float:
    """
    Calcula el Mean Absolute Percentage Error (MAPE)

    Args:
        y_true: Valores reales
        y_pred: Valores predichos
        epsilon: Valor pequeño para evitar división por cero

    Returns:
        MAPE en porcentaje (0 si no hay valores reales distintos de cero)
    """
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)

    # Evitar división por cero
    mask = np.abs(y_true) > epsilon

    if not mask.any():
        return 0.0

    mape = np.mean(np.abs((y_true[mask] - y_pred[mask]) / y_true[mask])) * 100
    return float(mape)


def calculate_correlation(y_true: ArrayLike, y_pred: ArrayLike) -> float:
    """
    Calcula el coeficiente de correlación de Pearson (r_xy)

    Returns:
        Coeficiente de correlación (-1 a 1), 0 si alguna serie es constante
    """
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)

    if len(y_true) < 2 or np.std(y_true) == 0 or np.std(y_pred) == 0:
        return 0.0

    correlation, _ = pearsonr(y_true, y_pred)
    return float(correlation)


def accuracy_from_mape(mape: float) -> float:
    """Convierte MAPE (%) en un puntaje de precisión en [0, 1]"""
    return float(np.clip(1.0 - mape / 100.0, 0.0, 1.0))


def calculate_all_metrics(y_true: ArrayLike, y_pred: ArrayLike) -> Dict[str, float]:
    """
    Calcula todas las métricas de ajuste

    Args:
        y_true: Duraciones reales de las sesiones
        y_pred: Duración promedio de la hora de cada sesión

    Returns:
        Diccionario con mape, mae, rmse, r2 y correlation
    """
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)

    # Eliminar NaN
    mask = ~(np.isnan(y_true) | np.isnan(y_pred))
    y_true_clean = y_true[mask]
    y_pred_clean = y_pred[mask]

    if len(y_true_clean) == 0:
        return {
            'mape': 0.0,
            'mae': 0.0,
            'rmse': 0.0,
            'r2': 0.0,
            'correlation': 0.0
        }

    # r2_score no está definido con una sola muestra
    r2 = float(r2_score(y_true_clean, y_pred_clean)) if len(y_true_clean) > 1 else 0.0

    return {
        'mape': calculate_mape(y_true_clean, y_pred_clean),
        'mae': float(mean_absolute_error(y_true_clean, y_pred_clean)),
        'rmse': float(np.sqrt(mean_squared_error(y_true_clean, y_pred_clean))),
        'r2': r2,
        'correlation': calculate_correlation(y_true_clean, y_pred_clean)
    }
