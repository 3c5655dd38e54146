"""
Rolling-window and smoothing helpers for daily severity series.

All helpers avoid look-ahead: a value at day ``i`` only ever depends on days
``<= i``.
"""

from __future__ import annotations

from typing import Dict, List, Sequence

import numpy as np
import pandas as pd


def moving_average(values: pd.Series, window: int) -> pd.Series:
    """Trailing moving average over ``window`` days.

    The first ``window - 1`` points have no full window behind them and keep
    their raw value. A series shorter than the window is returned unchanged.
    """
    if window <= 1 or len(values) < window:
        return values.astype(float).copy()
    trend = values.rolling(window=window, min_periods=window).mean()
    return trend.fillna(values).astype(float)


def weekday_means(values: pd.Series) -> Dict[int, float]:
    """Average value per day of week (Monday=0) over a date-indexed series."""
    if values.empty:
        return {}
    grouped = values.groupby(values.index.dayofweek).mean()
    return {int(day): float(v) for day, v in grouped.items()}


def exponential_smoothing(values: Sequence[float], alpha: float) -> List[float]:
    """Simple exponential smoothing seeded with the first observation."""
    smoothed: List[float] = []
    for v in values:
        if not smoothed:
            smoothed.append(float(v))
        else:
            smoothed.append(alpha * float(v) + (1.0 - alpha) * smoothed[-1])
    return smoothed


def find_peaks(values: Sequence[float]) -> List[int]:
    """Indices of strict local maxima."""
    arr = np.asarray(values, dtype=float)
    if arr.size < 3:
        return []
    mask = (arr[1:-1] > arr[:-2]) & (arr[1:-1] > arr[2:])
    return [int(i) + 1 for i in np.flatnonzero(mask)]
