"""Severity-series decomposition, forecasting and trend analysis.

Each tracked symptom becomes a daily 0-100 severity series. The series is
split into trend (trailing moving average), weekly seasonality (per-weekday
mean of the detrended values) and residual, and the next week is forecast by
exponential smoothing blended with the same-weekday historical mean.

Forecasts are deterministic. The residual spread is reported as
``residual_std`` instead of being added to the predictions as noise.
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

from ..config import EngineSettings
from ..data_pipeline.features import SYMPTOM_CATALOG, SymptomDefinition, find_symptom, severity_series, sort_observations
from ..data_pipeline.normalization import exponential_smoothing, find_peaks, moving_average, weekday_means
from ..schemas import Decomposition, ForecastPoint, ForecastResult, Observation, TimeSeriesPoint, TrendAnalysis

logger = logging.getLogger(__name__)

MIN_DECOMPOSITION_POINTS = 14
TREND_WINDOW = 7
TREND_SPAN = 14
MONDAY, FRIDAY = 0, 4


def decompose(series: pd.Series, min_points: int = MIN_DECOMPOSITION_POINTS) -> Decomposition:
    """Split a date-indexed series into trend + seasonal + residual.

    ``raw == trend + seasonal + residual`` holds for every point. Short
    series are returned as pure trend with zero seasonal and residual.
    """
    n = len(series)
    if n < min_points:
        points = [
            TimeSeriesPoint(date=ts.date(), raw=float(v), trend=float(v), seasonal=0.0, residual=0.0)
            for ts, v in series.items()
        ]
        return Decomposition(points=points, window=0, status="insufficient_data")

    window = min(TREND_WINDOW, n // 3)
    trend = moving_average(series, window)
    detrended = series - trend
    means = weekday_means(detrended)
    seasonal = pd.Series(
        [means.get(day, 0.0) for day in series.index.dayofweek],
        index=series.index,
        dtype=float,
    )
    residual = series - trend - seasonal
    points = [
        TimeSeriesPoint(date=ts.date(), raw=float(r), trend=float(t), seasonal=float(s), residual=float(e))
        for ts, r, t, s, e in zip(
            series.index,
            series.to_numpy(),
            trend.to_numpy(),
            seasonal.to_numpy(),
            residual.to_numpy(),
        )
    ]
    return Decomposition(points=points, window=window)


def observation_factors(obs: Optional[Observation]) -> List[str]:
    if obs is None:
        return []
    factors = []
    if obs.sleep_hours < 6:
        factors.append("Poor sleep pattern")
    if obs.stress_level > 7:
        factors.append("High stress levels")
    if obs.caffeine:
        factors.append("Caffeine consumption")
    if obs.exercise:
        factors.append("Exercise (protective)")
    return factors


def weekday_factors(day: dt.date) -> List[str]:
    if day.weekday() == MONDAY:
        return ["Monday stress"]
    if day.weekday() == FRIDAY:
        return ["Weekend anticipation"]
    return []


def day_recommendations(predicted: float) -> List[str]:
    if predicted > 70:
        return [
            "High risk day - prioritize stress management",
            "Ensure 7+ hours of sleep tonight",
            "Avoid caffeine after 2pm",
        ]
    if predicted > 50:
        return ["Moderate risk - maintain healthy habits", "Consider light exercise"]
    return ["Low risk day - good time for new activities"]


def forecast_confidence(days_ahead: int) -> float:
    return round(max(0.1, 1.0 - 0.1 * days_ahead), 2)


def forecast(
    series: pd.Series,
    last_observation: Optional[Observation] = None,
    days: int = 7,
    alpha: float = 0.3,
) -> List[ForecastPoint]:
    """Forecast ``days`` future days after the last date in ``series``.

    The smoothed level is extended along its last step, then averaged 50/50
    with the historical mean for the same weekday and clipped to [0, 100].
    """
    if series.empty:
        return []
    smoothed = exponential_smoothing(series.tolist(), alpha)
    slope = smoothed[-1] - smoothed[-2] if len(smoothed) > 1 else 0.0
    same_weekday = weekday_means(series)
    last_date = series.index[-1].date()
    base_factors = observation_factors(last_observation)

    points = []
    for d in range(1, days + 1):
        day = last_date + dt.timedelta(days=d)
        predicted = smoothed[-1] + slope * d
        if day.weekday() in same_weekday:
            predicted = (predicted + same_weekday[day.weekday()]) / 2.0
        predicted = float(np.clip(predicted, 0.0, 100.0))
        points.append(
            ForecastPoint(
                date=day,
                predicted=predicted,
                confidence=forecast_confidence(d),
                contributing_factors=base_factors + weekday_factors(day),
                recommendations=day_recommendations(predicted),
            )
        )
    return points


def analyze_trend(series: pd.Series) -> TrendAnalysis:
    """Compare the last two fortnights of the 7-day moving average.

    A relative change above 10% sets the direction; strength is strong above
    20%, moderate above 10%. ``period`` is the spacing in days between the
    two most recent local peaks of the moving average.
    """
    stable = TrendAnalysis(direction="stable", strength="weak", period=0)
    if len(series) < TREND_WINDOW:
        return stable
    averaged = moving_average(series, TREND_WINDOW).to_numpy()
    recent = averaged[-TREND_SPAN:]
    older = averaged[-2 * TREND_SPAN:-TREND_SPAN]
    if recent.size == 0 or older.size == 0:
        return stable

    recent_avg = float(recent.mean())
    older_avg = float(older.mean())
    change = recent_avg - older_avg
    if older_avg > 0:
        relative = change / older_avg
    else:
        relative = 1.0 if change > 0 else 0.0

    if relative > 0.1:
        direction = "increasing"
    elif relative < -0.1:
        direction = "decreasing"
    else:
        direction = "stable"
    magnitude = abs(relative)
    strength = "strong" if magnitude > 0.2 else "moderate" if magnitude > 0.1 else "weak"

    peaks = find_peaks(averaged)
    period = 0
    if len(peaks) > 1:
        period = (series.index[peaks[-1]] - series.index[peaks[-2]]).days

    last_date = series.index[-1].date()
    upcoming = last_date + dt.timedelta(days=period) if period > 0 else None
    return TrendAnalysis(
        direction=direction,
        strength=strength,
        period=period,
        change_pct=relative * 100.0,
        next_peak=upcoming if direction == "increasing" else None,
        next_trough=upcoming if direction == "decreasing" else None,
    )


class Forecaster:
    """Per-symptom forecasts built from the full observation history."""

    def __init__(
        self,
        settings: Optional[EngineSettings] = None,
        catalog: Sequence[SymptomDefinition] = SYMPTOM_CATALOG,
    ) -> None:
        self.settings = settings or EngineSettings()
        self.catalog = list(catalog)

    def forecast(self, observations: Sequence[Observation], symptom: str) -> ForecastResult:
        """Forecast one symptom's severity and describe its trend."""
        definition = find_symptom(symptom, self.catalog)
        if definition is None:
            logger.warning("Cannot forecast unknown symptom %r", symptom)
            return ForecastResult(
                symptom=symptom,
                points=[],
                trend=TrendAnalysis(direction="stable", strength="weak", period=0),
                decomposition=Decomposition(points=[], window=0, status="no_model"),
                residual_std=0.0,
                status="no_model",
            )

        ordered = sort_observations(observations)
        series = severity_series(ordered, definition.labeler)
        decomposition = decompose(series, self.settings.min_decomposition_points)
        residuals = np.array([p.residual for p in decomposition.points], dtype=float)
        residual_std = float(residuals.std()) if residuals.size else 0.0
        trend = analyze_trend(series)

        if len(series) < self.settings.min_decomposition_points:
            logger.info(
                "Forecast for %s skipped: %d days of history (need %d)",
                definition.name, len(series), self.settings.min_decomposition_points,
            )
            return ForecastResult(
                symptom=definition.name,
                points=[],
                trend=trend,
                decomposition=decomposition,
                residual_std=residual_std,
                status="insufficient_data",
            )

        points = forecast(
            series,
            last_observation=ordered[-1],
            days=self.settings.forecast_days,
            alpha=self.settings.smoothing_alpha,
        )
        return ForecastResult(
            symptom=definition.name,
            points=points,
            trend=trend,
            decomposition=decomposition,
            residual_std=residual_std,
        )
