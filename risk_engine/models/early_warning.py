"""Early warnings from forecasts, recent risk factors and weekly sequences.

Two sources raise warnings:

* the per-symptom severity forecast, when one of the next few days is
  predicted above the warning threshold, and
* the sequence predictor, once across all symptoms, when the most recent
  days score above the sequence threshold.

Warnings from both sources are merged and ranked by probability, highest
first. Overlapping warnings for the same symptom are all kept.
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import List, Optional, Sequence

import numpy as np

from ..config import EngineSettings
from ..data_pipeline.features import (
    SYMPTOM_CATALOG,
    SymptomDefinition,
    any_symptom,
    build_weekly_sequences,
    extract_features,
    sort_observations,
)
from ..schemas import EarlyWarning, ForecastPoint, Observation, RiskFactor
from .forecaster import Forecaster
from .sequence import SequencePredictor

logger = logging.getLogger(__name__)

SEQUENCE_MIN_DAYS = 5
GENERAL_SYMPTOM = "general"
SEQUENCE_RECOMMENDATIONS = [
    "Recent patterns suggest high risk of symptom flare",
    "Consider preventive measures like stress reduction",
    "Ensure adequate sleep and hydration",
]


def warning_severity(predicted: float) -> str:
    if predicted > 80:
        return "critical"
    if predicted > 70:
        return "high"
    if predicted > 60:
        return "medium"
    return "low"


def warning_timeframe(days_ahead: int) -> str:
    if days_ahead == 1:
        return "tomorrow"
    return f"in {days_ahead} days"


def forecast_confidence_label(confidence: float) -> str:
    if confidence > 0.7:
        return "high"
    if confidence > 0.4:
        return "medium"
    return "low"


class RiskFactorScanner:
    """Rule checks over the most recent ``window_days`` of observations."""

    def __init__(self, window_days: int = 7) -> None:
        self.window_days = window_days

    def recent(self, observations: Sequence[Observation], as_of: Optional[dt.date] = None) -> List[Observation]:
        """Observations within ``window_days`` of ``as_of`` (latest date by default), oldest first."""
        if not observations:
            return []
        ordered = sort_observations(observations)
        as_of = as_of or ordered[-1].date
        return [o for o in ordered if 0 <= (as_of - o.date).days < self.window_days]

    def scan(self, observations: Sequence[Observation], as_of: Optional[dt.date] = None) -> List[RiskFactor]:
        """Run the risk-factor rules over the recent window."""
        recent = self.recent(observations, as_of)
        if not recent:
            return []
        n = len(recent)
        factors: List[RiskFactor] = []

        avg_sleep = float(np.mean([o.sleep_hours for o in recent]))
        if avg_sleep < 6:
            factors.append(RiskFactor(
                factor="Sleep Deprivation",
                value=avg_sleep,
                threshold=7,
                risk="high",
                description=f"Average sleep of {avg_sleep:.1f} hours is below recommended 7+ hours",
                recommendation="Prioritize sleep hygiene and aim for 7-9 hours nightly",
            ))

        avg_stress = float(np.mean([o.stress_level for o in recent]))
        if avg_stress > 7:
            factors.append(RiskFactor(
                factor="High Stress",
                value=avg_stress,
                threshold=5,
                risk="high",
                description=f"Average stress level of {avg_stress:.1f}/10 is concerning",
                recommendation="Implement stress management techniques like meditation or deep breathing",
            ))

        caffeine_pct = 100.0 * sum(1 for o in recent if o.caffeine) / n
        if caffeine_pct > 80:
            factors.append(RiskFactor(
                factor="High Caffeine Intake",
                value=caffeine_pct,
                threshold=60,
                risk="medium",
                description=f"Caffeine consumed on {caffeine_pct:.0f}% of recent days",
                recommendation="Consider reducing caffeine intake, especially after 2pm",
            ))

        exercise_pct = 100.0 * sum(1 for o in recent if o.exercise) / n
        if exercise_pct < 30:
            factors.append(RiskFactor(
                factor="Low Exercise Frequency",
                value=exercise_pct,
                threshold=50,
                risk="medium",
                description=f"Only {exercise_pct:.0f}% of recent days included exercise",
                recommendation="Aim for at least 30 minutes of moderate exercise most days",
            ))

        skipped_pct = 100.0 * sum(1 for o in recent if not o.foods) / n
        if skipped_pct > 30:
            factors.append(RiskFactor(
                factor="Irregular Meal Patterns",
                value=skipped_pct,
                threshold=20,
                risk="medium",
                description=f"Meals skipped on {skipped_pct:.0f}% of recent days",
                recommendation="Maintain regular meal times and avoid skipping meals",
            ))
        return factors


def warnings_from_forecast(
    symptom: str,
    points: Sequence[ForecastPoint],
    risk_factors: Sequence[RiskFactor],
    generated_at: dt.datetime,
    threshold: float = 60.0,
    days: int = 3,
) -> List[EarlyWarning]:
    """One warning per forecast day (within ``days``) predicted above ``threshold``."""
    ranked = [rf for rf in risk_factors if rf.risk == "high"] + [rf for rf in risk_factors if rf.risk == "medium"]
    warnings = []
    for days_ahead, point in enumerate(points[:days], start=1):
        if point.predicted <= threshold:
            continue
        recommendations = list(point.recommendations) + [rf.recommendation for rf in ranked]
        warnings.append(EarlyWarning(
            id=f"warning-{symptom}-{point.date.isoformat()}",
            symptom_type=symptom,
            severity=warning_severity(point.predicted),
            probability=point.predicted,
            timeframe=warning_timeframe(days_ahead),
            risk_factors=ranked,
            recommendations=list(dict.fromkeys(recommendations)),
            confidence=forecast_confidence_label(point.confidence),
            generated_at=generated_at,
        ))
    return warnings


def rank_warnings(warnings: Sequence[EarlyWarning]) -> List[EarlyWarning]:
    """Highest probability first; equal probabilities keep their order."""
    return sorted(warnings, key=lambda w: w.probability, reverse=True)


class EarlyWarningGenerator:
    """Collect and rank early warnings across every tracked symptom.

    Parameters
    ----------
    settings:
        Engine settings (thresholds, horizons and window sizes).
    rng:
        Generator used to initialise sequence predictor weights.
    sequence_weights:
        Fixed sequence predictor weights; bypasses ``rng`` when given.
    """

    def __init__(
        self,
        settings: Optional[EngineSettings] = None,
        rng: Optional[np.random.Generator] = None,
        catalog: Sequence[SymptomDefinition] = SYMPTOM_CATALOG,
        sequence_weights: Optional[Sequence[float]] = None,
    ) -> None:
        self.settings = settings or EngineSettings()
        self.rng = rng if rng is not None else np.random.default_rng(self.settings.random_seed)
        self.catalog = list(catalog)
        self.sequence_weights = sequence_weights
        self.forecaster = Forecaster(self.settings, self.catalog)
        self.scanner = RiskFactorScanner(self.settings.risk_window_days)

    def generate(
        self,
        observations: Sequence[Observation],
        generated_at: Optional[dt.datetime] = None,
    ) -> List[EarlyWarning]:
        """Forecast warnings for every catalog symptom plus at most one sequence warning."""
        generated_at = generated_at or dt.datetime.now(dt.timezone.utc)
        ordered = sort_observations(observations)
        if not ordered:
            return []
        risk_factors = self.scanner.scan(ordered)

        warnings: List[EarlyWarning] = []
        for definition in self.catalog:
            result = self.forecaster.forecast(ordered, definition.key)
            warnings.extend(warnings_from_forecast(
                definition.key,
                result.points,
                risk_factors,
                generated_at,
                threshold=self.settings.warning_threshold,
                days=self.settings.warning_days,
            ))
        sequence_warning = self.sequence_warning(ordered, generated_at)
        if sequence_warning is not None:
            warnings.append(sequence_warning)

        ranked = rank_warnings(warnings)
        logger.info("Generated %d early warnings from %d observations", len(ranked), len(ordered))
        return ranked

    def sequence_warning(
        self,
        observations: Sequence[Observation],
        generated_at: dt.datetime,
    ) -> Optional[EarlyWarning]:
        """One general flare warning when the latest days score above the sequence threshold.

        Weeks are labelled by whether anything was reported; the warning
        carries the ``general`` symptom type.
        """
        sequences = build_weekly_sequences(observations, any_symptom, min_days=SEQUENCE_MIN_DAYS)
        if len(sequences) < self.settings.min_warning_sequences:
            return None
        predictor = SequencePredictor(rng=self.rng, weights=self.sequence_weights).fit(sequences)
        window = [extract_features(o) for o in observations[-self.settings.sequence_window:]]
        probability, confidence = predictor.predict(window)
        if probability <= self.settings.sequence_warning_threshold:
            return None
        return EarlyWarning(
            id=f"sequence-warning-{observations[-1].date.isoformat()}",
            symptom_type=GENERAL_SYMPTOM,
            severity="high",
            probability=probability * 100.0,
            timeframe="next 24 hours",
            risk_factors=[],
            recommendations=list(SEQUENCE_RECOMMENDATIONS),
            confidence=confidence,
            generated_at=generated_at,
        )
