"""
High-level entry point tying the individual models together.

:class:`RiskEngine` is what callers (the HTTP app, scripts, tests) use. It
holds no observation data of its own: every method receives the history it
needs by value, and :meth:`RiskEngine.train` always refits from scratch.

Randomness (bootstrap sampling, sequence weights) comes from a fresh
``numpy.random.Generator`` per call, seeded from ``seed``. Two calls with
the same seed and the same history therefore produce identical results.
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import Dict, List, Optional, Sequence

import numpy as np

from .config import EngineSettings, get_settings
from .data_pipeline.features import merge_entries
from .models.correlation import CorrelationAnalyzer
from .models.early_warning import EarlyWarningGenerator
from .models.feedback import apply_feedback
from .models.forecaster import Forecaster
from .models.risk_estimator import RiskEstimator
from .schemas import (
    CorrelationReport,
    EarlyWarning,
    ExerciseEntry,
    FeedbackEvent,
    ForecastResult,
    NutritionEntry,
    Observation,
    RemedyStats,
    RiskPrediction,
    TrainingSummary,
)

logger = logging.getLogger(__name__)


class RiskEngine:
    """Symptom risk estimation, correlation, forecasting and warnings."""

    def __init__(self, settings: Optional[EngineSettings] = None, seed: Optional[int] = None) -> None:
        self.settings = settings or get_settings()
        self.seed = seed if seed is not None else self.settings.random_seed
        self.estimator: Optional[RiskEstimator] = None

    def rng(self) -> np.random.Generator:
        """Fresh generator seeded from the engine seed, one per operation."""
        return np.random.default_rng(self.seed)

    def train(self, observations: Sequence[Observation]) -> Dict[str, TrainingSummary]:
        """Refit every symptom model and summarise the outcome per symptom."""
        estimator = RiskEstimator(self.settings, rng=self.rng())
        models = estimator.train(observations)
        self.estimator = estimator
        logger.info("Trained %d symptom models on %d observations", len(models), len(observations))
        return {
            key: TrainingSummary(
                symptom=model.symptom.name,
                trained_on=model.trained_on,
                sufficient_data=model.sufficient_data,
                performance=model.performance,
                logistic=model.logistic_summary,
            )
            for key, model in models.items()
        }

    def predict(
        self,
        observation: Observation,
        symptom: str,
        timeframe: str = "24h",
        history: Optional[Sequence[Observation]] = None,
    ) -> RiskPrediction:
        """Score ``observation`` with the models from the last :meth:`train`.

        Before any training every symptom is unknown and the prediction
        carries ``status="no_model"``.
        """
        estimator = self.estimator or RiskEstimator(self.settings, rng=self.rng())
        return estimator.predict(observation, symptom, timeframe=timeframe, history=history)

    def analyze_correlations(self, observations: Sequence[Observation]) -> CorrelationReport:
        """Habit/symptom correlations, habit impacts and the correlation matrix."""
        return CorrelationAnalyzer(self.settings).analyze(observations)

    def forecast(self, observations: Sequence[Observation], symptom: str) -> ForecastResult:
        """Seven-day severity forecast and trend analysis for one symptom."""
        return Forecaster(self.settings).forecast(observations, symptom)

    def generate_warnings(
        self,
        observations: Sequence[Observation],
        generated_at: Optional[dt.datetime] = None,
    ) -> List[EarlyWarning]:
        """Forecast and sequence warnings, highest probability first."""
        generator = EarlyWarningGenerator(self.settings, rng=self.rng())
        return generator.generate(observations, generated_at=generated_at)

    @staticmethod
    def merge_observations(
        nutrition: Sequence[NutritionEntry],
        exercise: Sequence[ExerciseEntry] = (),
    ) -> List[Observation]:
        """Fold raw nutrition and exercise logs into one observation per day."""
        return merge_entries(nutrition, exercise)

    @staticmethod
    def record_feedback(stats: RemedyStats, event: FeedbackEvent) -> RemedyStats:
        """Return ``stats`` updated with one piece of remedy feedback."""
        return apply_feedback(stats, event)
