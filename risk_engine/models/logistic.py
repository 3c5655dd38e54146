"""Logistic-regression baseline with hand-built interaction terms."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

import numpy as np

from ..schemas import FeatureVector, LogisticSummary, TrainingExample

logger = logging.getLogger(__name__)

LOGISTIC_FEATURES = [
    "sleep",
    "stress",
    "caffeine",
    "exercise",
    "exercise_intensity",
    "recovery",
    "sleep_stress",
    "caffeine_sleep",
    "exercise_recovery",
]


def logistic_features(v: FeatureVector) -> List[float]:
    short_sleep = 1.0 if v.sleep_hours < 6 else 0.0
    return [
        v.sleep_hours,
        v.stress_level,
        v.caffeine,
        v.exercise_done,
        v.exercise_intensity,
        v.recovery_score,
        v.sleep_hours * v.stress_level,
        v.caffeine * short_sleep,
        v.exercise_done * v.recovery_score,
    ]


class LogisticRegression:
    """Batch gradient-descent logistic regression.

    Needs at least ``min_examples`` examples; with fewer it reports an empty
    model (accuracy 0, no coefficients). The fitted model is reported in
    training summaries only; it does not contribute to risk predictions.
    """

    def __init__(
        self,
        rng: Optional[np.random.Generator] = None,
        learning_rate: float = 0.01,
        iterations: int = 1000,
        min_examples: int = 10,
    ) -> None:
        self.rng = rng if rng is not None else np.random.default_rng()
        self.learning_rate = learning_rate
        self.iterations = iterations
        self.min_examples = min_examples
        self.coefficients: Optional[np.ndarray] = None
        self.intercept = 0.0

    @property
    def is_trained(self) -> bool:
        return self.coefficients is not None

    def _probabilities(self, x: np.ndarray) -> np.ndarray:
        z = np.clip(x @ self.coefficients + self.intercept, -500, 500)
        return 1.0 / (1.0 + np.exp(-z))

    def train(self, examples: Sequence[TrainingExample]) -> LogisticSummary:
        """Fit from scratch and summarise coefficients and in-sample accuracy."""
        n = len(examples)
        self.coefficients = None
        self.intercept = 0.0
        if n < self.min_examples:
            logger.info("Logistic baseline skipped: %d examples (need %d)", n, self.min_examples)
            return LogisticSummary(coefficients={}, intercept=0.0, accuracy=0.0, trained_on=n)

        x = np.array([logistic_features(e.features) for e in examples], dtype=float)
        y = np.array([1.0 if e.label else 0.0 for e in examples])
        self.coefficients = self.rng.uniform(-0.05, 0.05, size=x.shape[1])
        for _ in range(self.iterations):
            error = y - self._probabilities(x)
            self.coefficients = self.coefficients + self.learning_rate * (x.T @ error) / n
            self.intercept += self.learning_rate * float(error.mean())
            if float(np.abs(error).mean()) < 0.1:
                break

        accuracy = float(np.mean((self._probabilities(x) > 0.5) == (y > 0.5)))
        return LogisticSummary(
            coefficients={name: float(c) for name, c in zip(LOGISTIC_FEATURES, self.coefficients)},
            intercept=self.intercept,
            accuracy=accuracy,
            trained_on=n,
        )
