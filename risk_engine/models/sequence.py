"""Recency-weighted sequence scorer.

A deliberately weak baseline: weights are small random values drawn once at
fit time, not learned from the labels. The last three days of a window are
scored linearly, later days count more, and the weighted mean is squashed
through a logistic function.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..schemas import FeatureVector

logger = logging.getLogger(__name__)

RECENT_DAYS = 3
N_WEIGHTS = 8


def sigmoid(z: float) -> float:
    return float(1.0 / (1.0 + np.exp(-z)))


def window_confidence(length: int) -> str:
    if length > 7:
        return "high"
    if length > 3:
        return "medium"
    return "low"


class SequencePredictor:
    """Scores a short window of recent feature vectors.

    Parameters
    ----------
    rng:
        Generator used to initialise weights in :meth:`fit`.
    weights:
        Fixed weights, one per normalised feature. When given, :meth:`fit`
        keeps them instead of drawing new ones.
    """

    def __init__(self, rng: Optional[np.random.Generator] = None, weights: Optional[Sequence[float]] = None) -> None:
        self.rng = rng if rng is not None else np.random.default_rng()
        self.weights: Optional[np.ndarray] = np.asarray(weights, dtype=float) if weights is not None else None
        self.trained_on = 0

    @property
    def is_trained(self) -> bool:
        return self.weights is not None

    def fit(self, sequences: Sequence[Tuple[List[FeatureVector], bool]]) -> "SequencePredictor":
        if self.weights is None:
            self.weights = self.rng.uniform(-0.05, 0.05, size=N_WEIGHTS)
        self.trained_on = len(sequences)
        logger.debug("Sequence predictor initialised on %d sequences", self.trained_on)
        return self

    def predict(self, window: Sequence[FeatureVector]) -> Tuple[float, str]:
        """Return (probability in (0, 1), confidence) for a window of days.

        An empty window, or an unfitted predictor, yields the neutral 0.5.
        """
        if not window or self.weights is None:
            return 0.5, "low"
        recent = [np.asarray(v.normalized(), dtype=float) for v in window[-RECENT_DAYS:]]
        k = len(recent)
        weighted_sum = 0.0
        total_weight = 0.0
        for i, features in enumerate(recent):
            recency = (i + 1) / k
            weighted_sum += float(features @ self.weights) * recency
            total_weight += recency
        return sigmoid(weighted_sum / total_weight), window_confidence(len(window))
