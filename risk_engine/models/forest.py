"""Bagged ensemble of decision trees.

Each tree is fitted on its own bootstrap sample (drawn with replacement,
same size as the training set) and the forest predicts the fraction of trees
voting positive. Sampling goes through an injected
:class:`numpy.random.Generator`, so a seeded generator reproduces the same
forest bit for bit.
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..data_pipeline.features import FEATURE_NAMES
from ..schemas import FeatureVector, ModelPerformance, TrainingExample
from .decision_tree import DecisionTree

logger = logging.getLogger(__name__)


def examples_to_arrays(examples: Sequence[TrainingExample]) -> Tuple[np.ndarray, np.ndarray]:
    """Stack examples into an (n x f) feature matrix and a label vector."""
    if not examples:
        return np.empty((0, len(FEATURE_NAMES))), np.empty(0, dtype=bool)
    x = np.array([e.features.values(FEATURE_NAMES) for e in examples], dtype=float)
    y = np.array([e.label for e in examples], dtype=bool)
    return x, y


def classification_metrics(predicted: np.ndarray, actual: np.ndarray) -> Tuple[float, float, float, float]:
    """Accuracy, precision, recall and F1, with 0 for undefined ratios."""
    if actual.size == 0:
        return 0.0, 0.0, 0.0, 0.0
    tp = int(np.sum(predicted & actual))
    fp = int(np.sum(predicted & ~actual))
    fn = int(np.sum(~predicted & actual))
    accuracy = float(np.mean(predicted == actual))
    precision = tp / (tp + fp) if (tp + fp) > 0 else 0.0
    recall = tp / (tp + fn) if (tp + fn) > 0 else 0.0
    f1 = 2 * precision * recall / (precision + recall) if (precision + recall) > 0 else 0.0
    return accuracy, precision, recall, f1


def tree_count_confidence(tree_count: int) -> str:
    """Forest confidence depends on ensemble size only, not on vote agreement."""
    if tree_count > 5:
        return "high"
    if tree_count > 3:
        return "medium"
    return "low"


class RandomForest:
    """Majority-vote ensemble of bootstrap-trained trees.

    Parameters
    ----------
    tree_count:
        Number of trees to grow.
    rng:
        Source of randomness for bootstrap sampling. Defaults to an
        entropy-seeded generator.
    """

    def __init__(self, tree_count: int = 15, rng: Optional[np.random.Generator] = None) -> None:
        self.tree_count = tree_count
        self.rng = rng if rng is not None else np.random.default_rng()
        self.trees: List[DecisionTree] = []

    def train(self, examples: Sequence[TrainingExample]) -> ModelPerformance:
        """Fit ``tree_count`` trees and report in-sample metrics.

        The returned metrics re-score the original training examples, so
        they overstate how well the forest generalises. An empty training
        set leaves the forest without trees; it then always predicts 0.
        """
        x, y = examples_to_arrays(examples)
        self.trees = []
        n = y.size
        if n > 0:
            for _ in range(self.tree_count):
                idx = self.rng.integers(0, n, size=n)
                self.trees.append(DecisionTree().fit(x[idx], y[idx]))
        else:
            logger.info("Random forest received no training examples; predictions will be 0")
        return self.evaluate(x, y)

    def predict_row(self, row: Sequence[float]) -> float:
        if not self.trees:
            return 0.0
        votes = sum(1 for tree in self.trees if tree.predict(row))
        return votes / len(self.trees)

    def predict(self, vector: FeatureVector) -> Tuple[float, str]:
        """Return (probability in [0, 1], confidence label)."""
        probability = self.predict_row(vector.values(FEATURE_NAMES))
        return probability, tree_count_confidence(len(self.trees))

    def evaluate(self, x: np.ndarray, y: np.ndarray) -> ModelPerformance:
        predicted = np.array([self.predict_row(row) > 0.5 for row in x], dtype=bool)
        accuracy, precision, recall, f1 = classification_metrics(predicted, y)
        logger.debug("Random forest in-sample accuracy %.3f on %d examples", accuracy, y.size)
        return ModelPerformance(
            model_name="Random Forest",
            accuracy=accuracy,
            precision=precision,
            recall=recall,
            f1_score=f1,
            trained_on=int(y.size),
            last_updated=dt.datetime.now(dt.timezone.utc),
        )
