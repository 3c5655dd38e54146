"""Greedy binary decision tree over median splits.

Each internal node splits one feature at the median of that feature within
the node's data; the feature with the lowest size-weighted Gini impurity
wins and is then removed from the candidates of both subtrees, so tree depth
never exceeds the number of features. Impurity ties go to the feature that
comes first in the candidate list, which callers keep sorted by name.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np


@dataclass(frozen=True)
class TreeNode:
    """Leaf when ``prediction`` is set, otherwise a split on ``feature``.

    Rows with ``value <= threshold`` go left.
    """

    prediction: Optional[bool] = None
    feature: Optional[int] = None
    threshold: float = 0.0
    left: Optional["TreeNode"] = None
    right: Optional["TreeNode"] = None

    @property
    def is_leaf(self) -> bool:
        return self.prediction is not None


def gini(labels: np.ndarray) -> float:
    """Binary Gini impurity ``2p(1-p)``; 0 for an empty side."""
    if labels.size == 0:
        return 0.0
    p = float(labels.mean())
    return 2.0 * p * (1.0 - p)


def split_impurity(column: np.ndarray, labels: np.ndarray, threshold: float) -> float:
    mask = column <= threshold
    n = labels.size
    left, right = labels[mask], labels[~mask]
    return (left.size / n) * gini(left) + (right.size / n) * gini(right)


def build_tree(x: np.ndarray, y: np.ndarray, features: Sequence[int]) -> TreeNode:
    """Recursively grow a tree on rows ``x`` (n x f) with boolean labels ``y``."""
    n = y.size
    if n == 0:
        return TreeNode(prediction=False)
    positives = int(y.sum())
    if positives == n:
        return TreeNode(prediction=True)
    if positives == 0:
        return TreeNode(prediction=False)
    if not features:
        return TreeNode(prediction=positives > n / 2)

    best_feature = features[0]
    best_threshold = 0.0
    best_impurity = np.inf
    for f in features:
        column = x[:, f]
        threshold = float(np.median(column))
        impurity = split_impurity(column, y, threshold)
        if impurity < best_impurity:
            best_feature, best_threshold, best_impurity = f, threshold, impurity

    remaining = [f for f in features if f != best_feature]
    mask = x[:, best_feature] <= best_threshold
    return TreeNode(
        feature=best_feature,
        threshold=best_threshold,
        left=build_tree(x[mask], y[mask], remaining),
        right=build_tree(x[~mask], y[~mask], remaining),
    )


class DecisionTree:
    """A single tree of the forest, trained once and never modified."""

    def __init__(self) -> None:
        self.root: Optional[TreeNode] = None

    def fit(self, x: np.ndarray, y: np.ndarray) -> "DecisionTree":
        features = list(range(x.shape[1])) if x.ndim == 2 else []
        self.root = build_tree(x, y.astype(bool), features)
        return self

    def predict(self, row: Sequence[float]) -> bool:
        node = self.root
        if node is None:
            return False
        while not node.is_leaf:
            node = node.left if row[node.feature] <= node.threshold else node.right
        return bool(node.prediction)

    def depth(self) -> int:
        def _depth(node: Optional[TreeNode]) -> int:
            if node is None or node.is_leaf:
                return 0
            return 1 + max(_depth(node.left), _depth(node.right))

        return _depth(self.root)
