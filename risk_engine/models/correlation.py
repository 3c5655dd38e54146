"""Habit/symptom correlation analysis.

For every habit and symptom pair three dependence estimates are computed
(Pearson, Spearman and binned mutual information) and the strongest one in
absolute value is reported with a strength, direction and confidence label.
Significance uses a coarse t-statistic bucket rather than an exact
t-distribution tail.

Degenerate inputs (mismatched lengths, fewer than two samples, constant
series) always yield a coefficient of 0 and a p-value of 1.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from ..config import EngineSettings
from ..data_pipeline.features import HABIT_COLUMNS, SYMPTOM_CATALOG, SymptomDefinition, observations_frame
from ..schemas import (
    CorrelationMatrix,
    CorrelationReport,
    CorrelationResult,
    HabitImpact,
    Observation,
    SymptomImpact,
)

logger = logging.getLogger(__name__)

MI_P_VALUE = 0.05
HABIT_PAIR_MIN_ABS = 0.1


def t_test_p_value(r: float, n: int) -> float:
    """Bucketed two-sided p-value for a correlation ``r`` over ``n`` samples."""
    if n <= 2:
        return 0.2
    denom = 1.0 - r * r
    abs_t = np.inf if denom <= 0 else abs(r) * np.sqrt((n - 2) / denom)
    if abs_t > 3:
        return 0.001
    if abs_t > 2.5:
        return 0.01
    if abs_t > 2:
        return 0.05
    if abs_t > 1.5:
        return 0.1
    return 0.2


def _valid_pair(x: Sequence[float], y: Sequence[float]) -> bool:
    return len(x) == len(y) and len(x) >= 2


def pearson(x: Sequence[float], y: Sequence[float]) -> Tuple[float, float]:
    """Pearson r and its bucketed p-value."""
    if not _valid_pair(x, y):
        return 0.0, 1.0
    xa = np.asarray(x, dtype=float)
    ya = np.asarray(y, dtype=float)
    dx = xa - xa.mean()
    dy = ya - ya.mean()
    denom = float(np.sqrt(np.sum(dx * dx) * np.sum(dy * dy)))
    if denom == 0 or not np.isfinite(denom):
        return 0.0, 1.0
    r = float(np.clip(np.sum(dx * dy) / denom, -1.0, 1.0))
    return r, t_test_p_value(r, xa.size)


def rank(values: Sequence[float]) -> np.ndarray:
    """1-based ranks; tied values share the lowest rank of their group."""
    return pd.Series(values, dtype=float).rank(method="min").to_numpy()


def spearman(x: Sequence[float], y: Sequence[float]) -> Tuple[float, float]:
    """Pearson correlation of the rank-transformed series."""
    if not _valid_pair(x, y):
        return 0.0, 1.0
    return pearson(rank(x), rank(y))


def discretize(values: Sequence[float], bins: int) -> np.ndarray:
    """Equal-width bin index in ``[0, bins)``; constant input maps to bin 0."""
    arr = np.asarray(values, dtype=float)
    lo, hi = arr.min(), arr.max()
    if hi == lo:
        return np.zeros(arr.size, dtype=int)
    width = (hi - lo) / bins
    return np.minimum(bins - 1, np.floor((arr - lo) / width)).astype(int)


def mutual_information(x: Sequence[float], y: Sequence[float], bins: int = 5) -> float:
    """Mutual information in bits between two discretised series."""
    if not _valid_pair(x, y):
        return 0.0
    dx = discretize(x, bins)
    dy = discretize(y, bins)
    joint = pd.crosstab(dx, dy).to_numpy(dtype=float) / dx.size
    px = joint.sum(axis=1, keepdims=True)
    py = joint.sum(axis=0, keepdims=True)
    nz = joint > 0
    return float(np.sum(joint[nz] * np.log2(joint[nz] / (px @ py)[nz])))


def classify_strength(r: float) -> str:
    a = abs(r)
    if a > 0.5:
        return "strong"
    if a > 0.3:
        return "moderate"
    return "weak"


def classify_confidence(p_value: float) -> str:
    if p_value < 0.01:
        return "high"
    if p_value < 0.05:
        return "medium"
    return "low"


def qualify(factor_a: str, factor_b: str, r: float, p_value: float, n: int, method: str) -> CorrelationResult:
    return CorrelationResult(
        factor_a=factor_a,
        factor_b=factor_b,
        coefficient=float(np.clip(r, -1.0, 1.0)),
        p_value=p_value,
        strength=classify_strength(r),
        direction="positive" if r > 0 else "negative",
        sample_size=n,
        confidence=classify_confidence(p_value),
        method=method,
    )


def strongest_estimate(x: Sequence[float], y: Sequence[float], bins: int) -> Tuple[str, float, float]:
    """(method, coefficient, p-value) of the estimator with the largest |value|.

    Earlier estimators win ties, so Pearson is preferred over Spearman and
    both over mutual information.
    """
    r_p, p_p = pearson(x, y)
    r_s, p_s = spearman(x, y)
    mi = mutual_information(x, y, bins)
    candidates = [
        ("pearson", r_p, p_p),
        ("spearman", r_s, p_s),
        ("mutual_information", min(mi, 1.0), MI_P_VALUE if mi > 0 else 1.0),
    ]
    best = candidates[0]
    for candidate in candidates[1:]:
        if abs(candidate[1]) > abs(best[1]):
            best = candidate
    return best


_EXAMPLES = {
    ("sleep_hours", "negative"): [
        "Getting 7+ hours sleep reduces migraine risk",
        "Poor sleep quality increases acid reflux",
    ],
    ("stress_level", "positive"): [
        "High stress days correlate with IBS flare-ups",
        "Stress management reduces skin issues",
    ],
    ("caffeine_intake", "positive"): [
        "Coffee + poor sleep = higher reflux risk",
        "Afternoon caffeine may disrupt sleep",
    ],
}


def describe_impact(result: CorrelationResult) -> SymptomImpact:
    a = abs(result.coefficient)
    positive = result.direction == "positive"
    habit, symptom = result.factor_a, result.factor_b
    if a > 0.5:
        impact = "High Risk" if positive else "High Protection"
        description = f"{habit} has a strong {result.direction} correlation with {symptom}"
    elif a > 0.3:
        impact = "Moderate Risk" if positive else "Moderate Protection"
        description = f"{habit} shows a moderate {result.direction} correlation with {symptom}"
    else:
        impact = "Low Impact"
        description = f"{habit} has minimal correlation with {symptom}"
    return SymptomImpact(
        correlation=result.coefficient,
        impact=impact,
        description=description,
        examples=list(_EXAMPLES.get((habit, result.direction), [])),
    )


def habit_recommendation(habit: str, overall: float) -> str:
    if abs(overall) < 0.2:
        return f"Keep monitoring {habit} - current impact is minimal."
    direction = "increases" if overall > 0 else "reduces"
    strength = "significantly" if abs(overall) > 0.4 else "moderately"
    action = "reducing" if overall > 0 else "maintaining"
    return f"{habit} {strength} {direction} your symptom risk. Consider {action} this habit."


class CorrelationAnalyzer:
    """Compute qualified habit/symptom and habit/habit correlations.

    Parameters
    ----------
    settings:
        Engine settings; ``mi_bins`` and ``min_correlation_samples`` are used.
    catalog:
        Symptoms to correlate against.
    """

    def __init__(
        self,
        settings: Optional[EngineSettings] = None,
        catalog: Sequence[SymptomDefinition] = SYMPTOM_CATALOG,
    ) -> None:
        self.settings = settings or EngineSettings()
        self.catalog = list(catalog)
        self.habits = list(HABIT_COLUMNS)

    @property
    def symptoms(self) -> List[str]:
        return [d.key for d in self.catalog]

    def analyze(self, observations: Sequence[Observation]) -> CorrelationReport:
        """Run the full correlation pass over a user's history.

        Results are never cached.
        """
        n = len(observations)
        if n < self.settings.min_correlation_samples:
            logger.info("Correlation analysis skipped: %d observations", n)
            return CorrelationReport(
                correlations=[],
                habit_impacts=[],
                matrix=self.build_matrix([]),
                sample_size=n,
                status="insufficient_data",
            )

        frame = observations_frame(observations, self.catalog)
        correlations = self.habit_symptom_correlations(frame) + self.habit_habit_correlations(frame)
        return CorrelationReport(
            correlations=correlations,
            habit_impacts=self.habit_impacts(correlations),
            matrix=self.build_matrix(correlations),
            sample_size=n,
        )

    def habit_symptom_correlations(self, frame: pd.DataFrame) -> List[CorrelationResult]:
        """Best estimator per habit/symptom pair; every pair is reported."""
        n = len(frame)
        results = []
        for habit in self.habits:
            x = frame[habit].to_numpy(dtype=float)
            for symptom in self.symptoms:
                y = frame[symptom].to_numpy(dtype=float)
                method, r, p_value = strongest_estimate(x, y, self.settings.mi_bins)
                results.append(qualify(habit, symptom, r, p_value, n, method))
        return results

    def habit_habit_correlations(self, frame: pd.DataFrame) -> List[CorrelationResult]:
        """Pearson between habit pairs, keeping only the stronger ones."""
        n = len(frame)
        results = []
        for i, first in enumerate(self.habits):
            for second in self.habits[i + 1:]:
                r, p_value = pearson(frame[first].to_numpy(dtype=float), frame[second].to_numpy(dtype=float))
                if abs(r) > HABIT_PAIR_MIN_ABS:
                    results.append(qualify(first, second, r, p_value, n, "pearson"))
        return results

    def habit_impacts(self, correlations: Sequence[CorrelationResult]) -> List[HabitImpact]:
        """Summarise each habit's correlations across all symptoms."""
        symptoms = set(self.symptoms)
        impacts = []
        for habit in self.habits:
            per_symptom: Dict[str, SymptomImpact] = {}
            total = 0.0
            for result in correlations:
                if result.factor_a == habit and result.factor_b in symptoms:
                    per_symptom[result.factor_b] = describe_impact(result)
                    total += result.coefficient
            overall = total / len(self.symptoms) if self.symptoms else 0.0
            impacts.append(HabitImpact(
                habit=habit,
                symptoms=per_symptom,
                overall_impact=overall,
                recommendation=habit_recommendation(habit, overall),
            ))
        return impacts

    def build_matrix(self, correlations: Sequence[CorrelationResult]) -> CorrelationMatrix:
        """Symmetric matrix over habits + symptoms, plus headline insights."""
        factors = self.habits + self.symptoms
        index = {f: i for i, f in enumerate(factors)}
        size = len(factors)
        matrix = np.zeros((size, size))
        significance = np.ones((size, size))
        for result in correlations:
            i, j = index.get(result.factor_a), index.get(result.factor_b)
            if i is None or j is None:
                continue
            matrix[i, j] = matrix[j, i] = result.coefficient
            significance[i, j] = significance[j, i] = result.p_value

        habits, symptoms = set(self.habits), set(self.symptoms)
        insights = [
            f"{r.factor_a} strongly {'increases' if r.direction == 'positive' else 'reduces'} {r.factor_b} risk"
            for r in correlations
            if r.strength == "strong" and r.confidence == "high"
            and r.factor_a in habits and r.factor_b in symptoms
        ]
        return CorrelationMatrix(
            factors=factors,
            matrix=matrix.tolist(),
            significance=significance.tolist(),
            insights=insights,
        )
