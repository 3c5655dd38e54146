"""Symptom risk estimation from the forest and sequence models.

:class:`RiskEstimator` fits one :class:`SymptomModel` per tracked symptom
and combines the two model outputs into a single 0-100 risk. The factors
attached to a prediction come from a fixed rule table over the raw
observation, not from the models.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import numpy as np

from ..config import EngineSettings
from ..data_pipeline.features import (
    SYMPTOM_CATALOG,
    SymptomDefinition,
    build_training_examples,
    build_weekly_sequences,
    extract_features,
    find_symptom,
    sort_observations,
)
from ..schemas import LogisticSummary, ModelPerformance, Observation, RiskFactorContribution, RiskPrediction
from .forest import RandomForest
from .logistic import LogisticRegression
from .sequence import SequencePredictor

logger = logging.getLogger(__name__)

POOR_SLEEP_HOURS = 6
HIGH_STRESS_LEVEL = 7
LOW_WATER_GLASSES = 4


@dataclass
class SymptomModel:
    """Everything fitted for one symptom in a single training pass."""

    symptom: SymptomDefinition
    forest: RandomForest
    sequence: SequencePredictor
    logistic: LogisticRegression
    logistic_summary: LogisticSummary
    performance: List[ModelPerformance] = field(default_factory=list)
    trained_on: int = 0
    sufficient_data: bool = True


def combine_confidence(first: str, second: str) -> str:
    """High only when both say high; medium when either says medium; otherwise low."""
    if first == "high" and second == "high":
        return "high"
    if "medium" in (first, second):
        return "medium"
    return "low"


def analyze_factors(obs: Observation, symptom: str) -> List[RiskFactorContribution]:
    """Rule-based explanation of a day's risk."""
    factors: List[RiskFactorContribution] = []
    poor_sleep = obs.sleep_hours < POOR_SLEEP_HOURS
    if poor_sleep:
        factors.append(RiskFactorContribution(
            factor="Poor Sleep",
            impact=25,
            direction="positive",
            description=f"Less than 6 hours sleep increases {symptom} risk by 25%",
        ))
    if obs.stress_level > HIGH_STRESS_LEVEL:
        factors.append(RiskFactorContribution(
            factor="High Stress",
            impact=20,
            direction="positive",
            description=f"Stress level {obs.stress_level}/10 significantly increases {symptom} risk",
        ))
    if obs.caffeine and poor_sleep:
        factors.append(RiskFactorContribution(
            factor="Caffeine + Poor Sleep",
            impact=35,
            direction="positive",
            description=f"Coffee with insufficient sleep creates 35% higher {symptom} risk",
        ))
    if obs.exercise:
        factors.append(RiskFactorContribution(
            factor="Exercise",
            impact=15,
            direction="negative",
            description=f"Regular exercise reduces {symptom} risk by 15%",
        ))
    if obs.water_intake < LOW_WATER_GLASSES:
        factors.append(RiskFactorContribution(
            factor="Low Hydration",
            impact=10,
            direction="positive",
            description=f"Insufficient water intake may increase {symptom} risk",
        ))
    return factors


def recommendation_for(symptom: str, probability: float) -> str:
    """Advice text for a probability in [0, 1]."""
    if probability < 0.3:
        return f"Low risk of {symptom}. Continue your current healthy habits."
    if probability < 0.6:
        return f"Moderate risk of {symptom}. Consider reducing stress and ensuring adequate sleep."
    return (
        f"High risk of {symptom}. Avoid caffeine after 2pm, prioritize 7+ hours sleep, "
        "and consider gentle exercise."
    )


class RiskEstimator:
    """Train per-symptom models and score single days against them.

    Usage::

        estimator = RiskEstimator(settings, rng=np.random.default_rng(7))
        estimator.train(observations)
        prediction = estimator.predict(today, "acid_reflux")
    """

    def __init__(
        self,
        settings: Optional[EngineSettings] = None,
        rng: Optional[np.random.Generator] = None,
        catalog: Sequence[SymptomDefinition] = SYMPTOM_CATALOG,
    ) -> None:
        self.settings = settings or EngineSettings()
        self.rng = rng if rng is not None else np.random.default_rng(self.settings.random_seed)
        self.catalog = list(catalog)
        self.models: Dict[str, SymptomModel] = {}

    def train(self, observations: Sequence[Observation]) -> Dict[str, SymptomModel]:
        """Refit every symptom model from the full history."""
        ordered = sort_observations(observations)
        self.models = {}
        for definition in self.catalog:
            self.models[definition.key] = self.train_symptom(ordered, definition)
        return self.models

    def train_symptom(self, observations: Sequence[Observation], definition: SymptomDefinition) -> SymptomModel:
        labeler = definition.labeler
        examples = build_training_examples(observations, labeler)
        sequences = build_weekly_sequences(observations, labeler, min_days=3)

        forest = RandomForest(self.settings.tree_count, rng=self.rng)
        performance = forest.train(examples)
        sequence = SequencePredictor(rng=self.rng).fit(sequences)
        logistic = LogisticRegression(rng=self.rng, min_examples=self.settings.min_training_examples)
        logistic_summary = logistic.train(examples)

        sufficient = len(examples) >= self.settings.min_training_examples
        if not sufficient:
            logger.info(
                "Only %d observations for %s (need %d); predictions fall back to neutral",
                len(examples), definition.name, self.settings.min_training_examples,
            )
        else:
            logger.debug(
                "Trained %s on %d examples: accuracy %.3f (in-sample)",
                definition.name, len(examples), performance.accuracy,
            )
        return SymptomModel(
            symptom=definition,
            forest=forest,
            sequence=sequence,
            logistic=logistic,
            logistic_summary=logistic_summary,
            performance=[performance],
            trained_on=len(examples),
            sufficient_data=sufficient,
        )

    def predict(
        self,
        observation: Observation,
        symptom: str,
        timeframe: str = "24h",
        history: Optional[Sequence[Observation]] = None,
    ) -> RiskPrediction:
        """Score one day for one symptom.

        ``history`` is the run-up to ``observation``; its most recent days
        feed the sequence model together with the day being scored. A history
        entry dated the same day as ``observation`` is replaced by it.
        """
        definition = find_symptom(symptom, self.catalog)
        model = self.models.get(definition.key) if definition else None
        if model is None:
            logger.warning("No trained model for symptom %r", symptom)
            return RiskPrediction(
                symptom=symptom,
                probability=0.0,
                confidence="low",
                timeframe=timeframe,
                factors=[],
                recommendation="No model available for this symptom",
                status="no_model",
            )

        name = model.symptom.name
        factors = analyze_factors(observation, name)
        if not model.sufficient_data:
            return RiskPrediction(
                symptom=name,
                probability=50.0,
                confidence="low",
                timeframe=timeframe,
                factors=factors,
                recommendation=(
                    f"Not enough history to estimate {name} risk yet; "
                    f"keep logging for at least {self.settings.min_training_examples} days."
                ),
                status="insufficient_data",
            )

        run_up = [o for o in sort_observations(history or []) if o.date != observation.date]
        window = [extract_features(o) for o in run_up]
        window.append(extract_features(observation))
        forest_p, forest_conf = model.forest.predict(window[-1])
        sequence_p, sequence_conf = model.sequence.predict(window)

        probability = (forest_p + sequence_p) / 2.0
        return RiskPrediction(
            symptom=name,
            probability=float(np.clip(probability * 100.0, 0.0, 100.0)),
            confidence=combine_confidence(forest_conf, sequence_conf),
            timeframe=timeframe,
            factors=factors,
            recommendation=recommendation_for(name, probability),
        )
