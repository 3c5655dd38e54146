"""Feature extraction and symptom labelling.

Turns raw observations into the numeric inputs every model shares: feature
vectors, binary training labels, weekly sequences for the sequence model,
per-symptom daily severity series and the habit table used for correlation
analysis.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol, Sequence, Tuple

import pandas as pd

from ..schemas import ExerciseEntry, FeatureVector, NutritionEntry, Observation, TrainingExample

logger = logging.getLogger(__name__)

# Sorted: the decision tree breaks impurity ties in this order.
FEATURE_NAMES: List[str] = sorted(FeatureVector.model_fields)

INTENSITY_VALUES = {"low": 0.0, "medium": 0.5, "high": 1.0}
DEFAULT_RECOVERY = 5.0

HABIT_COLUMNS = [
    "sleep_hours",
    "stress_level",
    "caffeine_intake",
    "exercise_frequency",
    "water_intake",
    "meal_count",
    "breakfast_skipped",
]


class TextToLabel(Protocol):
    """Decides whether a day's symptom notes count as the target symptom."""

    def __call__(self, symptoms: Sequence[str]) -> bool: ...


class KeywordLabeler:
    """Case-insensitive keyword-substring matcher.

    ``"heartburn after dinner"`` matches the keyword ``"heartburn"``. Any
    substring hit counts, so ``"acid"`` also matches ``"placid"``.
    """

    def __init__(self, keywords: Sequence[str]) -> None:
        self.keywords = [k.lower() for k in keywords]

    def __call__(self, symptoms: Sequence[str]) -> bool:
        return any(k in s.lower() for k in self.keywords for s in symptoms)


@dataclass(frozen=True)
class SymptomDefinition:
    key: str
    name: str
    keywords: Tuple[str, ...]

    @property
    def labeler(self) -> KeywordLabeler:
        return KeywordLabeler(self.keywords)


SYMPTOM_CATALOG: List[SymptomDefinition] = [
    SymptomDefinition("acid_reflux", "Acid Reflux", ("reflux", "heartburn", "acid")),
    SymptomDefinition("migraine", "Migraine", ("headache", "migraine", "head pain")),
    SymptomDefinition("ibs", "IBS", ("bloat", "cramp", "stomach", "digestive", "ibs")),
    SymptomDefinition("skin_issues", "Skin Issues", ("skin", "rash", "acne", "flare")),
    SymptomDefinition("fatigue", "Fatigue", ("tired", "fatigue", "exhausted", "energy")),
]


def find_symptom(symptom: str, catalog: Sequence[SymptomDefinition] = SYMPTOM_CATALOG) -> Optional[SymptomDefinition]:
    """Look a symptom up by key or display name, ignoring case."""
    wanted = symptom.strip().lower()
    for definition in catalog:
        if wanted in (definition.key, definition.name.lower()):
            return definition
    return None


def extract_features(obs: Observation) -> FeatureVector:
    """Map an observation onto the fixed feature vector."""
    if obs.exercise:
        intensity = INTENSITY_VALUES.get(obs.exercise_intensity or "medium", 0.5)
    else:
        intensity = 0.0
    recovery = float(obs.recovery_score) if obs.recovery_score is not None else DEFAULT_RECOVERY
    return FeatureVector(
        caffeine=1.0 if obs.caffeine else 0.0,
        exercise_done=1.0 if obs.exercise else 0.0,
        exercise_intensity=intensity,
        meal_count=float(len(obs.foods)),
        recovery_score=recovery,
        sleep_hours=float(obs.sleep_hours),
        stress_level=float(obs.stress_level),
        water_intake=float(obs.water_intake),
    )


def any_symptom(symptoms: Sequence[str]) -> bool:
    """Labels a day positive when anything at all was reported."""
    return any(s.strip() for s in symptoms)


def label_observation(obs: Observation, labeler: TextToLabel) -> bool:
    return bool(labeler(obs.symptoms))


def build_training_examples(observations: Sequence[Observation], labeler: TextToLabel) -> List[TrainingExample]:
    """Build (features, label) pairs, one per observation, in input order."""
    return [
        TrainingExample(features=extract_features(o), label=label_observation(o, labeler))
        for o in observations
    ]


def sort_observations(observations: Sequence[Observation]) -> List[Observation]:
    return sorted(observations, key=lambda o: o.date)


def build_weekly_sequences(
    observations: Sequence[Observation],
    labeler: TextToLabel,
    min_days: int = 3,
) -> List[Tuple[List[FeatureVector], bool]]:
    """Group observations by ISO week into labelled feature sequences.

    Weeks with fewer than ``min_days`` observations are dropped. A week is
    labelled positive when any of its days matches the symptom.
    """
    weeks: Dict[Tuple[int, int], List[Observation]] = {}
    for obs in sort_observations(observations):
        iso = obs.date.isocalendar()
        weeks.setdefault((iso[0], iso[1]), []).append(obs)
    sequences = []
    for key in sorted(weeks):
        days = weeks[key]
        if len(days) < min_days:
            continue
        label = any(label_observation(o, labeler) for o in days)
        sequences.append(([extract_features(o) for o in days], label))
    return sequences


def severity_series(observations: Sequence[Observation], labeler: TextToLabel) -> pd.Series:
    """Daily 0-100 severity for one symptom, indexed by date.

    Days where the symptom is absent score 0; otherwise severity x 20,
    capped at 100.
    """
    ordered = sort_observations(observations)
    values = [
        float(min(100, o.severity * 20)) if label_observation(o, labeler) else 0.0
        for o in ordered
    ]
    index = pd.DatetimeIndex([pd.Timestamp(o.date) for o in ordered], name="date")
    return pd.Series(values, index=index, dtype=float, name="severity")


def observations_frame(
    observations: Sequence[Observation],
    catalog: Sequence[SymptomDefinition] = SYMPTOM_CATALOG,
) -> pd.DataFrame:
    """Habit and symptom-indicator columns, one row per observation."""
    rows = []
    for o in sort_observations(observations):
        row = {
            "date": o.date,
            "sleep_hours": float(o.sleep_hours),
            "stress_level": float(o.stress_level),
            "caffeine_intake": 1.0 if o.caffeine else 0.0,
            "exercise_frequency": 1.0 if o.exercise else 0.0,
            "water_intake": float(o.water_intake),
            "meal_count": float(len(o.foods)),
            "breakfast_skipped": 0.0 if o.foods else 1.0,
        }
        for definition in catalog:
            row[definition.key] = 1.0 if label_observation(o, definition.labeler) else 0.0
        rows.append(row)
    columns = ["date"] + HABIT_COLUMNS + [d.key for d in catalog]
    return pd.DataFrame(rows, columns=columns)


def merge_entries(nutrition: Sequence[NutritionEntry], exercise: Sequence[ExerciseEntry]) -> List[Observation]:
    """Join raw nutrition and exercise logs into one observation per day.

    Several meals on the same day are folded together: foods and symptoms
    are concatenated, severity is the worst of the day, sleep and stress are
    averaged and caffeine is set if any meal had it. The first exercise
    entry of the day supplies intensity and recovery.
    """
    if not nutrition:
        return []
    meals = pd.DataFrame([n.model_dump() for n in nutrition])
    workouts = {}
    for e in exercise:
        workouts.setdefault(e.date, e)

    observations = []
    for day, group in meals.groupby("date", sort=True):
        workout = workouts.get(day)
        stress = int(round(group["stress"].mean()))
        observations.append(
            Observation(
                date=day,
                sleep_hours=float(group["sleep"].mean()),
                stress_level=min(10, max(1, stress)),
                caffeine=bool(group["caffeine"].any()),
                exercise=workout is not None,
                exercise_intensity=workout.intensity if workout else None,
                recovery_score=workout.recovery if workout else None,
                water_intake=float(group["water_intake"].max()),
                foods=[f for foods in group["foods"] for f in foods],
                symptoms=[s for symptoms in group["symptoms"] for s in symptoms],
                severity=int(group["severity"].max()),
            )
        )
    logger.debug("Merged %d nutrition and %d exercise entries into %d observations",
                 len(nutrition), len(exercise), len(observations))
    return observations
