"""Unit tests for feature extraction, labelling and record merging."""

import datetime as dt
import unittest

import pandas as pd

from factories import START, make_observation
from risk_engine.data_pipeline import (
    FEATURE_NAMES,
    KeywordLabeler,
    SYMPTOM_CATALOG,
    any_symptom,
    build_weekly_sequences,
    exponential_smoothing,
    extract_features,
    find_peaks,
    find_symptom,
    merge_entries,
    moving_average,
    observations_frame,
    severity_series,
)
from risk_engine.schemas import ExerciseEntry, NutritionEntry


class TestFeatures(unittest.TestCase):
    """Observation to feature-vector mapping."""

    def test_feature_names_are_sorted(self) -> None:
        """Feature names are alphabetical."""
        self.assertEqual(FEATURE_NAMES, sorted(FEATURE_NAMES))
        self.assertEqual(len(FEATURE_NAMES), 8)

    def test_defaults_without_exercise(self) -> None:
        """Missing exercise fields fall back to defaults."""
        vector = extract_features(make_observation(0, foods=["toast", "soup"]))
        self.assertEqual(vector.exercise_done, 0.0)
        self.assertEqual(vector.exercise_intensity, 0.0)
        self.assertEqual(vector.recovery_score, 5.0)
        self.assertEqual(vector.meal_count, 2.0)

    def test_exercise_intensity(self) -> None:
        """Intensity maps onto 0.5 or 1.0."""
        vector = extract_features(make_observation(0, exercise=True))
        self.assertEqual(vector.exercise_intensity, 0.5)
        vector = extract_features(make_observation(0, exercise=True, exercise_intensity="high", recovery_score=9))
        self.assertEqual(vector.exercise_intensity, 1.0)
        self.assertEqual(vector.recovery_score, 9.0)

    def test_keyword_labeler_is_case_insensitive_substring(self) -> None:
        """Keywords match anywhere, ignoring case."""
        labeler = KeywordLabeler(["heartburn", "acid"])
        self.assertTrue(labeler(["Mild HEARTBURN after lunch"]))
        self.assertTrue(labeler(["felt placid"]))
        self.assertFalse(labeler(["headache"]))
        self.assertFalse(labeler([]))

    def test_find_symptom(self) -> None:
        """Symptoms are found by key or display name."""
        self.assertEqual(find_symptom("IBS").key, "ibs")
        self.assertEqual(find_symptom("skin issues").key, "skin_issues")
        self.assertIsNone(find_symptom("gout"))

    def test_severity_series(self) -> None:
        """Severity is scaled per symptom and sorted by date."""
        history = [
            make_observation(1, symptoms=["migraine"], severity=10),
            make_observation(0, symptoms=["heartburn"], severity=3),
        ]
        series = severity_series(history, SYMPTOM_CATALOG[0].labeler)
        self.assertEqual(series.tolist(), [60.0, 0.0])
        self.assertIsInstance(series.index, pd.DatetimeIndex)
        migraine = severity_series(history, find_symptom("migraine").labeler)
        self.assertEqual(migraine.tolist(), [0.0, 100.0])

    def test_weekly_sequences(self) -> None:
        """Short weeks are dropped; a matching day labels the week."""
        # Week one: 7 days with one heartburn day. Week two: only 2 days.
        history = [make_observation(i) for i in range(9)]
        history[3] = make_observation(3, symptoms=["heartburn"], severity=2)
        sequences = build_weekly_sequences(history, SYMPTOM_CATALOG[0].labeler, min_days=3)
        self.assertEqual(len(sequences), 1)
        vectors, label = sequences[0]
        self.assertEqual(len(vectors), 7)
        self.assertTrue(label)

    def test_weekly_sequences_any_symptom(self) -> None:
        """Any reported symptom marks the week positive; blank notes do not."""
        quiet = [make_observation(i, symptoms=[" "]) for i in range(7)]
        flared = [make_observation(i) for i in range(7, 14)]
        flared[2] = make_observation(9, symptoms=["odd tingling"], severity=1)
        labels = [label for _, label in build_weekly_sequences(quiet + flared, any_symptom, min_days=5)]
        self.assertEqual(labels, [False, True])

    def test_observations_frame(self) -> None:
        """The frame has habit and symptom indicator columns."""
        frame = observations_frame([make_observation(0, caffeine=True, symptoms=["rash"])])
        self.assertEqual(frame.loc[0, "caffeine_intake"], 1.0)
        self.assertEqual(frame.loc[0, "breakfast_skipped"], 1.0)
        self.assertEqual(frame.loc[0, "skin_issues"], 1.0)
        self.assertEqual(frame.loc[0, "acid_reflux"], 0.0)


class TestMergeEntries(unittest.TestCase):
    """Joining raw nutrition and exercise logs."""

    def test_meals_fold_into_one_day(self) -> None:
        """Meals on the same date fold into one observation."""
        day = START
        nutrition = [
            NutritionEntry(date=day, meal="breakfast", foods=["coffee", "toast"], sleep=6, stress=4,
                           caffeine=True, water_intake=3),
            NutritionEntry(date=day, meal="dinner", foods=["curry"], symptoms=["heartburn"], severity=6,
                           sleep=8, stress=6, water_intake=5),
            NutritionEntry(date=day + dt.timedelta(days=1), foods=["salad"], sleep=7, stress=3),
        ]
        exercise = [ExerciseEntry(date=day, type="run", duration=30, intensity="high", recovery=8)]
        merged = merge_entries(nutrition, exercise)
        self.assertEqual(len(merged), 2)
        first, second = merged
        self.assertEqual(first.date, day)
        self.assertEqual(first.sleep_hours, 7.0)
        self.assertEqual(first.stress_level, 5)
        self.assertTrue(first.caffeine)
        self.assertEqual(first.water_intake, 5.0)
        self.assertEqual(first.foods, ["coffee", "toast", "curry"])
        self.assertEqual(first.symptoms, ["heartburn"])
        self.assertEqual(first.severity, 6)
        self.assertTrue(first.exercise)
        self.assertEqual(first.exercise_intensity, "high")
        self.assertEqual(first.recovery_score, 8)
        self.assertFalse(second.exercise)
        self.assertIsNone(second.recovery_score)

    def test_no_nutrition(self) -> None:
        """No nutrition logs means no observations."""
        self.assertEqual(merge_entries([], []), [])


class TestNormalization(unittest.TestCase):
    """Rolling and smoothing helpers."""

    def test_moving_average_keeps_warmup_values(self) -> None:
        """Warm-up values pass through unchanged."""
        values = pd.Series([1.0, 2.0, 3.0, 4.0])
        self.assertEqual(moving_average(values, 3).tolist(), [1.0, 2.0, 2.0, 3.0])
        self.assertEqual(moving_average(values, 5).tolist(), [1.0, 2.0, 3.0, 4.0])

    def test_exponential_smoothing(self) -> None:
        """Smoothing starts from the first value."""
        smoothed = exponential_smoothing([10, 20], 0.3)
        self.assertEqual(smoothed[0], 10.0)
        self.assertAlmostEqual(smoothed[1], 13.0)
        self.assertEqual(exponential_smoothing([], 0.3), [])

    def test_find_peaks(self) -> None:
        """Strict local maxima only."""
        self.assertEqual(find_peaks([0, 2, 1, 3, 3, 1, 5, 0]), [1, 6])
        self.assertEqual(find_peaks([1, 2]), [])


if __name__ == '__main__':
    unittest.main()
