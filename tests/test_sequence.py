"""Unit tests for the recency-weighted sequence predictor."""

import unittest

import numpy as np

from factories import make_observation
from risk_engine.data_pipeline import extract_features
from risk_engine.models.sequence import N_WEIGHTS, SequencePredictor, window_confidence
from risk_engine.schemas import FeatureVector


class TestSequencePredictor(unittest.TestCase):
    """Neutral prior, probability bounds and reproducibility."""

    def setUp(self) -> None:
        self.window = [extract_features(make_observation(i)) for i in range(5)]

    def test_untrained_is_neutral(self) -> None:
        """An unfitted predictor returns the neutral prior."""
        self.assertEqual(SequencePredictor().predict(self.window), (0.5, "low"))

    def test_empty_window_is_neutral(self) -> None:
        """An empty window returns the neutral prior."""
        predictor = SequencePredictor(rng=np.random.default_rng(0)).fit([])
        self.assertEqual(predictor.predict([]), (0.5, "low"))

    def test_zero_weights_give_one_half(self) -> None:
        """Zero weights squash to exactly one half."""
        predictor = SequencePredictor(weights=[0.0] * N_WEIGHTS).fit([])
        probability, confidence = predictor.predict(self.window)
        self.assertAlmostEqual(probability, 0.5)
        self.assertEqual(confidence, "medium")

    def test_probability_bounds_on_extreme_vectors(self) -> None:
        """Extreme inputs stay within 0 and 1."""
        zeros = FeatureVector(
            caffeine=0, exercise_done=0, exercise_intensity=0, meal_count=0,
            recovery_score=0, sleep_hours=0, stress_level=0, water_intake=0,
        )
        maxed = FeatureVector(
            caffeine=1, exercise_done=1, exercise_intensity=1, meal_count=50,
            recovery_score=10, sleep_hours=24, stress_level=10, water_intake=100,
        )
        predictor = SequencePredictor(weights=[1.0] * N_WEIGHTS).fit([])
        for vector in (zeros, maxed):
            probability, _ = predictor.predict([vector] * 4)
            self.assertGreaterEqual(probability, 0.0)
            self.assertLessEqual(probability, 1.0)

    def test_fit_keeps_injected_weights(self) -> None:
        """Injected weights survive fitting."""
        weights = [0.01 * i for i in range(N_WEIGHTS)]
        predictor = SequencePredictor(rng=np.random.default_rng(1), weights=weights).fit([])
        np.testing.assert_allclose(predictor.weights, weights)

    def test_same_seed_same_prediction(self) -> None:
        """The same seed draws the same small weights."""
        first = SequencePredictor(rng=np.random.default_rng(9)).fit([])
        second = SequencePredictor(rng=np.random.default_rng(9)).fit([])
        self.assertEqual(first.predict(self.window), second.predict(self.window))
        self.assertTrue(np.all(np.abs(first.weights) <= 0.05))

    def test_window_confidence(self) -> None:
        """Confidence comes from window length."""
        self.assertEqual(window_confidence(8), "high")
        self.assertEqual(window_confidence(4), "medium")
        self.assertEqual(window_confidence(3), "low")


if __name__ == '__main__':
    unittest.main()
