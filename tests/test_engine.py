"""Tests for the RiskEngine facade."""

import datetime as dt
import unittest

from factories import make_observation, reflux_history, severity_history
from risk_engine.config import EngineSettings
from risk_engine.data_pipeline import SYMPTOM_CATALOG
from risk_engine.engine import RiskEngine


class TestRiskEngine(unittest.TestCase):
    """Training, prediction and reproducibility through the facade."""

    def setUp(self) -> None:
        self.settings = EngineSettings()
        self.history = reflux_history()
        self.today = make_observation(30, sleep_hours=5.0, stress_level=8, caffeine=True)

    def test_predict_before_training(self) -> None:
        """Predicting before training reports no model."""
        prediction = RiskEngine(self.settings, seed=1).predict(self.today, "acid_reflux")
        self.assertEqual(prediction.status, "no_model")

    def test_train_summaries(self) -> None:
        """Training summarises every catalog symptom."""
        summaries = RiskEngine(self.settings, seed=1).train(self.history)
        self.assertEqual(set(summaries), {d.key for d in SYMPTOM_CATALOG})
        reflux = summaries["acid_reflux"]
        self.assertEqual(reflux.symptom, "Acid Reflux")
        self.assertEqual(reflux.trained_on, 20)
        self.assertTrue(reflux.sufficient_data)
        self.assertEqual(reflux.performance[0].model_name, "Random Forest")
        self.assertTrue(reflux.performance[0].in_sample)

    def test_same_seed_same_results(self) -> None:
        """The same seed reproduces training and prediction."""
        results = []
        for _ in range(2):
            engine = RiskEngine(self.settings, seed=11)
            summaries = engine.train(self.history)
            prediction = engine.predict(self.today, "acid_reflux", history=self.history)
            results.append((
                prediction.probability,
                prediction.confidence,
                summaries["acid_reflux"].performance[0].accuracy,
                summaries["acid_reflux"].logistic.coefficients,
            ))
        self.assertEqual(results[0], results[1])

    def test_retraining_replaces_models(self) -> None:
        """A second training pass discards the first."""
        engine = RiskEngine(self.settings, seed=3)
        engine.train(self.history)
        engine.train(self.history[:4])
        self.assertEqual(engine.predict(self.today, "acid_reflux").status, "insufficient_data")

    def test_seed_falls_back_to_settings(self) -> None:
        """An explicit seed wins over the configured one."""
        self.assertEqual(RiskEngine(EngineSettings(random_seed=99)).seed, 99)
        self.assertEqual(RiskEngine(EngineSettings(random_seed=99), seed=5).seed, 5)

    def test_analysis_entry_points(self) -> None:
        """Correlations, forecasts and warnings run through the engine."""
        engine = RiskEngine(self.settings, seed=0)
        report = engine.analyze_correlations(self.history)
        self.assertEqual(report.sample_size, 20)
        forecast = engine.forecast(severity_history([2, 4, 1] * 7), "acid_reflux")
        self.assertEqual(len(forecast.points), 7)
        when = dt.datetime(2024, 2, 1, tzinfo=dt.timezone.utc)
        warnings = engine.generate_warnings(severity_history([5] * 21), generated_at=when)
        self.assertTrue(all(w.generated_at == when for w in warnings))
        self.assertTrue(warnings)


if __name__ == '__main__':
    unittest.main()
