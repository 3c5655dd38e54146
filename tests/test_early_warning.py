"""Unit tests for risk-factor scanning and early-warning generation."""

import datetime as dt
import unittest

import numpy as np

from factories import START, make_observation
from risk_engine.config import EngineSettings
from risk_engine.models.early_warning import (
    EarlyWarningGenerator,
    RiskFactorScanner,
    rank_warnings,
    warnings_from_forecast,
)
from risk_engine.models.forecaster import day_recommendations
from risk_engine.models.sequence import N_WEIGHTS
from risk_engine.schemas import ForecastPoint, RiskFactor

NOW = dt.datetime(2024, 3, 1, 8, 0, tzinfo=dt.timezone.utc)


def point(day: int, predicted: float, confidence: float) -> ForecastPoint:
    return ForecastPoint(
        date=START + dt.timedelta(days=day),
        predicted=predicted,
        confidence=confidence,
        contributing_factors=[],
        recommendations=day_recommendations(predicted),
    )


class TestForecastWarnings(unittest.TestCase):
    """Threshold crossing on the forecast horizon."""

    def setUp(self) -> None:
        self.points = [point(1, 45, 0.9), point(2, 65, 0.8), point(3, 82, 0.7)]

    def test_threshold_scenario(self) -> None:
        """Only days above the threshold warn, highest probability first."""
        warnings = rank_warnings(warnings_from_forecast("acid_reflux", self.points, [], NOW))
        self.assertEqual(len(warnings), 2)
        self.assertEqual([w.probability for w in warnings], [82, 65])
        self.assertEqual([w.severity for w in warnings], ["critical", "medium"])
        self.assertEqual([w.timeframe for w in warnings], ["in 3 days", "in 2 days"])
        self.assertEqual([w.confidence for w in warnings], ["medium", "high"])
        self.assertEqual(warnings[0].id, "warning-acid_reflux-2024-01-04")
        self.assertEqual(warnings[0].warning_type, "symptom_flare")

    def test_only_first_days_are_considered(self) -> None:
        """Days beyond the warning horizon are ignored."""
        points = [point(1, 10, 0.9), point(2, 10, 0.8), point(3, 10, 0.7), point(4, 95, 0.6)]
        self.assertEqual(warnings_from_forecast("ibs", points, [], NOW), [])

    def test_tomorrow_and_high_severity(self) -> None:
        """The first day reads as tomorrow."""
        warnings = warnings_from_forecast("ibs", [point(1, 75, 0.9)], [], NOW)
        self.assertEqual(warnings[0].timeframe, "tomorrow")
        self.assertEqual(warnings[0].severity, "high")

    def test_risk_factors_and_recommendations(self) -> None:
        """High then medium risk factors are attached; low ones are dropped."""
        medium = RiskFactor(
            factor="High Caffeine Intake", value=100, threshold=60, risk="medium",
            description="", recommendation="Avoid caffeine after 2pm",
        )
        high = RiskFactor(
            factor="Sleep Deprivation", value=5, threshold=7, risk="high",
            description="", recommendation="Prioritize sleep hygiene and aim for 7-9 hours nightly",
        )
        low = RiskFactor(
            factor="Other", value=1, threshold=1, risk="low", description="", recommendation="Ignore me",
        )
        warning = warnings_from_forecast("migraine", [point(1, 90, 0.9)], [medium, low, high], NOW)[0]
        self.assertEqual([rf.factor for rf in warning.risk_factors], ["Sleep Deprivation", "High Caffeine Intake"])
        self.assertEqual(len(warning.recommendations), len(set(warning.recommendations)))
        self.assertEqual(warning.recommendations[0], "High risk day - prioritize stress management")
        self.assertIn("Prioritize sleep hygiene and aim for 7-9 hours nightly", warning.recommendations)
        self.assertNotIn("Ignore me", warning.recommendations)


class TestRiskFactorScanner(unittest.TestCase):
    """Rules over the last week of observations."""

    def test_poor_week_triggers_every_rule(self) -> None:
        """A bad week trips every rule in order."""
        week = [make_observation(i, sleep_hours=5.0, stress_level=9, caffeine=True) for i in range(7)]
        factors = RiskFactorScanner().scan(week)
        self.assertEqual(
            [f.factor for f in factors],
            ["Sleep Deprivation", "High Stress", "High Caffeine Intake",
             "Low Exercise Frequency", "Irregular Meal Patterns"],
        )
        self.assertEqual(factors[0].value, 5.0)
        self.assertEqual(factors[2].value, 100.0)

    def test_healthy_week(self) -> None:
        """A healthy week has no risk factors."""
        week = [
            make_observation(i, sleep_hours=8.0, exercise=True, foods=["oats", "salad"])
            for i in range(7)
        ]
        self.assertEqual(RiskFactorScanner().scan(week), [])

    def test_old_days_are_ignored(self) -> None:
        """Only the last seven days are scanned."""
        old = [make_observation(i, sleep_hours=3.0, stress_level=10) for i in range(10)]
        recent = [make_observation(20 + i, sleep_hours=8.0, exercise=True, foods=["rice"]) for i in range(7)]
        self.assertEqual(RiskFactorScanner().scan(old + recent), [])

    def test_empty_history(self) -> None:
        """An empty history yields nothing."""
        self.assertEqual(RiskFactorScanner().scan([]), [])


class TestEarlyWarningGenerator(unittest.TestCase):
    """Warnings across all symptoms."""

    def test_quiet_history_has_no_warnings(self) -> None:
        """Symptom-free days raise no warnings."""
        history = [make_observation(i) for i in range(21)]
        generator = EarlyWarningGenerator(EngineSettings(), rng=np.random.default_rng(0))
        self.assertEqual(generator.generate(history, generated_at=NOW), [])

    def test_empty_history(self) -> None:
        """An empty history yields nothing."""
        generator = EarlyWarningGenerator(EngineSettings(), rng=np.random.default_rng(0))
        self.assertEqual(generator.generate([]), [])

    def test_forecast_warnings_are_ranked(self) -> None:
        """Forecast warnings are sorted by probability."""
        history = [
            make_observation(i, symptoms=["heartburn"], severity=5 if i % 2 else 4)
            for i in range(21)
        ]
        generator = EarlyWarningGenerator(EngineSettings(), rng=np.random.default_rng(0))
        warnings = generator.generate(history, generated_at=NOW)
        self.assertTrue(warnings)
        self.assertTrue(all(w.symptom_type == "acid_reflux" for w in warnings))
        probabilities = [w.probability for w in warnings]
        self.assertEqual(probabilities, sorted(probabilities, reverse=True))
        self.assertTrue(all(w.generated_at == NOW for w in warnings))

    def test_sequence_warning(self) -> None:
        """A high sequence score raises a single warning not tied to any symptom."""
        # Ten full ISO weeks; weights of 1 push every window well above 0.7.
        history = [make_observation(i, sleep_hours=5.0, stress_level=8, caffeine=True) for i in range(70)]
        generator = EarlyWarningGenerator(
            EngineSettings(),
            rng=np.random.default_rng(0),
            sequence_weights=[1.0] * N_WEIGHTS,
        )
        warnings = generator.generate(history, generated_at=NOW)
        self.assertEqual(len(warnings), 1)
        warning = warnings[0]
        self.assertEqual(warning.symptom_type, "general")
        self.assertEqual(warning.warning_type, "symptom_flare")
        self.assertEqual(warning.id, "sequence-warning-2024-03-10")
        self.assertEqual(warning.timeframe, "next 24 hours")
        self.assertEqual(warning.severity, "high")
        self.assertEqual(warning.confidence, "medium")
        self.assertGreater(warning.probability, 70)
        self.assertEqual(warning.recommendations[0], "Recent patterns suggest high risk of symptom flare")

    def test_too_few_weeks_for_sequence_warning(self) -> None:
        """Nine weeks are not enough for a sequence warning."""
        history = [make_observation(i, sleep_hours=5.0, stress_level=8, caffeine=True) for i in range(63)]
        generator = EarlyWarningGenerator(
            EngineSettings(),
            rng=np.random.default_rng(0),
            sequence_weights=[1.0] * N_WEIGHTS,
        )
        self.assertEqual(generator.generate(history, generated_at=NOW), [])


if __name__ == '__main__':
    unittest.main()
