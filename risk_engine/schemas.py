"""
Pydantic schemas for the symptom risk engine.

These models describe both the records the engine reads (daily observations
supplied by the observation store) and every structure it returns: risk
predictions, correlation reports, forecasts and early warnings. The HTTP
layer in ``app.py`` uses the same models for request and response bodies.
"""

from __future__ import annotations

import datetime as dt
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Confidence = Literal["low", "medium", "high"]
Intensity = Literal["low", "medium", "high"]
Direction = Literal["positive", "negative"]
Strength = Literal["weak", "moderate", "strong"]
Status = Literal["ok", "insufficient_data", "no_model"]


class Observation(BaseModel):
    """One day of self-reported health data.

    Observations are immutable snapshots owned by the external store. The
    engine only reads them; every analysis receives the full history by value.
    """

    model_config = ConfigDict(frozen=True)

    date: dt.date = Field(..., description="Calendar day of the record")
    sleep_hours: float = Field(..., ge=0, description="Hours slept the night before")
    stress_level: int = Field(..., ge=1, le=10, description="Self-rated stress (1-10)")
    caffeine: bool = Field(False, description="Whether caffeine was consumed")
    exercise: bool = Field(False, description="Whether any exercise was logged")
    exercise_intensity: Optional[Intensity] = Field(None, description="Intensity of the exercise, if any")
    recovery_score: Optional[int] = Field(None, ge=1, le=10, description="Post-exercise recovery (1-10)")
    water_intake: float = Field(6.0, ge=0, description="Glasses of water")
    foods: List[str] = Field(default_factory=list, description="Foods/meals logged that day")
    symptoms: List[str] = Field(default_factory=list, description="Free-text symptom notes")
    severity: int = Field(0, ge=0, le=10, description="Worst symptom severity (0 when none)")


class NutritionEntry(BaseModel):
    """Raw meal log as kept by the observation store."""

    date: dt.date
    meal: str = ""
    foods: List[str] = Field(default_factory=list)
    symptoms: List[str] = Field(default_factory=list)
    severity: int = Field(0, ge=0, le=10)
    sleep: float = Field(..., ge=0)
    stress: int = Field(..., ge=1, le=10)
    caffeine: bool = False
    water_intake: float = Field(6.0, ge=0)


class ExerciseEntry(BaseModel):
    """Raw exercise log as kept by the observation store."""

    date: dt.date
    type: str = ""
    duration: float = Field(0, ge=0, description="Minutes")
    intensity: Intensity = "medium"
    recovery: int = Field(5, ge=1, le=10)
    notes: str = ""


class FeatureVector(BaseModel):
    """Numeric encoding of an observation used as model input."""

    model_config = ConfigDict(frozen=True)

    caffeine: float
    exercise_done: float
    exercise_intensity: float
    meal_count: float
    recovery_score: float
    sleep_hours: float
    stress_level: float
    water_intake: float

    def values(self, names: List[str]) -> List[float]:
        """Return raw feature values in the order given by ``names``."""
        return [float(getattr(self, n)) for n in names]

    def normalized(self) -> List[float]:
        """Return the comparably-scaled encoding used for linear scoring."""
        return [
            self.sleep_hours / 10.0,
            self.stress_level / 10.0,
            self.caffeine,
            self.exercise_done,
            self.water_intake / 10.0,
            self.exercise_intensity,
            self.recovery_score / 10.0,
            self.meal_count / 5.0,
        ]


class TrainingExample(BaseModel):
    """A feature vector paired with its binary symptom label."""

    features: FeatureVector
    label: bool


class ModelPerformance(BaseModel):
    """Classification metrics for a trained model.

    The numbers are computed on the same examples the model was trained on
    (``in_sample`` is always true). They are optimistic and must not be read
    as held-out or cross-validated accuracy.
    """

    model_name: str
    accuracy: float
    precision: float
    recall: float
    f1_score: float
    trained_on: int
    in_sample: bool = True
    last_updated: dt.datetime


class LogisticSummary(BaseModel):
    """Fitted parameters of the logistic baseline."""

    coefficients: Dict[str, float]
    intercept: float
    accuracy: float
    trained_on: int


class RiskFactorContribution(BaseModel):
    """A human-readable factor attached to a risk prediction."""

    factor: str
    impact: float
    direction: Direction
    description: str


class RiskPrediction(BaseModel):
    """Combined ensemble risk for one symptom.

    ``probability`` is on a 0-100 scale.
    """

    symptom: str
    probability: float = Field(..., ge=0, le=100)
    confidence: Confidence
    timeframe: Literal["24h", "48h"] = "24h"
    factors: List[RiskFactorContribution]
    recommendation: str
    status: Status = "ok"


class CorrelationResult(BaseModel):
    """Qualified correlation between two factors."""

    factor_a: str
    factor_b: str
    coefficient: float = Field(..., ge=-1, le=1)
    p_value: float
    strength: Strength
    direction: Direction
    sample_size: int
    confidence: Confidence
    method: Literal["pearson", "spearman", "mutual_information"]


class SymptomImpact(BaseModel):
    """How one habit relates to one symptom, in words."""

    correlation: float
    impact: str
    description: str
    examples: List[str]


class HabitImpact(BaseModel):
    """Aggregated effect of one habit across all tracked symptoms."""

    habit: str
    symptoms: Dict[str, SymptomImpact]
    overall_impact: float
    recommendation: str


class CorrelationMatrix(BaseModel):
    """Symmetric correlation and significance matrices for visualisation."""

    factors: List[str]
    matrix: List[List[float]]
    significance: List[List[float]]
    insights: List[str]


class CorrelationReport(BaseModel):
    """Everything produced by one correlation analysis pass."""

    correlations: List[CorrelationResult]
    habit_impacts: List[HabitImpact]
    matrix: CorrelationMatrix
    sample_size: int
    status: Status = "ok"


class TimeSeriesPoint(BaseModel):
    """One day of a decomposed severity series."""

    date: dt.date
    raw: float
    trend: float
    seasonal: float
    residual: float


class Decomposition(BaseModel):
    """Full-length trend/seasonal/residual decomposition."""

    points: List[TimeSeriesPoint]
    window: int
    status: Status = "ok"


class TrendAnalysis(BaseModel):
    """Direction and strength of the recent symptom trend."""

    direction: Literal["increasing", "decreasing", "stable"]
    strength: Strength
    period: int = Field(..., description="Days between the two most recent peaks (0 if unknown)")
    change_pct: float = 0.0
    next_peak: Optional[dt.date] = None
    next_trough: Optional[dt.date] = None


class ForecastPoint(BaseModel):
    """Predicted severity (0-100) for one future day."""

    date: dt.date
    predicted: float = Field(..., ge=0, le=100)
    confidence: float = Field(..., gt=0, le=1)
    contributing_factors: List[str]
    recommendations: List[str] = Field(default_factory=list)


class ForecastResult(BaseModel):
    """Forecast, trend analysis and decomposition for a symptom."""

    symptom: str
    points: List[ForecastPoint]
    trend: TrendAnalysis
    decomposition: Decomposition
    residual_std: float
    status: Status = "ok"


class RiskFactor(BaseModel):
    """A rule-based risk factor found in the recent observation window."""

    factor: str
    value: float
    threshold: float
    risk: Literal["low", "medium", "high"]
    description: str
    recommendation: str


class EarlyWarning(BaseModel):
    """A ranked, explained alert that a symptom is likely to flare."""

    model_config = ConfigDict(frozen=True)

    id: str
    symptom_type: str
    warning_type: Literal["symptom_flare", "mood_dip", "energy_crash", "sleep_disruption"] = "symptom_flare"
    severity: Literal["low", "medium", "high", "critical"]
    probability: float = Field(..., ge=0, le=100)
    timeframe: str
    risk_factors: List[RiskFactor]
    recommendations: List[str]
    confidence: Confidence
    generated_at: dt.datetime


class RemedyStats(BaseModel):
    """Effectiveness counters for one remedy."""

    model_config = ConfigDict(frozen=True)

    remedy_id: str
    effectiveness: float = Field(50.0, ge=0, le=100)
    usage_count: int = 0
    positive_feedback: int = 0
    negative_feedback: int = 0
    success_rate: float = 50.0
    last_used: Optional[dt.datetime] = None


class FeedbackEvent(BaseModel):
    """A single 'did this remedy help?' answer."""

    remedy_id: str
    effective: bool
    timestamp: dt.datetime


# ---------------------------------------------------------------------------
# HTTP request/response bodies
# ---------------------------------------------------------------------------


class ObservationHistory(BaseModel):
    """Request body carrying a user's full observation history."""

    observations: List[Observation]


class PredictionRequest(BaseModel):
    """Request body for a single-symptom risk prediction."""

    observations: List[Observation] = Field(..., description="History used to train the models")
    observation: Observation = Field(..., description="The day to score")
    symptom: str
    timeframe: Literal["24h", "48h"] = "24h"


class TrainingSummary(BaseModel):
    """Per-symptom training outcome."""

    symptom: str
    trained_on: int
    sufficient_data: bool
    performance: List[ModelPerformance]
    logistic: LogisticSummary


class MergeRequest(BaseModel):
    """Raw store records to be joined into daily observations."""

    nutrition: List[NutritionEntry]
    exercise: List[ExerciseEntry] = Field(default_factory=list)


class FeedbackRequest(BaseModel):
    """Current remedy counters plus the feedback to apply."""

    stats: RemedyStats
    event: FeedbackEvent
