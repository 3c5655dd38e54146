"""
FastAPI application for the symptom risk engine.

The service is stateless: every request carries the observation history it
needs and a fresh :class:`RiskEngine` is built for it, so no trained model
outlives the request that produced it. Persisting observations and remedy
counters is the caller's job.
"""

from __future__ import annotations

import logging
from typing import Dict, List

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import schemas
from .config import get_settings
from .engine import RiskEngine

settings = get_settings()
logger = logging.getLogger(__name__)

app = FastAPI(title="Symptom Risk Engine", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def startup_event() -> None:
    """Configure logging when the server starts."""
    logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
    logger.info("Symptom risk engine started")


def new_engine() -> RiskEngine:
    """Build a request-scoped engine from the loaded settings."""
    return RiskEngine(settings)


@app.get("/health")
def health() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


@app.post("/train", response_model=Dict[str, schemas.TrainingSummary])
def train(history: schemas.ObservationHistory) -> Dict[str, schemas.TrainingSummary]:
    """Fit every symptom model and report in-sample performance."""
    return new_engine().train(history.observations)


@app.post("/predict", response_model=schemas.RiskPrediction)
def predict(request: schemas.PredictionRequest) -> schemas.RiskPrediction:
    """Train on the supplied history, then score a single day."""
    engine = new_engine()
    engine.train(request.observations)
    return engine.predict(
        request.observation,
        request.symptom,
        timeframe=request.timeframe,
        history=request.observations,
    )


@app.post("/correlations", response_model=schemas.CorrelationReport)
def correlations(history: schemas.ObservationHistory) -> schemas.CorrelationReport:
    """Habit/symptom correlations, habit impacts and the correlation matrix."""
    return new_engine().analyze_correlations(history.observations)


@app.post("/forecast/{symptom}", response_model=schemas.ForecastResult)
def forecast(symptom: str, history: schemas.ObservationHistory) -> schemas.ForecastResult:
    """Seven-day severity forecast and trend analysis for one symptom."""
    result = new_engine().forecast(history.observations, symptom)
    if result.status == "no_model":
        raise HTTPException(status_code=404, detail=f"Unknown symptom: {symptom}")
    return result


@app.post("/warnings", response_model=List[schemas.EarlyWarning])
def early_warnings(history: schemas.ObservationHistory) -> List[schemas.EarlyWarning]:
    """Early warnings across all symptoms, highest probability first."""
    return new_engine().generate_warnings(history.observations)


@app.post("/observations/merge", response_model=List[schemas.Observation])
def merge_observations(request: schemas.MergeRequest) -> List[schemas.Observation]:
    """Fold raw nutrition and exercise logs into one observation per day."""
    return RiskEngine.merge_observations(request.nutrition, request.exercise)


@app.post("/remedies/feedback", response_model=schemas.RemedyStats)
def remedy_feedback(request: schemas.FeedbackRequest) -> schemas.RemedyStats:
    """Apply one piece of remedy feedback and return the updated counters."""
    if request.stats.remedy_id != request.event.remedy_id:
        raise HTTPException(status_code=400, detail="Feedback event does not match remedy")
    return RiskEngine.record_feedback(request.stats, request.event)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch unhandled exceptions and return a JSON error."""
    logger.exception("Unhandled error on %s", request.url.path)
    return JSONResponse(status_code=500, content={"detail": str(exc)})
