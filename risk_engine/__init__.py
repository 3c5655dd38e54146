"""
Symptom risk engine.

Estimates short-horizon symptom risk from daily self-reported observations,
relates habits to symptoms, forecasts symptom severity and raises early
warnings. :class:`risk_engine.engine.RiskEngine` is the programmatic entry
point; the HTTP service is defined in ``app.py``.
"""
