"""Data pipeline utilities for the symptom risk engine.

This package turns raw observations into model inputs (feature vectors,
labels, sequences, severity series) and holds the rolling-window helpers the
time-series code relies on.
"""

from .features import (  # noqa: F401
    FEATURE_NAMES,
    SYMPTOM_CATALOG,
    KeywordLabeler,
    SymptomDefinition,
    TextToLabel,
    any_symptom,
    build_training_examples,
    build_weekly_sequences,
    extract_features,
    find_symptom,
    merge_entries,
    observations_frame,
    severity_series,
)
from .normalization import exponential_smoothing, find_peaks, moving_average, weekday_means  # noqa: F401
