"""Engine settings loaded from environment variables."""

from __future__ import annotations

from typing import List, Optional

from pydantic_settings import BaseSettings


class EngineSettings(BaseSettings):
    """Symptom risk engine configuration.

    Every field can be overridden with a ``RISK_ENGINE_``-prefixed environment
    variable, e.g. ``RISK_ENGINE_TREE_COUNT=10``.
    """

    model_config = {"env_prefix": "RISK_ENGINE_", "env_file": ".env", "env_file_encoding": "utf-8"}

    # Classifier ensemble
    tree_count: int = 15
    # None draws from system entropy; tests pin it.
    random_seed: Optional[int] = None
    min_training_examples: int = 10

    # Correlation analysis
    min_correlation_samples: int = 2
    mi_bins: int = 5

    # Decomposition / forecasting
    min_decomposition_points: int = 14
    forecast_days: int = 7
    smoothing_alpha: float = 0.3

    # Early warnings
    warning_threshold: float = 60.0
    warning_days: int = 3
    risk_window_days: int = 7
    sequence_window: int = 5
    sequence_warning_threshold: float = 0.7
    min_warning_sequences: int = 10

    # HTTP surface
    log_level: str = "info"
    cors_allow_origins: List[str] = ["*"]


def get_settings() -> EngineSettings:
    """Create and return an EngineSettings instance."""
    return EngineSettings()
