"""Up-move probability forecaster and its historical calibration."""

from stockpulse.forecast._calibration import (
    DEFAULT_TTL_SECONDS,
    CalibrationCache,
    CalibrationSample,
    build_calibration_model,
    fit_calibration,
    replay_samples,
)
from stockpulse.forecast._config import (
    CalibrationConfig,
    ForecastConfig,
    Horizon,
    HorizonWeights,
)
from stockpulse.forecast._model import CalibrationBin, CalibrationModel
from stockpulse.forecast._probability import (
    FeatureContribution,
    ForecastFeatures,
    ProbabilityForecast,
    RawForecast,
    apply_calibration,
    build_features,
    compute_raw_probabilities,
    predict_probabilities,
)

__all__ = [
    # Config
    "CalibrationConfig",
    "ForecastConfig",
    "Horizon",
    "HorizonWeights",
    # Forecaster
    "FeatureContribution",
    "ForecastFeatures",
    "ProbabilityForecast",
    "RawForecast",
    "apply_calibration",
    "build_features",
    "compute_raw_probabilities",
    "predict_probabilities",
    # Calibration
    "DEFAULT_TTL_SECONDS",
    "CalibrationBin",
    "CalibrationCache",
    "CalibrationModel",
    "CalibrationSample",
    "build_calibration_model",
    "fit_calibration",
    "replay_samples",
]
