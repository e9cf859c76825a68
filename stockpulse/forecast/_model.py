"""Affine probability calibration model."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CalibrationBin:
    """Empirical win rate of one raw-probability bucket.

    Attributes
    ----------
    lower, upper : float
        Bucket bounds in probability points.
    total : int
        Samples in the bucket.
    win_rate : float
        Percent of samples with an up outcome; 0 for an empty bucket.
    """

    lower: float
    upper: float
    total: int
    win_rate: float

    @property
    def label(self) -> str:
        return f"{self.lower:.0f}-{self.upper:.0f}"


@dataclass(frozen=True)
class CalibrationModel:
    """``calibrated = clamp(slope * raw + intercept, 0, 100)``.

    The identity model (slope 1, intercept 0, no samples) is the fallback
    whenever too few samples exist for a stable fit.
    """

    slope: float = 1.0
    intercept: float = 0.0
    sample_size: int = 0
    bins: tuple[CalibrationBin, ...] = ()

    @classmethod
    def identity(cls) -> CalibrationModel:
        return cls()

    @property
    def is_identity(self) -> bool:
        return self.slope == 1.0 and self.intercept == 0.0
