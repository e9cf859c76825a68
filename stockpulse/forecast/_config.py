"""Configuration for the probability forecaster and its calibration."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from stockpulse.exceptions import ConfigurationError


class Horizon(str, Enum):
    """Forecast horizon in trading days."""

    ONE_DAY = "1d"
    THREE_DAY = "3d"
    FIVE_DAY = "5d"


@dataclass(frozen=True)
class HorizonWeights:
    """Logit weights of one horizon.

    ``risk`` multiplies the pullback-risk feature and is expected to be
    negative.
    """

    opportunity: float
    trend: float
    news: float
    flow: float
    risk: float
    fundamental: float

    def as_dict(self) -> dict[str, float]:
        return {
            "opportunity": self.opportunity,
            "trend": self.trend,
            "news": self.news,
            "flow": self.flow,
            "risk": self.risk,
            "fundamental": self.fundamental,
        }


def _default_horizons() -> dict[Horizon, HorizonWeights]:
    return {
        Horizon.ONE_DAY: HorizonWeights(0.9, 0.6, 0.4, 0.2, -0.7, 0.1),
        Horizon.THREE_DAY: HorizonWeights(0.8, 0.7, 0.5, 0.3, -0.6, 0.2),
        Horizon.FIVE_DAY: HorizonWeights(0.6, 0.8, 0.4, 0.4, -0.5, 0.3),
    }


@dataclass(frozen=True)
class ForecastConfig:
    """Configuration for the logistic up-move forecaster.

    Parameters
    ----------
    horizons : dict[Horizon, HorizonWeights]
        Independent logit weights per horizon; the shortest horizon leans
        hardest on near-term opportunity.
    big_move_volatility, big_move_catalyst, big_move_spike, big_move_gap : float
        Weights of the large-move logit.
    spike_scale : float
        ``clamp((spike - 1) / spike_scale, 0, 1)`` maps the volume spike.
    gap_scale : float
        ``clamp(|gap| / gap_scale, 0, 1)`` maps the opening gap.
    """

    horizons: dict[Horizon, HorizonWeights] = field(default_factory=_default_horizons)
    big_move_volatility: float = 1.1
    big_move_catalyst: float = 0.6
    big_move_spike: float = 0.4
    big_move_gap: float = 0.2
    spike_scale: float = 1.5
    gap_scale: float = 0.05

    def __post_init__(self) -> None:
        missing = set(Horizon) - set(self.horizons)
        if missing:
            names = ", ".join(sorted(h.value for h in missing))
            raise ConfigurationError(f"missing horizon weights: {names}")
        for horizon, weights in self.horizons.items():
            if weights.risk > 0:
                raise ConfigurationError(
                    f"{horizon.value} pullback-risk weight must be non-positive"
                )
        if self.spike_scale <= 0 or self.gap_scale <= 0:
            raise ConfigurationError("spike_scale and gap_scale must be positive")


@dataclass(frozen=True)
class CalibrationConfig:
    """Configuration for the historical replay calibration.

    Parameters
    ----------
    start_index : int
        First replay bar; matches the minimum history of the scorers.
    forward_bars : int
        Outcome horizon: up when ``close[i + forward_bars] > close[i]``.
    min_bars : int
        Securities with fewer bars are skipped.
    min_samples : int
        Below this pooled sample count the identity model is returned.
    n_bins : int
        Diagnostic probability buckets.
    max_workers : int
        Thread pool size for the per-security replay.
    """

    start_index: int = 130
    forward_bars: int = 5
    min_bars: int = 140
    min_samples: int = 50
    n_bins: int = 10
    max_workers: int = 4

    def __post_init__(self) -> None:
        for name in ("start_index", "forward_bars", "min_samples", "n_bins", "max_workers"):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be positive")
        if self.min_bars <= self.start_index + self.forward_bars:
            raise ConfigurationError(
                "min_bars must leave at least one replay step after start_index"
            )

    @classmethod
    def for_quick_check(cls) -> CalibrationConfig:
        """Single-worker preset for small in-process rebuilds."""
        return cls(max_workers=1)
