"""Configuration for the flow/price backtest."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from stockpulse.exceptions import ConfigurationError


class BacktestSignal(str, Enum):
    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"


@dataclass(frozen=True)
class BacktestConfig:
    """Rule points and evaluation window of the backtest.

    Parameters
    ----------
    window : int
        Trailing number of bars evaluated.
    min_bars : int
        Below this history the result is empty.
    horizons : tuple[int, ...]
        Forward bars at which a signal is checked.
    foreign_points, trust_points, dealer_points : int
        Points for the sign of each counterparty's daily net flow.
    foreign_trend_points : int
        Points for the sign of the 5-day foreign net flow.
    price_volume_points : int
        Points for a price move on rising volume.
    bullish_threshold, bearish_threshold : int
        Day score at or above (below) which the signal is bullish
        (bearish).
    """

    window: int = 120
    min_bars: int = 20
    horizons: tuple[int, ...] = (3, 5)
    foreign_points: int = 2
    trust_points: int = 2
    dealer_points: int = 1
    foreign_trend_points: int = 1
    foreign_trend_days: int = 5
    price_volume_points: int = 1
    bullish_threshold: int = 1
    bearish_threshold: int = -2

    def __post_init__(self) -> None:
        if self.window <= 0 or self.min_bars <= 0:
            raise ConfigurationError("window and min_bars must be positive")
        if not self.horizons or any(h <= 0 for h in self.horizons):
            raise ConfigurationError("horizons must be positive bar counts")
        if self.bearish_threshold >= self.bullish_threshold:
            raise ConfigurationError(
                "bearish_threshold must be below bullish_threshold"
            )
