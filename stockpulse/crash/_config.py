"""Configuration for the systemic crash-risk composite."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from stockpulse.exceptions import ConfigurationError
from stockpulse.records import MACRO_MIN_POINTS


class CrashLevel(str, Enum):
    NORMAL = "normal"
    WARNING = "warning"
    HIGH = "high"
    CRASH = "crash"
    INSUFFICIENT_DATA = "insufficient_data"


class CrashFactorName(str, Enum):
    VOLATILITY = "volatility"
    SECTOR = "sector"
    CROSS_ASSET = "cross_asset"
    LIQUIDITY = "liquidity"


@dataclass(frozen=True)
class CrashConfig:
    """Symbols, thresholds and weights of the crash composite.

    Aliases are tried in order; the first series with enough points is
    used.  Return thresholds are fractions (``-0.12`` is -12 %).
    """

    engine_version: str = "crash-v2.1"
    min_symbols: int = 2
    min_points: int = MACRO_MIN_POINTS
    lookback: int = 20

    vix_symbols: tuple[str, ...] = ("^VIX",)
    move_symbols: tuple[str, ...] = ("^MOVE",)
    sector_symbols: tuple[str, ...] = ("SOXX",)
    tech_symbols: tuple[str, ...] = ("QQQ",)
    dollar_symbols: tuple[str, ...] = ("^DXY", "DX-Y.NYB", "UUP")
    yen_symbols: tuple[str, ...] = ("USDJPY=X", "JPY=X")

    weights: tuple[float, float, float, float] = (0.30, 0.30, 0.20, 0.20)

    # volatility
    vix_panic: float = 35.0
    vix_elevated: float = 25.0
    vix_spike: float = 0.20
    move_extreme: float = 140.0
    move_elevated: float = 120.0

    # sector
    sector_break: float = -0.12
    sector_weak: float = -0.08
    tech_break: float = -0.10
    tech_weak: float = -0.06
    drawdown_severe: float = -0.15
    drawdown_weak: float = -0.06

    # cross asset
    dollar_strong: float = 0.06
    dollar_firm: float = 0.03
    yen_strong: float = 0.06
    yen_firm: float = 0.03

    # liquidity proxy
    liquidity_sector_break: float = -0.10

    # levels
    crash_threshold: float = 80.0
    high_threshold: float = 60.0
    warning_threshold: float = 30.0
    max_triggers: int = 4
    triggers_per_factor: int = 2

    def __post_init__(self) -> None:
        if abs(sum(self.weights) - 1.0) > 1e-9 or any(w < 0 for w in self.weights):
            raise ConfigurationError("crash factor weights must be non-negative and sum to 1")
        if self.min_points <= self.lookback:
            raise ConfigurationError("min_points must exceed the return lookback")
        if not (
            self.warning_threshold < self.high_threshold < self.crash_threshold
        ):
            raise ConfigurationError("crash level thresholds must be increasing")
        if self.min_symbols <= 0:
            raise ConfigurationError("min_symbols must be positive")

    @property
    def factor_weights(self) -> dict[CrashFactorName, float]:
        return dict(zip(CrashFactorName, self.weights))
