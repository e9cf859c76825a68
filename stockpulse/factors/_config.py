"""Configuration for the per-security factor scorers.

Every threshold below was chosen empirically; they are kept as named,
overridable constants rather than tuned in code.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from stockpulse.exceptions import ConfigurationError

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class FactorName(str, Enum):
    """Identifiers of the per-security factors."""

    TREND = "trend"
    FLOW = "flow"
    FUNDAMENTAL = "fundamental"
    VOLATILITY = "volatility"
    SHORT_TERM = "short_term"


class RiskFlag(str, Enum):
    """Informational risk tags raised by threshold checks.

    Flags never feed back into the score that raised them.
    """

    OVERHEATED = "overheated"
    BREAKDOWN_RISK = "breakdown_risk"
    VOLUME_MISSING = "volume_missing"
    MARGIN_SPIKE = "margin_spike"
    RETAIL_TAKING_KNIVES = "retail_taking_knives"
    SHORT_SQUEEZE_POTENTIAL = "short_squeeze_potential"
    INST_REVERSAL_DOWN = "inst_reversal_down"
    INST_REVERSAL_UP = "inst_reversal_up"
    FLOW_DATA_MISSING = "flow_data_missing"
    MARGIN_DATA_MISSING = "margin_data_missing"
    REV_TURN_NEGATIVE = "rev_turn_negative"
    GROWTH_DECELERATING = "growth_decelerating"
    FAKE_BREAKOUT_RISK = "fake_breakout_risk"
    WEAK_TREND = "weak_trend"


RISK_FLAG_LABELS: dict[RiskFlag, str] = {
    RiskFlag.OVERHEATED: "Short-term overheated (RSI high, stretched above SMA20)",
    RiskFlag.BREAKDOWN_RISK: "Below short-term average, breakdown risk rising",
    RiskFlag.VOLUME_MISSING: "Volume data missing",
    RiskFlag.MARGIN_SPIKE: "Margin balance rising quickly",
    RiskFlag.RETAIL_TAKING_KNIVES: "Retail buying into institutional selling",
    RiskFlag.SHORT_SQUEEZE_POTENTIAL: "Short balance building, squeeze potential",
    RiskFlag.INST_REVERSAL_DOWN: "Institutions flipped from buying to selling",
    RiskFlag.INST_REVERSAL_UP: "Institutions flipped from selling to buying",
    RiskFlag.FLOW_DATA_MISSING: "Institutional flow data incomplete",
    RiskFlag.MARGIN_DATA_MISSING: "Margin data unavailable",
    RiskFlag.REV_TURN_NEGATIVE: "Revenue growth turned negative",
    RiskFlag.GROWTH_DECELERATING: "Revenue growth decelerating sharply",
    RiskFlag.FAKE_BREAKOUT_RISK: "Breakout without volume confirmation",
    RiskFlag.WEAK_TREND: "Trend strength insufficient",
}


def risk_flag_label(flag: RiskFlag | str) -> str:
    """Human-readable label for a risk flag."""
    try:
        return RISK_FLAG_LABELS[RiskFlag(flag)]
    except ValueError:
        return str(flag)


def _check_weights(name: str, weights: tuple[float, ...]) -> None:
    if abs(sum(weights) - 1.0) > 1e-9:
        raise ConfigurationError(
            f"{name} weights must sum to 1, got {sum(weights):.6f}"
        )


def _check_positive(**windows: int) -> None:
    for key, value in windows.items():
        if value <= 0:
            raise ConfigurationError(f"{key} must be positive, got {value}")


# ---------------------------------------------------------------------------
# Frozen dataclass configs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TrendConfig:
    """Configuration for the trend scorer.

    Parameters
    ----------
    min_bars : int
        Minimum history; below it the score is unavailable.
    sma_short, sma_mid, sma_long : int
        Moving-average windows used for the alignment check.
    rsi_period : int
        RSI lookback.
    return_window : int
        Lookback of the swing return sub-score, in bars.
    rsi_overbought, rsi_oversold, rsi_neutral : float
        RSI bands for the momentum sub-score.
    rsi_overheated : float
        RSI level that raises the ``overheated`` flag.
    strong_return_pct : float
        Absolute swing return (percent) separating strong from mild moves.
    weights : tuple[float, float, float, float]
        Weights of alignment, RSI, MACD and return sub-scores.
    """

    min_bars: int = 130
    sma_short: int = 20
    sma_mid: int = 60
    sma_long: int = 120
    rsi_period: int = 14
    return_window: int = 60
    rsi_overbought: float = 70.0
    rsi_oversold: float = 30.0
    rsi_neutral: float = 50.0
    rsi_overheated: float = 75.0
    strong_return_pct: float = 15.0
    weights: tuple[float, float, float, float] = (0.40, 0.20, 0.20, 0.20)

    def __post_init__(self) -> None:
        _check_positive(
            min_bars=self.min_bars,
            sma_short=self.sma_short,
            rsi_period=self.rsi_period,
            return_window=self.return_window,
        )
        if not self.sma_short < self.sma_mid < self.sma_long:
            raise ConfigurationError(
                "moving-average windows must be strictly increasing"
            )
        _check_weights("TrendConfig", self.weights)


@dataclass(frozen=True)
class FlowConfig:
    """Configuration for the institutional flow scorer.

    Parameters
    ----------
    min_trading_days : int
        Minimum number of trading dates.
    short_window, long_window : int
        Recent and reference windows (trading days).
    foreign_slope, trust_slope : float
        Slopes of the saturating net-flow ratio maps.
    foreign_weight, trust_weight : float
        Mix of the two institutional sub-scores.
    institutional_weight, margin_weight : float
        Mix of the institutional and margin sub-scores.
    margin_spike_ratio : float
        20-day margin balance growth raising ``margin_spike``.
    margin_drop_ratio : float
        20-day margin balance change treated as retail exit.
    missing_ratio : float
        Share of missing foreign-flow days above which a penalty applies.
    missing_penalty : float
        Points deducted for incomplete flow data.
    accumulation_bonus, distribution_penalty : float
        Adjustment for smart-money versus retail divergence.
    short_squeeze_lots : float
        5-day short balance increase (lots) raising the squeeze flag.
    lot_size : int
        Shares per board lot.
    """

    min_trading_days: int = 30
    short_window: int = 5
    long_window: int = 20
    foreign_slope: float = 15.0
    trust_slope: float = 20.0
    foreign_weight: float = 0.6
    trust_weight: float = 0.4
    institutional_weight: float = 0.7
    margin_weight: float = 0.3
    margin_spike_ratio: float = 0.15
    margin_drop_ratio: float = -0.05
    missing_ratio: float = 0.2
    missing_penalty: float = 10.0
    accumulation_bonus: float = 5.0
    distribution_penalty: float = 10.0
    short_squeeze_lots: float = 500.0
    lot_size: int = 1000

    def __post_init__(self) -> None:
        _check_positive(
            min_trading_days=self.min_trading_days,
            short_window=self.short_window,
            long_window=self.long_window,
            lot_size=self.lot_size,
        )
        if self.short_window >= self.long_window:
            raise ConfigurationError("short_window must be below long_window")
        _check_weights(
            "FlowConfig institutional", (self.foreign_weight, self.trust_weight)
        )
        _check_weights(
            "FlowConfig composite",
            (self.institutional_weight, self.margin_weight),
        )


@dataclass(frozen=True)
class FundamentalConfig:
    """Configuration for the monthly-revenue fundamental scorer.

    Parameters
    ----------
    min_months : int
        Minimum number of monthly records.
    min_recent_usable : int
        Minimum usable YoY values among the latest six months.
    level_scale, level_amplitude : float
        ``50 + amplitude * tanh(y3 / scale)`` level mapping.
    accel_multiplier, accel_cap : float
        Acceleration term ``clamp(multiplier * trend3, -cap, cap)``.
    negative_penalty : float
        Deduction when two of the last three months shrank.
    high_growth_pct, high_growth_bonus : float
        Bonus when two of the last three months exceed the growth level.
    decelerating_threshold : float
        ``trend3`` (percentage points) raising ``growth_decelerating``.
    score_floor, score_cap : float
        Final score bounds.
    """

    min_months: int = 8
    min_recent_usable: int = 5
    level_scale: float = 25.0
    level_amplitude: float = 30.0
    accel_multiplier: float = 1.2
    accel_cap: float = 10.0
    negative_penalty: float = 8.0
    high_growth_pct: float = 20.0
    high_growth_bonus: float = 4.0
    decelerating_threshold: float = -10.0
    score_floor: float = 10.0
    score_cap: float = 95.0

    def __post_init__(self) -> None:
        _check_positive(
            min_months=self.min_months, min_recent_usable=self.min_recent_usable
        )
        if self.score_floor >= self.score_cap:
            raise ConfigurationError("score_floor must be below score_cap")


@dataclass(frozen=True)
class VolatilityConfig:
    """Configuration for the short-term volatility sensitivity scorer."""

    min_bars: int = 15
    volume_window: int = 20
    atr_period: int = 14

    def __post_init__(self) -> None:
        _check_positive(
            min_bars=self.min_bars,
            volume_window=self.volume_window,
            atr_period=self.atr_period,
        )
        if self.min_bars < self.atr_period + 1:
            raise ConfigurationError("min_bars must cover the ATR period")


@dataclass(frozen=True)
class ShortTermConfig:
    """Configuration for the short-term opportunity scorer.

    Parameters
    ----------
    min_bars : int
        Minimum history.
    breakout_window : int
        Lookback of the recent high.
    band_window, band_lookback : int
        Bollinger window and the width-percentile lookback.
    weights : tuple[float, float, float, float]
        Weights of breakout, squeeze, volatility and trend scores.
    pullback_weight : float
        Penalty weight of the pullback-risk score.
    overheated_distance : float
        Distance above SMA20 treated as overheated.
    overheated_rsi : float
        RSI treated as overheated.
    fake_breakout_volume : float
        Volume spike below which a breakout is flagged as unconfirmed.
    weak_trend_score : float
        Trend score below which ``weak_trend`` is raised.
    """

    min_bars: int = 130
    breakout_window: int = 20
    band_window: int = 20
    band_lookback: int = 120
    weights: tuple[float, float, float, float] = (0.35, 0.25, 0.25, 0.15)
    pullback_weight: float = 0.30
    overheated_distance: float = 0.10
    overheated_rsi: float = 75.0
    fake_breakout_volume: float = 1.2
    weak_trend_score: float = 45.0

    def __post_init__(self) -> None:
        _check_positive(
            min_bars=self.min_bars,
            breakout_window=self.breakout_window,
            band_window=self.band_window,
            band_lookback=self.band_lookback,
        )
        _check_weights("ShortTermConfig", self.weights)
