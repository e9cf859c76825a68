"""Configuration for the rule-based strategy selector."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from stockpulse.exceptions import ConfigurationError


class StrategyMode(str, Enum):
    SWING = "swing"
    SHORT_TERM = "short_term"


class StrategySignal(str, Enum):
    """Trading stance of a decision.

    ``CASH`` and ``HOLD`` are produced only by post-selection vetoes.
    """

    BULLISH = "bullish"
    BEARISH = "bearish"
    WATCH = "watch"
    WAIT = "wait"
    AVOID = "avoid"
    CASH = "cash"
    HOLD = "hold"


@dataclass(frozen=True)
class StrategyConfig:
    """Rule thresholds, confidence coefficients and veto levels.

    Missing trend and flow scores are read as ``neutral_score`` inside
    rule predicates.
    """

    neutral_score: float = 50.0

    # breakout_follow
    breakout_opportunity: float = 75.0
    breakout_score: float = 70.0
    breakout_max_pullback: float = 65.0
    breakout_big_move: float = 55.0

    # pullback_buy
    pullback_trend: float = 65.0
    pullback_min_risk: float = 50.0
    pullback_max_risk: float = 75.0
    pullback_flow: float = 55.0
    pullback_catalyst: float = 20.0
    bullish_probability: float = 60.0
    wait_probability: float = 45.0

    # news_event
    news_catalyst: float = 35.0
    news_volatility: float = 55.0

    # flow_risk_off
    risk_off_trend: float = 55.0
    risk_off_flow: float = 35.0

    # dead_cat_bounce
    bounce_max_trend: float = 45.0
    bounce_volatility: float = 60.0
    bounce_min_up_1d: float = 55.0
    bounce_max_up_5d: float = 50.0

    # confidence
    probability_coef: float = 0.4
    opportunity_coef: float = 0.2
    pullback_coef: float = 0.3
    catalyst_coef: float = 0.1
    catalyst_cap: float = 10.0
    flag_penalty: float = 3.0
    flag_penalty_cap: float = 12.0

    # vetoes
    crash_veto: float = 80.0
    crash_veto_penalty: float = 30.0
    flow_veto: float = 20.0
    flow_veto_penalty: float = 20.0
    trend_veto: float = 20.0
    trend_veto_penalty: float = 20.0
    min_consistency: float = 45.0

    def __post_init__(self) -> None:
        if self.pullback_min_risk > self.pullback_max_risk:
            raise ConfigurationError("pullback risk band is inverted")
        if self.wait_probability >= self.bullish_probability:
            raise ConfigurationError(
                "wait_probability must be below bullish_probability"
            )
        if self.catalyst_cap < 0 or self.flag_penalty_cap < 0:
            raise ConfigurationError("confidence caps must be non-negative")

    @classmethod
    def for_no_vetoes(cls) -> StrategyConfig:
        """Preset that disables the post-selection overrides."""
        return cls(
            crash_veto=float("inf"),
            flow_veto=float("-inf"),
            trend_veto=float("-inf"),
            min_consistency=float("-inf"),
        )
