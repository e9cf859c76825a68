"""Ordered strategy rules and the action cards they produce."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from stockpulse.factors import KeyLevels, RiskFlag
from stockpulse.strategy._config import StrategyConfig, StrategyMode, StrategySignal


@dataclass(frozen=True)
class StrategyInputs:
    """Everything a rule predicate may look at.

    Scores are on ``[0, 100]`` (``None`` when unavailable); the catalyst
    is on ``[-100, 100]``; probabilities are calibrated percentages.
    """

    trend: float | None
    flow: float | None
    fundamental: float | None
    catalyst: float
    volatility: float
    opportunity: float
    pullback_risk: float
    breakout: float
    up_1d: float
    up_3d: float
    up_5d: float
    big_move: float
    consistency: float | None = None
    crash_score: float | None = None
    risk_flags: frozenset[RiskFlag] = frozenset()
    key_levels: KeyLevels = field(default_factory=KeyLevels)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "risk_flags", frozenset(RiskFlag(f) for f in self.risk_flags)
        )

    def trend_or(self, default: float) -> float:
        return default if self.trend is None else self.trend

    def flow_or(self, default: float) -> float:
        return default if self.flow is None else self.flow


@dataclass(frozen=True)
class ActionCard:
    """A templated trading plan with live thresholds filled in."""

    title: str
    summary: str
    conditions: tuple[str, ...]
    invalidation: tuple[str, ...]
    risk_notes: tuple[str, ...]
    plan: tuple[str, ...]
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class RuleOutcome:
    mode: StrategyMode
    signal: StrategySignal
    card: ActionCard


Predicate = Callable[[StrategyInputs, StrategyConfig], bool]
Builder = Callable[[StrategyInputs, StrategyConfig], RuleOutcome]


@dataclass(frozen=True)
class StrategyRule:
    rule_id: str
    predicate: Predicate
    build: Builder


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _price(value: float | None) -> str:
    return "n/a" if value is None else f"{value:,.2f}"


def base_risk_notes(inputs: StrategyInputs) -> tuple[str, ...]:
    notes = []
    if RiskFlag.OVERHEATED in inputs.risk_flags:
        notes.append("Short-term overheated; avoid chasing into a pullback.")
    if RiskFlag.FAKE_BREAKOUT_RISK in inputs.risk_flags:
        notes.append("Breakout failure risk elevated; confirm follow-through volume.")
    if RiskFlag.WEAK_TREND in inputs.risk_flags:
        notes.append("Trend strength insufficient; keep size conservative.")
    if not notes:
        notes.append("Control leverage and position size before volatility expands.")
    return tuple(notes)


def _signal_from_probability(up_5d: float, config: StrategyConfig) -> StrategySignal:
    if up_5d >= config.bullish_probability:
        return StrategySignal.BULLISH
    if up_5d <= config.wait_probability:
        return StrategySignal.WAIT
    return StrategySignal.WATCH


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


def _breakout_follow_when(i: StrategyInputs, c: StrategyConfig) -> bool:
    return (
        i.opportunity >= c.breakout_opportunity
        and i.breakout >= c.breakout_score
        and i.pullback_risk <= c.breakout_max_pullback
        and i.big_move >= c.breakout_big_move
    )


def _breakout_follow(i: StrategyInputs, c: StrategyConfig) -> RuleOutcome:
    levels = i.key_levels
    return RuleOutcome(
        StrategyMode.SHORT_TERM,
        StrategySignal.BULLISH,
        ActionCard(
            title="Follow the breakout, scale in",
            summary=(
                f"Breakout setup in place (opportunity {i.opportunity:.0f}, "
                f"big-move odds {i.big_move:.1f}%); act on a retest or continuation."
            ),
            conditions=(
                f"Close holds above the 20-day high {_price(levels.breakout)} on volume.",
                f"Pullback risk stays at or below {c.breakout_max_pullback:.0f} "
                f"(now {i.pullback_risk:.0f}).",
            ),
            invalidation=(
                f"Close back below support {_price(levels.support)}.",
                "Two sessions of fading volume after the breakout.",
            ),
            risk_notes=base_risk_notes(i),
            plan=(
                "Open a small starter position on the breakout day.",
                f"Add once a retest holds above {_price(levels.support)}.",
            ),
            tags=("breakout", "short_term", "bullish"),
        ),
    )


def _pullback_buy_when(i: StrategyInputs, c: StrategyConfig) -> bool:
    return (
        i.trend_or(c.neutral_score) >= c.pullback_trend
        and c.pullback_min_risk <= i.pullback_risk <= c.pullback_max_risk
        and (
            i.flow_or(c.neutral_score) >= c.pullback_flow
            or i.catalyst >= c.pullback_catalyst
        )
    )


def _pullback_buy(i: StrategyInputs, c: StrategyConfig) -> RuleOutcome:
    levels = i.key_levels
    return RuleOutcome(
        StrategyMode.SWING,
        _signal_from_probability(i.up_5d, c),
        ActionCard(
            title="Buy the pullback",
            summary=(
                f"Uptrend intact (trend {i.trend_or(c.neutral_score):.0f}); "
                f"accumulate on dips toward {_price(levels.support)}."
            ),
            conditions=(
                f"Trend score holds at or above {c.pullback_trend:.0f}.",
                f"Pullback risk between {c.pullback_min_risk:.0f} and "
                f"{c.pullback_max_risk:.0f} (now {i.pullback_risk:.0f}).",
                f"5-day up probability {i.up_5d:.1f}%; flow or news supportive.",
            ),
            invalidation=(
                f"Close below the invalidation level {_price(levels.invalidation)}.",
                "Institutional flow turns clearly negative.",
            ),
            risk_notes=base_risk_notes(i),
            plan=(
                "Start with a partial position near support.",
                "Add after support is confirmed.",
            ),
            tags=("pullback", "swing", "accumulate"),
        ),
    )


def _news_event_when(i: StrategyInputs, c: StrategyConfig) -> bool:
    return abs(i.catalyst) >= c.news_catalyst and i.volatility >= c.news_volatility


def _news_event(i: StrategyInputs, c: StrategyConfig) -> RuleOutcome:
    signal = StrategySignal.BULLISH if i.catalyst > 0 else StrategySignal.AVOID
    return RuleOutcome(
        StrategyMode.SHORT_TERM,
        signal,
        ActionCard(
            title="Event-driven: news catalyst",
            summary=(
                f"Catalyst {i.catalyst:+.0f} with volatility {i.volatility:.0f}; "
                "trade it with strict sizing."
            ),
            conditions=(
                f"|Catalyst| at or above {c.news_catalyst:.0f}.",
                f"Volatility score at or above {c.news_volatility:.0f}.",
            ),
            invalidation=(
                "News momentum fades quickly.",
                "Volume fails to confirm the move.",
            ),
            risk_notes=base_risk_notes(i)
            + ("Event trades over 1-3 days need tight stops.",),
            plan=(
                "Probe with a small position on the event day.",
                f"Scale up next session if price holds; ATR {_price(i.key_levels.atr14)}.",
            ),
            tags=("news", "event", "short_term"),
        ),
    )


def _flow_risk_off_when(i: StrategyInputs, c: StrategyConfig) -> bool:
    return (
        (
            i.trend_or(c.neutral_score) >= c.risk_off_trend
            and i.flow_or(c.neutral_score) <= c.risk_off_flow
        )
        or RiskFlag.INST_REVERSAL_DOWN in i.risk_flags
        or RiskFlag.MARGIN_SPIKE in i.risk_flags
    )


def _flow_risk_off(i: StrategyInputs, c: StrategyConfig) -> RuleOutcome:
    flow = "n/a" if i.flow is None else f"{i.flow:.0f}"
    return RuleOutcome(
        StrategyMode.SWING,
        StrategySignal.WAIT,
        ActionCard(
            title="Flow weakening: stay defensive",
            summary=f"Price structure acceptable but flow is weak ({flow}).",
            conditions=(
                "Trend and flow diverge.",
                "Institutions or margin usage turned against the move.",
            ),
            invalidation=(
                f"Flow score recovers above {c.pullback_flow:.0f}.",
                "Margin pressure eases.",
            ),
            risk_notes=base_risk_notes(i)
            + ("False breakouts are common while flow diverges.",),
            plan=(
                "Reduce leverage and trim exposure.",
                "Wait for money to flow back in.",
            ),
            tags=("flow", "defensive", "wait"),
        ),
    )


def _dead_cat_bounce_when(i: StrategyInputs, c: StrategyConfig) -> bool:
    return (
        i.trend_or(c.neutral_score) <= c.bounce_max_trend
        and i.volatility >= c.bounce_volatility
        and i.up_1d >= c.bounce_min_up_1d
        and i.up_5d <= c.bounce_max_up_5d
    )


def _dead_cat_bounce(i: StrategyInputs, c: StrategyConfig) -> RuleOutcome:
    return RuleOutcome(
        StrategyMode.SHORT_TERM,
        StrategySignal.WATCH,
        ActionCard(
            title="Bounce watch: in and out",
            summary=(
                f"1-day odds {i.up_1d:.1f}% exceed 5-day odds {i.up_5d:.1f}%; "
                "the medium-term trend has not turned."
            ),
            conditions=(
                "Short-horizon up probability above the 5-day one.",
                f"Volatility still elevated ({i.volatility:.0f}).",
            ),
            invalidation=(
                f"Bounce fails below resistance {_price(i.key_levels.breakout)}.",
                "Price/volume structure weakens.",
            ),
            risk_notes=base_risk_notes(i) + ("Do not overstay a bounce trade.",),
            plan=(
                f"Set a hard stop near {_price(i.key_levels.support)}.",
                "Take profits in stages.",
            ),
            tags=("bounce", "short_term", "watch"),
        ),
    )


def _default_wait(i: StrategyInputs, c: StrategyConfig) -> RuleOutcome:
    return RuleOutcome(
        StrategyMode.SWING,
        StrategySignal.WATCH,
        ActionCard(
            title="Signals mixed, keep watching",
            summary="Bullish and bearish signals have not converged.",
            conditions=(
                f"Short-term opportunity improves (now {i.opportunity:.0f}).",
                "Flow returns to neutral or better.",
                f"5-day up probability above {c.bullish_probability:.0f}% "
                f"(now {i.up_5d:.1f}%).",
            ),
            invalidation=(
                f"Trend score drops below {c.bounce_max_trend:.0f}.",
                "Pullback risk rises quickly.",
            ),
            risk_notes=base_risk_notes(i),
            plan=(
                "Observe without chasing price.",
                "Wait for further confirmation.",
            ),
            tags=("watch", "wait", "defensive"),
        ),
    )


RULES: tuple[StrategyRule, ...] = (
    StrategyRule("breakout_follow", _breakout_follow_when, _breakout_follow),
    StrategyRule("pullback_buy", _pullback_buy_when, _pullback_buy),
    StrategyRule("news_event", _news_event_when, _news_event),
    StrategyRule("flow_risk_off", _flow_risk_off_when, _flow_risk_off),
    StrategyRule("dead_cat_bounce", _dead_cat_bounce_when, _dead_cat_bounce),
    StrategyRule("default_wait", lambda i, c: True, _default_wait),
)
