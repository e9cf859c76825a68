"""First-match strategy selection, confidence and post-selection vetoes."""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Sequence
from dataclasses import dataclass

from stockpulse._numeric import clamp, round_half_up
from stockpulse.factors import RiskFlag
from stockpulse.strategy._config import StrategyConfig, StrategyMode, StrategySignal
from stockpulse.strategy._rules import (
    RULES,
    ActionCard,
    StrategyInputs,
    StrategyRule,
)

logger = logging.getLogger(__name__)

_BEARISH_SIGNALS = frozenset(
    {StrategySignal.BEARISH, StrategySignal.AVOID, StrategySignal.CASH}
)
_DISAGREEMENT_NOTE = "Signals disagree; wait for consistency to recover before adding size."


@dataclass(frozen=True)
class Contradiction:
    left: str
    right: str
    why: str


@dataclass(frozen=True)
class StrategyExplain:
    """Direction, supporting reasons and tensions behind a decision."""

    direction: str
    certainty: float
    reasons: tuple[str, ...]
    contradictions: tuple[Contradiction, ...] = ()


@dataclass(frozen=True)
class StrategyDecision:
    """Outcome of the rule table.

    Attributes
    ----------
    mode : StrategyMode
    signal : StrategySignal
        Final signal after vetoes.
    confidence : float
        ``[0, 100]``, rounded to 0.1.
    action_cards : tuple[ActionCard, ...]
    chosen_rule_id : str
        The first rule whose predicate held; vetoes never change it.
    rule_signal : StrategySignal
        Signal produced by the rule before vetoes.
    veto_reason : str or None
    explain : StrategyExplain
    """

    mode: StrategyMode
    signal: StrategySignal
    confidence: float
    action_cards: tuple[ActionCard, ...]
    chosen_rule_id: str
    rule_signal: StrategySignal
    explain: StrategyExplain
    veto_reason: str | None = None


def strategy_confidence(
    inputs: StrategyInputs, config: StrategyConfig | None = None
) -> float:
    """Base 50 moved by probability, opportunity, pullback risk and news.

    ``50 + 0.4 (p5 - 50) + 0.2 (opp - 50) - 0.3 (pullback - 50)
    + clamp(0.1 catalyst, -10, 10) - min(12, 3 * flags)``, clamped to
    ``[0, 100]`` and rounded to 0.1.
    """
    if config is None:
        config = StrategyConfig()
    catalyst_bonus = clamp(
        config.catalyst_coef * inputs.catalyst, -config.catalyst_cap, config.catalyst_cap
    )
    flag_penalty = min(
        config.flag_penalty_cap, config.flag_penalty * len(inputs.risk_flags)
    )
    score = (
        50.0
        + config.probability_coef * (inputs.up_5d - 50.0)
        + config.opportunity_coef * (inputs.opportunity - 50.0)
        - config.pullback_coef * (inputs.pullback_risk - 50.0)
        + catalyst_bonus
        - flag_penalty
    )
    return round_half_up(clamp(score, 0.0, 100.0), 1)


def _explain(
    inputs: StrategyInputs,
    signal: StrategySignal,
    confidence: float,
    config: StrategyConfig,
) -> StrategyExplain:
    trend = inputs.trend_or(config.neutral_score)
    if signal is StrategySignal.BULLISH:
        direction = "bullish"
    elif signal in _BEARISH_SIGNALS:
        direction = "bearish"
    elif trend > 55:
        direction = "bullish"
    elif trend < 45:
        direction = "bearish"
    else:
        direction = "neutral"

    reasons = []
    if trend >= 60:
        reasons.append("Trend remains constructive.")
    elif trend <= 40:
        reasons.append("Trend is weak.")
    if inputs.catalyst >= 20:
        reasons.append("Recent news leans positive.")
    elif inputs.catalyst <= -20:
        reasons.append("Recent news leans negative.")
    elif abs(inputs.catalyst) < 5:
        reasons.append("No meaningful news catalyst.")
    if not reasons:
        reasons.append("Forces balanced; no single dominant driver.")

    contradictions = []
    consistency = inputs.consistency
    if consistency is not None and consistency < config.min_consistency:
        contradictions.append(
            Contradiction(
                f"Low consistency {consistency:.1f}",
                f"{direction} direction",
                "Indicators contradict each other (e.g. flow against price).",
            )
        )
    if inputs.pullback_risk > 70:
        contradictions.append(
            Contradiction(
                f"High pullback risk {inputs.pullback_risk:.1f}",
                "appetite to chase",
                "Short-term overheated or stretched from the average.",
            )
        )
    if RiskFlag.FLOW_DATA_MISSING in inputs.risk_flags or inputs.fundamental is None:
        contradictions.append(
            Contradiction(
                "Missing data",
                "strategy confidence",
                "Part of the flow or fundamental data is unavailable.",
            )
        )
    return StrategyExplain(direction, confidence, tuple(reasons), tuple(contradictions))


def _with_plan(cards: Sequence[ActionCard], *, first: str = "", last: str = "") -> tuple[ActionCard, ...]:
    out = []
    for card in cards:
        plan = card.plan
        if first:
            plan = (first, *plan)
        if last and last not in plan:
            plan = (*plan, last)
        out.append(dataclasses.replace(card, plan=plan))
    return tuple(out)


def select_strategy(
    inputs: StrategyInputs,
    config: StrategyConfig | None = None,
    rules: Sequence[StrategyRule] = RULES,
) -> StrategyDecision:
    """Evaluate ``rules`` in order and return the first match.

    After selection, overrides apply in priority order: an extreme crash
    score forces ``cash``; collapsing flow turns a bullish call into
    ``hold``; a broken trend forces ``avoid``; otherwise low consistency
    downgrades a directional call to ``watch``.

    Parameters
    ----------
    inputs : StrategyInputs
    config : StrategyConfig or None
    rules : Sequence[StrategyRule]
        Rule table; its last predicate must always hold.

    Returns
    -------
    StrategyDecision
    """
    if config is None:
        config = StrategyConfig()

    rule = next((r for r in rules if r.predicate(inputs, config)), None)
    if rule is None:
        raise ValueError("rule table has no catch-all rule")
    outcome = rule.build(inputs, config)
    confidence = strategy_confidence(inputs, config)
    explain = _explain(inputs, outcome.signal, confidence, config)

    signal = outcome.signal
    veto_reason: str | None = None
    cards: tuple[ActionCard, ...] = (outcome.card,)

    if inputs.crash_score is not None and inputs.crash_score >= config.crash_veto:
        signal = StrategySignal.CASH
        veto_reason = "Systemic crash risk extreme."
        confidence = clamp(confidence - config.crash_veto_penalty, 0.0, 100.0)
    elif (
        inputs.flow_or(config.neutral_score) <= config.flow_veto
        and signal is StrategySignal.BULLISH
    ):
        signal = StrategySignal.HOLD
        veto_reason = "Flow collapsing; large holders distributing."
        confidence = clamp(confidence - config.flow_veto_penalty, 0.0, 100.0)
    elif inputs.trend_or(config.neutral_score) <= config.trend_veto:
        signal = StrategySignal.AVOID
        veto_reason = "Trend structure broken."
        confidence = clamp(confidence - config.trend_veto_penalty, 0.0, 100.0)
    elif inputs.consistency is not None and inputs.consistency < config.min_consistency:
        if signal in (StrategySignal.BULLISH, StrategySignal.BEARISH):
            signal = StrategySignal.WATCH
        cards = _with_plan(cards, last=_DISAGREEMENT_NOTE)

    if veto_reason is not None:
        cards = _with_plan(cards, first=f"Override: {veto_reason}")
        logger.debug("Rule %s vetoed: %s", rule.rule_id, veto_reason)

    return StrategyDecision(
        mode=outcome.mode,
        signal=signal,
        confidence=confidence,
        action_cards=cards,
        chosen_rule_id=rule.rule_id,
        rule_signal=outcome.signal,
        explain=explain,
        veto_reason=veto_reason,
    )
