"""Directional consensus and disagreement across factor signals."""

from __future__ import annotations

import math
from dataclasses import dataclass

from stockpulse._numeric import clamp, round_half_up
from stockpulse.consistency._config import (
    ConsensusDirection,
    ConsistencyConfig,
    ConsistencyLevel,
)


@dataclass(frozen=True)
class SignalDirection:
    """One signal mapped onto ``[-1, 1]``."""

    key: str
    label: str
    direction: float
    weight: float
    available: bool = True

    @property
    def contribution(self) -> float:
        return self.weight * self.direction


@dataclass(frozen=True)
class ConsistencyResult:
    """Agreement verdict across the six directional signals.

    Attributes
    ----------
    score : float
        ``[0, 100]``, rounded to 0.1.
    level : ConsistencyLevel
    direction : ConsensusDirection
    consensus : float
        Weighted mean direction on ``[-1, 1]``.
    disagreement : float
        Weighted mean absolute deviation from the consensus, ``[0, 1]``.
    same_sign_ratio : float
        Weighted share of decisive signals agreeing with the consensus;
        0.5 when the consensus is unclear.
    signals : tuple[SignalDirection, ...]
    contradictions : tuple[str, ...]
    reasons : tuple[str, ...]
    """

    score: float
    level: ConsistencyLevel
    direction: ConsensusDirection
    consensus: float
    disagreement: float
    same_sign_ratio: float
    signals: tuple[SignalDirection, ...] = ()
    contradictions: tuple[str, ...] = ()
    reasons: tuple[str, ...] = ()


def score_to_direction(score: float | None, scale: float = 25.0) -> float:
    """Map a 0-100 score to ``[-1, 1]``; missing or NaN maps to 0."""
    if score is None or math.isnan(score):
        return 0.0
    return clamp((score - 50.0) / scale, -1.0, 1.0)


def _direction_label(value: float, band: float) -> ConsensusDirection:
    if value > band:
        return ConsensusDirection.BULLISH
    if value < -band:
        return ConsensusDirection.BEARISH
    return ConsensusDirection.UNCLEAR


def _level(score: float, config: ConsistencyConfig) -> ConsistencyLevel:
    if score >= config.high_threshold:
        return ConsistencyLevel.HIGH
    if score >= config.medium_threshold:
        return ConsistencyLevel.MEDIUM
    return ConsistencyLevel.LOW


def _sign(value: float) -> int:
    return (value > 0) - (value < 0)


def compute_consistency(
    *,
    trend: float | None,
    flow: float | None,
    fundamental: float | None,
    catalyst: float,
    opportunity: float | None,
    probability_5d: float | None,
    config: ConsistencyConfig | None = None,
) -> ConsistencyResult:
    """Measure how much the directional signals agree.

    Every signal keeps its weight in the denominators; an unavailable
    one contributes direction 0, which pulls the consensus towards
    unclear instead of being silently dropped.

    Parameters
    ----------
    trend, flow, fundamental, opportunity, probability_5d : float or None
        Scores on ``[0, 100]``; ``None`` when unavailable.
    catalyst : float
        News catalyst on ``[-100, 100]``.
    config : ConsistencyConfig or None

    Returns
    -------
    ConsistencyResult
    """
    if config is None:
        config = ConsistencyConfig()

    scale = config.direction_scale
    band = config.neutral_band
    signals = (
        SignalDirection(
            "trend", "Trend", score_to_direction(trend, scale),
            config.trend_weight, trend is not None,
        ),
        SignalDirection(
            "flow", "Flow", score_to_direction(flow, scale),
            config.flow_weight, flow is not None,
        ),
        SignalDirection(
            "fundamental", "Fundamental", score_to_direction(fundamental, scale),
            config.fundamental_weight, fundamental is not None,
        ),
        SignalDirection(
            "catalyst", "News", clamp(catalyst / config.catalyst_scale, -1.0, 1.0),
            config.catalyst_weight,
        ),
        SignalDirection(
            "opportunity", "Short-term opportunity",
            score_to_direction(opportunity, scale),
            config.opportunity_weight, opportunity is not None,
        ),
        SignalDirection(
            "probability", "5D probability",
            score_to_direction(probability_5d, scale),
            config.probability_weight, probability_5d is not None,
        ),
    )

    total = sum(s.weight for s in signals)
    consensus = sum(s.contribution for s in signals) / total
    disagreement = clamp(
        sum(s.weight * abs(s.direction - consensus) for s in signals) / total,
        0.0,
        1.0,
    )

    decisive = abs(consensus) >= band
    consensus_sign = 1 if consensus >= 0 else -1
    if decisive:
        same_sign_ratio = (
            sum(
                s.weight
                for s in signals
                if abs(s.direction) >= band and _sign(s.direction) == consensus_sign
            )
            / total
        )
    else:
        same_sign_ratio = 0.5

    base = 100.0 * (1.0 - disagreement)
    bonus = config.agreement_bonus * clamp((same_sign_ratio - 0.5) / 0.5, 0.0, 1.0)
    penalty = 0.0 if decisive else config.unclear_penalty
    score = clamp(round_half_up(base + bonus - penalty, 1), 0.0, 100.0)

    consensus_label = _direction_label(consensus, band)
    contradictions: tuple[str, ...] = ()
    if decisive:
        contradictions = tuple(
            f"{s.label} {_direction_label(s.direction, band).value}, "
            f"against the {consensus_label.value} consensus"
            for s in signals
            if _sign(s.direction) != consensus_sign
            and abs(s.direction) >= config.contradiction_threshold
        )

    aligned = [
        s.label
        for s in signals
        if abs(s.direction) >= 0.2
        and (not decisive or _sign(s.direction) == consensus_sign)
    ]
    reasons = [
        f"Signals aligned: {', '.join(aligned[:4])}."
        if aligned
        else "No clear alignment across signals.",
        f"{len(contradictions)} signal(s) oppose the consensus."
        if contradictions
        else "No strong opposing signal.",
        f"Consensus strength {abs(consensus):.2f}, disagreement "
        f"{disagreement:.2f}, same-sign share {same_sign_ratio * 100:.0f}%.",
    ]
    if fundamental is None:
        reasons.append("Fundamental data missing; agreement is less reliable.")

    return ConsistencyResult(
        score=score,
        level=_level(score, config),
        direction=consensus_label,
        consensus=consensus,
        disagreement=disagreement,
        same_sign_ratio=same_sign_ratio,
        signals=signals,
        contradictions=contradictions,
        reasons=tuple(reasons),
    )
