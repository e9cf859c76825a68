"""Short-term opportunity factor: breakout, squeeze and pullback risk."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from stockpulse._numeric import clamp, linear_map, round_half_up
from stockpulse.factors._config import FactorName, RiskFlag, ShortTermConfig
from stockpulse.factors._indicators import (
    bollinger_width_series,
    percentile_rank,
    sma,
)
from stockpulse.factors._score import Component, FactorScore
from stockpulse.records import Bar


def _breakout_score(close: float, high: float) -> tuple[float, float]:
    distance = (high - close) / high if high > 0 else 1.0
    if close >= high:
        return 90.0, distance
    if distance <= 0.02:
        return 70.0, distance
    if distance <= 0.05:
        return 55.0, distance
    return 35.0, distance


def _squeeze_score(width_pct: float) -> float:
    if width_pct <= 0.2:
        return 85.0
    if width_pct <= 0.5:
        return linear_map(width_pct, 0.2, 0.5, 85.0, 55.0)
    return 35.0


def _pullback_risk(
    close: float, sma20: float, rsi: float, config: ShortTermConfig
) -> tuple[float, float]:
    distance = close / sma20 - 1.0 if sma20 > 0 else 0.0
    if distance > config.overheated_distance or rsi >= config.overheated_rsi:
        score = 85.0
    elif 0.06 <= distance <= config.overheated_distance:
        score = linear_map(distance, 0.06, config.overheated_distance, 65.0, 85.0)
    elif distance < 0.06 and 45.0 <= rsi <= 65.0:
        score = linear_map(max(distance, 0.0), 0.0, 0.06, 35.0, 55.0)
    elif close < sma20 and rsi < 45.0:
        score = 60.0
    else:
        score = 55.0
    return score, distance


def compute_short_term_score(
    bars: Sequence[Bar],
    trend: FactorScore,
    volatility: FactorScore,
    config: ShortTermConfig | None = None,
) -> FactorScore:
    """Score the near-term trading opportunity.

    Parameters
    ----------
    bars : Sequence[Bar]
        Date-sorted daily bars.
    trend, volatility : FactorScore
        Results of the trend and volatility scorers on the same bars.
    config : ShortTermConfig or None
        Scorer configuration.

    Returns
    -------
    FactorScore
        ``clamp(round(0.35 breakout + 0.25 squeeze + 0.25 volatility +
        0.15 trend - 0.30 pullback_risk))``.  The breakout, squeeze and
        pullback-risk sub-scores are also exposed as metrics.
    """
    if config is None:
        config = ShortTermConfig()

    if len(bars) < config.min_bars:
        return FactorScore.unavailable(
            FactorName.SHORT_TERM.value,
            f"Insufficient price history: {len(bars)} bars, "
            f"{config.min_bars} required.",
        )
    if trend.value is None or volatility.value is None:
        return FactorScore.unavailable(
            FactorName.SHORT_TERM.value,
            "Trend or volatility score unavailable.",
        )

    closes = np.fromiter((b.close for b in bars), dtype=np.float64, count=len(bars))
    close = float(closes[-1])
    high = max(b.high for b in bars[-config.breakout_window:])
    breakout, distance_to_high = _breakout_score(close, high)

    widths = bollinger_width_series(closes, config.band_window)[-config.band_lookback:]
    current_width = float(widths[-1]) if len(widths) else 0.0
    width_pct = percentile_rank(widths, current_width)
    squeeze = _squeeze_score(width_pct)

    sma20 = trend.metric("sma20")
    if sma20 is None:
        sma20 = sma(closes, 20)
    rsi_value = trend.metric("rsi14")
    rsi_value = 50.0 if rsi_value is None else rsi_value
    pullback, distance_sma20 = _pullback_risk(close, sma20, rsi_value, config)

    w_break, w_squeeze, w_vol, w_trend = config.weights
    components = (
        Component("breakout", "Breakout", breakout, w_break, w_break * breakout),
        Component("squeeze", "Band squeeze", squeeze, w_squeeze, w_squeeze * squeeze),
        Component(
            "volatility", "Volatility", volatility.value, w_vol, w_vol * volatility.value
        ),
        Component("trend", "Trend", trend.value, w_trend, w_trend * trend.value),
        Component(
            "pullback_risk",
            "Pullback risk penalty",
            pullback,
            -config.pullback_weight,
            -config.pullback_weight * pullback,
        ),
    )
    value = clamp(
        round_half_up(sum(c.contribution for c in components)), 0.0, 100.0
    )

    reasons: list[str] = []
    if close >= high:
        reasons.append(
            f"Price reached the {config.breakout_window}-day high; breakout in play."
        )
    elif distance_to_high <= 0.02:
        reasons.append(f"Price within 2% of the {config.breakout_window}-day high.")
    else:
        reasons.append("Price still inside its range; waiting for a breakout.")

    if width_pct <= 0.2:
        reasons.append("Bollinger width near its low; compression may release.")
    elif width_pct <= 0.5:
        reasons.append("Bollinger bands moderately contracted.")
    else:
        reasons.append("Bollinger bands wide; choppy conditions.")

    if volatility.value >= 70:
        reasons.append("Volatility sensitivity high; catalysts move price more.")
    elif volatility.value >= 40:
        reasons.append("Moderate volatility; confirm direction with volume.")
    else:
        reasons.append("Low volatility; steady near-term rhythm.")

    risk_flags: set[RiskFlag] = set()
    if distance_sma20 > config.overheated_distance or rsi_value >= config.overheated_rsi:
        risk_flags.add(RiskFlag.OVERHEATED)
    spike = volatility.metric("volume_spike")
    if close >= high and (1.0 if spike is None else spike) < config.fake_breakout_volume:
        risk_flags.add(RiskFlag.FAKE_BREAKOUT_RISK)
    if trend.value < config.weak_trend_score:
        risk_flags.add(RiskFlag.WEAK_TREND)

    return FactorScore(
        name=FactorName.SHORT_TERM.value,
        value=value,
        components=components,
        reasons=tuple(reasons),
        risk_flags=frozenset(risk_flags),
        metrics={
            "breakout_score": breakout,
            "squeeze_score": squeeze,
            "pullback_risk_score": pullback,
            "volatility_score": volatility.value,
            "high_20d": high,
            "distance_to_high": distance_to_high,
            "distance_sma20": distance_sma20,
            "band_width_pct": width_pct,
        },
    )
