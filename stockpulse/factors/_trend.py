"""Trend factor: moving-average alignment, RSI, MACD and swing return."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from stockpulse.factors._config import FactorName, RiskFlag, TrendConfig
from stockpulse.factors._indicators import (
    FloatArray,
    macd,
    period_return_pct,
    rsi,
    sma,
)
from stockpulse.factors._score import Component, FactorScore
from stockpulse.records import Bar

# Sub-scores on a 0-100 scale.  Alignment: bull stack, bear stack, price
# above the mid average, mixed.
_ALIGN_BULL, _ALIGN_BEAR, _ALIGN_ABOVE_MID, _ALIGN_MIXED = 100.0, 0.0, 62.5, 50.0
_RSI_OVERBOUGHT, _RSI_OVERSOLD, _RSI_STRONG, _RSI_WEAK = 75.0, 25.0, 90.0, 40.0
_MACD_STRONG_UP, _MACD_TURN_UP, _MACD_STRONG_DOWN, _MACD_TURN_DOWN = (
    100.0,
    75.0,
    0.0,
    25.0,
)
_RET_STRONG_UP, _RET_UP, _RET_STRONG_DOWN, _RET_DOWN = 100.0, 75.0, 0.0, 25.0
_NEUTRAL = 50.0


def _closes(bars: Sequence[Bar]) -> FloatArray:
    return np.fromiter((b.close for b in bars), dtype=np.float64, count=len(bars))


def compute_trend_score(
    bars: Sequence[Bar],
    config: TrendConfig | None = None,
) -> FactorScore:
    """Score the medium-term trend of a security.

    Parameters
    ----------
    bars : Sequence[Bar]
        Date-sorted, de-duplicated daily bars.
    config : TrendConfig or None
        Scorer configuration.

    Returns
    -------
    FactorScore
        Weighted sum of four sub-scores (alignment, RSI, MACD, swing
        return); unavailable below ``config.min_bars`` bars.
    """
    if config is None:
        config = TrendConfig()

    if len(bars) < config.min_bars:
        return FactorScore.unavailable(
            FactorName.TREND.value,
            f"Insufficient price history: {len(bars)} bars, "
            f"{config.min_bars} required.",
        )

    closes = _closes(bars)
    close = float(closes[-1])
    sma_short = sma(closes, config.sma_short)
    sma_mid = sma(closes, config.sma_mid)
    sma_long = sma(closes, config.sma_long)
    rsi_value = rsi(closes, config.rsi_period)
    macd_result = macd(closes)
    return_short = period_return_pct(closes, config.sma_short)
    return_swing = period_return_pct(closes, config.return_window)

    reasons: list[str] = []

    # 1. Moving-average alignment
    if sma_short is not None and sma_mid is not None and sma_long is not None:
        if sma_short > sma_mid > sma_long:
            align_score, align_state = _ALIGN_BULL, "bullish_stack"
            reasons.append(
                f"Moving averages stacked bullish "
                f"({config.sma_short} > {config.sma_mid} > {config.sma_long})."
            )
        elif sma_short < sma_mid < sma_long:
            align_score, align_state = _ALIGN_BEAR, "bearish_stack"
            reasons.append(
                f"Moving averages stacked bearish "
                f"({config.sma_short} < {config.sma_mid} < {config.sma_long})."
            )
        elif close > sma_mid:
            align_score, align_state = _ALIGN_ABOVE_MID, "above_mid"
            reasons.append(
                f"Price holds above the {config.sma_mid}-day average; "
                "early strength."
            )
        else:
            align_score, align_state = _ALIGN_MIXED, "mixed"
            reasons.append("Moving averages intertwined; no clear trend.")
    else:
        align_score, align_state = _ALIGN_MIXED, None
        reasons.append("Not enough data to judge long moving averages.")

    # 2. RSI band
    if rsi_value is not None:
        if rsi_value > config.rsi_overbought:
            rsi_score = _RSI_OVERBOUGHT
            reasons.append(f"RSI({config.rsi_period}) at {rsi_value:.1f}, overbought.")
        elif rsi_value < config.rsi_oversold:
            rsi_score = _RSI_OVERSOLD
            reasons.append(f"RSI({config.rsi_period}) at {rsi_value:.1f}, oversold.")
        elif rsi_value > config.rsi_neutral:
            rsi_score = _RSI_STRONG
            reasons.append(f"RSI({config.rsi_period}) at {rsi_value:.1f}, momentum firm.")
        else:
            rsi_score = _RSI_WEAK
            reasons.append(f"RSI({config.rsi_period}) at {rsi_value:.1f}, momentum soft.")
    else:
        rsi_score = _NEUTRAL

    # 3. MACD histogram and zero line
    hist, line = macd_result.histogram, macd_result.macd_line
    if hist is not None and line is not None:
        if hist > 0 and line > 0:
            macd_score = _MACD_STRONG_UP
            reasons.append("MACD histogram positive above the zero line.")
        elif hist > 0:
            macd_score = _MACD_TURN_UP
            reasons.append("MACD histogram turned positive.")
        elif line < 0:
            macd_score = _MACD_STRONG_DOWN
            reasons.append("MACD histogram negative below the zero line.")
        else:
            macd_score = _MACD_TURN_DOWN
            reasons.append("MACD histogram turned negative.")
    else:
        macd_score = _NEUTRAL

    # 4. Swing return
    if return_swing is not None:
        window = config.return_window
        if return_swing > config.strong_return_pct:
            ret_score = _RET_STRONG_UP
            reasons.append(f"{window}-day return {return_swing:.1f}%, strong swing.")
        elif return_swing > 0:
            ret_score = _RET_UP
            reasons.append(f"{window}-day return positive ({return_swing:.1f}%).")
        elif return_swing < -config.strong_return_pct:
            ret_score = _RET_STRONG_DOWN
            reasons.append(f"{window}-day return {return_swing:.1f}%, weak swing.")
        else:
            ret_score = _RET_DOWN
            reasons.append(f"{window}-day return negative ({return_swing:.1f}%).")
    else:
        ret_score = _NEUTRAL

    w_align, w_rsi, w_macd, w_ret = config.weights
    components = (
        Component("ma_alignment", "MA alignment", align_state, w_align, w_align * align_score),
        Component("rsi", "RSI band", rsi_value, w_rsi, w_rsi * rsi_score),
        Component("macd", "MACD histogram", hist, w_macd, w_macd * macd_score),
        Component("swing_return", "Swing return %", return_swing, w_ret, w_ret * ret_score),
    )
    value = min(100.0, max(0.0, sum(c.contribution for c in components)))

    risk_flags: set[RiskFlag] = set()
    if rsi_value is not None and rsi_value >= config.rsi_overheated:
        risk_flags.add(RiskFlag.OVERHEATED)
    if sma_short is not None and sma_mid is not None:
        if close < sma_short < sma_mid:
            risk_flags.add(RiskFlag.BREAKDOWN_RISK)
    recent_volume = [b.volume for b in bars[-config.sma_short:]]
    if recent_volume and all(v == 0 for v in recent_volume):
        risk_flags.add(RiskFlag.VOLUME_MISSING)

    return FactorScore(
        name=FactorName.TREND.value,
        value=value,
        components=components,
        reasons=tuple(reasons[:3]),
        risk_flags=frozenset(risk_flags),
        metrics={
            "close": close,
            "sma20": sma_short,
            "sma60": sma_mid,
            "sma120": sma_long,
            "rsi14": rsi_value,
            "macd_line": macd_result.macd_line,
            "macd_signal": macd_result.signal_line,
            "macd_histogram": hist,
            "return_20d": return_short,
            "return_60d": return_swing,
        },
    )
