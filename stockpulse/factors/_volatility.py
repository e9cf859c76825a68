"""Short-term volatility sensitivity: volume spike, ATR% and opening gap."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from stockpulse._numeric import clamp, round_half_up, safe_div
from stockpulse.factors._config import FactorName, VolatilityConfig
from stockpulse.factors._indicators import atr
from stockpulse.factors._score import Component, FactorScore, top_reasons
from stockpulse.records import Bar


def _spike_points(spike: float) -> float:
    if spike >= 2.0:
        return 35.0
    if spike >= 1.3:
        return 15.0 + ((spike - 1.3) / 0.7) * 20.0
    return clamp(spike / 1.3 * 15.0, 0.0, 15.0)


def _atr_points(atr_pct: float) -> float:
    if atr_pct >= 0.05:
        return 35.0
    if atr_pct >= 0.02:
        return 15.0 + ((atr_pct - 0.02) / 0.03) * 20.0
    return clamp(atr_pct / 0.02 * 15.0, 0.0, 15.0)


def _gap_points(gap: float) -> float:
    gap = abs(gap)
    if gap >= 0.03:
        return 30.0
    if gap >= 0.01:
        return 10.0 + ((gap - 0.01) / 0.02) * 20.0
    return clamp(gap / 0.01 * 10.0, 0.0, 10.0)


def compute_volatility_score(
    bars: Sequence[Bar],
    config: VolatilityConfig | None = None,
) -> FactorScore:
    """Score how much the security is moving right now.

    Three capped sub-scores are added: volume spike (today against the
    trailing average, up to 35), ATR as a share of price (up to 35) and
    the absolute opening gap (up to 30).  A sub-term whose ratio cannot
    be computed contributes 0 and is recorded with a ``None`` raw value.
    """
    if config is None:
        config = VolatilityConfig()

    if len(bars) < config.min_bars:
        return FactorScore.unavailable(
            FactorName.VOLATILITY.value,
            f"Insufficient price history: {len(bars)} bars, "
            f"{config.min_bars} required.",
        )

    today, yesterday = bars[-1], bars[-2]
    volumes = [b.volume for b in bars[-config.volume_window:]]
    avg_volume = sum(volumes) / len(volumes)
    spike = safe_div(today.volume, avg_volume)

    highs = np.fromiter((b.high for b in bars), dtype=np.float64, count=len(bars))
    lows = np.fromiter((b.low for b in bars), dtype=np.float64, count=len(bars))
    closes = np.fromiter((b.close for b in bars), dtype=np.float64, count=len(bars))
    atr_value = atr(highs, lows, closes, config.atr_period)
    atr_pct = None if atr_value is None else safe_div(atr_value, today.close)

    gap_ratio = safe_div(today.open, yesterday.close)
    gap = None if gap_ratio is None else gap_ratio - 1.0

    spike_pts = 0.0 if spike is None else _spike_points(spike)
    atr_pts = 0.0 if atr_pct is None else _atr_points(atr_pct)
    gap_pts = 0.0 if gap is None else _gap_points(gap)

    reasons: list[tuple[int, str]] = []
    if spike is None:
        reasons.append((1, "Volume spike unavailable (no trailing volume)."))
    elif spike >= 1.3:
        reasons.append((1, f"Volume {spike:.1f}x the {config.volume_window}-day average."))
    if atr_pct is not None and atr_pct >= 0.02:
        reasons.append((2, f"ATR{config.atr_period} at {atr_pct * 100:.1f}% of price."))
    if gap is not None and abs(gap) >= 0.01:
        reasons.append((3, f"Opening gap of {gap * 100:+.1f}%."))

    components = (
        Component("volume_spike", "Volume spike", spike, 35.0, spike_pts),
        Component("atr_pct", "ATR % of price", atr_pct, 35.0, atr_pts),
        Component("gap", "Opening gap", gap, 30.0, gap_pts),
    )
    value = clamp(round_half_up(spike_pts + atr_pts + gap_pts), 0.0, 100.0)

    return FactorScore(
        name=FactorName.VOLATILITY.value,
        value=value,
        components=components,
        reasons=top_reasons(reasons),
        metrics={
            "volume_spike": spike,
            "atr14": atr_value,
            "atr_pct": atr_pct,
            "gap": gap,
        },
    )
