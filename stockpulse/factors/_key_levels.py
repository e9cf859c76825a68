"""Breakout, support and invalidation price levels."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from stockpulse._numeric import round_half_up
from stockpulse.factors._indicators import atr, sma
from stockpulse.records import Bar


@dataclass(frozen=True)
class KeyLevels:
    """Price levels used to phrase action cards.

    Attributes
    ----------
    breakout : float or None
        Highest high of the last 20 bars.
    support : float or None
        Nearest of SMA20 and the 20-bar low that sits below the close.
    invalidation : float or None
        SMA60, or the 60-bar low once price trades under SMA60.
    atr14 : float or None
        Average true range over 14 bars.
    """

    breakout: float | None = None
    support: float | None = None
    invalidation: float | None = None
    atr14: float | None = None


def _rounded(value: float | None) -> float | None:
    return None if value is None else round_half_up(value, 2)


def compute_key_levels(bars: Sequence[Bar]) -> KeyLevels:
    if not bars:
        return KeyLevels()

    closes = np.fromiter((b.close for b in bars), dtype=np.float64, count=len(bars))
    highs = np.fromiter((b.high for b in bars), dtype=np.float64, count=len(bars))
    lows = np.fromiter((b.low for b in bars), dtype=np.float64, count=len(bars))
    close = float(closes[-1])

    high20 = float(highs[-20:].max())
    low20 = float(lows[-20:].min())
    low60 = float(lows[-60:].min())
    sma20 = sma(closes, 20)
    sma60 = sma(closes, 60)

    support = sma20
    if sma20 is not None:
        below = [level for level in (sma20, low20) if level < close]
        if below:
            support = max(below)

    invalidation = sma60
    if sma60 is not None and close < sma60:
        invalidation = low60

    return KeyLevels(
        breakout=_rounded(high20),
        support=_rounded(support),
        invalidation=_rounded(invalidation),
        atr14=_rounded(atr(highs, lows, closes, 14)),
    )
