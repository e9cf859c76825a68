"""Technical indicators over close/high/low arrays.

All functions take the full history up to and including the evaluation
bar and look only backwards, so slicing the input is enough to obtain a
point-in-time value.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import numpy.typing as npt
import pandas as pd

from stockpulse._numeric import safe_div

FloatArray = npt.NDArray[np.float64]


@dataclass(frozen=True)
class MACDResult:
    """Latest MACD line, signal line and histogram."""

    macd_line: float | None
    signal_line: float | None
    histogram: float | None


def sma(values: FloatArray, period: int) -> float | None:
    """Simple moving average of the last ``period`` values."""
    if len(values) < period:
        return None
    return float(np.mean(values[-period:]))


def ema_series(values: FloatArray, period: int) -> FloatArray:
    """Exponential moving average seeded with the first value."""
    if len(values) == 0:
        return np.empty(0, dtype=np.float64)
    k = 2.0 / (period + 1)
    out = np.empty(len(values), dtype=np.float64)
    out[0] = values[0]
    for i in range(1, len(values)):
        out[i] = values[i] * k + out[i - 1] * (1 - k)
    return out


def rsi(values: FloatArray, period: int = 14) -> float | None:
    """Relative strength index from simple average gains and losses."""
    if len(values) <= period:
        return None
    diffs = np.diff(values[-(period + 1):])
    gains = float(diffs[diffs >= 0].sum())
    losses = float(-diffs[diffs < 0].sum())
    if losses == 0:
        return 100.0
    rs = (gains / period) / (losses / period)
    return 100.0 - 100.0 / (1.0 + rs)


def macd(
    values: FloatArray,
    short_period: int = 12,
    long_period: int = 26,
    signal_period: int = 9,
) -> MACDResult:
    """MACD (12, 26, 9) evaluated at the last bar.

    The signal EMA is seeded on the MACD line after the first
    ``long_period`` bars so the warm-up of the slow EMA does not leak
    into it.
    """
    n = len(values)
    if n < long_period + signal_period:
        return MACDResult(None, None, None)
    line = ema_series(values, short_period) - ema_series(values, long_period)
    signal = ema_series(line[long_period:], signal_period)
    current_line = float(line[-1])
    current_signal = float(signal[-1])
    return MACDResult(current_line, current_signal, current_line - current_signal)


def true_ranges(
    highs: FloatArray, lows: FloatArray, closes: FloatArray
) -> FloatArray:
    """True range of each bar after the first."""
    if len(closes) < 2:
        return np.empty(0, dtype=np.float64)
    prev_close = closes[:-1]
    return np.maximum.reduce(
        [
            highs[1:] - lows[1:],
            np.abs(highs[1:] - prev_close),
            np.abs(lows[1:] - prev_close),
        ]
    )


def atr(
    highs: FloatArray,
    lows: FloatArray,
    closes: FloatArray,
    period: int = 14,
) -> float | None:
    """Average true range over the last ``period`` bars."""
    ranges = true_ranges(highs, lows, closes)
    if len(ranges) < period:
        return None
    return float(np.mean(ranges[-period:]))


def period_return_pct(values: FloatArray, window: int) -> float | None:
    """Percent change between the last value and ``window`` bars earlier."""
    if len(values) <= window:
        return None
    base = float(values[-window - 1])
    ratio = safe_div(float(values[-1]) - base, base)
    return None if ratio is None else ratio * 100.0


def bollinger_width_series(
    values: FloatArray, window: int = 20, num_std: float = 2.0
) -> FloatArray:
    """Relative Bollinger band width ``(upper - lower) / middle`` per bar.

    Uses the population standard deviation.  The first ``window - 1``
    bars have no width and are omitted.
    """
    if len(values) < window:
        return np.empty(0, dtype=np.float64)
    series = pd.Series(values)
    middle = series.rolling(window).mean()
    std = series.rolling(window).std(ddof=0)
    width = (2 * num_std * std) / middle.where(middle != 0)
    return width.iloc[window - 1:].fillna(0.0).to_numpy(dtype=np.float64)


def percentile_rank(values: FloatArray, current: float) -> float:
    """Share of ``values`` less than or equal to ``current``."""
    if len(values) == 0:
        return 0.5
    return float(np.count_nonzero(values <= current) / len(values))
