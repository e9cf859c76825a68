"""Scalar helpers shared by every scorer."""

from __future__ import annotations

import math


def clamp(value: float, lower: float, upper: float) -> float:
    """Bound ``value`` to ``[lower, upper]``."""
    return min(upper, max(lower, value))


def linear_map(
    value: float,
    in_min: float,
    in_max: float,
    out_min: float,
    out_max: float,
) -> float:
    """Map ``value`` linearly from ``[in_min, in_max]`` to ``[out_min, out_max]``.

    No clamping is applied; a degenerate input range returns ``out_min``.
    """
    if in_max == in_min:
        return out_min
    ratio = (value - in_min) / (in_max - in_min)
    return out_min + ratio * (out_max - out_min)


def safe_div(numerator: float, denominator: float) -> float | None:
    """Divide, returning ``None`` for a zero or non-finite result."""
    if denominator == 0 or not math.isfinite(denominator):
        return None
    result = numerator / denominator
    if not math.isfinite(result):
        return None
    return result


def finite_or_none(value: float | None) -> float | None:
    if value is None:
        return None
    value = float(value)
    return value if math.isfinite(value) else None


def round_half_up(value: float, digits: int = 0) -> float:
    """Round half away from negative infinity (``Math.round`` semantics)."""
    factor = 10.0**digits
    return math.floor(value * factor + 0.5) / factor
