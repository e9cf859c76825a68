"""Fundamental factor from monthly revenue year-over-year growth."""

from __future__ import annotations

import math
from collections.abc import Sequence

from stockpulse._numeric import clamp, round_half_up
from stockpulse.factors._config import FactorName, FundamentalConfig, RiskFlag
from stockpulse.factors._score import Component, FactorScore, top_reasons
from stockpulse.records import RevenueRecord, normalize_revenue


def _mean(values: Sequence[float]) -> float | None:
    return sum(values) / len(values) if values else None


def _direction(latest3: Sequence[float]) -> str | None:
    if len(latest3) != 3:
        return None
    a, b, c = latest3
    if c > b > a:
        return "up"
    if c < b < a:
        return "down"
    return "flat"


def compute_fundamental_score(
    revenue: Sequence[RevenueRecord],
    config: FundamentalConfig | None = None,
) -> FactorScore:
    """Score revenue momentum.

    ``level = 50 + amplitude * tanh(y3 / scale)`` on the 3-month average
    YoY growth, plus a clamped acceleration term (latest three months
    versus the three before) and a consistency adjustment.  The result is
    rounded to 0.1 and bounded to ``[score_floor, score_cap]``.

    Unavailable with fewer than ``config.min_months`` records or fewer
    than ``config.min_recent_usable`` usable growth values among the
    latest six.
    """
    if config is None:
        config = FundamentalConfig()

    months = normalize_revenue(revenue)
    if len(months) < config.min_months:
        return FactorScore.unavailable(
            FactorName.FUNDAMENTAL.value,
            f"Insufficient revenue history: {len(months)} months, "
            f"{config.min_months} required.",
        )

    yoy = [
        r.yoy_growth_pct
        for r in months
        if r.yoy_growth_pct is not None and math.isfinite(r.yoy_growth_pct)
    ]
    latest6 = yoy[-6:]
    if len(latest6) < config.min_recent_usable:
        return FactorScore.unavailable(
            FactorName.FUNDAMENTAL.value,
            f"Only {len(latest6)} usable growth readings in the latest six months.",
        )

    latest3 = yoy[-3:]
    prev3 = yoy[-6:-3]
    y3 = _mean(latest3)
    y6 = _mean(latest6)
    p3 = _mean(prev3)
    trend3 = y3 - p3 if y3 is not None and p3 is not None else None

    risk_flags: set[RiskFlag] = set()
    reasons: list[tuple[int, str]] = [
        (1, f"3-month average revenue growth {y3:.1f}% YoY.")
    ]

    level = 50.0 + math.tanh(y3 / config.level_scale) * config.level_amplitude

    accel = 0.0
    if trend3 is not None:
        accel = clamp(
            trend3 * config.accel_multiplier, -config.accel_cap, config.accel_cap
        )
        if trend3 >= 3:
            reasons.append(
                (2, f"Growth accelerating: up {trend3:.1f} points on the prior quarter.")
            )
        elif trend3 <= -3:
            reasons.append(
                (2, f"Growth slowing: down {abs(trend3):.1f} points on the prior quarter.")
            )
        if trend3 <= config.decelerating_threshold:
            risk_flags.add(RiskFlag.GROWTH_DECELERATING)

    negatives = sum(1 for y in latest3 if y < 0)
    high_growth = sum(1 for y in latest3 if y > config.high_growth_pct)
    if negatives >= 2:
        consistency = -config.negative_penalty
        risk_flags.add(RiskFlag.REV_TURN_NEGATIVE)
        reasons.append((3, "Revenue shrank in most recent months."))
    elif high_growth >= 2:
        consistency = config.high_growth_bonus
        reasons.append((3, "Revenue growth consistently strong."))
    else:
        consistency = 0.0

    components = (
        Component("level", "3-month YoY level", y3, 1.0, level),
        Component("acceleration", "YoY acceleration", trend3, 1.0, accel),
        Component("consistency", "Growth consistency", float(negatives), 1.0, consistency),
    )
    raw = round_half_up(level + accel + consistency, 1)
    value = clamp(raw, config.score_floor, config.score_cap)

    return FactorScore(
        name=FactorName.FUNDAMENTAL.value,
        value=value,
        components=components,
        reasons=top_reasons(reasons),
        risk_flags=frozenset(risk_flags),
        metrics={
            "yoy_3m_avg": y3,
            "yoy_6m_avg": y6,
            "yoy_trend": trend3,
            "yoy_direction": _direction(latest3),
        },
    )
