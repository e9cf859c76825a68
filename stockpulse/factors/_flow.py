"""Institutional flow factor: foreign/trust net buying versus margin usage."""

from __future__ import annotations

import datetime as dt
from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from stockpulse._numeric import clamp, round_half_up, safe_div
from stockpulse.factors._config import FactorName, FlowConfig, RiskFlag
from stockpulse.factors._score import Component, FactorScore, top_reasons
from stockpulse.records import CounterpartyClass, FlowRecord, MarginRecord


class FlowVerdict(str, Enum):
    """Smart-money versus retail divergence."""

    ACCUMULATION = "accumulation"
    DISTRIBUTION = "distribution"
    NEUTRAL = "neutral"


@dataclass(frozen=True)
class _NetStats:
    total: float
    mean_abs: float
    missing: int


def _net_stats(
    dates: Sequence[dt.date],
    daily_net: dict[dt.date, float],
) -> _NetStats:
    total = 0.0
    abs_sum = 0.0
    seen = 0
    for day in dates:
        if day not in daily_net:
            continue
        net = daily_net[day]
        total += net
        abs_sum += abs(net)
        seen += 1
    return _NetStats(
        total=total,
        mean_abs=abs_sum / seen if seen else 0.0,
        missing=len(dates) - seen,
    )


def _ratio_score(ratio: float, slope: float) -> float:
    if ratio > 0:
        return 50.0 + min(45.0, ratio * slope)
    return 50.0 + max(-40.0, ratio * slope)


def _margin_score(change: float, config: FlowConfig) -> float:
    if change <= config.margin_drop_ratio:
        return 75.0
    if change <= 0.05:
        return 60.0 - ((change + 0.05) / 0.1) * 10.0
    if change < config.margin_spike_ratio:
        return 50.0 - ((change - 0.05) / 0.1) * 25.0
    return 10.0


def compute_flow_score(
    trading_dates: Sequence[dt.date],
    flows: Sequence[FlowRecord],
    margin: Sequence[MarginRecord] = (),
    config: FlowConfig | None = None,
) -> FactorScore:
    """Score institutional order flow against retail margin usage.

    Parameters
    ----------
    trading_dates : Sequence[date]
        Ascending trading calendar of the security (usually the bar
        dates); flow windows are counted in these days.
    flows : Sequence[FlowRecord]
        Daily net flow per counterparty class.
    margin : Sequence[MarginRecord]
        Daily margin and short balances.
    config : FlowConfig or None
        Scorer configuration.

    Returns
    -------
    FactorScore
        ``0.7 * institutional + 0.3 * margin + synergy - penalty``,
        clamped to ``[0, 100]``.  Unavailable with fewer than
        ``config.min_trading_days`` dates or no flow records at all.
    """
    if config is None:
        config = FlowConfig()

    if not flows or len(trading_dates) < config.min_trading_days:
        return FactorScore.unavailable(
            FactorName.FLOW.value,
            f"Insufficient flow history: {len(trading_dates)} trading days, "
            f"{len(flows)} flow records.",
        )

    by_class: dict[CounterpartyClass, dict[dt.date, float]] = defaultdict(dict)
    for record in flows:
        bucket = by_class[record.counterparty]
        bucket[record.date] = bucket.get(record.date, 0.0) + record.net

    short_dates = list(trading_dates[-config.short_window:])
    long_dates = list(trading_dates[-config.long_window:])
    foreign = by_class[CounterpartyClass.FOREIGN]
    trust = by_class[CounterpartyClass.INVESTMENT_TRUST]
    dealer = by_class[CounterpartyClass.DEALER]

    foreign_long = _net_stats(long_dates, foreign)
    foreign_short = _net_stats(short_dates, foreign)
    trust_long = _net_stats(long_dates, trust)
    trust_short = _net_stats(short_dates, trust)
    dealer_short = _net_stats(short_dates, dealer)

    risk_flags: set[RiskFlag] = set()
    reasons: list[tuple[int, str]] = []

    penalty = 0.0
    if foreign_long.missing / config.long_window > config.missing_ratio:
        risk_flags.add(RiskFlag.FLOW_DATA_MISSING)
        penalty = config.missing_penalty

    # Margin and short balance over the long window
    margin_change: float | None = None
    retail_change = 0.0
    short_change = 0.0
    if len(long_dates) >= config.long_window:
        by_date = {m.date: m for m in margin}
        latest = by_date.get(long_dates[-1])
        recent = by_date.get(long_dates[-config.short_window])
        past = by_date.get(long_dates[0])
        latest_margin = latest.margin_balance if latest else 0.0
        recent_margin = recent.margin_balance if recent else 0.0
        past_margin = past.margin_balance if past else 0.0
        if past_margin > 0:
            margin_change = safe_div(latest_margin - past_margin, past_margin)
        retail_change = latest_margin - recent_margin
        latest_short = latest.short_balance if latest else 0.0
        recent_short = recent.short_balance if recent else 0.0
        short_change = latest_short - recent_short

    smart_money = foreign_short.total + trust_short.total
    if smart_money > 0 and retail_change < 0:
        verdict = FlowVerdict.ACCUMULATION
        synergy = config.accumulation_bonus
    elif smart_money < 0 and retail_change > 0:
        verdict = FlowVerdict.DISTRIBUTION
        synergy = -config.distribution_penalty
        risk_flags.add(RiskFlag.RETAIL_TAKING_KNIVES)
    else:
        verdict = FlowVerdict.NEUTRAL
        synergy = 0.0

    # Institutional direction
    foreign_ratio = foreign_short.total / (foreign_long.mean_abs + 1.0)
    foreign_score = _ratio_score(foreign_ratio, config.foreign_slope)
    if foreign_ratio > 0:
        reasons.append(
            (1, "Foreign investors bought heavily over the last 5 days.")
            if foreign_score >= 80
            else (1, "Foreign investors lean to net buying.")
        )
    else:
        reasons.append(
            (1, "Heavy foreign selling over the last 5 days.")
            if foreign_score <= 20
            else (1, "Foreign investors turned net sellers.")
        )

    trust_ratio = trust_short.total / (trust_long.mean_abs + 1.0)
    trust_score = _ratio_score(trust_ratio, config.trust_slope)
    if trust_ratio > 0:
        reasons.append(
            (2, "Investment trusts stepped up buying; domestic support firm.")
            if trust_score >= 80
            else (2, "Investment trusts lean to net buying.")
        )
    else:
        reasons.append(
            (2, "Investment trusts selling heavily; domestic support loosening.")
            if trust_score <= 20
            else (2, "Investment trusts turned net sellers.")
        )

    institutional = (
        config.foreign_weight * foreign_score + config.trust_weight * trust_score
    )

    if margin_change is not None:
        margin_score = _margin_score(margin_change, config)
        pct = margin_change * 100.0
        if margin_change <= config.margin_drop_ratio:
            reasons.append(
                (3, f"Margin balance down {abs(pct):.1f}% over 20 days; retail exiting.")
            )
        elif margin_change >= config.margin_spike_ratio:
            risk_flags.add(RiskFlag.MARGIN_SPIKE)
            reasons.append(
                (3, f"Margin balance surged {pct:.1f}% over 20 days; retail crowding.")
            )
        elif margin_change > 0.05:
            reasons.append(
                (3, f"Margin balance up {pct:.1f}% over 20 days; mild pressure.")
            )
    else:
        margin_score = 50.0
        risk_flags.add(RiskFlag.MARGIN_DATA_MISSING)

    if round_half_up(short_change / config.lot_size) > config.short_squeeze_lots:
        risk_flags.add(RiskFlag.SHORT_SQUEEZE_POTENTIAL)

    # Foreign direction flip: last short window against the rest of the long one
    earlier = _net_stats(long_dates[: -config.short_window], foreign)
    if earlier.total > 0 and foreign_short.total < 0:
        risk_flags.add(RiskFlag.INST_REVERSAL_DOWN)
    elif earlier.total < 0 and foreign_short.total > 0:
        risk_flags.add(RiskFlag.INST_REVERSAL_UP)

    components = (
        Component(
            "institutional",
            "Foreign/trust net flow",
            foreign_ratio,
            config.institutional_weight,
            config.institutional_weight * institutional,
        ),
        Component(
            "margin",
            "Margin balance change",
            margin_change,
            config.margin_weight,
            config.margin_weight * margin_score,
        ),
        Component("synergy", "Smart money vs retail", verdict.value, 1.0, synergy),
        Component("missing_penalty", "Missing flow data", None, -1.0, -penalty),
    )
    value = clamp(sum(c.contribution for c in components), 0.0, 100.0)

    lot = float(config.lot_size)
    return FactorScore(
        name=FactorName.FLOW.value,
        value=value,
        components=components,
        reasons=top_reasons(reasons),
        risk_flags=frozenset(risk_flags),
        metrics={
            "verdict": verdict.value,
            "foreign_5d": foreign_short.total,
            "foreign_20d": foreign_long.total,
            "trust_5d": trust_short.total,
            "trust_20d": trust_long.total,
            "foreign_score": foreign_score,
            "trust_score": trust_score,
            "margin_score": margin_score,
            "margin_change_20d_pct": (
                None if margin_change is None else margin_change * 100.0
            ),
            "institutional_lots": round(
                (foreign_short.total + trust_short.total + dealer_short.total) / lot
            ),
            "trust_lots": round(trust_short.total / lot),
            "margin_lots": round(retail_change / lot),
            "short_lots": round(short_change / lot),
        },
    )
