"""Sorting, de-duplication and frame conversion for input records."""

from __future__ import annotations

import logging
from collections.abc import Iterable

import pandas as pd

from stockpulse.records._models import (
    Bar,
    FlowRecord,
    MarginRecord,
    RevenueRecord,
)

logger = logging.getLogger(__name__)


def normalize_bars(bars: Iterable[Bar]) -> tuple[Bar, ...]:
    """Sort bars by date and drop duplicate dates.

    When two bars share a date the one appearing last in the input wins,
    matching a provider that appends corrections.

    Returns
    -------
    tuple[Bar, ...]
        Bars with strictly increasing dates.
    """
    by_date: dict = {}
    count = 0
    for bar in bars:
        by_date[bar.date] = bar
        count += 1
    if count != len(by_date):
        logger.debug("Dropped %d duplicate bars", count - len(by_date))
    return tuple(by_date[d] for d in sorted(by_date))


def normalize_flows(flows: Iterable[FlowRecord]) -> tuple[FlowRecord, ...]:
    """Sort flow records by date, keeping one record per (date, class)."""
    keyed: dict = {}
    for record in flows:
        keyed[(record.date, record.counterparty)] = record
    return tuple(
        keyed[k] for k in sorted(keyed, key=lambda k: (k[0], k[1].value))
    )


def normalize_margin(
    records: Iterable[MarginRecord],
) -> tuple[MarginRecord, ...]:
    """Sort margin records by date, keeping the last record per date."""
    by_date: dict = {}
    for record in records:
        by_date[record.date] = record
    return tuple(by_date[d] for d in sorted(by_date))


def normalize_revenue(
    records: Iterable[RevenueRecord],
) -> tuple[RevenueRecord, ...]:
    """Chronologically order monthly revenue and fill missing YoY growth.

    A record without ``yoy_growth_pct`` gets it derived from the same
    month of the previous year when both revenues are known and the
    earlier one is positive.  Records whose growth stays unknown are
    kept; scorers skip them, which simply shrinks the sample.
    """
    by_period: dict[tuple[int, int], RevenueRecord] = {}
    for record in records:
        by_period[record.period] = record

    filled: list[RevenueRecord] = []
    for period in sorted(by_period):
        record = by_period[period]
        if record.yoy_growth_pct is None and record.revenue is not None:
            prior = by_period.get((period[0] - 1, period[1]))
            if prior is not None and prior.revenue and prior.revenue > 0:
                record = RevenueRecord(
                    year=record.year,
                    month=record.month,
                    yoy_growth_pct=(record.revenue / prior.revenue - 1) * 100,
                    revenue=record.revenue,
                )
        filled.append(record)
    return tuple(filled)


def bars_to_frame(bars: Iterable[Bar]) -> pd.DataFrame:
    """Convert bars to a date-indexed OHLCV DataFrame."""
    rows = [
        {
            "date": pd.Timestamp(b.date),
            "open": b.open,
            "high": b.high,
            "low": b.low,
            "close": b.close,
            "volume": b.volume,
        }
        for b in bars
    ]
    if not rows:
        return pd.DataFrame(
            columns=["open", "high", "low", "close", "volume"],
            index=pd.DatetimeIndex([], name="date"),
        )
    return pd.DataFrame(rows).set_index("date").sort_index()
