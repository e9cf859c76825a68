"""Synthetic record builders shared by the test modules."""

from __future__ import annotations

import datetime as dt

import numpy as np
import pandas as pd

from stockpulse.records import (
    Bar,
    CounterpartyClass,
    FlowRecord,
    MacroSeries,
    RevenueRecord,
)


def make_bars(
    n: int = 200,
    drift: float = 0.0,
    scale: float = 0.01,
    seed: int = 42,
    start: str = "2024-01-01",
    volume: float | None = 1_000_000.0,
) -> list[Bar]:
    """Synthetic daily bars from a seeded random walk.

    ``drift`` and ``scale`` are the per-bar mean and standard deviation of
    the close-to-close return.  ``volume=None`` produces zero volume.
    """
    rng = np.random.default_rng(seed)
    returns = rng.normal(loc=drift, scale=scale, size=n)
    closes = 100.0 * np.cumprod(1.0 + returns)
    opens = np.concatenate(([100.0], closes[:-1])) * (1.0 + rng.normal(0, scale / 4, n))
    wiggle = np.abs(rng.normal(0, scale / 2, n))
    highs = np.maximum(opens, closes) * (1.0 + wiggle)
    lows = np.minimum(opens, closes) * (1.0 - wiggle)
    volumes = (
        np.zeros(n)
        if volume is None
        else volume * (1.0 + 0.2 * rng.standard_normal(n)).clip(0.2)
    )
    dates = pd.bdate_range(start, periods=n, freq="B")
    return [
        Bar(
            date=d.date(),
            open=float(o),
            high=float(h),
            low=float(lo),
            close=float(c),
            volume=float(v),
        )
        for d, o, h, lo, c, v in zip(dates, opens, highs, lows, closes, volumes)
    ]


def make_flows(
    dates: list[dt.date],
    foreign: float = 0.0,
    trust: float = 0.0,
) -> list[FlowRecord]:
    """Constant daily net flow per counterparty over ``dates``."""
    records = []
    for day in dates:
        records.append(
            FlowRecord(day, CounterpartyClass.FOREIGN, max(foreign, 0), max(-foreign, 0))
        )
        records.append(
            FlowRecord(
                day, CounterpartyClass.INVESTMENT_TRUST, max(trust, 0), max(-trust, 0)
            )
        )
    return records


def make_revenue(yoy: list[float], start_year: int = 2023) -> list[RevenueRecord]:
    return [
        RevenueRecord(year=start_year + i // 12, month=i % 12 + 1, yoy_growth_pct=y)
        for i, y in enumerate(yoy)
    ]


def linear_series(symbol: str, start: float, end: float, n: int = 30) -> MacroSeries:
    return MacroSeries(symbol, tuple(np.linspace(start, end, n)))


