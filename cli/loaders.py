"""Read CSV files into stockpulse records.

This module is the only place that performs file I/O.  Each loader reads
one CSV with pandas, checks the required columns and converts rows into
the immutable records the library consumes.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import pandas as pd

from stockpulse.exceptions import DataError
from stockpulse.records import (
    Bar,
    FlowRecord,
    MacroSeries,
    MarginRecord,
    NewsItem,
    RevenueRecord,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _read(path: str | Path, required: Iterable[str]) -> pd.DataFrame:
    df = pd.read_csv(path)
    df.columns = [str(c).strip().lower() for c in df.columns]
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise DataError(f"{path}: missing column(s) {', '.join(missing)}")
    return df


def _opt_float(val: Any) -> float | None:
    """Coerce a cell to float, mapping NaN/blank to ``None``."""
    if val is None or pd.isna(val):
        return None
    return float(val)


def _str(val: Any) -> str:
    return "" if val is None or pd.isna(val) else str(val)


# ---------------------------------------------------------------------------
# Public loaders
# ---------------------------------------------------------------------------


def load_bars(path: str | Path) -> list[Bar]:
    """Columns ``date, open, high, low, close`` and optional ``volume``."""
    df = _read(path, ("date", "open", "high", "low", "close"))
    if "volume" not in df.columns:
        df["volume"] = 0.0
    df["volume"] = df["volume"].fillna(0.0)
    df = df.dropna(subset=["open", "high", "low", "close"])
    return [
        Bar(
            date=str(row.date),
            open=row.open,
            high=row.high,
            low=row.low,
            close=row.close,
            volume=row.volume,
        )
        for row in df.itertuples(index=False)
    ]


def load_flows(path: str | Path) -> list[FlowRecord]:
    """Columns ``date, counterparty, buy_volume, sell_volume``."""
    df = _read(path, ("date", "counterparty", "buy_volume", "sell_volume"))
    df = df.fillna({"buy_volume": 0.0, "sell_volume": 0.0})
    return [
        FlowRecord(
            date=str(row.date),
            counterparty=str(row.counterparty).strip().lower(),
            buy_volume=row.buy_volume,
            sell_volume=row.sell_volume,
        )
        for row in df.itertuples(index=False)
    ]


def load_margin(path: str | Path) -> list[MarginRecord]:
    """Columns ``date, margin_balance`` and optional ``short_balance``."""
    df = _read(path, ("date", "margin_balance"))
    if "short_balance" not in df.columns:
        df["short_balance"] = 0.0
    df = df.dropna(subset=["margin_balance"]).fillna({"short_balance": 0.0})
    return [
        MarginRecord(
            date=str(row.date),
            margin_balance=row.margin_balance,
            short_balance=row.short_balance,
        )
        for row in df.itertuples(index=False)
    ]


def load_revenue(path: str | Path) -> list[RevenueRecord]:
    """Columns ``year, month`` plus ``yoy_growth_pct`` and/or ``revenue``."""
    df = _read(path, ("year", "month"))
    if "yoy_growth_pct" not in df.columns and "revenue" not in df.columns:
        raise DataError(f"{path}: needs a yoy_growth_pct or revenue column")
    records = []
    for row in df.to_dict(orient="records"):
        records.append(
            RevenueRecord(
                year=int(row["year"]),
                month=int(row["month"]),
                yoy_growth_pct=_opt_float(row.get("yoy_growth_pct")),
                revenue=_opt_float(row.get("revenue")),
            )
        )
    return records


def load_news(path: str | Path) -> list[NewsItem]:
    """Columns ``date, title`` and optional ``summary``."""
    df = _read(path, ("date", "title"))
    return [
        NewsItem(
            date=str(row["date"]),
            title=_str(row["title"]),
            summary=_str(row.get("summary")),
        )
        for row in df.to_dict(orient="records")
    ]


def load_macro(path: str | Path) -> dict[str, MacroSeries]:
    """Long-format ``symbol, date, close`` file, one series per symbol.

    Rows are sorted by date within each symbol; blank closes are dropped.
    """
    df = _read(path, ("symbol", "date", "close"))
    df = df.dropna(subset=["close"])
    df["date"] = pd.to_datetime(df["date"])
    series: dict[str, MacroSeries] = {}
    for symbol, group in df.sort_values("date").groupby("symbol", sort=False):
        series[str(symbol)] = MacroSeries(
            symbol=str(symbol),
            closes=tuple(group["close"].astype(float)),
            dates=tuple(group["date"].dt.date),
        )
        logger.debug("Loaded %s: %d points", symbol, len(group))
    return series
