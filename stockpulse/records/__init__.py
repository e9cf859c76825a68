"""Input records and their normalisers."""

from stockpulse.records._models import (
    MACRO_MIN_POINTS,
    Bar,
    CounterpartyClass,
    FlowRecord,
    MacroSeries,
    MarginRecord,
    NewsItem,
    RevenueRecord,
)
from stockpulse.records._normalize import (
    bars_to_frame,
    normalize_bars,
    normalize_flows,
    normalize_margin,
    normalize_revenue,
)

__all__ = [
    # Records
    "Bar",
    "CounterpartyClass",
    "FlowRecord",
    "MacroSeries",
    "MarginRecord",
    "NewsItem",
    "RevenueRecord",
    "MACRO_MIN_POINTS",
    # Normalisers
    "bars_to_frame",
    "normalize_bars",
    "normalize_flows",
    "normalize_margin",
    "normalize_revenue",
]
