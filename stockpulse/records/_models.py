"""Immutable market-data records consumed by the scorers."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

from stockpulse.exceptions import DataError

# Minimum number of closes for a macro series to count as usable.
MACRO_MIN_POINTS = 21


def _coerce_date(value: date | datetime | str, name: str = "date") -> date:
    """Return a plain :class:`datetime.date` from common date encodings."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value[:10])
        except ValueError as exc:
            raise DataError(f"{name} is not an ISO date: {value!r}") from exc
    # pandas.Timestamp is a datetime subclass; anything else is rejected
    raise DataError(f"{name} must be a date, got {type(value).__name__}")


def _require_finite(value: float, name: str) -> None:
    if not math.isfinite(value):
        raise DataError(f"{name} must be finite, got {value}")


class CounterpartyClass(str, Enum):
    """Institutional investor category of a flow record."""

    FOREIGN = "foreign"
    INVESTMENT_TRUST = "investment_trust"
    DEALER = "dealer"


@dataclass(frozen=True)
class Bar:
    """One daily OHLCV bar.

    Parameters
    ----------
    date : date
        Trading date.
    open, high, low, close : float
        Prices; must be finite and strictly positive with ``low <= high``.
    volume : float
        Traded volume in shares; zero when the provider reports none.
    """

    date: date
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "date", _coerce_date(self.date))
        for name in ("open", "high", "low", "close"):
            value = float(getattr(self, name))
            _require_finite(value, name)
            if value <= 0:
                raise DataError(f"{name} must be positive, got {value}")
            object.__setattr__(self, name, value)
        volume = float(self.volume)
        _require_finite(volume, "volume")
        if volume < 0:
            raise DataError(f"volume must be non-negative, got {volume}")
        object.__setattr__(self, "volume", volume)
        if self.low > self.high:
            raise DataError(
                f"low ({self.low}) exceeds high ({self.high}) on {self.date}"
            )


@dataclass(frozen=True)
class FlowRecord:
    """Daily buy/sell volume of one institutional counterparty class."""

    date: date
    counterparty: CounterpartyClass
    buy_volume: float
    sell_volume: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "date", _coerce_date(self.date))
        object.__setattr__(
            self, "counterparty", CounterpartyClass(self.counterparty)
        )
        for name in ("buy_volume", "sell_volume"):
            value = float(getattr(self, name))
            _require_finite(value, name)
            object.__setattr__(self, name, value)

    @property
    def net(self) -> float:
        """Net shares bought (buy minus sell)."""
        return self.buy_volume - self.sell_volume


@dataclass(frozen=True)
class MarginRecord:
    """End-of-day margin purchase and short sale balances (shares)."""

    date: date
    margin_balance: float
    short_balance: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "date", _coerce_date(self.date))
        for name in ("margin_balance", "short_balance"):
            value = float(getattr(self, name))
            _require_finite(value, name)
            if value < 0:
                raise DataError(f"{name} must be non-negative, got {value}")
            object.__setattr__(self, name, value)


@dataclass(frozen=True)
class RevenueRecord:
    """Monthly revenue with its year-over-year growth in percent.

    ``yoy_growth_pct`` may be omitted when ``revenue`` is given; the
    normaliser then derives it from the same month one year earlier.
    """

    year: int
    month: int
    yoy_growth_pct: float | None = None
    revenue: float | None = None

    def __post_init__(self) -> None:
        if not 1 <= int(self.month) <= 12:
            raise DataError(f"month must be in 1..12, got {self.month}")
        object.__setattr__(self, "year", int(self.year))
        object.__setattr__(self, "month", int(self.month))
        if self.yoy_growth_pct is not None:
            yoy = float(self.yoy_growth_pct)
            _require_finite(yoy, "yoy_growth_pct")
            object.__setattr__(self, "yoy_growth_pct", yoy)
        if self.revenue is not None:
            revenue = float(self.revenue)
            _require_finite(revenue, "revenue")
            object.__setattr__(self, "revenue", revenue)

    @property
    def period(self) -> tuple[int, int]:
        return (self.year, self.month)


@dataclass(frozen=True)
class NewsItem:
    """A dated headline."""

    date: date
    title: str
    summary: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "date", _coerce_date(self.date))


@dataclass(frozen=True)
class MacroSeries:
    """Close series for one macro symbol, parallel ``closes``/``dates``."""

    symbol: str
    closes: tuple[float, ...] = ()
    dates: tuple[date, ...] = field(default=())

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "closes", tuple(float(c) for c in self.closes)
        )
        object.__setattr__(
            self, "dates", tuple(_coerce_date(d) for d in self.dates)
        )
        if self.dates and len(self.dates) != len(self.closes):
            raise DataError(
                f"{self.symbol}: {len(self.closes)} closes but "
                f"{len(self.dates)} dates"
            )

    @property
    def points(self) -> int:
        return len(self.closes)

    @property
    def ok(self) -> bool:
        """Whether the series is long enough to be used."""
        return self.points >= MACRO_MIN_POINTS
