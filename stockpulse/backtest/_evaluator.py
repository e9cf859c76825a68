"""Forward hit rates of a discrete flow and price/volume signal."""

from __future__ import annotations

import datetime as dt
import logging
from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass, field

from stockpulse.backtest._config import BacktestConfig, BacktestSignal
from stockpulse.records import Bar, CounterpartyClass, FlowRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HitStats:
    """Directional hits at one forward horizon."""

    horizon: int
    hits: int = 0
    total: int = 0

    @property
    def hit_rate(self) -> float:
        """Share of correct calls, 0 when nothing was evaluated."""
        return self.hits / self.total if self.total else 0.0


@dataclass(frozen=True)
class BacktestResult:
    window: int
    stats: dict[int, HitStats] = field(default_factory=dict)
    signals: int = 0

    def at(self, horizon: int) -> HitStats:
        return self.stats.get(horizon, HitStats(horizon))


def _sign(value: float) -> int:
    return (value > 0) - (value < 0)


def day_signal(
    bars: Sequence[Bar],
    index: int,
    daily_net: dict[CounterpartyClass, dict[dt.date, float]],
    config: BacktestConfig | None = None,
) -> BacktestSignal:
    """Classify bar ``index`` using only data up to and including it."""
    if config is None:
        config = BacktestConfig()
    if index < config.foreign_trend_days:
        return BacktestSignal.NEUTRAL

    today, prev = bars[index], bars[index - 1]
    score = 0
    if today.volume > prev.volume:
        score += _sign(today.close - prev.close) * config.price_volume_points

    points = {
        CounterpartyClass.FOREIGN: config.foreign_points,
        CounterpartyClass.INVESTMENT_TRUST: config.trust_points,
        CounterpartyClass.DEALER: config.dealer_points,
    }
    for counterparty, weight in points.items():
        net = daily_net.get(counterparty, {}).get(today.date)
        if net is not None:
            score += _sign(net) * weight

    foreign = daily_net.get(CounterpartyClass.FOREIGN, {})
    recent = bars[index - config.foreign_trend_days + 1 : index + 1]
    foreign_trend = sum(foreign.get(b.date, 0.0) for b in recent)
    score += _sign(foreign_trend) * config.foreign_trend_points

    if score >= config.bullish_threshold:
        return BacktestSignal.BULLISH
    if score <= config.bearish_threshold:
        return BacktestSignal.BEARISH
    return BacktestSignal.NEUTRAL


def run_backtest(
    bars: Sequence[Bar],
    flows: Sequence[FlowRecord] = (),
    config: BacktestConfig | None = None,
) -> BacktestResult:
    """Tally forward hits of the daily signal over the trailing window.

    Neutral days are ignored.  A bullish (bearish) call is a hit at
    horizon ``h`` when the close ``h`` bars later is strictly higher
    (lower).  Calls whose horizon runs past the last bar are not counted.

    Parameters
    ----------
    bars : Sequence[Bar]
        Date-sorted daily bars.
    flows : Sequence[FlowRecord]
        Institutional flow over the same dates.
    config : BacktestConfig or None

    Returns
    -------
    BacktestResult
    """
    if config is None:
        config = BacktestConfig()

    empty = BacktestResult(
        window=config.window,
        stats={h: HitStats(h) for h in config.horizons},
    )
    if len(bars) < config.min_bars:
        logger.debug("Backtest skipped: %d bars", len(bars))
        return empty

    daily_net: dict[CounterpartyClass, dict[dt.date, float]] = defaultdict(dict)
    for record in flows:
        bucket = daily_net[record.counterparty]
        bucket[record.date] = bucket.get(record.date, 0.0) + record.net

    last = len(bars) - 1
    start = max(config.foreign_trend_days, len(bars) - config.window - max(config.horizons))
    hits = dict.fromkeys(config.horizons, 0)
    totals = dict.fromkeys(config.horizons, 0)
    signals = 0

    for t in range(start, last + 1):
        signal = day_signal(bars, t, daily_net, config)
        if signal is BacktestSignal.NEUTRAL:
            continue
        signals += 1
        close = bars[t].close
        for h in config.horizons:
            if t + h > last:
                continue
            totals[h] += 1
            future = bars[t + h].close
            if signal is BacktestSignal.BULLISH and future > close:
                hits[h] += 1
            elif signal is BacktestSignal.BEARISH and future < close:
                hits[h] += 1

    return BacktestResult(
        window=config.window,
        stats={h: HitStats(h, hits[h], totals[h]) for h in config.horizons},
        signals=signals,
    )
