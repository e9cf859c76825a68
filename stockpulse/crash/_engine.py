"""Systemic crash-risk composite over macro indicator series."""

from __future__ import annotations

import datetime as dt
import logging
import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field

from stockpulse._numeric import clamp, finite_or_none, round_half_up, safe_div
from stockpulse.crash._config import CrashConfig, CrashFactorName, CrashLevel
from stockpulse.factors import FactorScore, compute_composite_score
from stockpulse.records import MacroSeries

logger = logging.getLogger(__name__)

_GATE_NOTE = "Insufficient data: minimum macro coverage not met."
_PARTIAL_NOTE = "Some indicators missing; estimated from available ones."
_CALM_NOTE = "Macro and market indicators calm; no extreme warnings."

_HEADLINES = {
    CrashLevel.CRASH: (
        "Crash risk extreme; consider hedging",
        "Multiple indicators show extreme stress; capital may flee risk assets.",
    ),
    CrashLevel.HIGH: (
        "Risk elevated; lean defensive",
        "Clear stress signals; consider lowering equity exposure.",
    ),
    CrashLevel.WARNING: (
        "Market on alert",
        "Some indicators weakened or volatility rose; monitor closely.",
    ),
    CrashLevel.NORMAL: (
        "Market risk low",
        "Environment broadly stable; normal operation.",
    ),
    CrashLevel.INSUFFICIENT_DATA: (
        "Insufficient data",
        "Not enough market data to assess systemic risk.",
    ),
}


@dataclass(frozen=True)
class CrashFactor:
    """One stress sub-factor.

    ``score`` is ``None`` exactly when ``available`` is false.
    """

    name: CrashFactorName
    score: float | None = None
    triggers: tuple[str, ...] = ()
    inputs: tuple[str, ...] = ()

    @property
    def available(self) -> bool:
        return self.score is not None

    def as_factor_score(self) -> FactorScore:
        return FactorScore(
            name=self.name.value,
            value=self.score,
            reasons=self.triggers,
        )


@dataclass(frozen=True)
class FactorTrace:
    available: bool
    inputs: tuple[str, ...]
    score: float | None


@dataclass(frozen=True)
class CrashMeta:
    """Audit trail of one evaluation."""

    computed_at: dt.datetime
    engine_version: str
    used_symbols: tuple[str, ...]
    used_points_min: int
    trace: dict[CrashFactorName, FactorTrace] = field(default_factory=dict)


@dataclass(frozen=True)
class CrashRisk:
    """Crash-risk verdict.

    Attributes
    ----------
    score : float or None
        ``[0, 100]`` rounded to 0.1; ``None`` whenever the level is
        ``INSUFFICIENT_DATA``.
    level : CrashLevel
    headline, summary : str
    triggers : tuple[str, ...]
        Top reasons across sub-factors, strongest factor first.
    factors : dict[CrashFactorName, CrashFactor]
    meta : CrashMeta
    """

    score: float | None
    level: CrashLevel
    headline: str
    summary: str
    triggers: tuple[str, ...]
    factors: dict[CrashFactorName, CrashFactor]
    meta: CrashMeta

    @property
    def available(self) -> bool:
        return self.score is not None


# ---------------------------------------------------------------------------
# Series statistics
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class _VixStats:
    current: float
    mean: float
    delta: float


def _pick(
    series: Mapping[str, MacroSeries], aliases: Sequence[str], min_points: int
) -> tuple[str | None, tuple[float, ...]]:
    for symbol in aliases:
        found = series.get(symbol)
        if found is not None and found.points >= min_points:
            return symbol, found.closes
    return None, ()


def period_return(closes: Sequence[float], lookback: int = 20) -> float | None:
    """Fractional change over ``lookback`` points, ``None`` if undefined."""
    if len(closes) < lookback + 1:
        return None
    current = finite_or_none(closes[-1])
    base = finite_or_none(closes[-lookback - 1])
    if current is None or base is None:
        return None
    return safe_div(current - base, base)


def drawdown(closes: Sequence[float], lookback: int = 20) -> float | None:
    """Last close relative to the highest of the last ``lookback`` closes."""
    if len(closes) < lookback + 1:
        return None
    recent = [c for c in closes[-lookback:] if math.isfinite(c)]
    current = finite_or_none(closes[-1])
    if not recent or current is None:
        return None
    ratio = safe_div(current, max(recent))
    return None if ratio is None else ratio - 1.0


def _vix_stats(closes: Sequence[float], lookback: int = 20) -> _VixStats | None:
    if len(closes) < lookback:
        return None
    recent = closes[-lookback:]
    if any(not math.isfinite(c) for c in recent):
        return None
    current = float(recent[-1])
    mean = sum(recent) / len(recent)
    delta = safe_div(current - mean, mean)
    if delta is None:
        return None
    return _VixStats(current, mean, delta)


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------


def _as_mapping(
    series: Mapping[str, MacroSeries] | Iterable[MacroSeries],
) -> dict[str, MacroSeries]:
    if isinstance(series, Mapping):
        return dict(series)
    return {s.symbol: s for s in series}


def _level(score: float, config: CrashConfig) -> CrashLevel:
    if score >= config.crash_threshold:
        return CrashLevel.CRASH
    if score >= config.high_threshold:
        return CrashLevel.HIGH
    if score >= config.warning_threshold:
        return CrashLevel.WARNING
    return CrashLevel.NORMAL


def _insufficient(
    factors: dict[CrashFactorName, CrashFactor],
    meta: CrashMeta,
    summary: str | None = None,
) -> CrashRisk:
    headline, default_summary = _HEADLINES[CrashLevel.INSUFFICIENT_DATA]
    return CrashRisk(
        score=None,
        level=CrashLevel.INSUFFICIENT_DATA,
        headline=headline,
        summary=summary or default_summary,
        triggers=(_GATE_NOTE, "Retry once market data is available."),
        factors=factors,
        meta=meta,
    )


def _trace(factors: dict[CrashFactorName, CrashFactor]) -> dict[CrashFactorName, FactorTrace]:
    return {
        name: FactorTrace(f.available, f.inputs, f.score) for name, f in factors.items()
    }


def evaluate_crash_risk(
    series: Mapping[str, MacroSeries] | Iterable[MacroSeries],
    config: CrashConfig | None = None,
    *,
    now: dt.datetime | None = None,
) -> CrashRisk:
    """Score systemic stress from macro indicator closes.

    Before any sub-factor is computed a gate checks coverage: fewer than
    ``config.min_symbols`` usable series (at least ``config.min_points``
    closes each) yields ``INSUFFICIENT_DATA`` with no
    score.  Otherwise four sub-factors (volatility stress, sector
    breakdown, cross-asset stress, liquidity proxy) are each scored on
    ``[0, 100]`` with their own availability and combined by weights
    renormalised over the available ones.

    Parameters
    ----------
    series : Mapping[str, MacroSeries] or Iterable[MacroSeries]
        Close series keyed by symbol.
    config : CrashConfig or None
    now : datetime or None
        Timestamp recorded in the metadata; defaults to the current UTC
        time.

    Returns
    -------
    CrashRisk
    """
    if config is None:
        config = CrashConfig()
    if now is None:
        now = dt.datetime.now(dt.timezone.utc)

    by_symbol = _as_mapping(series)
    used = tuple(sym for sym, s in by_symbol.items() if s.points >= config.min_points)
    points_min = min((by_symbol[sym].points for sym in used), default=0)

    gated = len(used) < config.min_symbols or points_min < config.min_points
    if gated:
        logger.warning(
            "Crash composite gated: %d usable symbols, min %d points",
            len(used),
            points_min,
        )
        factors = {name: CrashFactor(name, triggers=(_GATE_NOTE,)) for name in CrashFactorName}
        meta = CrashMeta(now, config.engine_version, used, points_min, _trace(factors))
        return _insufficient(factors, meta)

    need = config.min_points
    lb = config.lookback
    vix_sym, vix = _pick(by_symbol, config.vix_symbols, need)
    move_sym, move = _pick(by_symbol, config.move_symbols, need)
    sox_sym, sox = _pick(by_symbol, config.sector_symbols, need)
    qqq_sym, qqq = _pick(by_symbol, config.tech_symbols, need)
    dxy_sym, dxy = _pick(by_symbol, config.dollar_symbols, need)
    jpy_sym, jpy = _pick(by_symbol, config.yen_symbols, need)

    # 1. Volatility stress
    vix_stats = _vix_stats(vix, lb) if vix_sym else None
    if vix_stats is not None:
        score, triggers, inputs = 0.0, [], [vix_sym]
        if vix_stats.current >= config.vix_panic:
            score += 40
            triggers.append(f"VIX above {config.vix_panic:.0f} (panic zone).")
        elif vix_stats.current >= config.vix_elevated:
            score += 25
            triggers.append(f"VIX above {config.vix_elevated:.0f} (volatility rising).")
        if vix_stats.delta >= config.vix_spike:
            score += 15
            triggers.append("VIX well above its 20-day mean (rapid spike).")
        move_last = finite_or_none(move[-1]) if move_sym else None
        if move_last is not None:
            inputs.append(move_sym)
            if move_last >= config.move_extreme:
                score += 20
                triggers.append("MOVE elevated (extreme bond volatility).")
            elif move_last >= config.move_elevated:
                score += 10
                triggers.append("MOVE elevated (bond volatility rising).")
        volatility = CrashFactor(
            CrashFactorName.VOLATILITY, clamp(score, 0, 100), tuple(triggers), tuple(inputs)
        )
    else:
        volatility = CrashFactor(
            CrashFactorName.VOLATILITY, triggers=("Insufficient data: VIX unusable.",)
        )

    # 2. Sector breakdown
    sox_ret = period_return(sox, lb) if sox_sym else None
    qqq_ret = period_return(qqq, lb) if qqq_sym else None
    if sox_ret is not None or qqq_ret is not None:
        score, triggers, inputs = 0.0, [], []
        if sox_ret is not None:
            inputs.append(sox_sym)
            if sox_ret <= config.sector_break:
                score += 40
                triggers.append(
                    f"Semiconductors down more than {abs(config.sector_break):.0%} "
                    "over 20 days (breakdown)."
                )
            elif sox_ret <= config.sector_weak:
                score += 25
                triggers.append(
                    f"Semiconductors down more than {abs(config.sector_weak):.0%} "
                    "over 20 days (weakening)."
                )
        if qqq_ret is not None:
            inputs.append(qqq_sym)
            if qqq_ret <= config.tech_break:
                score += 30
                triggers.append("Tech index falling sharply (risk surging).")
            elif qqq_ret <= config.tech_weak:
                score += 15
                triggers.append("Tech index falling (risk rising).")
        sox_dd = drawdown(sox, lb) if sox_sym else None
        qqq_dd = drawdown(qqq, lb) if qqq_sym else None
        worst = min(sox_dd or 0.0, qqq_dd or 0.0)
        if worst <= config.drawdown_severe:
            score += 25
            triggers.append("Deep 20-day drawdown (structure broken).")
        elif worst <= config.drawdown_weak:
            score += 15
            triggers.append("20-day drawdown widening (structure weakening).")
        sector = CrashFactor(
            CrashFactorName.SECTOR, clamp(score, 0, 100), tuple(triggers), tuple(inputs)
        )
    else:
        sector = CrashFactor(
            CrashFactorName.SECTOR, triggers=("Insufficient data: SOXX/QQQ unusable.",)
        )

    # 3. Cross-asset stress
    dxy_ret = period_return(dxy, lb) if dxy_sym else None
    jpy_ret = period_return(jpy, lb) if jpy_sym else None
    if dxy_ret is not None or jpy_ret is not None:
        score, triggers, inputs = 0.0, [], []
        if dxy_ret is not None:
            inputs.append(dxy_sym)
            if dxy_ret >= config.dollar_strong:
                score += 25
                triggers.append("Dollar index sharply stronger over 20 days (tightening).")
            elif dxy_ret >= config.dollar_firm:
                score += 15
                triggers.append("Dollar index firm (outflow pressure).")
        if jpy_ret is not None:
            inputs.append(jpy_sym)
            if jpy_ret >= config.yen_strong:
                score += 20
                triggers.append("USD/JPY up sharply (FX pressure rising).")
            elif jpy_ret >= config.yen_firm:
                score += 10
                triggers.append("USD/JPY firm (FX pressure).")
        cross_asset = CrashFactor(
            CrashFactorName.CROSS_ASSET, clamp(score, 0, 100), tuple(triggers), tuple(inputs)
        )
    else:
        cross_asset = CrashFactor(
            CrashFactorName.CROSS_ASSET,
            triggers=("Insufficient data: DXY/USDJPY unusable.",),
        )

    # 4. Liquidity proxy, reusing the raw features computed above
    if vix_stats is not None and dxy_ret is not None and sox_ret is not None:
        score, triggers, hits = 0.0, [], 0
        if vix_stats.current >= config.vix_panic and dxy_ret >= config.dollar_strong:
            score += 35
            triggers.append("Panic volatility with a surging dollar (liquidity squeeze).")
            hits += 1
        elif vix_stats.current >= config.vix_elevated and dxy_ret >= config.dollar_firm:
            score += 25
            triggers.append("Rising volatility with a firm dollar (liquidity proxy).")
            hits += 1
        if sox_ret <= config.liquidity_sector_break and vix_stats.delta >= config.vix_spike:
            score += 25
            triggers.append("Semiconductor weakness with a volatility spike (liquidity proxy).")
            hits += 1
        if hits == 2:
            score += 10
            triggers.append("Stacked stresses; liquidity deteriorating markedly.")
        liquidity = CrashFactor(
            CrashFactorName.LIQUIDITY,
            clamp(score, 0, 100),
            tuple(triggers),
            (vix_sym, dxy_sym, sox_sym),
        )
    else:
        liquidity = CrashFactor(
            CrashFactorName.LIQUIDITY,
            triggers=("Insufficient data: liquidity proxy needs VIX, dollar and SOXX.",),
        )

    factors = {
        CrashFactorName.VOLATILITY: volatility,
        CrashFactorName.SECTOR: sector,
        CrashFactorName.CROSS_ASSET: cross_asset,
        CrashFactorName.LIQUIDITY: liquidity,
    }
    meta = CrashMeta(now, config.engine_version, used, points_min, _trace(factors))

    weights = config.factor_weights
    composite = compute_composite_score(
        (f.as_factor_score(), weights[name]) for name, f in factors.items()
    )
    score = finite_or_none(composite.value)
    if score is None:
        return _insufficient(factors, meta, "No sub-factor could be computed.")
    score = round_half_up(clamp(score, 0.0, 100.0), 1)

    level = _level(score, config)
    headline, summary = _HEADLINES[level]

    ranked = sorted(
        (f for f in factors.values() if f.available),
        key=lambda f: f.score,
        reverse=True,
    )
    collected: dict[str, None] = {}
    for f in ranked:
        for trigger in f.triggers[: config.triggers_per_factor]:
            collected.setdefault(trigger, None)
    triggers = list(collected)[: config.max_triggers] or [_CALM_NOTE]
    if composite.available_weight < 1.0 - 1e-9:
        triggers.append(_PARTIAL_NOTE)

    logger.info("Crash composite %.1f (%s)", score, level.value)
    return CrashRisk(
        score=score,
        level=level,
        headline=headline,
        summary=summary,
        triggers=tuple(triggers),
        factors=factors,
        meta=meta,
    )
