"""Per-security orchestration of every scorer, the forecaster and strategy."""

from __future__ import annotations

import dataclasses
import datetime as dt
import logging

from stockpulse._numeric import clamp, round_half_up
from stockpulse.backtest import run_backtest as _run_backtest
from stockpulse.consistency import compute_consistency
from stockpulse.crash import CrashRisk
from stockpulse.factors import (
    FactorName,
    FactorScore,
    compute_composite_score,
    compute_flow_score,
    compute_fundamental_score,
    compute_key_levels,
    compute_short_term_score,
    compute_trend_score,
    compute_volatility_score,
)
from stockpulse.forecast import (
    CalibrationModel,
    Horizon,
    build_features,
    predict_probabilities,
)
from stockpulse.news import compute_catalyst_score
from stockpulse.pipeline._config import (
    PipelineConfig,
    SecurityAnalysis,
    SecurityInputs,
)
from stockpulse.records import (
    normalize_bars,
    normalize_flows,
    normalize_margin,
    normalize_revenue,
)
from stockpulse.strategy import StrategyInputs, select_strategy

logger = logging.getLogger(__name__)


def _or_neutral(value: float | None, neutral: float = 50.0) -> float:
    return neutral if value is None else value


def analyze_security(
    inputs: SecurityInputs,
    *,
    calibration: CalibrationModel | None = None,
    crash_risk: CrashRisk | None = None,
    run_backtest: bool = False,
    config: PipelineConfig | None = None,
) -> SecurityAnalysis:
    """Compute every score, the forecast and the strategy for one security.

    This is the single entry point for a per-security analysis.  It:

    1. Normalises the raw records (sort, de-duplicate, fill YoY growth).
    2. Runs the trend, flow, fundamental, volatility and short-term
       scorers plus the news catalyst.
    3. Predicts calibrated up-move probabilities.
    4. Measures directional consistency across the signals.
    5. Selects a strategy, with the crash score as an extra veto input.
    6. Optionally backtests the flow signal.

    Parameters
    ----------
    inputs : SecurityInputs
        Records of the security.
    calibration : CalibrationModel or None
        Active calibration; ``None`` applies the identity transform.
    crash_risk : CrashRisk or None
        Market-wide crash verdict.  When it carries a score, strategy
        confidence is scaled down by ``1 - score / 150``.
    run_backtest : bool
        Whether to run the flow-signal backtest.
    config : PipelineConfig or None
        Stage configurations and composite weights.

    Returns
    -------
    SecurityAnalysis
        Unavailable factors stay unavailable (``value is None``) and are
        dropped from the overall composite rather than scored as 50.

    Examples
    --------
    >>> from stockpulse.pipeline import SecurityInputs, analyze_security
    >>>
    >>> result = analyze_security(SecurityInputs("2330", bars=bars))
    >>> print(result.overall.value, result.strategy.signal)
    """
    if config is None:
        config = PipelineConfig()

    # 1. Normalise
    bars = normalize_bars(inputs.bars)
    flows = normalize_flows(inputs.flows)
    margin = normalize_margin(inputs.margin)
    revenue = normalize_revenue(inputs.revenue)
    as_of = inputs.as_of or (bars[-1].date if bars else dt.date.today())

    # 2. Factor scorers
    trend = compute_trend_score(bars, config.trend)
    flow = compute_flow_score([b.date for b in bars], flows, margin, config.flow)
    fundamental = compute_fundamental_score(revenue, config.fundamental)
    volatility = compute_volatility_score(bars, config.volatility)
    short_term = compute_short_term_score(bars, trend, volatility, config.short_term)
    catalyst = compute_catalyst_score(inputs.news, as_of, config.catalyst)
    key_levels = compute_key_levels(bars)

    factors: dict[FactorName, FactorScore] = {
        FactorName.TREND: trend,
        FactorName.FLOW: flow,
        FactorName.FUNDAMENTAL: fundamental,
        FactorName.VOLATILITY: volatility,
        FactorName.SHORT_TERM: short_term,
    }
    for name, score in factors.items():
        if not score.available:
            logger.debug("%s: %s unavailable (%s)", inputs.symbol, name.value, score.reasons[0])

    # 3. Forecast
    pullback_risk = short_term.metric("pullback_risk_score")
    features = build_features(
        trend=trend.value,
        flow=flow.value,
        fundamental=fundamental.value,
        catalyst=catalyst.value,
        volatility=volatility.value,
        opportunity=short_term.value,
        pullback_risk=pullback_risk,
        volume_spike=volatility.metric("volume_spike"),
        gap=volatility.metric("gap"),
        config=config.forecast,
    )
    forecast = predict_probabilities(features, calibration, config.forecast)

    # 4. Consistency
    consistency = compute_consistency(
        trend=trend.value,
        flow=flow.value,
        fundamental=fundamental.value,
        catalyst=catalyst.value,
        opportunity=short_term.value,
        probability_5d=forecast.up(Horizon.FIVE_DAY),
        config=config.consistency,
    )

    # 5. Strategy
    risk_flags = frozenset().union(*(s.risk_flags for s in factors.values()))
    crash_score = crash_risk.score if crash_risk is not None else None
    strategy_inputs = StrategyInputs(
        trend=trend.value,
        flow=flow.value,
        fundamental=fundamental.value,
        catalyst=catalyst.value,
        volatility=_or_neutral(volatility.value),
        opportunity=_or_neutral(short_term.value),
        pullback_risk=_or_neutral(pullback_risk),
        breakout=_or_neutral(short_term.metric("breakout_score")),
        up_1d=forecast.up_1d,
        up_3d=forecast.up_3d,
        up_5d=forecast.up_5d,
        big_move=forecast.big_move,
        consistency=consistency.score,
        crash_score=crash_score,
        risk_flags=risk_flags,
        key_levels=key_levels,
    )
    decision = select_strategy(strategy_inputs, config.strategy)
    if crash_score is not None:
        scale = 1.0 - crash_score / config.crash_confidence_divisor
        decision = dataclasses.replace(
            decision,
            confidence=round_half_up(clamp(decision.confidence * scale, 0.0, 100.0), 1),
        )

    # 6. Overall composite and optional backtest
    overall = compute_composite_score(
        (factors[name], weight) for name, weight in config.composite_weights.items()
    )
    backtest = _run_backtest(bars, flows, config.backtest) if run_backtest else None

    logger.info(
        "%s analysed: overall=%s signal=%s confidence=%.1f",
        inputs.symbol,
        "n/a" if overall.value is None else f"{overall.value:.1f}",
        decision.signal.value,
        decision.confidence,
    )
    return SecurityAnalysis(
        symbol=inputs.symbol,
        as_of=as_of,
        factors=factors,
        catalyst=catalyst,
        forecast=forecast,
        consistency=consistency,
        key_levels=key_levels,
        strategy=decision,
        overall=overall,
        risk_flags=risk_flags,
        backtest=backtest,
    )
