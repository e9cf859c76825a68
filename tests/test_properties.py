"""Property-based tests for the stockpulse library using Hypothesis.

Each test encodes an invariant that must hold for all valid inputs:
bounded scores, renormalised composites and well-defined rounding.
Scorers that need a full price history run with fewer examples and no
deadline.
"""

from __future__ import annotations

import datetime as dt

from hypothesis import given, settings
from hypothesis import strategies as st

from stockpulse._numeric import round_half_up
from stockpulse.consistency import compute_consistency
from stockpulse.factors import (
    FactorScore,
    compute_composite_score,
    compute_fundamental_score,
    compute_short_term_score,
    compute_trend_score,
    compute_volatility_score,
)
from stockpulse.forecast import Horizon, build_features, predict_probabilities
from stockpulse.news import CatalystConfig, compute_catalyst_score
from stockpulse.records import NewsItem
from stockpulse.strategy import StrategyInputs, select_strategy, strategy_confidence
from tests.helpers import make_bars, make_revenue

# ---------------------------------------------------------------------------
# Shared strategies
# ---------------------------------------------------------------------------

_SCORE = st.floats(min_value=0.0, max_value=100.0, allow_nan=False)
_OPT_SCORE = st.none() | _SCORE
_CATALYST = st.floats(min_value=-100.0, max_value=100.0, allow_nan=False)

_KEYWORDS = (
    CatalystConfig().positive_keywords
    + CatalystConfig().negative_keywords
    + ("quarterly update", "board meeting")
)
_AS_OF = dt.date(2025, 6, 30)


@st.composite
def _headline(draw: st.DrawFn) -> NewsItem:
    age = draw(st.integers(min_value=0, max_value=10))
    words = draw(st.lists(st.sampled_from(_KEYWORDS), min_size=1, max_size=3))
    return NewsItem(_AS_OF - dt.timedelta(days=age), " ".join(words))


# ---------------------------------------------------------------------------
# Numeric helpers and composite
# ---------------------------------------------------------------------------


@given(
    value=st.floats(min_value=-1e6, max_value=1e6, allow_nan=False),
    digits=st.integers(min_value=0, max_value=3),
)
@settings(max_examples=200)
def test_round_half_up_within_half_step(value: float, digits: int) -> None:
    rounded = round_half_up(value, digits)
    assert abs(rounded - value) <= 0.5 * 10.0**-digits + 1e-6


@given(
    entries=st.lists(
        st.tuples(_OPT_SCORE, st.just(0.0) | st.floats(min_value=0.01, max_value=5.0)),
        min_size=1,
        max_size=6,
    )
)
@settings(max_examples=200)
def test_composite_within_available_range(
    entries: list[tuple[float | None, float]],
) -> None:
    weighted = [(FactorScore(f"f{i}", v), w) for i, (v, w) in enumerate(entries)]
    composite = compute_composite_score(weighted)
    available = [v for v, w in entries if v is not None and w > 0]
    if not available:
        assert composite.value is None
        return
    assert min(available) - 1e-9 <= composite.value <= max(available) + 1e-9
    assert 0.0 <= composite.coverage <= 1.0 + 1e-12


# ---------------------------------------------------------------------------
# Aggregators
# ---------------------------------------------------------------------------


@given(
    trend=_OPT_SCORE,
    flow=_OPT_SCORE,
    fundamental=_OPT_SCORE,
    catalyst=_CATALYST,
    opportunity=_OPT_SCORE,
    probability=_OPT_SCORE,
)
@settings(max_examples=200)
def test_consistency_bounded(
    trend: float | None,
    flow: float | None,
    fundamental: float | None,
    catalyst: float,
    opportunity: float | None,
    probability: float | None,
) -> None:
    result = compute_consistency(
        trend=trend,
        flow=flow,
        fundamental=fundamental,
        catalyst=catalyst,
        opportunity=opportunity,
        probability_5d=probability,
    )
    assert 0.0 <= result.score <= 100.0


@given(
    trend=_OPT_SCORE,
    flow=_OPT_SCORE,
    fundamental=_OPT_SCORE,
    catalyst=_CATALYST,
    volatility=_OPT_SCORE,
    opportunity=_OPT_SCORE,
    pullback=_OPT_SCORE,
    spike=st.none() | st.floats(min_value=0.0, max_value=20.0),
    gap=st.none() | st.floats(min_value=-0.2, max_value=0.2),
)
@settings(max_examples=200)
def test_forecast_probabilities_bounded(
    trend: float | None,
    flow: float | None,
    fundamental: float | None,
    catalyst: float,
    volatility: float | None,
    opportunity: float | None,
    pullback: float | None,
    spike: float | None,
    gap: float | None,
) -> None:
    features = build_features(
        trend=trend,
        flow=flow,
        fundamental=fundamental,
        catalyst=catalyst,
        volatility=volatility,
        opportunity=opportunity,
        pullback_risk=pullback,
        volume_spike=spike,
        gap=gap,
    )
    forecast = predict_probabilities(features)
    for horizon in Horizon:
        assert 0.0 <= forecast.raw[horizon] <= 100.0
        assert 0.0 <= forecast.calibrated[horizon] <= 100.0
    assert 0.0 <= forecast.big_move <= 100.0


@given(news=st.lists(_headline(), max_size=12))
@settings(max_examples=100)
def test_catalyst_bounded(news: list[NewsItem]) -> None:
    score = compute_catalyst_score(news, _AS_OF)
    assert -100.0 <= score.value <= 100.0


@given(
    trend=_OPT_SCORE,
    flow=_OPT_SCORE,
    catalyst=_CATALYST,
    scores=st.lists(_SCORE, min_size=8, max_size=8),
    crash=_OPT_SCORE,
    consistency=_OPT_SCORE,
)
@settings(max_examples=200)
def test_strategy_always_decides(
    trend: float | None,
    flow: float | None,
    catalyst: float,
    scores: list[float],
    crash: float | None,
    consistency: float | None,
) -> None:
    vol, opp, pullback, breakout, up1, up3, up5, big = scores
    inputs = StrategyInputs(
        trend=trend,
        flow=flow,
        fundamental=None,
        catalyst=catalyst,
        volatility=vol,
        opportunity=opp,
        pullback_risk=pullback,
        breakout=breakout,
        up_1d=up1,
        up_3d=up3,
        up_5d=up5,
        big_move=big,
        consistency=consistency,
        crash_score=crash,
    )
    assert 0.0 <= strategy_confidence(inputs) <= 100.0
    decision = select_strategy(inputs)
    assert 0.0 <= decision.confidence <= 100.0
    assert decision.action_cards


# ---------------------------------------------------------------------------
# Factor scorers
# ---------------------------------------------------------------------------


@given(
    yoy=st.lists(
        st.none() | st.floats(min_value=-100.0, max_value=300.0, allow_nan=False),
        min_size=0,
        max_size=24,
    )
)
@settings(max_examples=200)
def test_fundamental_bounded(yoy: list[float | None]) -> None:
    score = compute_fundamental_score(make_revenue(yoy))
    if score.value is not None:
        assert 0.0 <= score.value <= 100.0


@given(
    seed=st.integers(min_value=0, max_value=10_000),
    drift=st.floats(min_value=-0.01, max_value=0.01),
    scale=st.floats(min_value=0.001, max_value=0.05),
)
@settings(max_examples=15, deadline=None)
def test_price_scorers_bounded(seed: int, drift: float, scale: float) -> None:
    bars = make_bars(160, drift=drift, scale=scale, seed=seed)
    trend = compute_trend_score(bars)
    volatility = compute_volatility_score(bars)
    short_term = compute_short_term_score(bars, trend, volatility)
    for score in (trend, volatility, short_term):
        assert score.value is not None
        assert 0.0 <= score.value <= 100.0
