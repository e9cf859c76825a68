"""Tests for the per-security analysis pipeline."""

from __future__ import annotations

import datetime as dt

import pytest

from stockpulse._numeric import round_half_up
from stockpulse.crash import evaluate_crash_risk
from stockpulse.exceptions import ConfigurationError
from stockpulse.factors import FactorName
from stockpulse.pipeline import PipelineConfig, SecurityInputs, analyze_security
from stockpulse.records import Bar, MacroSeries, MarginRecord
from tests.helpers import linear_series, make_flows, make_revenue


@pytest.fixture()
def full_inputs(uptrend_bars: list[Bar], margin_flat: list[MarginRecord]) -> SecurityInputs:
    dates = [b.date for b in uptrend_bars]
    return SecurityInputs(
        symbol="2330",
        bars=uptrend_bars,
        flows=make_flows(dates, foreign=1e6, trust=2e5),
        margin=margin_flat,
        revenue=make_revenue([30.0] * 12),
    )


class TestAnalyzeSecurity:
    def test_all_factors_available(self, full_inputs: SecurityInputs) -> None:
        result = analyze_security(full_inputs)
        assert result.symbol == "2330"
        assert result.as_of == full_inputs.bars[-1].date
        for name in FactorName:
            assert result.factor(name).available, name
        assert result.overall.dropped == ()
        assert result.overall.coverage == pytest.approx(1.0)
        assert 0.0 <= result.overall.value <= 100.0
        assert 0.0 <= result.strategy.confidence <= 100.0
        assert 0.0 <= result.consistency.score <= 100.0
        assert result.backtest is None

    def test_forecast_and_levels_populated(self, full_inputs: SecurityInputs) -> None:
        result = analyze_security(full_inputs)
        assert all(0.0 <= p <= 100.0 for p in result.forecast.calibrated.values())
        assert result.key_levels.breakout is not None

    def test_missing_records_stay_unavailable(self, uptrend_bars: list[Bar]) -> None:
        result = analyze_security(SecurityInputs("2330", bars=uptrend_bars))
        assert result.flow.value is None
        assert result.fundamental.value is None
        assert result.trend.available
        assert set(result.overall.dropped) == {"flow", "fundamental"}
        # only trend (0.4) and short-term (0.1) carry weight
        assert result.overall.coverage == pytest.approx(0.5)
        lo = min(result.trend.value, result.short_term.value)
        hi = max(result.trend.value, result.short_term.value)
        assert lo - 1e-9 <= result.overall.value <= hi + 1e-9

    def test_no_bars(self) -> None:
        result = analyze_security(
            SecurityInputs("2330", bars=[], as_of=dt.date(2025, 1, 2))
        )
        assert result.as_of == dt.date(2025, 1, 2)
        assert all(not s.available for s in result.factors.values())
        assert result.overall.value is None
        assert result.strategy.chosen_rule_id

    def test_risk_flags_are_union(self, full_inputs: SecurityInputs) -> None:
        result = analyze_security(full_inputs)
        union = frozenset().union(*(s.risk_flags for s in result.factors.values()))
        assert result.risk_flags == union

    def test_explicit_as_of(self, full_inputs: SecurityInputs) -> None:
        as_of = dt.date(2030, 1, 1)
        inputs = SecurityInputs(full_inputs.symbol, full_inputs.bars, as_of=as_of)
        assert analyze_security(inputs).as_of == as_of

    def test_backtest_on_request(self, full_inputs: SecurityInputs) -> None:
        result = analyze_security(full_inputs, run_backtest=True)
        assert result.backtest is not None
        assert result.backtest.window == PipelineConfig().backtest.window

    def test_technical_only_preset(self, full_inputs: SecurityInputs) -> None:
        result = analyze_security(full_inputs, config=PipelineConfig.for_technical_only())
        assert result.overall.used == ("trend", "short_term")


class TestCrashScaling:
    @pytest.fixture()
    def stressed(self) -> dict[str, MacroSeries]:
        return {
            "^VIX": MacroSeries("^VIX", (15.0,) * 25 + (40.0,) * 5),
            "SOXX": linear_series("SOXX", 100.0, 80.0),
            "DX-Y.NYB": linear_series("DX-Y.NYB", 100.0, 110.0),
        }

    def test_confidence_scaled(
        self, full_inputs: SecurityInputs, stressed: dict[str, MacroSeries]
    ) -> None:
        crash = evaluate_crash_risk(stressed)
        assert crash.score == pytest.approx(52.0)
        base = analyze_security(full_inputs)
        scaled = analyze_security(full_inputs, crash_risk=crash)
        expected = round_half_up(base.strategy.confidence * (1.0 - 52.0 / 150.0), 1)
        assert scaled.strategy.confidence == pytest.approx(expected)
        assert scaled.strategy.signal is base.strategy.signal

    def test_insufficient_crash_ignored(self, full_inputs: SecurityInputs) -> None:
        crash = evaluate_crash_risk({})
        base = analyze_security(full_inputs)
        result = analyze_security(full_inputs, crash_risk=crash)
        assert result.strategy.confidence == base.strategy.confidence


class TestPipelineConfig:
    def test_negative_weight(self) -> None:
        with pytest.raises(ConfigurationError):
            PipelineConfig(composite_weights={FactorName.TREND: -0.1})

    def test_zero_weights(self) -> None:
        with pytest.raises(ConfigurationError):
            PipelineConfig(composite_weights={FactorName.TREND: 0.0})

    def test_divisor_must_exceed_hundred(self) -> None:
        with pytest.raises(ConfigurationError):
            PipelineConfig(crash_confidence_divisor=100.0)
