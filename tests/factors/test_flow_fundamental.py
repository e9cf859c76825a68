"""Tests for the institutional flow and revenue fundamental scorers."""

from __future__ import annotations

import pytest

from stockpulse.factors import (
    FlowVerdict,
    RiskFlag,
    compute_flow_score,
    compute_fundamental_score,
)
from stockpulse.records import Bar, CounterpartyClass, FlowRecord, MarginRecord
from tests.helpers import make_flows, make_revenue


@pytest.fixture()
def dates(uptrend_bars: list[Bar]) -> list:
    return [b.date for b in uptrend_bars]


class TestFlowScore:
    def test_unavailable_without_records(self, dates: list) -> None:
        score = compute_flow_score(dates, [])
        assert score.value is None

    def test_unavailable_with_short_calendar(self, dates: list) -> None:
        score = compute_flow_score(dates[:29], make_flows(dates[:29], foreign=1e6))
        assert score.value is None

    def test_steady_foreign_buying(
        self, dates: list, margin_flat: list[MarginRecord]
    ) -> None:
        score = compute_flow_score(dates, make_flows(dates, foreign=1e6), margin_flat)
        # 0.7 * (0.6 * 95 + 0.4 * 50) + 0.3 * 55
        assert score.value == pytest.approx(70.4)
        assert score.metrics["verdict"] == FlowVerdict.NEUTRAL.value
        assert RiskFlag.FLOW_DATA_MISSING not in score.risk_flags
        assert score.metric("foreign_5d") == pytest.approx(5e6)

    def test_steady_foreign_selling(
        self, dates: list, margin_flat: list[MarginRecord]
    ) -> None:
        score = compute_flow_score(dates, make_flows(dates, foreign=-1e6), margin_flat)
        # 0.7 * (0.6 * 10 + 0.4 * 50) + 0.3 * 55
        assert score.value == pytest.approx(34.7)

    def test_missing_margin_flagged_and_neutral(self, dates: list) -> None:
        score = compute_flow_score(dates, make_flows(dates, foreign=1e6))
        assert RiskFlag.MARGIN_DATA_MISSING in score.risk_flags
        assert score.metric("margin_score") == 50.0

    def test_missing_flow_days_penalised(
        self, dates: list, margin_flat: list[MarginRecord]
    ) -> None:
        partial = make_flows(dates[:-10], foreign=1e6)
        score = compute_flow_score(dates, partial, margin_flat)
        assert RiskFlag.FLOW_DATA_MISSING in score.risk_flags
        assert score.component("missing_penalty").contribution == -10.0

    def test_reversal_down(self, dates: list, margin_flat: list[MarginRecord]) -> None:
        flows = make_flows(dates[:-5], foreign=1e6) + make_flows(dates[-5:], foreign=-1e6)
        score = compute_flow_score(dates, flows, margin_flat)
        assert RiskFlag.INST_REVERSAL_DOWN in score.risk_flags

    def test_margin_spike(self, dates: list) -> None:
        margin = [MarginRecord(d, 10_000_000.0) for d in dates[:-1]]
        margin.append(MarginRecord(dates[-1], 12_000_000.0))
        score = compute_flow_score(dates, make_flows(dates, foreign=1e6), margin)
        assert RiskFlag.MARGIN_SPIKE in score.risk_flags
        assert score.metric("margin_score") == 10.0

    @pytest.mark.parametrize(
        ("short_balance", "flagged"),
        [(500_400.0, False), (500_600.0, True)],
    )
    def test_short_squeeze_on_rounded_lots(
        self, dates: list, short_balance: float, flagged: bool
    ) -> None:
        margin = [MarginRecord(d, 10_000_000.0) for d in dates[:-1]]
        margin.append(MarginRecord(dates[-1], 10_000_000.0, short_balance))
        score = compute_flow_score(dates, make_flows(dates, foreign=1e6), margin)
        # 500.4 lots rounds to 500, which is not above the threshold
        assert (RiskFlag.SHORT_SQUEEZE_POTENTIAL in score.risk_flags) is flagged

    def test_distribution_into_retail_buying(self, dates: list) -> None:
        margin = [MarginRecord(d, 10_000_000.0) for d in dates[:-1]]
        margin.append(MarginRecord(dates[-1], 10_400_000.0))
        score = compute_flow_score(dates, make_flows(dates, foreign=-1e6), margin)
        assert score.metrics["verdict"] == FlowVerdict.DISTRIBUTION.value
        assert RiskFlag.RETAIL_TAKING_KNIVES in score.risk_flags
        assert score.component("synergy").contribution == -10.0

    def test_same_day_records_are_summed(self, dates: list) -> None:
        flows = make_flows(dates, foreign=1e6) + [
            FlowRecord(dates[-1], CounterpartyClass.FOREIGN, 0.0, 3e6)
        ]
        score = compute_flow_score(dates, flows)
        assert score.metric("foreign_5d") == pytest.approx(2e6)

    def test_range(self, dates: list) -> None:
        score = compute_flow_score(dates, make_flows(dates, foreign=5e7, trust=5e7))
        assert 0.0 <= score.value <= 100.0


class TestFundamentalScore:
    def test_unavailable_below_min_months(self) -> None:
        score = compute_fundamental_score(make_revenue([10.0] * 7))
        assert score.value is None

    def test_unavailable_with_too_few_usable(self) -> None:
        records = make_revenue([10.0] * 4 + [None] * 8)
        score = compute_fundamental_score(records)
        assert score.value is None

    def test_steady_high_growth(self) -> None:
        score = compute_fundamental_score(make_revenue([30.0] * 12))
        # 50 + 30 tanh(1.2) + 4 bonus
        assert score.value == pytest.approx(79.0)
        assert score.metrics["yoy_direction"] == "flat"

    def test_acceleration_capped(self) -> None:
        score = compute_fundamental_score(make_revenue([0.0] * 9 + [25.0] * 3))
        assert score.component("acceleration").contribution == 10.0
        assert score.value == pytest.approx(86.8, abs=0.05)

    def test_shrinking_revenue(self) -> None:
        score = compute_fundamental_score(make_revenue([-20.0] * 12))
        assert RiskFlag.REV_TURN_NEGATIVE in score.risk_flags
        assert score.value == pytest.approx(22.1)

    def test_deceleration_flag(self) -> None:
        score = compute_fundamental_score(make_revenue([30.0] * 9 + [10.0] * 3))
        assert RiskFlag.GROWTH_DECELERATING in score.risk_flags
        assert score.metric("yoy_trend") == pytest.approx(-20.0)

    def test_bounds(self) -> None:
        assert compute_fundamental_score(make_revenue([500.0] * 12)).value <= 95.0
        collapse = make_revenue([90.0] * 9 + [-90.0] * 3)
        assert compute_fundamental_score(collapse).value == 10.0

    def test_duplicate_months_do_not_count_twice(self) -> None:
        records = make_revenue([10.0] * 6)
        score = compute_fundamental_score(records + records)
        assert score.value is None
        assert "6 months" in score.reasons[0]
