"""Tests for input records, normalisers and numeric helpers."""

from __future__ import annotations

import datetime as dt

import pandas as pd
import pytest

from stockpulse._numeric import clamp, linear_map, round_half_up, safe_div
from stockpulse.exceptions import DataError
from stockpulse.records import (
    Bar,
    CounterpartyClass,
    FlowRecord,
    MacroSeries,
    MarginRecord,
    RevenueRecord,
    bars_to_frame,
    normalize_bars,
    normalize_flows,
    normalize_margin,
    normalize_revenue,
)


class TestBar:
    def test_accepts_iso_string_date(self) -> None:
        bar = Bar("2024-03-01", 10.0, 11.0, 9.5, 10.5, 1000)
        assert bar.date == dt.date(2024, 3, 1)
        assert isinstance(bar.volume, float)

    def test_accepts_timestamp(self) -> None:
        bar = Bar(pd.Timestamp("2024-03-01"), 10.0, 11.0, 9.5, 10.5)
        assert bar.date == dt.date(2024, 3, 1)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"close": 0.0},
            {"close": float("nan")},
            {"open": -1.0},
            {"volume": -5.0},
            {"low": 12.0},
        ],
    )
    def test_rejects_invalid_values(self, kwargs: dict) -> None:
        base = {
            "date": "2024-03-01",
            "open": 10.0,
            "high": 11.0,
            "low": 9.5,
            "close": 10.5,
            "volume": 100.0,
        }
        base.update(kwargs)
        with pytest.raises(DataError):
            Bar(**base)

    def test_rejects_bad_date(self) -> None:
        with pytest.raises(DataError):
            Bar("not-a-date", 10.0, 11.0, 9.5, 10.5)


class TestOtherRecords:
    def test_flow_net_and_counterparty_coercion(self) -> None:
        record = FlowRecord("2024-03-01", "foreign", 500.0, 200.0)
        assert record.counterparty is CounterpartyClass.FOREIGN
        assert record.net == 300.0

    def test_revenue_month_validated(self) -> None:
        with pytest.raises(DataError):
            RevenueRecord(2024, 13, 5.0)

    def test_margin_negative_rejected(self) -> None:
        with pytest.raises(DataError):
            MarginRecord("2024-03-01", -1.0)

    def test_macro_series_points(self) -> None:
        series = MacroSeries("^VIX", tuple(range(1, 22)))
        assert series.points == 21
        assert series.ok
        assert not MacroSeries("^VIX", (1.0, 2.0)).ok

    def test_macro_series_date_length_mismatch(self) -> None:
        with pytest.raises(DataError):
            MacroSeries("^VIX", (1.0, 2.0), ("2024-01-01",))


class TestNormalizers:
    def test_bars_sorted_and_deduplicated_last_wins(self) -> None:
        first = Bar("2024-01-03", 10, 11, 9, 10)
        corrected = Bar("2024-01-03", 10, 12, 9, 11)
        earlier = Bar("2024-01-02", 9, 10, 8, 9)
        result = normalize_bars([first, earlier, corrected])
        assert [b.date for b in result] == [dt.date(2024, 1, 2), dt.date(2024, 1, 3)]
        assert result[-1].close == 11

    def test_flows_one_per_date_and_class(self) -> None:
        records = [
            FlowRecord("2024-01-02", "foreign", 1, 0),
            FlowRecord("2024-01-02", "foreign", 5, 0),
            FlowRecord("2024-01-01", "dealer", 1, 0),
        ]
        result = normalize_flows(records)
        assert len(result) == 2
        assert result[0].date == dt.date(2024, 1, 1)
        assert result[1].buy_volume == 5

    def test_margin_sorted(self) -> None:
        result = normalize_margin(
            [MarginRecord("2024-01-03", 2.0), MarginRecord("2024-01-01", 1.0)]
        )
        assert [m.margin_balance for m in result] == [1.0, 2.0]

    def test_revenue_yoy_derived_from_prior_year(self) -> None:
        records = [
            RevenueRecord(2024, 1, revenue=120.0),
            RevenueRecord(2023, 1, revenue=100.0),
        ]
        result = normalize_revenue(records)
        assert result[0].period == (2023, 1)
        assert result[0].yoy_growth_pct is None
        assert result[1].yoy_growth_pct == pytest.approx(20.0)

    def test_revenue_explicit_yoy_kept(self) -> None:
        result = normalize_revenue([RevenueRecord(2024, 1, yoy_growth_pct=7.0, revenue=1.0)])
        assert result[0].yoy_growth_pct == 7.0

    def test_bars_to_frame(self) -> None:
        frame = bars_to_frame(
            [Bar("2024-01-03", 10, 11, 9, 10), Bar("2024-01-02", 9, 10, 8, 9)]
        )
        assert list(frame.columns) == ["open", "high", "low", "close", "volume"]
        assert frame.index.is_monotonic_increasing

    def test_bars_to_frame_empty(self) -> None:
        assert bars_to_frame([]).empty


class TestNumeric:
    def test_round_half_up_matches_math_round(self) -> None:
        assert round_half_up(2.5) == 3.0
        assert round_half_up(-2.5) == -2.0
        assert round_half_up(0.25, 1) == 0.3

    def test_safe_div_guards(self) -> None:
        assert safe_div(1.0, 0.0) is None
        assert safe_div(1.0, float("inf")) is None
        assert safe_div(1.0, 4.0) == 0.25

    def test_linear_map_degenerate(self) -> None:
        assert linear_map(5.0, 1.0, 1.0, 10.0, 20.0) == 10.0
        assert linear_map(0.5, 0.0, 1.0, 10.0, 20.0) == 15.0

    def test_clamp(self) -> None:
        assert clamp(120.0, 0.0, 100.0) == 100.0
        assert clamp(-3.0, 0.0, 100.0) == 0.0
