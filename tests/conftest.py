"""Shared test fixtures for the stockpulse test suite."""

from __future__ import annotations

import pytest

from stockpulse.records import Bar, MarginRecord
from tests.helpers import make_bars


@pytest.fixture()
def uptrend_bars() -> list[Bar]:
    """200 bars, steady +0.5 % drift, seed 42."""
    return make_bars(200, drift=0.005, scale=0.005)


@pytest.fixture()
def downtrend_bars() -> list[Bar]:
    """200 bars, steady -0.5 % drift, seed 42."""
    return make_bars(200, drift=-0.005, scale=0.005)


@pytest.fixture()
def flat_bars() -> list[Bar]:
    """200 bars of driftless noise, seed 42."""
    return make_bars(200, drift=0.0, scale=0.01)


@pytest.fixture()
def margin_flat(uptrend_bars: list[Bar]) -> list[MarginRecord]:
    return [MarginRecord(b.date, 10_000_000.0) for b in uptrend_bars]
