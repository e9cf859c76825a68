"""Tests for replay calibration fitting and the calibration cache."""

from __future__ import annotations

import threading

import numpy as np
import pytest

from stockpulse.exceptions import ConfigurationError
from stockpulse.forecast import (
    CalibrationCache,
    CalibrationConfig,
    CalibrationModel,
    CalibrationSample,
    build_calibration_model,
    fit_calibration,
    replay_samples,
)
from tests.helpers import make_bars


def _monotone_samples(n: int = 400) -> list[CalibrationSample]:
    """Outcomes that become more likely as the raw probability rises."""
    rng = np.random.default_rng(42)
    raw = rng.uniform(20.0, 80.0, n)
    outcomes = rng.uniform(0.0, 100.0, n) < raw
    return [CalibrationSample(float(p), int(o)) for p, o in zip(raw, outcomes)]


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TestFitCalibration:
    def test_underfit_returns_identity(self) -> None:
        model = fit_calibration(_monotone_samples(49))
        assert model == CalibrationModel.identity()
        assert model.is_identity

    def test_zero_variance_returns_identity(self) -> None:
        samples = [CalibrationSample(60.0, i % 2) for i in range(100)]
        assert fit_calibration(samples).is_identity

    def test_positive_slope_on_monotone_data(self) -> None:
        model = fit_calibration(_monotone_samples())
        assert model.slope > 0
        assert model.sample_size == 400
        assert not model.is_identity

    def test_coefficients_rounded(self) -> None:
        model = fit_calibration(_monotone_samples())
        assert model.slope == round(model.slope, 4)
        assert model.intercept == round(model.intercept, 4)

    def test_bins_cover_samples(self) -> None:
        model = fit_calibration(_monotone_samples())
        assert len(model.bins) == 10
        assert sum(b.total for b in model.bins) == 400
        assert model.bins[0].label == "0-10"
        for b in model.bins:
            assert 0.0 <= b.win_rate <= 100.0
            if b.total == 0:
                assert b.win_rate == 0.0

    def test_invalid_config(self) -> None:
        with pytest.raises(ConfigurationError):
            CalibrationConfig(min_bars=100, start_index=130)


class TestReplay:
    def test_sample_count_and_range(self) -> None:
        bars = make_bars(150, drift=0.001)
        samples = replay_samples(bars)
        assert len(samples) == 150 - 5 - 130
        for s in samples:
            assert 0.0 <= s.raw_probability <= 100.0
            assert s.outcome in (0, 1)

    def test_outcome_uses_forward_close(self) -> None:
        bars = make_bars(150, drift=0.001)
        samples = replay_samples(bars)
        expected = int(bars[135].close > bars[130].close)
        assert samples[0].outcome == expected

    def test_too_short_history_yields_nothing(self) -> None:
        assert replay_samples(make_bars(100)) == []


class TestBuildCalibrationModel:
    def test_short_histories_skipped(self) -> None:
        model = build_calibration_model({"A": make_bars(100), "B": make_bars(139)})
        assert model.is_identity
        assert model.sample_size == 0

    def test_pools_reference_securities(self) -> None:
        histories = {
            "A": make_bars(200, drift=0.002, seed=1),
            "B": make_bars(200, drift=-0.001, seed=2),
            "C": make_bars(200, drift=0.0, seed=3),
        }
        model = build_calibration_model(histories, CalibrationConfig(max_workers=2))
        assert model.sample_size == 3 * (200 - 5 - 130)
        assert np.isfinite(model.slope)
        assert np.isfinite(model.intercept)


class TestCalibrationCache:
    def test_builds_once_within_ttl(self) -> None:
        clock = FakeClock()
        calls = []

        def builder() -> CalibrationModel:
            calls.append(clock.now)
            return CalibrationModel(slope=0.9, intercept=3.0, sample_size=60)

        cache = CalibrationCache(builder, ttl_seconds=100.0, clock=clock)
        first = cache.get()
        clock.now = 99.0
        assert cache.get() is first
        assert len(calls) == 1
        assert cache.built_at == 0.0

    def test_rebuilds_after_expiry(self) -> None:
        clock = FakeClock()
        models = iter(
            [CalibrationModel(slope=0.9), CalibrationModel(slope=0.8)]
        )
        cache = CalibrationCache(lambda: next(models), ttl_seconds=10.0, clock=clock)
        assert cache.get().slope == 0.9
        clock.now = 10.0
        assert cache.peek() is None
        assert cache.get().slope == 0.8
        assert cache.built_at == 10.0

    def test_builder_failure_falls_back_to_identity(self) -> None:
        def builder() -> CalibrationModel:
            raise RuntimeError("no data")

        cache = CalibrationCache(builder, ttl_seconds=10.0, clock=FakeClock())
        assert cache.get().is_identity

    def test_invalidate(self) -> None:
        clock = FakeClock()
        calls = []

        def builder() -> CalibrationModel:
            calls.append(1)
            return CalibrationModel(slope=0.7)

        cache = CalibrationCache(builder, ttl_seconds=10.0, clock=clock)
        cache.get()
        cache.invalidate()
        assert cache.peek() is None
        cache.get()
        assert len(calls) == 2

    def test_non_positive_ttl_rejected(self) -> None:
        with pytest.raises(ValueError):
            CalibrationCache(CalibrationModel.identity, ttl_seconds=0)

    def test_stale_model_served_during_rebuild(self) -> None:
        clock = FakeClock()
        started = threading.Event()
        release = threading.Event()
        stale = CalibrationModel(slope=0.9)
        fresh = CalibrationModel(slope=0.8)
        calls = []

        def builder() -> CalibrationModel:
            calls.append(1)
            if len(calls) == 1:
                return stale
            started.set()
            assert release.wait(timeout=5)
            return fresh

        cache = CalibrationCache(builder, ttl_seconds=10.0, clock=clock)
        assert cache.get() is stale
        clock.now = 20.0

        results = []
        worker = threading.Thread(target=lambda: results.append(cache.get()))
        worker.start()
        assert started.wait(timeout=5)

        # A concurrent caller gets the previous model without waiting.
        assert cache.get() is stale
        release.set()
        worker.join(timeout=5)

        assert results == [fresh]
        assert cache.get() is fresh
        assert len(calls) == 2
