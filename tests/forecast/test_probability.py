"""Tests for the logistic forecaster and calibration transform."""

from __future__ import annotations

import pytest

from stockpulse.exceptions import ConfigurationError
from stockpulse.forecast import (
    CalibrationModel,
    ForecastConfig,
    Horizon,
    HorizonWeights,
    apply_calibration,
    build_features,
    compute_raw_probabilities,
    predict_probabilities,
)


def _features(**overrides: float | None):
    kwargs = {
        "trend": 50.0,
        "flow": 50.0,
        "fundamental": 50.0,
        "catalyst": 0.0,
        "volatility": 50.0,
        "opportunity": 50.0,
        "pullback_risk": 50.0,
        "volume_spike": 1.0,
        "gap": 0.0,
    }
    kwargs.update(overrides)
    return build_features(**kwargs)


class TestBuildFeatures:
    def test_neutral_inputs_map_to_zero(self) -> None:
        f = _features()
        assert f.trend == 0.0
        assert f.news == 0.0
        assert f.volume_spike == 0.0
        assert f.gap == 0.0

    def test_missing_scores_are_neutral(self) -> None:
        f = _features(fundamental=None, flow=None, volume_spike=None, gap=None)
        assert f.fundamental == 0.0
        assert f.flow == 0.0
        assert f.volume_spike == 0.0

    def test_spike_and_gap_capped(self) -> None:
        f = _features(volume_spike=10.0, gap=-0.2)
        assert f.volume_spike == 1.0
        assert f.gap == 1.0


class TestRawProbabilities:
    def test_neutral_is_fifty(self) -> None:
        raw = compute_raw_probabilities(_features())
        assert all(p == 50.0 for p in raw.up.values())
        assert raw.big_move == 50.0

    def test_bullish_inputs(self) -> None:
        f = _features(
            trend=100.0,
            flow=100.0,
            fundamental=100.0,
            catalyst=100.0,
            opportunity=100.0,
            pullback_risk=0.0,
        )
        raw = compute_raw_probabilities(f)
        # sigmoid(0.6 + 0.8 + 0.4 + 0.4 + 0.5 + 0.3)
        assert raw.up[Horizon.FIVE_DAY] == pytest.approx(95.3)
        assert raw.logits[Horizon.FIVE_DAY] == pytest.approx(3.0)

    def test_breakdown_sums_to_logit(self) -> None:
        raw = compute_raw_probabilities(_features(trend=80.0, pullback_risk=70.0))
        for horizon in Horizon:
            total = sum(c.contribution for c in raw.breakdown[horizon])
            assert total == pytest.approx(raw.logits[horizon])

    def test_pullback_risk_lowers_probability(self) -> None:
        low = compute_raw_probabilities(_features(pullback_risk=20.0))
        high = compute_raw_probabilities(_features(pullback_risk=90.0))
        for horizon in Horizon:
            assert high.up[horizon] < low.up[horizon]

    def test_big_move_uses_absolute_news(self) -> None:
        up = compute_raw_probabilities(_features(catalyst=80.0))
        down = compute_raw_probabilities(_features(catalyst=-80.0))
        assert up.big_move == down.big_move > 50.0

    def test_horizon_weights_required(self) -> None:
        with pytest.raises(ConfigurationError):
            ForecastConfig(horizons={Horizon.ONE_DAY: HorizonWeights(1, 1, 1, 1, -1, 1)})

    def test_positive_risk_weight_rejected(self) -> None:
        weights = HorizonWeights(1, 1, 1, 1, 0.5, 1)
        with pytest.raises(ConfigurationError):
            ForecastConfig(horizons={h: weights for h in Horizon})


class TestCalibrationTransform:
    def test_identity_leaves_raw_unchanged(self) -> None:
        forecast = predict_probabilities(_features(trend=90.0, opportunity=70.0))
        assert forecast.calibrated == forecast.raw
        assert forecast.calibration.is_identity

    def test_affine_and_clamped(self) -> None:
        assert apply_calibration(50.0, 1.0, 5.0) == 55.0
        assert apply_calibration(95.3, 2.0, -50.0) == 100.0
        assert apply_calibration(10.0, 1.0, -20.0) == 0.0

    def test_model_applied_to_every_horizon(self) -> None:
        model = CalibrationModel(slope=1.0, intercept=5.0, sample_size=100)
        forecast = predict_probabilities(_features(), model)
        assert forecast.up_1d == forecast.up_3d == forecast.up_5d == 55.0
        assert forecast.up("5d") == 55.0
        # The large-move probability is never calibrated.
        assert forecast.big_move == 50.0
