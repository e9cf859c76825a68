"""Tests for the directional consistency aggregator."""

from __future__ import annotations

import pytest

from stockpulse.consistency import (
    ConsensusDirection,
    ConsistencyConfig,
    ConsistencyLevel,
    compute_consistency,
    score_to_direction,
)
from stockpulse.exceptions import ConfigurationError


def _run(**overrides: float | None):
    kwargs = {
        "trend": 50.0,
        "flow": 50.0,
        "fundamental": 50.0,
        "catalyst": 0.0,
        "opportunity": 50.0,
        "probability_5d": 50.0,
    }
    kwargs.update(overrides)
    return compute_consistency(**kwargs)


class TestScoreToDirection:
    def test_mapping(self) -> None:
        assert score_to_direction(75.0) == 1.0
        assert score_to_direction(62.5) == 0.5
        assert score_to_direction(0.0) == -1.0

    def test_missing_is_zero(self) -> None:
        assert score_to_direction(None) == 0.0
        assert score_to_direction(float("nan")) == 0.0


class TestComputeConsistency:
    def test_full_bullish_agreement(self) -> None:
        result = _run(
            trend=80.0,
            flow=80.0,
            fundamental=80.0,
            catalyst=60.0,
            opportunity=80.0,
            probability_5d=80.0,
        )
        assert result.score == 100.0
        assert result.level is ConsistencyLevel.HIGH
        assert result.direction is ConsensusDirection.BULLISH
        assert result.disagreement == pytest.approx(0.0)
        assert result.same_sign_ratio == pytest.approx(1.0)
        assert result.contradictions == ()

    def test_all_neutral_is_unclear(self) -> None:
        result = _run()
        assert result.direction is ConsensusDirection.UNCLEAR
        assert result.same_sign_ratio == 0.5
        assert result.score == pytest.approx(88.0)

    def test_split_signals_score_low(self) -> None:
        result = _run(
            trend=100.0,
            flow=0.0,
            fundamental=100.0,
            catalyst=-50.0,
            opportunity=100.0,
            probability_5d=0.0,
        )
        assert result.direction is ConsensusDirection.UNCLEAR
        assert result.level is ConsistencyLevel.LOW
        assert result.score < 20.0

    def test_contradiction_reported(self) -> None:
        result = _run(
            trend=25.0,
            flow=25.0,
            fundamental=25.0,
            catalyst=-50.0,
            opportunity=25.0,
            probability_5d=90.0,
        )
        assert result.direction is ConsensusDirection.BEARISH
        assert len(result.contradictions) == 1
        assert result.contradictions[0].startswith("5D probability bullish")

    def test_unavailable_signal_keeps_weight(self) -> None:
        result = _run(
            trend=80.0,
            flow=80.0,
            fundamental=None,
            catalyst=60.0,
            opportunity=80.0,
            probability_5d=80.0,
        )
        missing = next(s for s in result.signals if s.key == "fundamental")
        assert not missing.available
        assert missing.direction == 0.0
        assert result.consensus == pytest.approx(4.8 / 5.4)
        assert any("Fundamental data missing" in r for r in result.reasons)

    def test_bounds(self) -> None:
        result = _run(trend=0.0, catalyst=100.0, probability_5d=100.0)
        assert 0.0 <= result.score <= 100.0
        assert 0.0 <= result.disagreement <= 1.0

    def test_invalid_config(self) -> None:
        with pytest.raises(ConfigurationError):
            ConsistencyConfig(trend_weight=-1.0)
        with pytest.raises(ConfigurationError):
            ConsistencyConfig(medium_threshold=90.0, high_threshold=80.0)
