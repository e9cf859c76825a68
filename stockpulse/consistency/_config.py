"""Configuration for the directional consistency aggregator."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from stockpulse.exceptions import ConfigurationError


class ConsistencyLevel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ConsensusDirection(str, Enum):
    BULLISH = "bullish"
    BEARISH = "bearish"
    UNCLEAR = "unclear"


@dataclass(frozen=True)
class ConsistencyConfig:
    """Weights and thresholds of the consistency aggregator.

    Parameters
    ----------
    trend_weight, flow_weight, fundamental_weight, catalyst_weight,
    opportunity_weight, probability_weight : float
        Signal weights; need not sum to 1.
    direction_scale : float
        ``(score - 50) / direction_scale`` maps a 0-100 score to a
        direction on ``[-1, 1]``.
    catalyst_scale : float
        ``catalyst / catalyst_scale`` maps the catalyst to a direction.
    neutral_band : float
        ``|consensus|`` below which the consensus is unclear.
    contradiction_threshold : float
        Minimum magnitude of an opposing signal to count as a contradiction.
    agreement_bonus, unclear_penalty : float
        Score bonus for same-sign agreement and penalty for no consensus.
    high_threshold, medium_threshold : float
        Level buckets.
    """

    trend_weight: float = 1.0
    flow_weight: float = 0.9
    fundamental_weight: float = 0.6
    catalyst_weight: float = 0.9
    opportunity_weight: float = 1.0
    probability_weight: float = 1.0
    direction_scale: float = 25.0
    catalyst_scale: float = 50.0
    neutral_band: float = 0.15
    contradiction_threshold: float = 0.4
    agreement_bonus: float = 15.0
    unclear_penalty: float = 12.0
    high_threshold: float = 75.0
    medium_threshold: float = 55.0

    def __post_init__(self) -> None:
        weights = (
            self.trend_weight,
            self.flow_weight,
            self.fundamental_weight,
            self.catalyst_weight,
            self.opportunity_weight,
            self.probability_weight,
        )
        if any(w < 0 for w in weights) or sum(weights) <= 0:
            raise ConfigurationError(
                "consistency weights must be non-negative with a positive sum"
            )
        if self.direction_scale <= 0 or self.catalyst_scale <= 0:
            raise ConfigurationError("direction scales must be positive")
        if self.medium_threshold > self.high_threshold:
            raise ConfigurationError("medium_threshold must not exceed high_threshold")
