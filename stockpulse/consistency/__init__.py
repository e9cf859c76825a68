"""Directional consistency across factor, news and forecast signals."""

from stockpulse.consistency._aggregator import (
    ConsistencyResult,
    SignalDirection,
    compute_consistency,
    score_to_direction,
)
from stockpulse.consistency._config import (
    ConsensusDirection,
    ConsistencyConfig,
    ConsistencyLevel,
)

__all__ = [
    "ConsensusDirection",
    "ConsistencyConfig",
    "ConsistencyLevel",
    "ConsistencyResult",
    "SignalDirection",
    "compute_consistency",
    "score_to_direction",
]
