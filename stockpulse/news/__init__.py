"""News headline classification and catalyst scoring."""

from stockpulse.news._catalyst import (
    CatalystScore,
    ScoredHeadline,
    classify_news,
    compute_catalyst_score,
    headline_impact,
)
from stockpulse.news._config import (
    CATEGORY_KEYWORDS,
    CatalystConfig,
    NewsCategory,
    NewsImpact,
)

__all__ = [
    # Config
    "CATEGORY_KEYWORDS",
    "CatalystConfig",
    "NewsCategory",
    "NewsImpact",
    # Scoring
    "CatalystScore",
    "ScoredHeadline",
    "classify_news",
    "compute_catalyst_score",
    "headline_impact",
]
