"""Headline classification and the time-decayed catalyst score."""

from __future__ import annotations

import datetime as dt
import logging
import math
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from stockpulse._numeric import clamp, round_half_up
from stockpulse.news._config import (
    CATEGORY_KEYWORDS,
    CatalystConfig,
    NewsCategory,
    NewsImpact,
)
from stockpulse.records import NewsItem

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoredHeadline:
    """A headline inside the lookback window with its weighted impact."""

    item: NewsItem
    category: NewsCategory
    impact: NewsImpact
    impact_score: float
    decay_weight: float
    weighted_score: float


@dataclass(frozen=True)
class CatalystScore:
    """Net news catalyst on ``[-100, 100]``.

    Attributes
    ----------
    value : float
        0 when there is no recent news.
    bullish_count, bearish_count : int
        Headlines with positive / negative impact.
    top_bullish, top_bearish : tuple[ScoredHeadline, ...]
        Strongest headlines per side.
    timeline : tuple[ScoredHeadline, ...]
        Most recent headlines first, at most ten.
    """

    value: float = 0.0
    bullish_count: int = 0
    bearish_count: int = 0
    top_bullish: tuple[ScoredHeadline, ...] = ()
    top_bearish: tuple[ScoredHeadline, ...] = ()
    timeline: tuple[ScoredHeadline, ...] = ()

    @property
    def reasons(self) -> tuple[str, ...]:
        if not self.timeline:
            return ("No recent headlines.",)
        lines = [f"Net news catalyst {self.value:+.0f}."]
        lines.extend(f"Bullish: {h.item.title}" for h in self.top_bullish[:1])
        lines.extend(f"Bearish: {h.item.title}" for h in self.top_bearish[:1])
        return tuple(lines)


def _matches(text: str, keyword: str) -> bool:
    # ASCII keywords match on word boundaries; CJK keywords as substrings.
    if keyword.isascii():
        return re.search(rf"\b{re.escape(keyword)}\b", text) is not None
    return keyword in text


def _contains_any(text: str, keywords: Iterable[str]) -> bool:
    return any(_matches(text, k) for k in keywords)


def classify_news(title: str, summary: str = "") -> NewsCategory:
    """Assign the first category whose keywords appear in the text."""
    text = f"{title} {summary}".lower()
    for category, keywords in CATEGORY_KEYWORDS.items():
        if _contains_any(text, keywords):
            return category
    return NewsCategory.OTHER


def headline_impact(
    title: str,
    category: NewsCategory,
    config: CatalystConfig | None = None,
) -> float:
    """Keyword impact of a single headline on ``[-100, 100]``."""
    if config is None:
        config = CatalystConfig()
    text = title.lower()
    impact = 0.0
    if _contains_any(text, config.positive_keywords):
        impact += config.keyword_impact
    if _contains_any(text, config.negative_keywords):
        impact -= config.keyword_impact
    if category is NewsCategory.EARNINGS and _contains_any(text, config.beat_phrases):
        impact += config.earnings_impact
    if _contains_any(text, config.miss_phrases):
        impact -= config.earnings_impact
    return clamp(impact, -100.0, 100.0)


def _impact_of(score: float) -> NewsImpact:
    if score > 0:
        return NewsImpact.BULLISH
    if score < 0:
        return NewsImpact.BEARISH
    return NewsImpact.NEUTRAL


def compute_catalyst_score(
    news: Sequence[NewsItem],
    as_of: dt.date,
    config: CatalystConfig | None = None,
) -> CatalystScore:
    """Aggregate recent headlines into a catalyst score.

    Each headline within ``config.lookback_days`` of ``as_of`` gets a
    keyword impact weighted by ``exp(-age_days / decay_days)``.  The
    score is ``clamp(round(sum / score_divisor), -100, 100)``; when every
    headline is neutral the mere coverage scores
    ``clamp(neutral_step * n, -neutral_cap, neutral_cap)``.

    Parameters
    ----------
    news : Sequence[NewsItem]
        Headlines in any order.
    as_of : date
        Evaluation date; headlines dated after it are ignored.
    config : CatalystConfig or None
        Scoring configuration.

    Returns
    -------
    CatalystScore
    """
    if config is None:
        config = CatalystConfig()

    scored: list[ScoredHeadline] = []
    raw = 0.0
    for item in news:
        age = (as_of - item.date).days
        if age < 0 or age > config.lookback_days:
            continue
        category = classify_news(item.title, item.summary)
        impact = headline_impact(item.title, category, config)
        decay = math.exp(-age / config.decay_days)
        weighted = impact * decay
        raw += weighted
        scored.append(
            ScoredHeadline(
                item=item,
                category=category,
                impact=_impact_of(impact),
                impact_score=impact,
                decay_weight=decay,
                weighted_score=weighted,
            )
        )

    if not scored:
        return CatalystScore()

    scored.sort(key=lambda h: h.item.date, reverse=True)
    bullish = sorted(
        (h for h in scored if h.impact is NewsImpact.BULLISH),
        key=lambda h: (-h.weighted_score, -h.item.date.toordinal()),
    )
    bearish = sorted(
        (h for h in scored if h.impact is NewsImpact.BEARISH),
        key=lambda h: (h.weighted_score, -h.item.date.toordinal()),
    )

    if all(h.impact_score == 0 for h in scored):
        value = clamp(
            config.neutral_step * len(scored), -config.neutral_cap, config.neutral_cap
        )
    else:
        value = clamp(round_half_up(raw / config.score_divisor), -100.0, 100.0)

    logger.debug(
        "Catalyst %.0f from %d headlines (%d bullish, %d bearish)",
        value,
        len(scored),
        len(bullish),
        len(bearish),
    )
    return CatalystScore(
        value=value,
        bullish_count=len(bullish),
        bearish_count=len(bearish),
        top_bullish=tuple(bullish[: config.top_n]),
        top_bearish=tuple(bearish[: config.top_n]),
        timeline=tuple(scored[:10]),
    )
