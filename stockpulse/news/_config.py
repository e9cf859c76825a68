"""Configuration for headline classification and catalyst scoring."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from stockpulse.exceptions import ConfigurationError


class NewsCategory(str, Enum):
    """Headline category, assigned by the first matching keyword group."""

    EARNINGS = "earnings"
    GUIDANCE = "guidance"
    RISK = "risk"
    MNA = "mna"
    GOV_REG = "gov_reg"
    MACRO = "macro"
    INDUSTRY = "industry"
    OTHER = "other"


class NewsImpact(str, Enum):
    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"


# Classification priority; a headline matching several groups takes the
# first one listed here.
CATEGORY_KEYWORDS: dict[NewsCategory, tuple[str, ...]] = {
    NewsCategory.EARNINGS: (
        "財報", "法說", "eps", "季報", "年報", "損益", "毛利", "營收",
        "yoy", "mom", "earnings", "revenue", "quarterly results",
    ),
    NewsCategory.GUIDANCE: (
        "展望", "指引", "上修", "下修", "guidance", "outlook", "forecast",
    ),
    NewsCategory.RISK: (
        "裁罰", "調查", "訴訟", "違規", "資安", "停工", "火災", "缺料", "警示",
        "lawsuit", "investigation", "probe", "recall", "fined", "outage",
    ),
    NewsCategory.MNA: (
        "併購", "收購", "合併", "投資", "入股", "m&a", "acquire", "merger",
    ),
    NewsCategory.GOV_REG: (
        "政策", "法規", "制裁", "禁令", "特許", "regulation", "sanction", "ban",
    ),
    NewsCategory.MACRO: (
        "央行", "升息", "降息", "通膨", "cpi", "匯率", "關稅",
        "central bank", "rate hike", "rate cut", "inflation", "tariff",
    ),
    NewsCategory.INDUSTRY: (
        "供應鏈", "產業", "競品", "同業", "市佔", "supply chain", "industry",
        "market share",
    ),
}


@dataclass(frozen=True)
class CatalystConfig:
    """Configuration for the news catalyst score.

    Parameters
    ----------
    lookback_days : int
        Headlines older than this (in calendar days) are ignored.
    decay_days : float
        Time constant of the ``exp(-age / decay_days)`` weight.
    keyword_impact : float
        Impact of a positive or negative keyword hit.
    earnings_impact : float
        Impact of an earnings beat or miss phrase.
    score_divisor : float
        Divisor applied to the decayed sum before clamping.
    neutral_step, neutral_cap : float
        All-neutral coverage scores ``clamp(step * n, -cap, cap)``.
    top_n : int
        Headlines kept per side in the result.
    """

    lookback_days: int = 7
    decay_days: float = 4.0
    keyword_impact: float = 50.0
    earnings_impact: float = 70.0
    score_divisor: float = 2.0
    neutral_step: float = 5.0
    neutral_cap: float = 20.0
    top_n: int = 3
    positive_keywords: tuple[str, ...] = (
        "上修", "創新高", "大增", "接單", "利多", "突破", "獲利", "成長",
        "upgrade", "record high", "surge", "new order", "wins contract",
        "profit", "profits", "growth",
    )
    negative_keywords: tuple[str, ...] = (
        "下修", "衰退", "虧損", "違約", "裁罰", "風險", "警示",
        "downgrade", "decline", "loss", "losses", "default", "penalty", "warning",
    )
    beat_phrases: tuple[str, ...] = (
        "優於預期", "beats estimates", "better than expected", "tops estimates",
    )
    miss_phrases: tuple[str, ...] = (
        "不如預期", "misses estimates", "worse than expected", "falls short",
    )

    def __post_init__(self) -> None:
        if self.lookback_days < 0:
            raise ConfigurationError("lookback_days must be non-negative")
        if self.decay_days <= 0 or self.score_divisor <= 0:
            raise ConfigurationError("decay_days and score_divisor must be positive")
        if self.top_n <= 0:
            raise ConfigurationError("top_n must be positive")
