"""Tests for headline classification and the catalyst score."""

from __future__ import annotations

import datetime as dt
import math

import pytest

from stockpulse.news import (
    CatalystConfig,
    NewsCategory,
    NewsImpact,
    classify_news,
    compute_catalyst_score,
    headline_impact,
)
from stockpulse.records import NewsItem

AS_OF = dt.date(2024, 6, 14)


def _item(title: str, days_ago: int = 0) -> NewsItem:
    return NewsItem(AS_OF - dt.timedelta(days=days_ago), title)


class TestClassifyNews:
    @pytest.mark.parametrize(
        ("title", "expected"),
        [
            ("Quarterly results beat on strong demand", NewsCategory.EARNINGS),
            ("Company raises full-year guidance", NewsCategory.GUIDANCE),
            ("Regulator opens probe into accounting", NewsCategory.RISK),
            ("Chipmaker agrees merger with rival", NewsCategory.MNA),
            ("Government announces export ban", NewsCategory.GOV_REG),
            ("Central bank signals rate cut", NewsCategory.MACRO),
            ("Supply chain tightens for substrates", NewsCategory.INDUSTRY),
            ("Chairman attends charity gala", NewsCategory.OTHER),
            ("台積電法說會釋出樂觀展望", NewsCategory.EARNINGS),
            ("公司遭主管機關裁罰", NewsCategory.RISK),
        ],
    )
    def test_categories(self, title: str, expected: NewsCategory) -> None:
        assert classify_news(title) is expected

    def test_first_group_wins(self) -> None:
        # Both an earnings and a macro keyword; earnings is listed first.
        assert classify_news("Earnings hit by inflation") is NewsCategory.EARNINGS

    def test_ascii_keywords_need_word_boundaries(self) -> None:
        assert classify_news("Local bank expands lending") is NewsCategory.OTHER

    def test_summary_is_searched(self) -> None:
        assert classify_news("Update", summary="tariff changes") is NewsCategory.MACRO


class TestHeadlineImpact:
    def test_earnings_beat(self) -> None:
        title = "Quarterly results beats estimates"
        assert headline_impact(title, NewsCategory.EARNINGS) == 70.0

    def test_beat_only_counts_for_earnings(self) -> None:
        assert headline_impact("Beats estimates", NewsCategory.OTHER) == 0.0

    def test_miss_counts_everywhere(self) -> None:
        assert headline_impact("Outlook falls short", NewsCategory.GUIDANCE) == -70.0

    def test_positive_and_negative_cancel(self) -> None:
        assert headline_impact("Profit growth offsets loss", NewsCategory.OTHER) == 0.0

    def test_clamped(self) -> None:
        config = CatalystConfig(keyword_impact=80.0, earnings_impact=90.0)
        title = "Record high profit, beats estimates"
        assert headline_impact(title, NewsCategory.EARNINGS, config) == 100.0


class TestCatalystScore:
    def test_no_news(self) -> None:
        score = compute_catalyst_score([], AS_OF)
        assert score.value == 0.0
        assert score.reasons == ("No recent headlines.",)

    def test_single_bullish_today(self) -> None:
        score = compute_catalyst_score(
            [_item("Quarterly results beats estimates")], AS_OF
        )
        assert score.value == 35.0
        assert score.bullish_count == 1
        assert score.top_bullish[0].impact is NewsImpact.BULLISH

    def test_decay(self) -> None:
        score = compute_catalyst_score([_item("Company wins contract", 4)], AS_OF)
        headline = score.timeline[0]
        assert headline.decay_weight == pytest.approx(math.exp(-1.0))
        assert score.value == round(50 * math.exp(-1.0) / 2)

    def test_window_bounds(self) -> None:
        items = [
            _item("Company wins contract", 8),
            NewsItem(AS_OF + dt.timedelta(days=1), "Company wins contract"),
        ]
        assert compute_catalyst_score(items, AS_OF).value == 0.0

    def test_bearish(self) -> None:
        score = compute_catalyst_score([_item("Lawsuit deepens losses")], AS_OF)
        assert score.value == -25.0
        assert score.bearish_count == 1

    def test_all_neutral_coverage(self) -> None:
        items = [_item("Chairman attends gala"), _item("Annual meeting held", 1)]
        assert compute_catalyst_score(items, AS_OF).value == 10.0

    def test_neutral_coverage_capped(self) -> None:
        items = [_item(f"Routine filing {i}") for i in range(10)]
        assert compute_catalyst_score(items, AS_OF).value == 20.0

    def test_timeline_most_recent_first(self) -> None:
        items = [_item("Company wins contract", 3), _item("Company wins contract", 0)]
        score = compute_catalyst_score(items, AS_OF)
        assert score.timeline[0].item.date == AS_OF

    def test_reasons_mention_both_sides(self) -> None:
        items = [_item("Company wins contract"), _item("Lawsuit deepens losses", 1)]
        reasons = compute_catalyst_score(items, AS_OF).reasons
        assert any(r.startswith("Bullish:") for r in reasons)
        assert any(r.startswith("Bearish:") for r in reasons)

    def test_value_bounded(self) -> None:
        items = [_item("Record high profit surge") for _ in range(20)]
        assert compute_catalyst_score(items, AS_OF).value == 100.0
