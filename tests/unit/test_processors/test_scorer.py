"""Unit tests for rule-based importance scoring."""

from datetime import datetime, timedelta

import pytest

from market_digest.news import NewsItem, Tier
from market_digest.processors import ImportanceScorer, ScorerConfig, select_for_analysis
from market_digest.processors.keyword_matcher import KeywordMatcher
from tests.helpers.time import FIXED_NOW


def _make_item(
    title: str,
    item_id: str = "n1",
    summary: str = "",
    source: str = "",
    published_at: datetime | None = None,
    importance: Tier | None = None,
) -> NewsItem:
    """Create a test NewsItem."""
    return NewsItem(
        id=item_id,
        title=title,
        summary=summary,
        url=f"https://example.com/{item_id}",
        source=source,
        published_at=published_at,
        importance=importance,
    )


def _make_scorer() -> ImportanceScorer:
    return ImportanceScorer(ScorerConfig(now=FIXED_NOW))


class TestKeywordMatcher:
    """Tests for keyword matching rules."""

    def test_ascii_keyword_needs_word_boundary(self) -> None:
        matcher = KeywordMatcher(["AI"])
        assert matcher.matches("AI chip demand")
        assert not matcher.matches("Analyst said shares were flat")

    def test_match_is_case_insensitive(self) -> None:
        assert KeywordMatcher(["FOMC"]).matches("fomc minutes")

    def test_cjk_keyword_matches_as_substring(self) -> None:
        assert KeywordMatcher(["台積電"]).matches("今日台積電股價上漲")

    def test_count_hits_counts_distinct_keywords(self) -> None:
        matcher = KeywordMatcher(["CPI", "GDP", "PCE"])
        assert matcher.count_hits("CPI beats, CPI again, GDP steady") == 2


class TestTierAssignment:
    """Tests for tier and base score assignment."""

    def test_single_p0_hit(self) -> None:
        scored = _make_scorer().score_item(_make_item("FOMC holds rates steady"))
        assert scored.importance is Tier.P0
        assert scored.raw_score == 40

    def test_extra_hits_add_points(self) -> None:
        scored = _make_scorer().score_item(_make_item("CPI and GDP surprise"))
        assert scored.importance is Tier.P0
        assert scored.raw_score == 45

    def test_tier_points_are_capped(self) -> None:
        scored = _make_scorer().score_item(
            _make_item("Fed FOMC CPI PCE GDP NFP recession")
        )
        assert scored.raw_score == 60

    def test_cjk_keywords(self) -> None:
        scored = _make_scorer().score_item(_make_item("台積電法說會"))
        assert scored.importance is Tier.P1
        assert scored.raw_score == 30

    def test_summary_is_matched(self) -> None:
        scored = _make_scorer().score_item(
            _make_item("Weekly wrap", summary="Investors eye the FOMC")
        )
        assert scored.importance is Tier.P0

    def test_no_hits_is_p3(self) -> None:
        scored = _make_scorer().score_item(_make_item("Analyst said shares were flat"))
        assert scored.importance is Tier.P3
        assert scored.raw_score == 5

    def test_blacklist_beats_top_tier(self) -> None:
        item = _make_item(
            "Celebrity weighs in on FOMC rate cut",
            source="reuters",
            importance=Tier.P0,
            published_at=FIXED_NOW - timedelta(hours=1),
        )
        scored = _make_scorer().score_item(item)
        assert scored.importance is Tier.P3
        assert scored.raw_score == 5

    def test_hint_upgrades_tier(self) -> None:
        scored = _make_scorer().score_item(
            _make_item("Local update", importance=Tier.P1)
        )
        assert scored.importance is Tier.P1
        assert scored.raw_score == 13

    def test_hint_never_downgrades(self) -> None:
        scored = _make_scorer().score_item(
            _make_item("FOMC holds rates steady", importance=Tier.P2)
        )
        assert scored.importance is Tier.P0
        assert scored.raw_score == 44


class TestBonuses:
    """Tests for source and recency bonuses."""

    @pytest.mark.parametrize(
        ("source", "expected"),
        [
            ("reuters", 50),
            ("Reuters-Markets", 50),
            ("yahoo-finance", 45),
            ("notreuters", 40),
            ("", 40),
        ],
    )
    def test_source_bonus(self, source: str, expected: int) -> None:
        scored = _make_scorer().score_item(_make_item("FOMC holds rates steady", source=source))
        assert scored.raw_score == expected

    @pytest.mark.parametrize(
        ("age_hours", "expected"),
        [(2, 55), (6, 55), (10, 50), (24, 40)],
    )
    def test_recency_bonus(self, age_hours: int, expected: int) -> None:
        item = _make_item(
            "FOMC holds rates steady",
            published_at=FIXED_NOW - timedelta(hours=age_hours),
        )
        assert _make_scorer().score_item(item).raw_score == expected


class TestScore:
    """Tests for batch scoring."""

    def test_orders_by_tier_then_score(self) -> None:
        items = [
            _make_item("Nasdaq volume report", item_id="p2"),
            _make_item("FOMC holds rates steady", item_id="p0"),
            _make_item("NVIDIA earnings", item_id="p1"),
            _make_item("CPI and GDP surprise", item_id="p0-high"),
        ]

        result = _make_scorer().score(items)

        assert [s.id for s in result.scored] == ["p0-high", "p0", "p1", "p2"]
        assert result.tier_counts == {"P0": 2, "P1": 1, "P2": 1, "P3": 0}

    def test_geopolitics_trigger(self) -> None:
        result = _make_scorer().score([_make_item("Russia announces new export rules")])
        assert result.geopolitics_trigger

    def test_no_geopolitics_trigger(self) -> None:
        result = _make_scorer().score([_make_item("NVIDIA earnings")])
        assert not result.geopolitics_trigger

    def test_empty_input(self) -> None:
        result = _make_scorer().score([])
        assert result.scored == []
        assert not result.geopolitics_trigger

    def test_adding_a_keyword_never_lowers_the_score(self) -> None:
        scorer = _make_scorer()
        bases = [
            "Analyst said shares were flat",
            "NVIDIA earnings",
            "Nasdaq volume report",
            "FOMC holds rates steady",
            "Fed FOMC CPI PCE GDP NFP recession",
        ]
        for base in bases:
            before = scorer.score_item(_make_item(base))
            after = scorer.score_item(_make_item(f"{base} inflation"))
            assert after.raw_score >= before.raw_score
            assert after.importance.rank <= before.importance.rank

    def test_input_items_are_not_mutated(self) -> None:
        item = _make_item("FOMC holds rates steady")
        _make_scorer().score([item])
        assert item.importance is None


class TestSelectForAnalysis:
    """Tests for stage input selection."""

    def test_deep_prefers_high_tiers_and_tops_up_with_p2(self) -> None:
        scored = _make_scorer().score(
            [
                _make_item("FOMC holds rates steady", item_id="p0"),
                _make_item("NVIDIA earnings", item_id="p1"),
                _make_item("Nasdaq volume report", item_id="p2"),
                _make_item("Analyst said shares were flat", item_id="p3"),
            ]
        ).scored

        triage, deep = select_for_analysis(scored, max_triage=3, max_deep=3)

        assert [s.id for s in triage] == ["p0", "p1", "p2"]
        assert [s.id for s in deep] == ["p0", "p1", "p2"]

    def test_deep_limit(self) -> None:
        scored = _make_scorer().score(
            [_make_item("FOMC holds rates steady", item_id=f"p0-{i}") for i in range(5)]
        ).scored

        _, deep = select_for_analysis(scored, max_deep=2)

        assert len(deep) == 2
