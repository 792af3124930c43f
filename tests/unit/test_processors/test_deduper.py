"""Unit tests for multi-pass news deduplication."""

from datetime import datetime, timedelta

from market_digest.config import DedupConfig
from market_digest.news import NewsItem, Tier
from market_digest.processors import NewsDeduplicator
from market_digest.processors.deduper import jaccard_similarity, keyword_overlap, tokenize
from tests.helpers.time import FIXED_NOW


def _make_item(
    item_id: str,
    title: str,
    url: str | None = None,
    importance: Tier | None = None,
    published_at: datetime | None = None,
) -> NewsItem:
    """Create a test NewsItem."""
    return NewsItem(
        id=item_id,
        title=title,
        url=url if url is not None else f"https://example.com/{item_id}",
        importance=importance,
        published_at=published_at,
    )


def _wire_batch_items() -> list[NewsItem]:
    """35 distinct stories, 10 reposts under the same URL, 5 near-duplicate titles."""
    items = [
        _make_item(
            f"base-{i}",
            f"alpha{i} bravo{i} charlie{i} delta{i}",
            url=f"https://example.com/news/{i}",
        )
        for i in range(35)
    ]
    items += [
        _make_item(f"repost-{i}", f"repost{i} xray{i}", url=f"https://example.com/news/{i}")
        for i in range(10)
    ]
    items += [
        _make_item(
            f"near-{i}",
            f"breaking alpha{i} bravo{i} charlie{i} delta{i}",
            url=f"https://example.com/breaking/{i}",
        )
        for i in range(5)
    ]
    return items


class TestTokenHelpers:
    """Tests for tokenization and similarity helpers."""

    def test_tokenize_drops_punctuation_and_single_chars(self) -> None:
        assert tokenize("Fed: a Rate-Cut?") == ["fed", "rate", "cut"]

    def test_tokenize_keeps_cjk(self) -> None:
        assert tokenize("台積電 法說會") == ["台積電", "法說會"]

    def test_jaccard(self) -> None:
        assert jaccard_similarity("aa bb cc dd", "aa bb cc ee") == 3 / 5

    def test_jaccard_of_empty_titles(self) -> None:
        assert jaccard_similarity("", "") == 0.0

    def test_keyword_overlap_ignores_short_tokens(self) -> None:
        assert keyword_overlap("ai is big news", "ai is big deal") == 1


class TestPasses:
    """Tests for individual dedup passes."""

    def test_same_url(self) -> None:
        items = [
            _make_item("a", "Fed holds", url="https://x.com/1"),
            _make_item("b", "Totally different", url="https://x.com/1"),
        ]
        result = NewsDeduplicator().deduplicate(items)
        assert [i.id for i in result.unique] == ["a"]
        assert result.report.passes[0].removed == 1

    def test_empty_urls_are_not_duplicates(self) -> None:
        items = [
            _make_item("a", "Fed holds", url=""),
            _make_item("b", "Totally different", url=""),
        ]
        assert len(NewsDeduplicator().deduplicate(items).unique) == 2

    def test_title_prefix(self) -> None:
        items = [
            _make_item("a", "Taiwan exports surge in March"),
            _make_item("b", "  TAIWAN EXPORTS SURGE to record"),
        ]
        result = NewsDeduplicator().deduplicate(items)
        assert [i.id for i in result.unique] == ["a"]
        assert result.report.passes[1].removed == 1

    def test_jaccard_threshold(self) -> None:
        items = [
            _make_item("a", "chip stocks rally after strong guidance"),
            _make_item("b", "after strong guidance chip stocks rally again"),
        ]
        result = NewsDeduplicator().deduplicate(items)
        assert len(result.unique) == 1

    def test_keyword_overlap(self) -> None:
        items = [
            _make_item("a", "tesla nvidia apple amazon google earnings report today"),
            _make_item("b", "shares slide as tesla nvidia apple amazon google fall"),
        ]
        result = NewsDeduplicator().deduplicate(items)
        assert len(result.unique) == 1
        assert result.report.passes[3].removed == 1

    def test_configurable_thresholds(self) -> None:
        items = [
            _make_item("a", "tesla nvidia apple amazon google earnings report today"),
            _make_item("b", "shares slide as tesla nvidia apple amazon google fall"),
        ]
        config = DedupConfig(keyword_overlap_min=6)
        assert len(NewsDeduplicator(config).deduplicate(items).unique) == 2


class TestSurvivorSelection:
    """Tests for which duplicate is kept."""

    def test_higher_tier_wins(self) -> None:
        items = [
            _make_item("low", "Fed holds", url="https://x.com/1", importance=Tier.P2),
            _make_item("high", "Fed holds rates", url="https://x.com/1", importance=Tier.P0),
        ]
        result = NewsDeduplicator().deduplicate(items)
        assert [i.id for i in result.unique] == ["high"]
        assert [i.id for i in result.removed] == ["low"]

    def test_earlier_timestamp_wins_on_tie(self) -> None:
        items = [
            _make_item("late", "Fed holds", url="https://x.com/1", published_at=FIXED_NOW),
            _make_item(
                "early",
                "Fed holds",
                url="https://x.com/1",
                published_at=FIXED_NOW - timedelta(hours=2),
            ),
        ]
        result = NewsDeduplicator().deduplicate(items)
        assert [i.id for i in result.unique] == ["early"]

    def test_missing_timestamp_loses(self) -> None:
        items = [
            _make_item("undated", "Fed holds", url="https://x.com/1"),
            _make_item("dated", "Fed holds", url="https://x.com/1", published_at=FIXED_NOW),
        ]
        result = NewsDeduplicator().deduplicate(items)
        assert [i.id for i in result.unique] == ["dated"]


class TestDeduplicate:
    """End-to-end dedup behaviour."""

    def test_fifty_items_reduce_to_thirty_five(self) -> None:
        items = _wire_batch_items()
        assert len(items) == 50

        result = NewsDeduplicator().deduplicate(items)

        assert len(result.unique) == 35
        assert {i.id for i in result.unique} == {f"base-{i}" for i in range(35)}
        assert result.report.total == 50
        assert result.report.removed == 15
        assert {p.name: p.removed for p in result.report.passes} == {
            "url-exact": 10,
            "title-prefix": 0,
            "jaccard": 5,
            "keyword-overlap": 0,
        }

    def test_idempotent(self) -> None:
        deduper = NewsDeduplicator()
        once = deduper.deduplicate(_wire_batch_items())
        twice = deduper.deduplicate(once.unique)

        assert twice.unique == once.unique
        assert twice.report.removed == 0

    def test_chained_duplicates_collapse(self) -> None:
        items = [
            _make_item("a", "one", url="https://x.com/1"),
            _make_item("b", "two", url="https://x.com/2"),
            _make_item("c", "three", url="https://x.com/1", importance=Tier.P0),
        ]
        result = NewsDeduplicator().deduplicate(items)
        second = NewsDeduplicator().deduplicate(result.unique)
        assert second.report.removed == 0
        assert {i.id for i in result.unique} == {"b", "c"}

    def test_empty(self) -> None:
        result = NewsDeduplicator().deduplicate([])
        assert result.unique == []
        assert result.report.removed == 0
