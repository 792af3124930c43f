"""Unit tests for news and market data models."""

import pytest
from pydantic import ValidationError

from market_digest.news import (
    DegradedLabel,
    MarketDataPoint,
    NewsItem,
    ScoredNewsItem,
    Tier,
)


class TestTier:
    """Tests for Tier ranks."""

    def test_rank_order(self) -> None:
        assert [t.rank for t in Tier] == [0, 1, 2, 3]

    @pytest.mark.parametrize(
        ("hint", "expected"),
        [
            (Tier.P0, 0),
            ("P1", 1),
            ("P9", 3),
            ("urgent", 3),
            (None, 3),
        ],
    )
    def test_rank_of(self, hint: Tier | str | None, expected: int) -> None:
        assert Tier.rank_of(hint) == expected


class TestNewsItem:
    """Tests for NewsItem validation."""

    def test_requires_id(self) -> None:
        with pytest.raises(ValidationError):
            NewsItem(id="", title="x")

    def test_rejects_unknown_fields(self) -> None:
        with pytest.raises(ValidationError):
            NewsItem(id="1", title="x", body="y")

    def test_rejects_naive_timestamp(self) -> None:
        with pytest.raises(ValidationError):
            NewsItem(id="1", title="x", published_at="2026-03-10T01:00:00")

    def test_text_joins_title_and_summary(self) -> None:
        item = NewsItem(id="1", title="Fed holds", summary="Rates unchanged")
        assert item.text == "Fed holds Rates unchanged"

    def test_scored_item_defaults(self) -> None:
        item = ScoredNewsItem(id="1", title="x")

        assert item.importance is Tier.P3
        assert item.raw_score == 0
        assert item.ai_summary == ""

    def test_raw_score_bounded(self) -> None:
        with pytest.raises(ValidationError):
            ScoredNewsItem(id="1", title="x", raw_score=101)


class TestMarketDataPoint:
    """Tests for MarketDataPoint display and degradation."""

    @pytest.mark.parametrize(
        ("value", "label", "expected"),
        [
            (21500.5, None, "21500.5"),
            (21500.5, DegradedLabel.DELAYED, "21500.5 [DELAYED]"),
            (21500.5, DegradedLabel.UNVERIFIED, "21500.5 [UNVERIFIED]"),
            (21500.5, DegradedLabel.NA, "N/A"),
            (None, None, "N/A"),
        ],
    )
    def test_display_value(
        self, value: float | None, label: DegradedLabel | None, expected: str
    ) -> None:
        point = MarketDataPoint(symbol="TAIEX", value=value, degraded=label)
        assert point.display_value() == expected

    def test_trusted_value_not_degraded(self) -> None:
        assert not MarketDataPoint(symbol="SP500", value=5100.0).is_degraded

    def test_label_marks_degraded(self) -> None:
        point = MarketDataPoint(
            symbol="SP500", value=5100.0, degraded=DegradedLabel.DELAYED
        )
        assert point.is_degraded

    def test_missing_value_marks_degraded(self) -> None:
        assert MarketDataPoint(symbol="SP500").is_degraded
