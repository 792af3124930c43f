"""Unit tests for analysis prompt building."""

from market_digest.llm.market_context import NO_MARKET_DATA, build_market_context
from market_digest.llm.prompts import build_deep_prompt, build_triage_prompt
from market_digest.news import DegradedLabel, MarketDataPoint, ScoredNewsItem, Tier


def _make_item(item_id: str, title: str, summary: str = "", ai_summary: str = "") -> ScoredNewsItem:
    return ScoredNewsItem(
        id=item_id,
        title=title,
        summary=summary,
        ai_summary=ai_summary,
        importance=Tier.P0,
        raw_score=40,
    )


class TestBuildTriagePrompt:
    """Tests for build_triage_prompt."""

    def test_numbers_items_from_one(self) -> None:
        prompt = build_triage_prompt(
            [_make_item("a", "Fed holds"), _make_item("b", "CPI cools")], "SP500: 5000.0"
        )

        assert "1. [P0] Fed holds" in prompt
        assert "2. [P0] CPI cools" in prompt
        assert "SP500: 5000.0" in prompt
        assert '"ranked"' in prompt

    def test_summary_is_truncated(self) -> None:
        prompt = build_triage_prompt([_make_item("a", "Fed holds", summary="x" * 200)], "")
        assert "x" * 60 in prompt
        assert "x" * 61 not in prompt


class TestBuildDeepPrompt:
    """Tests for build_deep_prompt."""

    def test_includes_ai_summaries_and_insight_count(self) -> None:
        prompt = build_deep_prompt(
            [_make_item("a", "Fed holds", ai_summary="Rates unchanged")], "ctx", 3
        )

        assert "1. [P0] Fed holds (Rates unchanged)" in prompt
        assert "3 or fewer" in prompt
        assert '"industryThemes"' in prompt


class TestBuildMarketContext:
    """Tests for build_market_context."""

    def test_lines_with_labels(self) -> None:
        context = build_market_context(
            [
                MarketDataPoint(symbol="SP500", value=5000.0, change_pct=1.25),
                MarketDataPoint(symbol="TAIEX", value=20000.0, degraded=DegradedLabel.DELAYED),
                MarketDataPoint(symbol="VIX"),
            ]
        )

        assert context.splitlines() == ["SP500: 5000.0 +1.25%", "TAIEX: 20000.0 [DELAYED]"]

    def test_empty(self) -> None:
        assert build_market_context([]) == NO_MARKET_DATA
