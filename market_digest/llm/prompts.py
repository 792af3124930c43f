"""Prompt templates for the two analysis stages."""

from collections.abc import Sequence

from market_digest.news.models import ScoredNewsItem


_TRIAGE_SUMMARY_CHARS = 60

_TRIAGE_TEMPLATE = """You are an investment analyst. Rate the importance and category of the \
following {count} market news items and give each a summary of at most 15 words.

## Market Context
{market_context}

## News
{news_section}

## Importance Tiers
- P0: moves global markets (Fed/FOMC/CPI/GDP/central banks/recession/major geopolitics)
- P1: moves key stocks (AI and semiconductors/NVDA/TSMC/major earnings/M&A)
- P2: institutional flows (large foreign net buying or selling/margin changes)
- P3: general market information

## Categories
- geopolitics: conflicts, military action, sanctions, cross-strait relations
- structural: industry structure, technology shifts, regulation, supply chains
- equity: company earnings, M&A, management changes, governance
- economic: macro data (CPI/GDP/jobs), central bank decisions, rates

Respond ONLY with JSON, no markdown fences or extra text:
{{"ranked": [{{"index": 1, "priority": "P0", "category": "economic", \
"summary": "short summary"}}]}}

Order entries P0 to P3, most important first within a tier. "index" is the \
1-based position in the news list above."""

_DEEP_TEMPLATE = """You are a senior market strategist. Using the market data and the \
ranked events below, write today's market analysis.

## Market Data
{market_context}

## Key Events (most important first)
{news_section}

Respond ONLY with JSON, no markdown fences or extra text:
{{
  "snapshot": "2-3 sentence market summary with concrete numbers",
  "regime": "RiskOn, RiskOff or Neutral",
  "theme": "the dominant structural market theme",
  "industryThemes": [
    {{"industry": "industry name", "summary": "at most 20 words", "keyCompanies": ["NVDA"]}}
  ],
  "keyInsights": ["{max_insights} or fewer actionable insights, at most 25 words each"]
}}

Pick 2-3 of today's hottest industries. Judge the regime from volatility, rates \
direction and overall sentiment."""


def _triage_line(position: int, item: ScoredNewsItem) -> str:
    line = f"{position}. [{item.importance.value}] {item.title}"
    if item.summary:
        line += f" ({item.summary[:_TRIAGE_SUMMARY_CHARS]})"
    return line


def _deep_line(position: int, item: ScoredNewsItem) -> str:
    line = f"{position}. [{item.importance.value}] {item.title}"
    if item.ai_summary:
        line += f" ({item.ai_summary})"
    return line


def build_triage_prompt(items: Sequence[ScoredNewsItem], market_context: str) -> str:
    """Build the stage 1 ranking prompt.

    Args:
        items: Items to rank, numbered from 1.
        market_context: Compact market data lines.

    Returns:
        Formatted prompt string.
    """
    news_section = "\n".join(_triage_line(i, item) for i, item in enumerate(items, 1))
    return _TRIAGE_TEMPLATE.format(
        count=len(items),
        market_context=market_context,
        news_section=news_section,
    )


def build_deep_prompt(
    items: Sequence[ScoredNewsItem],
    market_context: str,
    max_insights: int,
) -> str:
    """Build the stage 2 analysis prompt.

    Args:
        items: Top-ranked items from stage 1.
        market_context: Compact market data lines.
        max_insights: Maximum number of insights requested.

    Returns:
        Formatted prompt string.
    """
    news_section = "\n".join(_deep_line(i, item) for i, item in enumerate(items, 1))
    return _DEEP_TEMPLATE.format(
        market_context=market_context,
        news_section=news_section,
        max_insights=max_insights,
    )
