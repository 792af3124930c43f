"""News and market data models."""

from market_digest.news.models import (
    DegradedLabel,
    MarketDataPoint,
    NewsItem,
    ScoredNewsItem,
    Tier,
)


__all__ = [
    "DegradedLabel",
    "MarketDataPoint",
    "NewsItem",
    "ScoredNewsItem",
    "Tier",
]
