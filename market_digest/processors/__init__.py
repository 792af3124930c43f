"""Rule-based news processing: scoring and deduplication."""

from market_digest.processors.deduper import (
    DedupReport,
    DeduplicationResult,
    NewsDeduplicator,
)
from market_digest.processors.scorer import (
    ImportanceScorer,
    ScorerConfig,
    ScoringResult,
    select_for_analysis,
)


__all__ = [
    "DedupReport",
    "DeduplicationResult",
    "ImportanceScorer",
    "NewsDeduplicator",
    "ScorerConfig",
    "ScoringResult",
    "select_for_analysis",
]
