"""Rule-based importance scoring for news items."""

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime

import structlog

from market_digest.news.models import NewsItem, ScoredNewsItem, Tier
from market_digest.processors.constants import (
    BASE_SCORE,
    BLACKLIST_KEYWORDS,
    BLACKLIST_SCORE,
    GEOPOLITICS_TRIGGERS,
    HINT_BONUS,
    PRIMARY_SOURCE_BONUS,
    RECENCY_BONUSES,
    SECONDARY_SOURCE_BONUS,
    TIER_KEYWORDS,
    TIER_POINTS,
    TRUSTED_SOURCES_PRIMARY,
    TRUSTED_SOURCES_SECONDARY,
)
from market_digest.processors.keyword_matcher import KeywordMatcher


logger = structlog.get_logger()

MAX_SCORE = 100
MIN_SCORE = 0


@dataclass
class ScorerConfig:
    """Configuration bundle for ImportanceScorer.

    Attributes:
        now: Reference time for recency bonuses.
        tier_keywords: Keyword table per tier.
        blacklist: Keywords that force an item to P3.
        geopolitics_triggers: Keywords that raise the geopolitics flag.
    """

    now: datetime | None = None
    tier_keywords: dict[Tier, tuple[str, ...]] = field(
        default_factory=lambda: dict(TIER_KEYWORDS)
    )
    blacklist: tuple[str, ...] = BLACKLIST_KEYWORDS
    geopolitics_triggers: tuple[str, ...] = GEOPOLITICS_TRIGGERS


@dataclass(frozen=True)
class ScoringResult:
    """Output of a scoring pass.

    Attributes:
        scored: Items ordered by tier rank, then score descending.
        geopolitics_trigger: Whether any item mentions a geopolitical trigger.
    """

    scored: list[ScoredNewsItem]
    geopolitics_trigger: bool

    @property
    def tier_counts(self) -> dict[str, int]:
        """Number of items per tier."""
        counts = Counter(item.importance.value for item in self.scored)
        return {tier.value: counts.get(tier.value, 0) for tier in Tier}


def _source_matches(source: str, names: Sequence[str]) -> bool:
    return any(
        source == name or source.startswith((f"{name}-", f"{name}_")) for name in names
    )


class ImportanceScorer:
    """Assigns P0-P3 tiers and a 0-100 score to news items.

    Scoring rules, applied in order:
        1. Blacklisted items are P3 with a fixed score and skip all other rules.
        2. Keyword tiers: only the highest tier with a hit contributes points.
        3. Upstream importance hints add a bonus and may upgrade the tier.
        4. Trusted sources add a bonus.
        5. Recent items add a bonus.
        6. The score is clamped to [0, 100].

    Scoring is pure: the reference time is fixed at construction.
    """

    def __init__(self, config: ScorerConfig | None = None, run_id: str = "") -> None:
        """Initialize the scorer.

        Args:
            config: Scorer configuration bundle.
            run_id: Run identifier for logging.
        """
        config = config or ScorerConfig()
        self._now = config.now or datetime.now(UTC)
        self._tier_matchers = {
            tier: KeywordMatcher(config.tier_keywords.get(tier, ()))
            for tier in (Tier.P0, Tier.P1, Tier.P2)
        }
        self._blacklist = KeywordMatcher(config.blacklist)
        self._geopolitics = KeywordMatcher(config.geopolitics_triggers)
        self._log = logger.bind(component="processors", subcomponent="scorer", run_id=run_id)

    def score(self, items: Sequence[NewsItem]) -> ScoringResult:
        """Score and order news items.

        Args:
            items: Items to score.

        Returns:
            ScoringResult with ordered items and the geopolitics flag.
        """
        if not items:
            return ScoringResult(scored=[], geopolitics_trigger=False)

        scored = [self.score_item(item) for item in items]
        scored.sort(key=lambda s: (s.importance.rank, -s.raw_score))

        geopolitics_trigger = any(self._geopolitics.matches(item.text) for item in items)
        result = ScoringResult(scored=scored, geopolitics_trigger=geopolitics_trigger)

        self._log.info(
            "scoring_complete",
            total=len(scored),
            geopolitics_trigger=geopolitics_trigger,
            **result.tier_counts,
        )
        return result

    def score_item(self, item: NewsItem) -> ScoredNewsItem:
        """Score a single item.

        Args:
            item: Item to score.

        Returns:
            Scored copy of the item.
        """
        text = item.text
        if self._blacklist.matches(text):
            return self._to_scored(item, Tier.P3, BLACKLIST_SCORE)

        tier = Tier.P3
        score = BASE_SCORE
        for candidate in (Tier.P0, Tier.P1, Tier.P2):
            hits = self._tier_matchers[candidate].count_hits(text)
            if hits > 0:
                first, extra, cap = TIER_POINTS[candidate]
                tier = candidate
                score = min(first + (hits - 1) * extra, cap)
                break

        hint = item.importance
        if hint is not None and hint in HINT_BONUS:
            score += HINT_BONUS[hint]
            if hint.rank < tier.rank:
                tier = hint

        source = item.source.lower()
        if _source_matches(source, TRUSTED_SOURCES_PRIMARY):
            score += PRIMARY_SOURCE_BONUS
        elif _source_matches(source, TRUSTED_SOURCES_SECONDARY):
            score += SECONDARY_SOURCE_BONUS

        score += self._recency_bonus(item)

        return self._to_scored(item, tier, max(MIN_SCORE, min(score, MAX_SCORE)))

    def _recency_bonus(self, item: NewsItem) -> int:
        if item.published_at is None:
            return 0
        age_hours = (self._now - item.published_at).total_seconds() / 3600
        for max_age, bonus in RECENCY_BONUSES:
            if age_hours <= max_age:
                return bonus
        return 0

    @staticmethod
    def _to_scored(item: NewsItem, tier: Tier, score: int) -> ScoredNewsItem:
        return ScoredNewsItem.model_validate(
            {**item.model_dump(), "importance": tier, "raw_score": score}
        )


def select_for_analysis(
    scored: Sequence[ScoredNewsItem],
    max_triage: int = 50,
    max_deep: int = 15,
) -> tuple[list[ScoredNewsItem], list[ScoredNewsItem]]:
    """Pick rule-based inputs for the two analysis stages.

    The triage stage gets the first ``max_triage`` items. The deep stage
    gets P0/P1 items, topped up with P2 items when there are fewer than
    ``max_deep`` of them.

    Args:
        scored: Items in scorer order.
        max_triage: Triage stage limit.
        max_deep: Deep stage limit.

    Returns:
        Tuple of (triage items, deep items).
    """
    for_triage = list(scored[:max_triage])
    high = [item for item in scored if item.importance in (Tier.P0, Tier.P1)]
    if len(high) >= max_deep:
        return for_triage, high[:max_deep]
    p2 = [item for item in scored if item.importance is Tier.P2]
    return for_triage, (high + p2)[:max_deep]
