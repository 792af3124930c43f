"""Multi-pass deduplication for news items.

Passes run in a fixed order, each with a symmetric duplicate predicate:

1. ``url-exact``: identical non-empty URLs.
2. ``title-prefix``: identical normalized title prefixes.
3. ``jaccard``: title token Jaccard similarity at or above a threshold.
4. ``keyword-overlap``: enough shared title tokens longer than two characters.

When two items are duplicates the one with the lower tier rank is kept,
then the one published earlier. Every pass repeats until no duplicate
pair is left, so running the deduplicator twice removes nothing new.
"""

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

import structlog

from market_digest.config.schemas import DedupConfig
from market_digest.data_model import StrictBaseModel
from market_digest.news.models import NewsItem, Tier


logger = structlog.get_logger()

_PUNCTUATION = re.compile(r"[^\w\s]")
_KEYWORD_MIN_LENGTH = 3

ItemT = TypeVar("ItemT", bound=NewsItem)

PASS_URL = "url-exact"
PASS_TITLE_PREFIX = "title-prefix"
PASS_JACCARD = "jaccard"
PASS_KEYWORD = "keyword-overlap"


def tokenize(text: str) -> list[str]:
    """Split text into lowercase tokens.

    Punctuation is replaced by spaces (word characters, CJK included,
    are kept) and single-character tokens are dropped.
    """
    cleaned = _PUNCTUATION.sub(" ", text.casefold())
    return [token for token in cleaned.split() if len(token) > 1]


def jaccard_similarity(a: str, b: str) -> float:
    """Jaccard similarity of the token sets of two texts."""
    tokens_a = set(tokenize(a))
    tokens_b = set(tokenize(b))
    union = tokens_a | tokens_b
    if not union:
        return 0.0
    return len(tokens_a & tokens_b) / len(union)


def keyword_overlap(a: str, b: str) -> int:
    """Number of distinct shared tokens longer than two characters."""
    keywords_a = {t for t in tokenize(a) if len(t) >= _KEYWORD_MIN_LENGTH}
    keywords_b = {t for t in tokenize(b) if len(t) >= _KEYWORD_MIN_LENGTH}
    return len(keywords_a & keywords_b)


class DedupPassReport(StrictBaseModel):
    """Removal count of one pass."""

    name: str
    removed: int


class DedupReport(StrictBaseModel):
    """Summary of a deduplication run."""

    total: int
    removed: int
    passes: list[DedupPassReport]


@dataclass(frozen=True)
class DeduplicationResult(Generic[ItemT]):
    """Result of deduplication.

    Attributes:
        unique: Surviving items in input order.
        removed: Items dropped as duplicates.
        report: Per-pass removal counts.
    """

    unique: list[ItemT]
    removed: list[ItemT]
    report: DedupReport


def _is_better(a: NewsItem, b: NewsItem) -> bool:
    """Whether ``a`` should be kept over ``b``."""
    rank_a = Tier.rank_of(a.importance)
    rank_b = Tier.rank_of(b.importance)
    if rank_a != rank_b:
        return rank_a < rank_b
    return _timestamp_key(a) < _timestamp_key(b)


def _timestamp_key(item: NewsItem) -> float:
    if item.published_at is None:
        return float("inf")
    return item.published_at.timestamp()


class NewsDeduplicator:
    """Removes duplicate news items in four ordered passes."""

    def __init__(self, config: DedupConfig | None = None, run_id: str = "") -> None:
        """Initialize the deduplicator.

        Args:
            config: Thresholds, defaults when omitted.
            run_id: Run identifier for logging.
        """
        self._config = config or DedupConfig()
        self._log = logger.bind(component="processors", subcomponent="deduper", run_id=run_id)
        self._passes: list[tuple[str, Callable[[NewsItem, NewsItem], bool]]] = [
            (PASS_URL, self._same_url),
            (PASS_TITLE_PREFIX, self._same_title_prefix),
            (PASS_JACCARD, self._similar_titles),
            (PASS_KEYWORD, self._overlapping_keywords),
        ]

    def deduplicate(self, items: Sequence[ItemT]) -> DeduplicationResult[ItemT]:
        """Deduplicate items.

        Args:
            items: Items to deduplicate, usually in scorer order.

        Returns:
            DeduplicationResult with survivors, removed items and a report.
        """
        current = list(items)
        removed: list[ItemT] = []
        pass_reports: list[DedupPassReport] = []

        for name, is_duplicate in self._passes:
            current, pass_removed = self._run_pass(current, is_duplicate)
            removed.extend(pass_removed)
            pass_reports.append(DedupPassReport(name=name, removed=len(pass_removed)))

        report = DedupReport(total=len(items), removed=len(removed), passes=pass_reports)
        self._log.info(
            "dedup_complete",
            total=report.total,
            unique=len(current),
            removed=report.removed,
            passes={p.name: p.removed for p in pass_reports},
        )
        return DeduplicationResult(unique=current, removed=removed, report=report)

    def _run_pass(
        self,
        items: list[ItemT],
        is_duplicate: Callable[[NewsItem, NewsItem], bool],
    ) -> tuple[list[ItemT], list[ItemT]]:
        """Sweep until a sweep removes nothing."""
        current = items
        removed: list[ItemT] = []
        while True:
            current, swept = self._sweep(current, is_duplicate)
            if not swept:
                return current, removed
            removed.extend(swept)

    @staticmethod
    def _sweep(
        items: list[ItemT],
        is_duplicate: Callable[[NewsItem, NewsItem], bool],
    ) -> tuple[list[ItemT], list[ItemT]]:
        unique: list[ItemT] = []
        removed: list[ItemT] = []
        for item in items:
            for index, kept in enumerate(unique):
                if is_duplicate(item, kept):
                    if _is_better(item, kept):
                        removed.append(kept)
                        unique[index] = item
                    else:
                        removed.append(item)
                    break
            else:
                unique.append(item)
        return unique, removed

    @staticmethod
    def _same_url(a: NewsItem, b: NewsItem) -> bool:
        return bool(a.url) and a.url == b.url

    def _same_title_prefix(self, a: NewsItem, b: NewsItem) -> bool:
        length = self._config.title_prefix_length
        prefix_a = a.title.strip().casefold()[:length]
        prefix_b = b.title.strip().casefold()[:length]
        return bool(prefix_a) and prefix_a == prefix_b

    def _similar_titles(self, a: NewsItem, b: NewsItem) -> bool:
        return jaccard_similarity(a.title, b.title) >= self._config.jaccard_threshold

    def _overlapping_keywords(self, a: NewsItem, b: NewsItem) -> bool:
        return keyword_overlap(a.title, b.title) >= self._config.keyword_overlap_min
