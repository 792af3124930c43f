"""Phase result artifacts.

Each phase persists exactly one artifact, which is the only input of the
next phase.
"""

from pydantic import AwareDatetime, Field

from market_digest.data_model import StrictBaseModel
from market_digest.llm.models import CompletedAnalysis, SkippedAnalysis
from market_digest.news.models import MarketDataPoint, NewsItem, ScoredNewsItem
from market_digest.processors.deduper import DedupReport


COLLECT_ARTIFACT = "collect"
PROCESS_ARTIFACT = "process"
PUBLISH_ARTIFACT = "publish"


class SourceError(StrictBaseModel):
    """A data source that failed during collection."""

    source: str
    message: str


class CollectResult(StrictBaseModel):
    """Output of the collect phase."""

    collected_at: AwareDatetime
    news: list[NewsItem] = Field(default_factory=list)
    market: list[MarketDataPoint] = Field(default_factory=list)
    cross_check_warnings: list[str] = Field(default_factory=list)
    errors: list[SourceError] = Field(default_factory=list)
    sources_succeeded: int = 0
    sources_failed: int = 0


class ProcessResult(StrictBaseModel):
    """Output of the process phase."""

    processed_at: AwareDatetime
    collected_at: AwareDatetime
    date: str
    news: list[ScoredNewsItem] = Field(default_factory=list)
    market: list[MarketDataPoint] = Field(default_factory=list)
    dedup: DedupReport
    geopolitics_trigger: bool = False
    analysis: SkippedAnalysis | CompletedAnalysis
    degraded_fields: list[str] = Field(default_factory=list)
    cross_check_warnings: list[str] = Field(default_factory=list)


class PublishResult(StrictBaseModel):
    """Output of the publish phase."""

    published_at: AwareDatetime
    date: str
    status: str
    sent: int = 0
    failed: int = 0
    chars: int = 0
    archive_path: str | None = None
