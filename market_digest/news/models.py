"""News and market data models."""

from datetime import datetime
from enum import Enum
from typing import Annotated

from pydantic import AwareDatetime, Field

from market_digest.data_model import StrictBaseModel


class Tier(str, Enum):
    """Importance tier, P0 being the most important."""

    P0 = "P0"
    P1 = "P1"
    P2 = "P2"
    P3 = "P3"

    @property
    def rank(self) -> int:
        """Numeric rank (0 = most important)."""
        return int(self.value[1])

    @classmethod
    def rank_of(cls, tier: "Tier | str | None") -> int:
        """Return the rank of a tier hint, treating unknown hints as P3."""
        if tier is None:
            return cls.P3.rank
        try:
            return cls(tier).rank
        except ValueError:
            return cls.P3.rank


class NewsItem(StrictBaseModel):
    """A news item as collected from an upstream feed.

    Attributes:
        id: Feed-scoped identifier.
        title: Headline.
        summary: Short body or abstract.
        url: Canonical link, may be empty.
        source: Source identifier (e.g. ``reuters``).
        published_at: Publication timestamp, when known.
        importance: Upstream importance hint.
    """

    id: Annotated[str, Field(min_length=1)]
    title: str
    summary: str = ""
    url: str = ""
    source: str = ""
    published_at: AwareDatetime | None = None
    importance: Tier | None = None

    @property
    def text(self) -> str:
        """Title and summary joined for keyword matching."""
        return f"{self.title} {self.summary}"


class ScoredNewsItem(NewsItem):
    """A news item after rule-based scoring.

    Attributes:
        importance: Assigned tier.
        raw_score: Rule score in [0, 100].
        ai_summary: Short summary added by the triage stage.
        category: Category label added by the triage stage.
    """

    importance: Tier = Tier.P3
    raw_score: Annotated[int, Field(ge=0, le=100)] = 0
    ai_summary: str = ""
    category: str | None = None


class DegradedLabel(str, Enum):
    """Degradation marker for a market data point."""

    DELAYED = "DELAYED"
    UNVERIFIED = "UNVERIFIED"
    NA = "NA"


class MarketDataPoint(StrictBaseModel):
    """A single market indicator value.

    Attributes:
        symbol: Indicator symbol (e.g. ``SP500``).
        value: Indicator value, None when unavailable.
        change_pct: Daily change in percent.
        source: Provider identifier.
        fetched_at: Fetch timestamp.
        degraded: Degradation label, None when the value is trusted.
    """

    symbol: Annotated[str, Field(min_length=1)]
    value: float | None = None
    change_pct: float | None = None
    source: str = ""
    fetched_at: datetime | None = None
    degraded: DegradedLabel | None = None

    @property
    def is_degraded(self) -> bool:
        """Whether the point carries a label or has no value."""
        return self.degraded is not None or self.value is None

    def display_value(self) -> str:
        """Render the value with its degradation label."""
        if self.degraded is DegradedLabel.NA:
            return "N/A"
        if self.value is None:
            return "N/A"
        if self.degraded is DegradedLabel.DELAYED:
            return f"{self.value} [DELAYED]"
        if self.degraded is DegradedLabel.UNVERIFIED:
            return f"{self.value} [UNVERIFIED]"
        return f"{self.value}"
