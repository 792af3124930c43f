"""Data source interface and the JSON file source."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from pydantic import TypeAdapter

from market_digest.news.models import MarketDataPoint, NewsItem
from market_digest.persistence import read_json


_NEWS_ADAPTER = TypeAdapter(list[NewsItem])
_MARKET_ADAPTER = TypeAdapter(list[MarketDataPoint])


@dataclass(frozen=True)
class SourcePayload:
    """Items returned by one source fetch."""

    news: list[NewsItem] = field(default_factory=list)
    market: list[MarketDataPoint] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


class DataSource(Protocol):
    """A news or market data feed.

    ``name`` is also the provider key used for rate limiting, cost
    records and daily call quotas.
    """

    name: str

    def fetch(self) -> SourcePayload:
        """Fetch the latest items.

        Raises:
            Exception: Any failure; the collect phase isolates it.
        """
        ...


class FileSource:
    """Reads a ``{"news": [...], "market": [...], "warnings": [...]}`` JSON file."""

    def __init__(self, path: Path, name: str | None = None) -> None:
        self.path = path
        self.name = name or path.stem

    def fetch(self) -> SourcePayload:
        data = read_json(self.path)
        if not isinstance(data, dict):
            msg = f"{self.path}: expected a JSON object"
            raise ValueError(msg)
        return SourcePayload(
            news=_NEWS_ADAPTER.validate_python(data.get("news", [])),
            market=_MARKET_ADAPTER.validate_python(data.get("market", [])),
            warnings=[str(w) for w in data.get("warnings", [])],
        )
