"""Builders for pipeline contexts and canned source data."""

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path

from market_digest.config import (
    ArchiveConfig,
    BudgetConfig,
    DigestConfig,
    PipelineSettings,
    PublisherConfig,
)
from market_digest.news import DegradedLabel, MarketDataPoint, NewsItem
from market_digest.pipeline import (
    DataSource,
    InMemoryArtifactStore,
    PipelineContext,
    SourcePayload,
)
from market_digest.settings import AppSettings
from tests.helpers.llm import FakeLlmClient
from tests.helpers.time import FIXED_NOW, FakeClock


@dataclass
class StaticSource:
    """Data source returning a fixed payload or raising a fixed error."""

    name: str
    payload: SourcePayload | None = None
    error: Exception | None = None
    calls: int = 0

    def fetch(self) -> SourcePayload:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.payload or SourcePayload()


def make_settings(**overrides: str | None) -> AppSettings:
    """Settings that ignore the process environment and any .env file."""
    values: dict[str, str | None] = {
        "ANTHROPIC_API_KEY": None,
        "TELEGRAM_BOT_TOKEN": None,
        "TELEGRAM_CHAT_ID": None,
    }
    values.update(overrides)
    return AppSettings(_env_file=None, **values)


def make_config(
    tmp_path: Path,
    key_symbols: Sequence[str] = ("SP500", "TAIEX"),
    call_caps: dict[str, int] | None = None,
    dry_run: bool = True,
) -> DigestConfig:
    """Configuration writing everything under ``tmp_path``."""
    budget = BudgetConfig(
        ledger_dir=tmp_path / "ledger",
        per_provider_daily_call_cap=call_caps or {},
    )
    return DigestConfig(
        budget=budget,
        pipeline=PipelineSettings(
            state_dir=tmp_path / "state",
            key_symbols=list(key_symbols),
        ),
        publisher=PublisherConfig(dry_run=dry_run, send_interval_seconds=0.0),
        archive=ArchiveConfig(archive_dir=tmp_path / "archive"),
    )


def make_context(
    tmp_path: Path,
    sources: Sequence[DataSource] = (),
    *,
    config: DigestConfig | None = None,
    clock: Callable[[], datetime] | None = None,
    llm_client: FakeLlmClient | None = None,
    sleeps: list[float] | None = None,
    dry_run: bool = True,
) -> PipelineContext:
    """Context with in-memory artifacts and no network access."""
    sleep_log = sleeps if sleeps is not None else []
    return PipelineContext.build(
        config or make_config(tmp_path, dry_run=dry_run),
        make_settings(),
        sources,
        run_id="test-run",
        artifacts=InMemoryArtifactStore(),
        clock=clock or FakeClock(),
        llm_client=llm_client,
        dry_run=dry_run,
        sleep=sleep_log.append,
    )


def news_payload() -> SourcePayload:
    """Wire headlines with one repost."""
    published = FIXED_NOW - timedelta(hours=1)
    return SourcePayload(
        news=[
            NewsItem(
                id="n1",
                title="Fed signals rate cut as inflation cools",
                summary="Officials point to easing price pressure",
                url="https://example.com/fed",
                source="reuters",
                published_at=published,
            ),
            NewsItem(
                id="n2",
                title="TSMC raises capex on AI chip demand",
                url="https://example.com/tsmc",
                source="bloomberg",
                published_at=published,
            ),
            NewsItem(
                id="n3",
                title="TSMC raises capex on AI chip demand (update)",
                url="https://example.com/tsmc",
                source="cnbc",
                published_at=published,
            ),
        ]
    )


def market_payload(degraded: bool = False) -> SourcePayload:
    """Key index quotes, optionally all unavailable."""
    if degraded:
        return SourcePayload(
            market=[
                MarketDataPoint(symbol="SP500", degraded=DegradedLabel.NA),
                MarketDataPoint(symbol="TAIEX", degraded=DegradedLabel.NA),
            ]
        )
    return SourcePayload(
        market=[
            MarketDataPoint(symbol="SP500", value=5120.5, change_pct=0.84),
            MarketDataPoint(
                symbol="TAIEX",
                value=21450.0,
                change_pct=-0.3,
                degraded=DegradedLabel.DELAYED,
            ),
        ],
        warnings=["TAIEX differs between twse and yahoo by 0.6%"],
    )
