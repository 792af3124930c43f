"""Pipeline configuration schema."""

from pathlib import Path
from typing import Annotated

from pydantic import Field, model_validator

from market_digest.data_model import StrictBaseModel


# USD per token, keyed ``<model>_input`` / ``<model>_output``
DEFAULT_MODEL_PRICING: dict[str, float] = {
    "claude-haiku-4-5-20251001_input": 0.00000025,
    "claude-haiku-4-5-20251001_output": 0.00000125,
    "claude-sonnet-4-5-20250929_input": 0.000003,
    "claude-sonnet-4-5-20250929_output": 0.000015,
}

# USD per call for pay-per-call providers
DEFAULT_PER_CALL_PRICING: dict[str, float] = {
    "perplexity": 0.005,
}

DEFAULT_PROVIDER_CALL_CAPS: dict[str, int] = {
    "fmp": 200,
}


class BudgetConfig(StrictBaseModel):
    """Spend budget and price table.

    Attributes:
        daily_budget_usd: Daily spend limit; paid calls are skipped at or above it.
        local_currency_rate: USD to local currency conversion rate.
        per_model_pricing: USD per token keyed ``<model>_input``/``<model>_output``.
        per_call_pricing: USD per call for pay-per-call providers.
        per_provider_daily_call_cap: Free-tier daily call caps per provider.
        ledger_dir: Directory holding the date-keyed ledger files.
    """

    daily_budget_usd: Annotated[float, Field(ge=0.0)] = 2.0
    local_currency_rate: Annotated[float, Field(gt=0.0)] = 33.0
    per_model_pricing: dict[str, float] = Field(
        default_factory=lambda: dict(DEFAULT_MODEL_PRICING)
    )
    per_call_pricing: dict[str, float] = Field(
        default_factory=lambda: dict(DEFAULT_PER_CALL_PRICING)
    )
    per_provider_daily_call_cap: dict[str, int] = Field(
        default_factory=lambda: dict(DEFAULT_PROVIDER_CALL_CAPS)
    )
    ledger_dir: Path = Path("data/cost-ledger")


class RateLimitConfig(StrictBaseModel):
    """Token bucket settings for one source.

    Exactly one of ``req_per_min`` and ``interval_ms`` must be set.
    """

    req_per_min: Annotated[float, Field(gt=0.0)] | None = None
    interval_ms: Annotated[float, Field(gt=0.0)] | None = None
    max_tokens: Annotated[int, Field(ge=1)] | None = None

    @model_validator(mode="after")
    def validate_single_shape(self) -> "RateLimitConfig":
        """Ensure exactly one rate shape is configured."""
        if (self.req_per_min is None) == (self.interval_ms is None):
            msg = "Set exactly one of req_per_min or interval_ms"
            raise ValueError(msg)
        return self


class AnalyzerConfig(StrictBaseModel):
    """Two-stage analysis settings."""

    triage_model: Annotated[str, Field(min_length=1)] = "claude-haiku-4-5-20251001"
    deep_model: Annotated[str, Field(min_length=1)] = "claude-sonnet-4-5-20250929"
    triage_max_items: Annotated[int, Field(ge=1, le=200)] = 50
    deep_max_items: Annotated[int, Field(ge=1, le=50)] = 15
    triage_max_output_tokens: Annotated[int, Field(ge=100)] = 2000
    deep_max_output_tokens: Annotated[int, Field(ge=100)] = 1500
    max_insights: Annotated[int, Field(ge=1, le=20)] = 5
    timeout_seconds: Annotated[float, Field(ge=1.0, le=300.0)] = 60.0


class PublisherConfig(StrictBaseModel):
    """Delivery channel settings."""

    max_message_length: Annotated[int, Field(ge=100, le=4096)] = 4000
    send_interval_seconds: Annotated[float, Field(ge=0.0)] = 1.2
    retry_delays_seconds: list[Annotated[float, Field(ge=0.0)]] = Field(
        default_factory=lambda: [1.0, 3.0, 9.0]
    )
    timeout_seconds: Annotated[float, Field(ge=1.0, le=120.0)] = 15.0
    dry_run: bool = False


class AlertsConfig(StrictBaseModel):
    """Operational alert settings."""

    cooldown_minutes: Annotated[float, Field(ge=0.0)] = 30.0
    degraded_threshold: Annotated[int, Field(ge=1)] = 5
    budget_warning_ratio: Annotated[float, Field(gt=0.0, le=1.0)] = 0.8


class ArchiveConfig(StrictBaseModel):
    """Local archive of published digests."""

    enabled: bool = True
    archive_dir: Path = Path("data/daily-brief")
    retention_days: Annotated[int, Field(ge=1)] = 30
    index_max_entries: Annotated[int, Field(ge=1)] = 90


class DedupConfig(StrictBaseModel):
    """Deduplication thresholds."""

    title_prefix_length: Annotated[int, Field(ge=1, le=200)] = 15
    jaccard_threshold: Annotated[float, Field(gt=0.0, le=1.0)] = 0.75
    keyword_overlap_min: Annotated[int, Field(ge=1)] = 5


class PipelineSettings(StrictBaseModel):
    """Phase orchestration settings."""

    state_dir: Path = Path("data/pipeline-state")
    stale_hours: Annotated[float, Field(gt=0.0)] = 3.0
    weekend_stale_hours: Annotated[float, Field(gt=0.0)] = 48.0
    collect_workers: Annotated[int, Field(ge=1, le=32)] = 4
    key_symbols: list[str] = Field(default_factory=lambda: ["TAIEX", "SP500", "NASDAQ"])
    top_news_count: Annotated[int, Field(ge=1, le=50)] = 10


class DigestConfig(StrictBaseModel):
    """Root configuration document."""

    budget: BudgetConfig = Field(default_factory=BudgetConfig)
    rate_limits: dict[str, RateLimitConfig] = Field(default_factory=dict)
    analyzer: AnalyzerConfig = Field(default_factory=AnalyzerConfig)
    publisher: PublisherConfig = Field(default_factory=PublisherConfig)
    alerts: AlertsConfig = Field(default_factory=AlertsConfig)
    archive: ArchiveConfig = Field(default_factory=ArchiveConfig)
    dedup: DedupConfig = Field(default_factory=DedupConfig)
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)
