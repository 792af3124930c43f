"""Explicit dependency bundle shared by the pipeline phases."""

import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime

import structlog

from market_digest.config import DigestConfig
from market_digest.cost import CostLedger, ProviderQuotaTracker
from market_digest.llm import Analyzer, LlmAuthError, LlmClient, create_llm_client
from market_digest.pipeline.artifacts import ArtifactStore, FileArtifactStore
from market_digest.pipeline.renderer import DigestRenderer, PlainDigestRenderer
from market_digest.pipeline.sources import DataSource
from market_digest.publishers import AlertPublisher, ArchivePublisher, TelegramPublisher
from market_digest.ratelimit import RateLimiter
from market_digest.settings import AppSettings


logger = structlog.get_logger()


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass
class PipelineContext:
    """Everything a phase needs, passed explicitly.

    Attributes:
        config: Validated pipeline configuration.
        settings: Secrets and delivery targets.
        rate_limiter: Per-source token buckets.
        ledger: Cost ledger shared by all phases of the run.
        quota: Daily per-provider call counter.
        publisher: Digest delivery channel.
        alerts: Operational alert router.
        analyzer: Model-assisted analysis.
        artifacts: Phase result storage.
        sources: Data sources fanned out by the collect phase.
        renderer: Digest text renderer.
        archive: Local digest archive, None when disabled.
        clock: UTC wall clock.
        run_id: Orchestrator run identifier.
        sleep: Sleep function used between phase retries.
    """

    config: DigestConfig
    settings: AppSettings
    rate_limiter: RateLimiter
    ledger: CostLedger
    quota: ProviderQuotaTracker
    publisher: TelegramPublisher
    alerts: AlertPublisher
    analyzer: Analyzer
    artifacts: ArtifactStore
    sources: list[DataSource] = field(default_factory=list)
    renderer: DigestRenderer = field(default_factory=PlainDigestRenderer)
    archive: ArchivePublisher | None = None
    clock: Callable[[], datetime] = _utc_now
    run_id: str = ""
    sleep: Callable[[float], None] = time.sleep

    @classmethod
    def build(  # noqa: PLR0913
        cls,
        config: DigestConfig,
        settings: AppSettings,
        sources: Sequence[DataSource] = (),
        *,
        run_id: str = "",
        artifacts: ArtifactStore | None = None,
        clock: Callable[[], datetime] | None = None,
        llm_client: LlmClient | None = None,
        dry_run: bool = False,
        sleep: Callable[[float], None] = time.sleep,
    ) -> "PipelineContext":
        """Wire the default components from configuration.

        Args:
            config: Validated configuration.
            settings: Environment settings.
            sources: Data sources for the collect phase.
            run_id: Run identifier for logging.
            artifacts: Artifact store; files under ``state_dir`` when omitted.
            clock: UTC clock, injectable for tests.
            llm_client: Model client; built from the API key when omitted.
            dry_run: Log messages instead of sending them.
            sleep: Sleep function for retries and send intervals.

        Returns:
            A ready-to-run context.
        """
        log = logger.bind(component="pipeline", run_id=run_id)
        clock = clock or _utc_now

        rate_limiter = RateLimiter()
        rate_limiter.init(config.rate_limits)

        ledger = CostLedger(config.budget, clock=clock)
        quota = ProviderQuotaTracker(config.budget, clock=clock)

        client = llm_client
        if client is None:
            try:
                client = create_llm_client(
                    api_key=settings.anthropic_api_key,
                    timeout=config.analyzer.timeout_seconds,
                )
            except LlmAuthError as e:
                log.warning("llm_client_unavailable", error=str(e))

        publisher_config = config.publisher
        if dry_run and not publisher_config.dry_run:
            publisher_config = publisher_config.model_copy(update={"dry_run": True})

        publisher = TelegramPublisher(
            settings.telegram_bot_token,
            settings.telegram_chat_id,
            config=publisher_config,
            ledger=ledger,
            sleep=sleep,
            run_id=run_id,
        )
        alerts = AlertPublisher(publisher, config=config.alerts, clock=clock, run_id=run_id)
        analyzer = Analyzer(client, ledger, config=config.analyzer, run_id=run_id)
        archive = (
            ArchivePublisher(config.archive, clock=clock, run_id=run_id)
            if config.archive.enabled
            else None
        )

        log.info(
            "context_built",
            sources=len(sources),
            llm_enabled=client is not None,
            telegram_enabled=publisher.enabled,
            dry_run=publisher.dry_run,
            archive_enabled=archive is not None,
        )

        return cls(
            config=config,
            settings=settings,
            rate_limiter=rate_limiter,
            ledger=ledger,
            quota=quota,
            publisher=publisher,
            alerts=alerts,
            analyzer=analyzer,
            artifacts=artifacts or FileArtifactStore(config.pipeline.state_dir, run_id=run_id),
            sources=list(sources),
            renderer=PlainDigestRenderer(config.pipeline.top_news_count),
            archive=archive,
            clock=clock,
            run_id=run_id,
            sleep=sleep,
        )
