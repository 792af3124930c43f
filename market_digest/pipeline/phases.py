"""The three pipeline phases: collect, process and publish.

Each phase starts its own cost run, reads only the previous phase's
artifact, persists exactly one artifact of its own and flushes the
ledger on the way out, whether it succeeded or not.
"""

from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed

import structlog

from market_digest.news.models import DegradedLabel, MarketDataPoint
from market_digest.pipeline.context import PipelineContext
from market_digest.pipeline.errors import PhaseError, StaleInputError
from market_digest.pipeline.models import (
    COLLECT_ARTIFACT,
    PROCESS_ARTIFACT,
    PUBLISH_ARTIFACT,
    CollectResult,
    ProcessResult,
    PublishResult,
    SourceError,
)
from market_digest.pipeline.sources import DataSource, SourcePayload
from market_digest.processors import ImportanceScorer, NewsDeduplicator, ScorerConfig


logger = structlog.get_logger()

STATUS_PUBLISHED = "published"
STATUS_NOT_SENT = "not-sent"
STATUS_CRITICAL_DEGRADED = "critical-degraded"


class QuotaExhaustedError(Exception):
    """A provider's daily call cap is used up."""


def _fetch_source(ctx: PipelineContext, source: DataSource) -> SourcePayload:
    """Fetch one source under its quota and rate limit."""
    status = ctx.quota.check(source.name)
    if not status.can_call:
        msg = f"daily quota exhausted ({status.calls} calls)"
        raise QuotaExhaustedError(msg)

    ctx.rate_limiter.acquire(source.name)
    ctx.ledger.record_api_call(source.name)
    if status.remaining is not None:
        ctx.quota.increment(source.name)
    return source.fetch()


def run_collect(ctx: PipelineContext, weekend_mode: bool = False) -> CollectResult:  # noqa: ARG001
    """Fan out to every data source and persist the collect artifact.

    A failing source is recorded in ``errors`` and never stops the others.

    Args:
        ctx: Pipeline context.
        weekend_mode: Unused; accepted for a uniform phase signature.

    Returns:
        The saved collect result.
    """
    log = logger.bind(component="pipeline", phase="collect", run_id=ctx.run_id)
    ctx.ledger.start_run("collect")
    try:
        sources = ctx.sources
        workers = max(1, min(ctx.config.pipeline.collect_workers, len(sources)))
        log.info("collect_started", sources=len(sources), max_workers=workers)

        # keyed by position: several sources may share a name
        payloads: dict[int, SourcePayload] = {}
        errors: dict[int, str] = {}

        with ThreadPoolExecutor(max_workers=workers) as executor:
            future_to_index = {
                executor.submit(_fetch_source, ctx, source): index
                for index, source in enumerate(sources)
            }
            for future in as_completed(future_to_index):
                index = future_to_index[future]
                try:
                    payloads[index] = future.result()
                except Exception as e:  # noqa: BLE001
                    log.error("source_failed", source=sources[index].name, error=str(e))
                    errors[index] = str(e)

        news = []
        market = []
        warnings = []
        # configured source order, not completion order
        for index in sorted(payloads):
            payload = payloads[index]
            news.extend(payload.news)
            market.extend(payload.market)
            warnings.extend(payload.warnings)

        result = CollectResult(
            collected_at=ctx.clock(),
            news=news,
            market=market,
            cross_check_warnings=warnings,
            errors=[
                SourceError(source=sources[index].name, message=errors[index])
                for index in sorted(errors)
            ],
            sources_succeeded=len(payloads),
            sources_failed=len(errors),
        )
        ctx.artifacts.save(COLLECT_ARTIFACT, result)
        log.info(
            "collect_complete",
            news=len(news),
            market=len(market),
            sources_succeeded=result.sources_succeeded,
            sources_failed=result.sources_failed,
        )
        return result
    finally:
        ctx.ledger.flush()


def run_process(ctx: PipelineContext, weekend_mode: bool = False) -> ProcessResult:
    """Score, deduplicate and analyze the collected news.

    Args:
        ctx: Pipeline context.
        weekend_mode: Use the longer weekend staleness threshold.

    Returns:
        The saved process result.

    Raises:
        PhaseInputError: If the collect artifact is missing or invalid.
        StaleInputError: If the collect artifact is too old.
    """
    log = logger.bind(component="pipeline", phase="process", run_id=ctx.run_id)
    ctx.ledger.start_run("process")
    try:
        collected = ctx.artifacts.load(COLLECT_ARTIFACT, CollectResult)
        now = ctx.clock()

        settings = ctx.config.pipeline
        threshold = settings.weekend_stale_hours if weekend_mode else settings.stale_hours
        age_hours = (now - collected.collected_at).total_seconds() / 3600
        if age_hours > threshold:
            raise StaleInputError("process", age_hours, threshold)

        scoring = ImportanceScorer(ScorerConfig(now=now), run_id=ctx.run_id).score(
            collected.news
        )
        dedup = NewsDeduplicator(ctx.config.dedup, run_id=ctx.run_id).deduplicate(
            scoring.scored
        )
        analysis = ctx.analyzer.analyze(dedup.unique, collected.market)

        result = ProcessResult(
            processed_at=now,
            collected_at=collected.collected_at,
            date=now.date().isoformat(),
            news=dedup.unique,
            market=collected.market,
            dedup=dedup.report,
            geopolitics_trigger=scoring.geopolitics_trigger,
            analysis=analysis,
            degraded_fields=[point.symbol for point in collected.market if point.is_degraded],
            cross_check_warnings=collected.cross_check_warnings,
        )
        ctx.artifacts.save(PROCESS_ARTIFACT, result)
        log.info(
            "process_complete",
            news=len(result.news),
            duplicates_removed=dedup.report.removed,
            analysis_skipped=analysis.skipped,
            degraded_fields=len(result.degraded_fields),
        )
        return result
    finally:
        ctx.ledger.flush()


def is_fully_degraded(market: Sequence[MarketDataPoint], key_symbols: Sequence[str]) -> bool:
    """Whether every key symbol is missing or has no usable value."""
    if not key_symbols:
        return False
    by_symbol = {point.symbol: point for point in market}
    for symbol in key_symbols:
        point = by_symbol.get(symbol)
        if point is not None and point.value is not None and point.degraded != DegradedLabel.NA:
            return False
    return True


def _archive_digest(ctx: PipelineContext, processed: ProcessResult, text: str) -> str | None:
    """Archive the rendered digest; disk errors are logged, not raised.

    Delivery already happened, so failing the phase here would only
    resend the digest on retry.
    """
    if ctx.archive is None:
        return None
    data = {
        "newsCount": len(processed.news),
        "degradedFields": processed.degraded_fields,
        "digest": processed.model_dump(mode="json"),
    }
    try:
        record = ctx.archive.archive_daily(processed.date, text, data)
    except OSError as e:
        logger.error(
            "archive_failed",
            component="pipeline",
            phase="publish",
            run_id=ctx.run_id,
            date=processed.date,
            error=str(e),
        )
        return None
    return str(record.txt_path)


def run_publish(ctx: PipelineContext, weekend_mode: bool = False) -> PublishResult:  # noqa: ARG001
    """Render and deliver the digest, then raise operational alerts.

    Args:
        ctx: Pipeline context.
        weekend_mode: Unused; accepted for a uniform phase signature.

    Returns:
        The saved publish result.

    Raises:
        PhaseInputError: If the process artifact is missing or invalid.
        PhaseError: If no message part could be delivered.
    """
    log = logger.bind(component="pipeline", phase="publish", run_id=ctx.run_id)
    ctx.ledger.start_run("publish")
    try:
        processed = ctx.artifacts.load(PROCESS_ARTIFACT, ProcessResult)

        if is_fully_degraded(processed.market, ctx.config.pipeline.key_symbols):
            log.error("all_key_symbols_degraded", date=processed.date)
            ctx.alerts.critical_no_data(processed.date)
            result = PublishResult(
                published_at=ctx.clock(),
                date=processed.date,
                status=STATUS_CRITICAL_DEGRADED,
            )
            ctx.artifacts.save(PUBLISH_ARTIFACT, result)
            return result

        text = ctx.renderer.render(processed, ctx.ledger.daily_summary())
        outcome = ctx.publisher.publish_text(text)
        if outcome.sent == 0 and outcome.failed > 0:
            raise PhaseError("publish", f"all {outcome.failed} message parts failed")

        archive_path = _archive_digest(ctx, processed, text)

        ctx.alerts.degraded_fields(processed.degraded_fields)
        ctx.alerts.cross_check_mismatch(processed.cross_check_warnings)

        budget = ctx.ledger.check_budget()
        if budget.spent > 0 and budget.ratio >= ctx.config.alerts.budget_warning_ratio:
            ctx.alerts.budget(budget)

        now = ctx.clock()
        ctx.alerts.pipeline_success(
            processed.date,
            duration_seconds=(now - processed.collected_at).total_seconds(),
            cost_usd=budget.spent,
            degraded=len(processed.degraded_fields),
        )

        result = PublishResult(
            published_at=now,
            date=processed.date,
            status=STATUS_PUBLISHED if outcome.sent > 0 else STATUS_NOT_SENT,
            sent=outcome.sent,
            failed=outcome.failed,
            chars=len(text),
            archive_path=archive_path,
        )
        ctx.artifacts.save(PUBLISH_ARTIFACT, result)
        log.info("publish_complete", status=result.status, sent=outcome.sent, failed=outcome.failed)
        return result
    finally:
        ctx.ledger.flush()
