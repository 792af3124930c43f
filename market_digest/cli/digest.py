"""CLI commands for the market digest pipeline."""

import logging
import sys
import uuid
from dataclasses import dataclass, field
from pathlib import Path

import click
import structlog

from market_digest.config import ConfigLoader, ConfigValidationError, DigestConfig
from market_digest.cost import CostLedger, ProviderQuotaTracker
from market_digest.observability import (
    bind_run_context,
    clear_run_context,
    configure_logging,
)
from market_digest.pipeline import (
    FileSource,
    Orchestrator,
    PipelineContext,
    RunMode,
    RunReport,
)
from market_digest.settings import get_settings


logger = structlog.get_logger()

COMPONENT_CLI = "cli"


@dataclass
class RunOptions:
    """Options for the run command."""

    mode: RunMode
    config_path: Path | None
    state_dir: Path | None
    source_files: list[Path] = field(default_factory=list)
    dry_run: bool = False
    json_logs: bool = True
    verbose: bool = False


def _echo_validation_errors(error: ConfigValidationError) -> None:
    click.echo(f"Configuration validation failed: {error.file_path}", err=True)
    for detail in error.errors:
        click.echo(f"  - {detail['loc']}: {detail['msg']} ({detail['type']})", err=True)


def _load_config(path: Path | None, run_id: str) -> DigestConfig:
    """Load configuration, exiting with status 1 when it is invalid."""
    try:
        return ConfigLoader(run_id=run_id).load(path)
    except ConfigValidationError as e:
        _echo_validation_errors(e)
        sys.exit(1)


def _apply_overrides(config: DigestConfig, options: RunOptions) -> DigestConfig:
    if options.state_dir is None:
        return config
    pipeline = config.pipeline.model_copy(update={"state_dir": options.state_dir})
    return config.model_copy(update={"pipeline": pipeline})


def _echo_report(report: RunReport) -> None:
    status = "OK" if report.success else "FAILED"
    click.echo(f"Run {report.run_id} ({report.mode.value}): {status}")
    for name, outcome in report.phases.items():
        line = f"  {name}: {outcome.state.value}"
        if outcome.attempts:
            line += f" after {outcome.attempts} attempt(s)"
        if outcome.error:
            line += f" - {outcome.error}"
        click.echo(line)
    if report.cost_summary:
        click.echo(f"  cost: {report.cost_summary}")


def _execute_run(options: RunOptions) -> RunReport:
    """Execute the run command with given options."""
    run_id = str(uuid.uuid4())
    log_level = logging.DEBUG if options.verbose else logging.INFO
    configure_logging(level=log_level, json_format=options.json_logs)
    bind_run_context(run_id, mode=options.mode.value)

    log = logger.bind(
        run_id=run_id,
        component=COMPONENT_CLI,
        command="run",
        dry_run=options.dry_run,
    )
    log.info(
        "digest_run_started",
        mode=options.mode.value,
        config_path=str(options.config_path) if options.config_path else None,
        source_files=[str(p) for p in options.source_files],
    )

    config = _apply_overrides(_load_config(options.config_path, run_id), options)
    sources = [FileSource(path) for path in options.source_files]

    ctx = PipelineContext.build(
        config,
        get_settings(),
        sources,
        run_id=run_id,
        dry_run=options.dry_run,
    )
    report = Orchestrator(ctx).run(options.mode)

    log.info("digest_run_complete", success=report.success, aborted=report.aborted)
    clear_run_context()
    return report


@click.group()
@click.version_option(version="0.1.0")
def cli() -> None:
    """Market news digest pipeline CLI."""


@cli.command()
@click.option(
    "--mode",
    type=click.Choice([m.value for m in RunMode]),
    default=RunMode.DAILY.value,
    show_default=True,
    help="Phases to run: daily, weekend (process+publish) or a single phase.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to the YAML configuration file (defaults when omitted).",
)
@click.option(
    "--state-dir",
    "state_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory for phase result artifacts (overrides the config).",
)
@click.option(
    "--source-file",
    "source_files",
    multiple=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JSON file with news/market items; repeat for several sources.",
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Log messages instead of sending them.",
)
@click.option(
    "--json-logs/--no-json-logs",
    default=True,
    help="Use JSON format for logs (default: true).",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose logging.",
)
def run(  # noqa: PLR0913
    mode: str,
    config_path: Path | None,
    state_dir: Path | None,
    source_files: tuple[Path, ...],
    dry_run: bool,
    json_logs: bool,
    verbose: bool,
) -> None:
    """Run the digest pipeline.

    Exits with status 1 when the configuration is invalid or any phase
    failed.
    """
    options = RunOptions(
        mode=RunMode(mode),
        config_path=config_path,
        state_dir=state_dir,
        source_files=list(source_files),
        dry_run=dry_run,
        json_logs=json_logs,
        verbose=verbose,
    )
    report = _execute_run(options)
    _echo_report(report)
    if not report.success:
        sys.exit(1)


@cli.command()
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to the YAML configuration file (defaults when omitted).",
)
def cost(config_path: Path | None) -> None:
    """Show today's spend and provider call usage."""
    configure_logging(level=logging.WARNING, json_format=False)
    config = _load_config(config_path, run_id="")

    ledger = CostLedger(config.budget)
    click.echo(f"Today: {ledger.daily_summary()}")

    usage = ProviderQuotaTracker(config.budget).usage()
    caps = config.budget.per_provider_daily_call_cap
    if not usage:
        click.echo("Provider calls: none")
        return
    click.echo("Provider calls:")
    for provider, calls in sorted(usage.items()):
        cap = caps.get(provider)
        suffix = f"/{cap}" if cap is not None else ""
        click.echo(f"  {provider}: {calls}{suffix}")


@cli.command()
@click.option(
    "--config",
    "config_path",
    required=True,
    type=click.Path(exists=True, path_type=Path),
    help="Path to the YAML configuration file.",
)
def validate(config_path: Path) -> None:
    """Validate a configuration file without running the pipeline."""
    configure_logging(level=logging.WARNING, json_format=False)
    config = _load_config(config_path, run_id="")

    click.echo("Configuration is valid!")
    click.echo(f"  Daily budget: ${config.budget.daily_budget_usd:.2f}")
    click.echo(f"  Rate limits: {len(config.rate_limits)}")
    click.echo(f"  Models: {config.analyzer.triage_model}, {config.analyzer.deep_model}")
    click.echo(f"  State dir: {config.pipeline.state_dir}")


if __name__ == "__main__":
    cli()
