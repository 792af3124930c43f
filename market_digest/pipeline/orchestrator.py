"""Phase sequencing with retries, abort rules and failure alerts."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

import structlog
from pydantic import BaseModel

from market_digest.pipeline.context import PipelineContext
from market_digest.pipeline.errors import PhaseInputError
from market_digest.pipeline.phases import run_collect, run_process, run_publish
from market_digest.pipeline.state_machine import PhaseState, PhaseStateMachine


logger = structlog.get_logger()

RETRY_DELAY_STEP_SECONDS = 10.0
RETRY_DELAY_MAX_SECONDS = 30.0


class PhaseName(str, Enum):
    """Pipeline phases in execution order."""

    COLLECT = "collect"
    PROCESS = "process"
    PUBLISH = "publish"


class RunMode(str, Enum):
    """What an orchestrator run executes.

    - DAILY: collect, process, publish
    - WEEKEND: process and publish with the weekend staleness threshold
    - COLLECT / PROCESS / PUBLISH: that phase alone
    """

    DAILY = "daily"
    WEEKEND = "weekend"
    COLLECT = "collect"
    PROCESS = "process"
    PUBLISH = "publish"


PhaseRunner = Callable[[PipelineContext, bool], BaseModel]


@dataclass(frozen=True)
class PhaseSpec:
    """How a phase is run.

    Attributes:
        name: Phase name.
        runner: Phase function.
        max_attempts: Attempts before the phase counts as failed.
        required: Whether a failure aborts the rest of the run.
    """

    name: PhaseName
    runner: PhaseRunner
    max_attempts: int
    required: bool


PHASES: tuple[PhaseSpec, ...] = (
    PhaseSpec(PhaseName.COLLECT, run_collect, max_attempts=3, required=False),
    PhaseSpec(PhaseName.PROCESS, run_process, max_attempts=2, required=True),
    PhaseSpec(PhaseName.PUBLISH, run_publish, max_attempts=2, required=True),
)

_MODE_PHASES: dict[RunMode, frozenset[PhaseName]] = {
    RunMode.DAILY: frozenset(PhaseName),
    RunMode.WEEKEND: frozenset({PhaseName.PROCESS, PhaseName.PUBLISH}),
    RunMode.COLLECT: frozenset({PhaseName.COLLECT}),
    RunMode.PROCESS: frozenset({PhaseName.PROCESS}),
    RunMode.PUBLISH: frozenset({PhaseName.PUBLISH}),
}


def retry_delay(attempt: int) -> float:
    """Linear backoff after a failed attempt (1-based), capped."""
    return min(RETRY_DELAY_STEP_SECONDS * attempt, RETRY_DELAY_MAX_SECONDS)


@dataclass
class PhaseOutcome:
    """Final state of one phase."""

    state: PhaseState
    attempts: int = 0
    error: str | None = None
    duration_ms: float = 0.0


@dataclass
class RunReport:
    """Result of an orchestrator run."""

    mode: RunMode
    run_id: str
    started_at: datetime
    finished_at: datetime | None = None
    phases: dict[str, PhaseOutcome] = field(default_factory=dict)
    aborted: bool = False
    cost_summary: str = ""

    @property
    def success(self) -> bool:
        """True when no phase failed."""
        return not self.aborted and all(
            outcome.state != PhaseState.FAILED for outcome in self.phases.values()
        )


class Orchestrator:
    """Runs the phases selected by a mode in order.

    A phase is retried with linear backoff, except on ``PhaseInputError``
    which no retry can fix. After the final failed attempt a
    ``phase_failed`` alert is raised; a required phase then aborts the
    run and every remaining phase is marked SKIPPED.
    """

    def __init__(
        self,
        ctx: PipelineContext,
        phases: tuple[PhaseSpec, ...] = PHASES,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            ctx: Pipeline context shared by every phase.
            phases: Phase table, overridable for tests.
        """
        self._ctx = ctx
        self._phases = phases
        self._log = logger.bind(
            component="pipeline", subcomponent="orchestrator", run_id=ctx.run_id
        )

    def run(self, mode: RunMode | str) -> RunReport:
        """Run the phases selected by ``mode``.

        Args:
            mode: Run mode or its string value.

        Returns:
            Per-phase outcomes and the abort flag.
        """
        mode = RunMode(mode)
        selected = _MODE_PHASES[mode]
        weekend_mode = mode == RunMode.WEEKEND

        report = RunReport(mode=mode, run_id=self._ctx.run_id, started_at=self._ctx.clock())
        self._log.info(
            "pipeline_started",
            mode=mode.value,
            phases=[p.name.value for p in self._phases if p.name in selected],
        )

        for spec in self._phases:
            machine = PhaseStateMachine(spec.name.value, self._ctx.run_id)
            if spec.name not in selected or report.aborted:
                machine.to_skipped()
                report.phases[spec.name.value] = PhaseOutcome(state=machine.state)
                continue

            outcome = self._run_phase(spec, machine, weekend_mode)
            report.phases[spec.name.value] = outcome
            if outcome.state == PhaseState.FAILED and spec.required:
                self._log.error("pipeline_aborted", phase=spec.name.value, error=outcome.error)
                report.aborted = True

        # spend recorded after the last phase flushed, e.g. failure alerts
        self._ctx.ledger.flush()
        report.finished_at = self._ctx.clock()
        report.cost_summary = self._ctx.ledger.daily_summary()
        self._log.info(
            "pipeline_complete",
            mode=mode.value,
            success=report.success,
            aborted=report.aborted,
            states={name: o.state.value for name, o in report.phases.items()},
            cost=report.cost_summary,
        )
        return report

    def _run_phase(
        self,
        spec: PhaseSpec,
        machine: PhaseStateMachine,
        weekend_mode: bool,
    ) -> PhaseOutcome:
        log = self._log.bind(phase=spec.name.value)
        machine.to_running()
        started_at = self._ctx.clock()

        attempt = 0
        last_error: Exception | None = None
        while attempt < spec.max_attempts:
            attempt += 1
            try:
                spec.runner(self._ctx, weekend_mode)
            except PhaseInputError as e:
                log.error("phase_input_invalid", attempt=attempt, error=str(e))
                last_error = e
                break
            except Exception as e:  # noqa: BLE001
                log.warning(
                    "phase_attempt_failed",
                    attempt=attempt,
                    max_attempts=spec.max_attempts,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                last_error = e
                if attempt < spec.max_attempts:
                    delay = retry_delay(attempt)
                    log.info("phase_retry_scheduled", delay_seconds=delay)
                    self._ctx.sleep(delay)
            else:
                machine.to_done()
                duration_ms = self._elapsed_ms(started_at)
                log.info("phase_complete", attempts=attempt, duration_ms=duration_ms)
                return PhaseOutcome(state=machine.state, attempts=attempt, duration_ms=duration_ms)

        machine.to_failed()
        error = str(last_error)
        log.error("phase_failed", attempts=attempt, error=error)
        self._ctx.alerts.phase_failed(spec.name.value, error)
        return PhaseOutcome(
            state=machine.state,
            attempts=attempt,
            error=error,
            duration_ms=self._elapsed_ms(started_at),
        )

    def _elapsed_ms(self, started_at: datetime) -> float:
        return round((self._ctx.clock() - started_at).total_seconds() * 1000, 2)
