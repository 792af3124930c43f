"""Per-run cost accounting persisted into date-keyed ledger files."""

import threading
import uuid
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

import structlog
from pydantic import ValidationError

from market_digest.config.schemas import BudgetConfig
from market_digest.cost.models import (
    BudgetStatus,
    CostRun,
    DailyLedger,
    DailyTotal,
    ModelUsage,
)
from market_digest.persistence import AtomicJsonWriter, read_json


logger = structlog.get_logger()


def _utc_now() -> datetime:
    return datetime.now(UTC)


class CostLedger:
    """Tracks API calls and model token usage of the current run.

    A run is started explicitly with ``start_run`` or implicitly by the
    first record call. ``flush`` merges the run into the day's ledger
    file and clears the in-memory state.

    Only one writer per process is supported. Concurrent processes
    flushing the same day's file follow last-writer-wins.
    """

    def __init__(
        self,
        config: BudgetConfig,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the ledger.

        Args:
            config: Budget and price table.
            clock: UTC clock, injectable for tests.
        """
        self._config = config
        self._clock = clock or _utc_now
        self._ledger_dir = Path(config.ledger_dir)
        self._current: CostRun | None = None
        self._lock = threading.Lock()
        self._writer = AtomicJsonWriter(component="cost")
        self._log = logger.bind(component="cost", subcomponent="ledger")

    @property
    def config(self) -> BudgetConfig:
        """Budget configuration."""
        return self._config

    @property
    def current_run(self) -> CostRun | None:
        """The in-flight run, if any."""
        return self._current

    def start_run(self, phase: str = "unknown") -> str:
        """Start a new run, flushing any unflushed one first.

        Spend recorded outside a phase (for example alerts sent after a
        phase flushed) lands in an auto-started run; it is persisted
        here instead of being dropped.

        Args:
            phase: Phase name recorded on the run.

        Returns:
            The new run ID.
        """
        with self._lock:
            pending = self._current
            if pending is not None:
                self._log.info(
                    "unflushed_run_persisted", run_id=pending.run_id, phase=pending.phase
                )
                self._flush_locked()
            return self._start_run_locked(phase).run_id

    def _start_run_locked(self, phase: str) -> CostRun:
        run = CostRun(
            run_id=str(uuid.uuid4()),
            phase=phase,
            started_at=self._clock().isoformat(),
        )
        self._current = run
        self._log.debug("run_started", run_id=run.run_id, phase=phase)
        return run

    def _ensure_run(self) -> CostRun:
        if self._current is None:
            return self._start_run_locked("unknown")
        return self._current

    def record_api_call(self, source: str, count: int = 1) -> None:
        """Record calls to an external API.

        Args:
            source: Provider name.
            count: Number of calls.
        """
        with self._lock:
            run = self._ensure_run()
            run.api_calls[source] = run.api_calls.get(source, 0) + count

    def record_model_usage(
        self,
        model: str,
        *,
        input_tokens: int = 0,
        output_tokens: int = 0,
    ) -> None:
        """Record token usage for a model call.

        Args:
            model: Model identifier, used as the price table key prefix.
            input_tokens: Prompt tokens.
            output_tokens: Completion tokens.
        """
        prices = self._config.per_model_pricing
        input_price = prices.get(f"{model}_input")
        output_price = prices.get(f"{model}_output")
        if input_price is None or output_price is None:
            self._log.warning("model_price_unknown", model=model)

        with self._lock:
            run = self._ensure_run()
            usage = run.model_usage.setdefault(model, ModelUsage())
            usage.input_tokens += input_tokens
            usage.output_tokens += output_tokens
            usage.cost_usd = round(
                usage.input_tokens * (input_price or 0.0)
                + usage.output_tokens * (output_price or 0.0),
                8,
            )

    def calculate_total(self) -> float:
        """Recompute the in-flight run's totals.

        Returns:
            Run total in USD, 0.0 when no run is active.
        """
        with self._lock:
            return self._calculate_total_locked()

    def _calculate_total_locked(self) -> float:
        run = self._current
        if run is None:
            return 0.0

        model_cost = sum(usage.cost_usd for usage in run.model_usage.values())
        call_cost = sum(
            run.api_calls.get(provider, 0) * price
            for provider, price in self._config.per_call_pricing.items()
        )
        run.total_cost_usd = round(model_cost + call_cost, 6)
        run.total_cost_local = round(
            run.total_cost_usd * self._config.local_currency_rate, 2
        )
        return run.total_cost_usd

    def flush(self) -> DailyLedger | None:
        """Finalize the in-flight run and merge it into today's ledger.

        Returns:
            The updated daily ledger, or None when no run was active.
        """
        with self._lock:
            return self._flush_locked()

    def _flush_locked(self) -> DailyLedger | None:
        run = self._current
        if run is None:
            return None

        self._calculate_total_locked()
        now = self._clock()
        run.finished_at = now.isoformat()

        date = now.date().isoformat()
        daily = self._read_daily(date)
        daily.runs.append(run)
        total_usd = round(sum(r.total_cost_usd for r in daily.runs), 6)
        daily.daily_total = DailyTotal(
            cost_usd=total_usd,
            cost_local=round(total_usd * self._config.local_currency_rate, 2),
        )

        self._writer.write(self._path_for(date), daily.model_dump(by_alias=True))
        self._current = None

        self._log.info(
            "ledger_flushed",
            run_id=run.run_id,
            phase=run.phase,
            run_cost_usd=run.total_cost_usd,
            daily_cost_usd=daily.daily_total.cost_usd,
            runs=len(daily.runs),
        )
        return daily

    def check_budget(self) -> BudgetStatus:
        """Compare today's spend (persisted plus in-flight) with the budget.

        Returns:
            Budget status; over budget when spent >= daily budget.
        """
        date = self._clock().date().isoformat()
        with self._lock:
            spent = self._read_daily(date).daily_total.cost_usd
            spent += self._calculate_total_locked()

        budget = self._config.daily_budget_usd
        return BudgetStatus(
            over_budget=spent >= budget,
            spent=round(spent, 6),
            budget=budget,
        )

    def load_daily(self, date: str | None = None) -> DailyLedger:
        """Read a day's ledger.

        Args:
            date: ISO date, today (UTC) when omitted.

        Returns:
            The ledger, empty when no file exists.
        """
        date = date or self._clock().date().isoformat()
        with self._lock:
            return self._read_daily(date)

    def daily_summary(self) -> str:
        """One-line summary of today's spend."""
        daily = self.load_daily()
        status = self.check_budget()
        pct = status.ratio * 100
        local = status.spent * self._config.local_currency_rate
        return (
            f"${status.spent:.4f}/${status.budget:.2f} USD ({pct:.1f}%) "
            f"≈ {local:.2f} local | {len(daily.runs)} runs"
        )

    def _path_for(self, date: str) -> Path:
        return self._ledger_dir / f"{date}.json"

    def _read_daily(self, date: str) -> DailyLedger:
        path = self._path_for(date)
        if not path.exists():
            return DailyLedger(date=date)
        try:
            return DailyLedger.model_validate(read_json(path))
        except (ValueError, ValidationError) as e:
            self._log.warning("ledger_corrupt_rebuilt", path=str(path), error=str(e))
            return DailyLedger(date=date)
