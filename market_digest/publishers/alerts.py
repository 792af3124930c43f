"""Operational alerts with per-key cooldown."""

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum

import structlog

from market_digest.config.schemas import AlertsConfig
from market_digest.cost.models import BudgetStatus
from market_digest.publishers.telegram import TelegramPublisher, escape_markdown


logger = structlog.get_logger()

REASON_COOLDOWN = "cooldown"
REASON_NO_PUBLISHER = "no_publisher"
REASON_SEND_FAILED = "send_failed"

_MAX_LISTED_FIELDS = 10
_MAX_LISTED_WARNINGS = 5


class AlertLevel(str, Enum):
    """Alert severity."""

    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


_LEVEL_MARKERS = {
    AlertLevel.INFO: "ℹ️",
    AlertLevel.WARNING: "⚠️",
    AlertLevel.ERROR: "🚨",
    AlertLevel.CRITICAL: "⛔",
}


@dataclass
class Alert:
    """Last alert sent under a key. Kept in memory only."""

    key: str
    level: AlertLevel
    text: str
    last_sent_at: datetime


@dataclass(frozen=True)
class AlertOutcome:
    """Result of an alert send attempt."""

    sent: bool
    skipped: bool = False
    reason: str | None = None


def format_alert(title: str, body: str, level: AlertLevel, now: datetime) -> str:
    """Format an alert message with a level marker and a timestamp.

    Title and body are escaped for Telegram's Markdown send mode.
    """
    stamp = now.strftime("%Y-%m-%d %H:%M UTC")
    return escape_markdown(f"{_LEVEL_MARKERS[level]} {title}\n{stamp}\n\n{body}")


class AlertPublisher:
    """Routes operational alerts through a publisher with cooldowns.

    An alert key that was sent within the cooldown window is skipped.
    The send timestamp is recorded before delivery, so a failed send
    still starts the cooldown.
    """

    def __init__(
        self,
        publisher: TelegramPublisher | None,
        config: AlertsConfig | None = None,
        clock: Callable[[], datetime] | None = None,
        run_id: str = "",
    ) -> None:
        """Initialize the alert publisher.

        Args:
            publisher: Delivery channel, None to log alerts only.
            config: Alert settings, defaults when omitted.
            clock: UTC clock, injectable for tests.
            run_id: Run identifier for logging.
        """
        self._publisher = publisher
        self._config = config or AlertsConfig()
        self._clock = clock or (lambda: datetime.now(UTC))
        self._cooldown = timedelta(minutes=self._config.cooldown_minutes)
        self._history: dict[str, Alert] = {}
        self._log = logger.bind(component="publishers", subcomponent="alerts", run_id=run_id)

    @property
    def history(self) -> dict[str, Alert]:
        """Last alert per key."""
        return dict(self._history)

    def phase_failed(
        self,
        phase: str,
        error: BaseException | str,
        message: str | None = None,
    ) -> AlertOutcome:
        """Alert that a pipeline phase failed after retries."""
        lines = [f"Phase: {phase}", f"Error: {error}"]
        if message:
            lines.append(message)
        text = format_alert(
            "Pipeline phase failed", "\n".join(lines), AlertLevel.ERROR, self._clock()
        )
        return self._send(f"phase-failed-{phase}", text, AlertLevel.ERROR)

    def degraded_fields(self, fields: Sequence[str]) -> AlertOutcome | None:
        """Alert when at least ``degraded_threshold`` fields are degraded.

        Returns:
            Outcome, or None when below the threshold.
        """
        if len(fields) < self._config.degraded_threshold:
            return None
        listed = ", ".join(fields[:_MAX_LISTED_FIELDS])
        text = format_alert(
            "Market data degraded",
            f"{len(fields)} fields degraded:\n{listed}",
            AlertLevel.WARNING,
            self._clock(),
        )
        key = "degraded-" + "-".join(fields[:3])
        return self._send(key, text, AlertLevel.WARNING)

    def cross_check_mismatch(self, warnings: Sequence[str]) -> AlertOutcome | None:
        """Alert on cross-source validation mismatches.

        Returns:
            Outcome, or None when there are no warnings.
        """
        if not warnings:
            return None
        text = format_alert(
            "Cross-check mismatch",
            "\n".join(warnings[:_MAX_LISTED_WARNINGS]),
            AlertLevel.WARNING,
            self._clock(),
        )
        return self._send("cross-check-mismatch", text, AlertLevel.WARNING)

    def budget(self, status: BudgetStatus) -> AlertOutcome:
        """Alert on spend approaching or exceeding the daily budget."""
        level = AlertLevel.ERROR if status.over_budget else AlertLevel.WARNING
        title = "Budget exceeded" if status.over_budget else "Budget warning"
        body = (
            f"Spent today: ${status.spent:.4f} "
            f"({status.ratio * 100:.1f}% of ${status.budget:.2f})"
        )
        text = format_alert(title, body, level, self._clock())
        return self._send(f"budget-{level.value}", text, level)

    def critical_no_data(self, date: str) -> AlertOutcome:
        """Alert that every data source failed and no digest was produced."""
        text = format_alert(
            "CRITICAL: all data sources failed",
            f"No digest for {date}: every market data source failed. "
            "Check provider status and network connectivity.",
            AlertLevel.CRITICAL,
            self._clock(),
        )
        return self._send(f"critical-no-data-{date}", text, AlertLevel.CRITICAL)

    def pipeline_success(
        self,
        date: str,
        duration_seconds: float,
        cost_usd: float | None = None,
        degraded: int = 0,
    ) -> AlertOutcome:
        """Notify that the pipeline completed."""
        lines = [f"Date: {date}", f"Duration: {round(duration_seconds)}s"]
        if cost_usd is not None:
            lines.append(f"Cost: ${cost_usd:.4f}")
        if degraded > 0:
            lines.append(f"Degraded fields: {degraded}")
        text = format_alert("Pipeline complete", "\n".join(lines), AlertLevel.INFO, self._clock())
        return self._send(f"pipeline-ok-{date}", text, AlertLevel.INFO)

    def _send(self, key: str, text: str, level: AlertLevel) -> AlertOutcome:
        now = self._clock()
        previous = self._history.get(key)
        if previous is not None and now - previous.last_sent_at < self._cooldown:
            self._log.debug("alert_cooldown_active", alert_key=key)
            return AlertOutcome(sent=False, skipped=True, reason=REASON_COOLDOWN)

        self._log.warning("alert_raised", alert_key=key, level=level.value)
        self._history[key] = Alert(key=key, level=level, text=text, last_sent_at=now)

        if self._publisher is None:
            self._log.warning("alert_logged_only", alert_key=key)
            return AlertOutcome(sent=False, reason=REASON_NO_PUBLISHER)

        outcome = self._publisher.publish_alert(text)
        if outcome.sent == 0:
            return AlertOutcome(sent=False, reason=REASON_SEND_FAILED)
        return AlertOutcome(sent=True)
