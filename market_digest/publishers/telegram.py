"""Telegram Bot API publisher."""

import re
import time
from collections.abc import Callable
from dataclasses import dataclass

import httpx
import structlog

from market_digest.config.schemas import PublisherConfig
from market_digest.cost.ledger import CostLedger
from market_digest.publishers.errors import PublishError
from market_digest.publishers.splitter import split_message


logger = structlog.get_logger()

TELEGRAM_API_BASE = "https://api.telegram.org"
PARSE_MODE = "Markdown"
LEDGER_SOURCE = "telegram"
_PREVIEW_CHARS = 200
_MARKDOWN_SPECIAL = re.compile(r"([_*`\[])")


def escape_markdown(text: str) -> str:
    """Escape the characters Telegram's legacy Markdown treats as markup."""
    return _MARKDOWN_SPECIAL.sub(r"\\\1", text)


@dataclass(frozen=True)
class PublishOutcome:
    """Delivery counts for one publish call."""

    sent: int = 0
    failed: int = 0


class TelegramPublisher:
    """Sends digests and alerts to a Telegram chat.

    Long texts are split and sent sequentially with a fixed gap. Each part
    is retried with backoff; the final attempt drops ``parse_mode`` so a
    Markdown parsing error cannot block delivery. In dry-run mode every
    send is logged and nothing goes over the network.
    """

    def __init__(
        self,
        bot_token: str | None,
        chat_id: str | None,
        config: PublisherConfig | None = None,
        ledger: CostLedger | None = None,
        sleep: Callable[[float], None] = time.sleep,
        run_id: str = "",
    ) -> None:
        """Initialize the publisher.

        Args:
            bot_token: Bot token, None when not configured.
            chat_id: Target chat, None when not configured.
            config: Delivery settings, defaults when omitted.
            ledger: Optional ledger receiving one API call per sent message.
            sleep: Sleep function, injectable for tests.
            run_id: Run identifier for logging.
        """
        self._bot_token = bot_token or ""
        self._chat_id = chat_id or ""
        self._config = config or PublisherConfig()
        self._ledger = ledger
        self._sleep = sleep
        self._log = logger.bind(component="publishers", subcomponent="telegram", run_id=run_id)

    @property
    def enabled(self) -> bool:
        """Whether both the bot token and the chat ID are set."""
        return bool(self._bot_token and self._chat_id)

    @property
    def dry_run(self) -> bool:
        """Whether sends are only logged."""
        return self._config.dry_run

    def publish_text(self, text: str, label: str = "digest") -> PublishOutcome:
        """Split and send a long text.

        Args:
            text: Full message text.
            label: Name used in logs.

        Returns:
            Number of parts sent and failed.
        """
        if not text.strip():
            self._log.warning("publish_empty_text", label=label)
            return PublishOutcome()

        if not self.enabled and not self.dry_run:
            self._log.warning("telegram_not_configured", label=label)
            return PublishOutcome()

        parts = split_message(text, self._config.max_message_length)
        self._log.info("publish_started", label=label, parts=len(parts), chars=len(text))

        sent = 0
        failed = 0
        for index, part in enumerate(parts):
            if index > 0:
                self._sleep(self._config.send_interval_seconds)
            if self._send_with_retry(part):
                sent += 1
            else:
                failed += 1
                self._log.error(
                    "publish_part_failed", label=label, part=index + 1, parts=len(parts)
                )

        self._log.info("publish_complete", label=label, sent=sent, failed=failed)
        return PublishOutcome(sent=sent, failed=failed)

    def publish_alert(self, text: str) -> PublishOutcome:
        """Send a short alert as a single unsplit message.

        Args:
            text: Alert text.

        Returns:
            Number of messages sent and failed.
        """
        if not self.enabled and not self.dry_run:
            self._log.warning("telegram_not_configured", label="alert")
            return PublishOutcome()

        if self._send_with_retry(text):
            return PublishOutcome(sent=1)
        return PublishOutcome(failed=1)

    def _send_with_retry(self, text: str) -> bool:
        delays = self._config.retry_delays_seconds
        for attempt in range(len(delays) + 1):
            parse_mode = PARSE_MODE if attempt < len(delays) else None
            try:
                self._send_message(text, parse_mode)
            except PublishError as e:
                if attempt < len(delays):
                    self._log.warning(
                        "send_retry",
                        attempt=attempt + 1,
                        retry_delay=delays[attempt],
                        error=str(e),
                    )
                    self._sleep(delays[attempt])
                    continue
                self._log.error("send_failed", attempts=attempt + 1, error=str(e))
                return False

            if parse_mode is None and delays:
                self._log.warning("sent_without_parse_mode")
            if self._ledger is not None and not self.dry_run:
                self._ledger.record_api_call(LEDGER_SOURCE)
            return True
        return False

    def _send_message(self, text: str, parse_mode: str | None) -> None:
        """Send one message.

        Raises:
            PublishError: On network errors or a non-ok API response.
        """
        if self.dry_run:
            self._log.info(
                "dry_run_send",
                chat_id=self._chat_id,
                parse_mode=parse_mode or "none",
                chars=len(text),
                preview=text[:_PREVIEW_CHARS],
            )
            return

        body: dict[str, str] = {"chat_id": self._chat_id, "text": text}
        if parse_mode:
            body["parse_mode"] = parse_mode

        try:
            response = httpx.post(
                f"{TELEGRAM_API_BASE}/bot{self._bot_token}/sendMessage",
                json=body,
                timeout=self._config.timeout_seconds,
            )
        except httpx.HTTPError as exc:
            msg = f"Telegram request failed: {type(exc).__name__}"
            raise PublishError(msg) from exc

        try:
            data = response.json()
        except ValueError as exc:
            msg = f"Telegram returned non-JSON response ({response.status_code})"
            raise PublishError(msg, status_code=response.status_code) from exc

        if not data.get("ok"):
            description = data.get("description") or f"HTTP {response.status_code}"
            msg = f"Telegram API error: {description}"
            raise PublishError(msg, status_code=response.status_code)
