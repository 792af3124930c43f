"""Anthropic Messages API client."""

import random
import time
from collections.abc import Callable
from http import HTTPStatus

import anthropic
import structlog

from market_digest.llm.errors import LlmApiError
from market_digest.llm.models import LlmResponse


logger = structlog.get_logger()

_DEFAULT_TIMEOUT = 60.0
_MAX_RETRIES = 3
_RETRY_BASE_DELAY = 2.0  # seconds


def _is_retryable(status_code: int) -> bool:
    return (
        status_code == HTTPStatus.TOO_MANY_REQUESTS
        or status_code >= HTTPStatus.INTERNAL_SERVER_ERROR
    )


class AnthropicClient:
    """Client for the Anthropic Messages API.

    SDK-level retries are disabled. Requests answered with 429 or 5xx are
    retried here with exponential backoff and jitter; other failures
    raise ``LlmApiError`` immediately.
    """

    def __init__(
        self,
        api_key: str,
        timeout: float = _DEFAULT_TIMEOUT,
        max_retries: int = _MAX_RETRIES,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: Anthropic API key.
            timeout: Per-request timeout in seconds.
            max_retries: Retries after the first attempt.
            sleep: Sleep function, injectable for tests.
        """
        self._client = anthropic.Anthropic(api_key=api_key, timeout=timeout, max_retries=0)
        self._max_retries = max_retries
        self._sleep = sleep
        self._log = logger.bind(component="llm", subcomponent="anthropic")

    def complete(self, model: str, prompt: str, max_output_tokens: int) -> LlmResponse:
        """Send a single-turn prompt.

        Args:
            model: Model identifier.
            prompt: User prompt text.
            max_output_tokens: Completion token limit.

        Returns:
            Generated text with token usage.

        Raises:
            LlmApiError: If the call fails after all retries.
        """
        for attempt in range(self._max_retries + 1):
            try:
                message = self._client.messages.create(
                    model=model,
                    max_tokens=max_output_tokens,
                    messages=[{"role": "user", "content": prompt}],
                )
            except anthropic.APIStatusError as exc:
                if _is_retryable(exc.status_code) and attempt < self._max_retries:
                    delay = _RETRY_BASE_DELAY * (2**attempt) + random.uniform(0, 1)  # noqa: S311
                    self._log.warning(
                        "llm_retryable_error",
                        model=model,
                        status=exc.status_code,
                        attempt=attempt + 1,
                        retry_delay=round(delay, 1),
                    )
                    self._sleep(delay)
                    continue
                msg = f"Anthropic API returned {exc.status_code}: {exc.message}"
                raise LlmApiError(msg, status_code=exc.status_code) from exc
            except anthropic.APIError as exc:
                msg = f"Anthropic API request failed: {exc}"
                raise LlmApiError(msg) from exc

            text = "".join(
                block.text for block in message.content if block.type == "text"
            )
            if not text:
                # still billed; callers record usage and treat "" as unparseable
                self._log.warning(
                    "llm_empty_response",
                    model=model,
                    stop_reason=getattr(message, "stop_reason", None),
                )

            self._log.debug(
                "llm_call_complete",
                model=model,
                input_tokens=message.usage.input_tokens,
                output_tokens=message.usage.output_tokens,
            )
            return LlmResponse(
                text=text,
                input_tokens=message.usage.input_tokens,
                output_tokens=message.usage.output_tokens,
            )

        msg = "All retries exhausted"
        raise LlmApiError(msg)
