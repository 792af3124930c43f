"""Protocol interface for LLM clients."""

from typing import Protocol, runtime_checkable

from market_digest.llm.models import LlmResponse


@runtime_checkable
class LlmClient(Protocol):
    """Protocol for text completion clients.

    Any client implementing ``complete`` can be used by the analyzer,
    which keeps tests free of network access.
    """

    def complete(self, model: str, prompt: str, max_output_tokens: int) -> LlmResponse:
        """Generate text from a prompt.

        Args:
            model: Model identifier.
            prompt: User prompt text.
            max_output_tokens: Completion token limit.

        Returns:
            Generated text with token usage.

        Raises:
            LlmApiError: If the API call fails.
        """
        ...
