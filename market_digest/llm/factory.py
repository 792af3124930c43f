"""Factory for creating LLM clients from settings."""

import structlog

from market_digest.llm.errors import LlmAuthError
from market_digest.llm.protocols import LlmClient


logger = structlog.get_logger()


def create_llm_client(*, api_key: str | None, timeout: float = 60.0) -> LlmClient:
    """Create an LLM client.

    Args:
        api_key: Anthropic API key.
        timeout: Per-request timeout in seconds.

    Returns:
        An LlmClient implementation ready for use.

    Raises:
        LlmAuthError: If no API key is configured.
    """
    if not api_key:
        msg = "No model credentials configured (need ANTHROPIC_API_KEY)"
        raise LlmAuthError(msg)

    from market_digest.llm.anthropic_client import AnthropicClient

    logger.bind(component="llm", subcomponent="factory").info(
        "llm_client_created", provider="anthropic"
    )
    return AnthropicClient(api_key=api_key, timeout=timeout)
