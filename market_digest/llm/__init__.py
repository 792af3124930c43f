"""Model-assisted news analysis."""

from market_digest.llm.analyzer import Analyzer, normalize_regime
from market_digest.llm.errors import LlmApiError, LlmAuthError, LlmProcessingError
from market_digest.llm.factory import create_llm_client
from market_digest.llm.models import (
    AnalysisResult,
    CompletedAnalysis,
    IndustryTheme,
    LlmResponse,
    MarketRegime,
    SkippedAnalysis,
    SkipReason,
)
from market_digest.llm.protocols import LlmClient


__all__ = [
    "AnalysisResult",
    "Analyzer",
    "CompletedAnalysis",
    "IndustryTheme",
    "LlmApiError",
    "LlmAuthError",
    "LlmClient",
    "LlmProcessingError",
    "LlmResponse",
    "MarketRegime",
    "SkipReason",
    "SkippedAnalysis",
    "create_llm_client",
    "normalize_regime",
]
