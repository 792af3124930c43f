"""Data models for model calls and analysis results."""

from dataclasses import dataclass
from enum import Enum
from typing import Literal

from pydantic import Field

from market_digest.data_model import StrictBaseModel
from market_digest.news.models import ScoredNewsItem


@dataclass(frozen=True)
class LlmResponse:
    """Text completion with token usage.

    Attributes:
        text: Generated text.
        input_tokens: Prompt tokens billed.
        output_tokens: Completion tokens billed.
    """

    text: str
    input_tokens: int
    output_tokens: int


class MarketRegime(str, Enum):
    """Overall market stance."""

    RISK_ON = "RiskOn"
    RISK_OFF = "RiskOff"
    NEUTRAL = "Neutral"


class SkipReason(str, Enum):
    """Why analysis produced no model output."""

    NO_CREDENTIAL = "no_credential"
    OVER_BUDGET = "over_budget"
    NO_NEWS = "no_news"
    ERROR = "error"


class IndustryTheme(StrictBaseModel):
    """A hot industry extracted by the deep stage.

    Attributes:
        industry: Industry name.
        summary: Short summary.
        key_companies: Tickers or company names.
        validated: Whether the industry matched the whitelist.
        tag: ``other`` for the single allowed unlisted industry.
    """

    industry: str
    summary: str = ""
    key_companies: list[str] = Field(default_factory=list)
    validated: bool = True
    tag: str | None = None


class SkippedAnalysis(StrictBaseModel):
    """Analysis that made no usable model call."""

    skipped: Literal[True] = True
    reason: SkipReason
    detail: str | None = None


class CompletedAnalysis(StrictBaseModel):
    """Result of both analysis stages."""

    skipped: Literal[False] = False
    ranked_news: list[ScoredNewsItem]
    narrative_snapshot: str
    market_regime: MarketRegime = MarketRegime.NEUTRAL
    structural_theme: str = ""
    industry_themes: list[IndustryTheme] = Field(default_factory=list)
    key_insights: list[str] = Field(default_factory=list)


AnalysisResult = SkippedAnalysis | CompletedAnalysis
