"""Two-stage model-assisted news analysis.

Stage 1 (triage) re-ranks up to ``triage_max_items`` items with a cheap
model. Stage 2 (deep) writes the narrative snapshot from the top
``deep_max_items`` triage results with a stronger model. Token usage of
every call is recorded in the cost ledger before its output is parsed.
"""

import re
from collections.abc import Sequence

import structlog

from market_digest.config.schemas import AnalyzerConfig
from market_digest.cost.ledger import CostLedger
from market_digest.llm.errors import LlmApiError, LlmProcessingError
from market_digest.llm.json_utils import extract_json_object
from market_digest.llm.market_context import build_market_context
from market_digest.llm.models import (
    AnalysisResult,
    CompletedAnalysis,
    LlmResponse,
    MarketRegime,
    SkippedAnalysis,
    SkipReason,
)
from market_digest.llm.prompts import build_deep_prompt, build_triage_prompt
from market_digest.llm.protocols import LlmClient
from market_digest.llm.themes import validate_industry_themes
from market_digest.news.models import MarketDataPoint, ScoredNewsItem, Tier
from market_digest.processors.scorer import select_for_analysis


logger = structlog.get_logger()

DEFAULT_CATEGORY = "structural"
FALLBACK_SNAPSHOT_CHARS = 200

_NON_LETTERS = re.compile(r"[^a-z]")


def normalize_regime(value: object) -> MarketRegime:
    """Map free-form regime text (e.g. ``Risk-on``) onto MarketRegime."""
    key = _NON_LETTERS.sub("", str(value or "").lower())
    if key == "riskon":
        return MarketRegime.RISK_ON
    if key == "riskoff":
        return MarketRegime.RISK_OFF
    return MarketRegime.NEUTRAL


def _parse_tier(value: object, default: Tier) -> Tier:
    if not isinstance(value, str):
        return default
    try:
        return Tier(value.strip().upper())
    except ValueError:
        return default


class Analyzer:
    """Runs the two analysis stages under credential and budget guards.

    ``analyze`` never raises for model failures: a missing client, an
    exhausted budget, empty input or an API error all produce a
    ``SkippedAnalysis`` with the matching reason.
    """

    def __init__(
        self,
        client: LlmClient | None,
        ledger: CostLedger,
        config: AnalyzerConfig | None = None,
        run_id: str = "",
    ) -> None:
        """Initialize the analyzer.

        Args:
            client: Model client, None when no credential is configured.
            ledger: Cost ledger for budget checks and usage records.
            config: Stage settings, defaults when omitted.
            run_id: Run identifier for logging.
        """
        self._client = client
        self._ledger = ledger
        self._config = config or AnalyzerConfig()
        self._run_id = run_id
        self._log = logger.bind(component="llm", subcomponent="analyzer", run_id=run_id)

    def analyze(
        self,
        items: Sequence[ScoredNewsItem],
        market: Sequence[MarketDataPoint] = (),
    ) -> AnalysisResult:
        """Analyze scored, deduplicated news.

        Args:
            items: Items in scorer order.
            market: Market data points for prompt context.

        Returns:
            CompletedAnalysis, or SkippedAnalysis with a reason.
        """
        if self._client is None:
            self._log.warning("analysis_skipped", reason=SkipReason.NO_CREDENTIAL.value)
            return SkippedAnalysis(reason=SkipReason.NO_CREDENTIAL)

        budget = self._ledger.check_budget()
        if budget.over_budget:
            self._log.warning(
                "analysis_skipped",
                reason=SkipReason.OVER_BUDGET.value,
                spent=budget.spent,
                budget=budget.budget,
            )
            return SkippedAnalysis(
                reason=SkipReason.OVER_BUDGET,
                detail=f"spent ${budget.spent:.4f} of ${budget.budget:.2f}",
            )

        if not items:
            self._log.warning("analysis_skipped", reason=SkipReason.NO_NEWS.value)
            return SkippedAnalysis(reason=SkipReason.NO_NEWS)

        market_context = build_market_context(market)
        try:
            ranked, top = self._triage(self._client, items, market_context)
            return self._deep(self._client, ranked, top, market_context)
        except LlmApiError as e:
            self._log.error("analysis_failed", error=str(e), status_code=e.status_code)
            return SkippedAnalysis(reason=SkipReason.ERROR, detail=str(e))

    def _call(self, client: LlmClient, model: str, prompt: str, max_tokens: int) -> LlmResponse:
        response = client.complete(model, prompt, max_tokens)
        self._ledger.record_model_usage(
            model,
            input_tokens=response.input_tokens,
            output_tokens=response.output_tokens,
        )
        return response

    def _triage(
        self,
        client: LlmClient,
        items: Sequence[ScoredNewsItem],
        market_context: str,
    ) -> tuple[list[ScoredNewsItem], list[ScoredNewsItem]]:
        """Stage 1: re-rank items, falling back to scorer order.

        Returns:
            Tuple of (ranked items, items for the deep stage).
        """
        candidates = list(items[: self._config.triage_max_items])
        prompt = build_triage_prompt(candidates, market_context)
        response = self._call(
            client,
            self._config.triage_model,
            prompt,
            self._config.triage_max_output_tokens,
        )

        deep_max = self._config.deep_max_items
        try:
            ranked = self._parse_triage(response.text, candidates)
            top = ranked[:deep_max]
        except LlmProcessingError as e:
            self._log.warning("triage_parse_failed", error=str(e), fallback="scorer_order")
            ranked = [
                item.model_copy(update={"category": item.category or DEFAULT_CATEGORY})
                for item in candidates
            ]
            _, preferred = select_for_analysis(
                ranked, max_triage=len(ranked), max_deep=deep_max
            )
            top = preferred or ranked[:deep_max]

        self._log.info("triage_complete", ranked=len(ranked), candidates=len(candidates))
        return ranked, top

    @staticmethod
    def _parse_triage(
        text: str,
        candidates: Sequence[ScoredNewsItem],
    ) -> list[ScoredNewsItem]:
        data = extract_json_object(text)
        entries = data.get("ranked")
        if not isinstance(entries, list):
            msg = "Triage response has no 'ranked' list"
            raise LlmProcessingError(msg)

        ranked: list[ScoredNewsItem] = []
        seen: set[int] = set()
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            index = entry.get("index")
            if not isinstance(index, int) or not 1 <= index <= len(candidates):
                continue
            if index in seen:
                continue
            seen.add(index)

            item = candidates[index - 1]
            priority = entry.get("priority")
            tier = _parse_tier(priority, item.importance)
            summary = entry.get("summary") or entry.get("aiSummary") or ""
            ranked.append(
                item.model_copy(
                    update={
                        "importance": tier,
                        "category": str(entry.get("category") or DEFAULT_CATEGORY),
                        "ai_summary": str(summary),
                    }
                )
            )

        if not ranked:
            msg = "Triage response ranked no valid items"
            raise LlmProcessingError(msg)
        return ranked

    def _deep(
        self,
        client: LlmClient,
        ranked: list[ScoredNewsItem],
        top: list[ScoredNewsItem],
        market_context: str,
    ) -> CompletedAnalysis:
        """Stage 2: narrative snapshot and themes for the top items."""
        prompt = build_deep_prompt(top, market_context, self._config.max_insights)
        response = self._call(
            client,
            self._config.deep_model,
            prompt,
            self._config.deep_max_output_tokens,
        )

        try:
            data = extract_json_object(response.text)
        except LlmProcessingError as e:
            self._log.warning("deep_parse_failed", error=str(e))
            return CompletedAnalysis(
                ranked_news=ranked,
                narrative_snapshot=response.text[:FALLBACK_SNAPSHOT_CHARS],
            )

        raw_themes = data.get("industryThemes")
        raw_insights = data.get("keyInsights")
        insights = (
            [str(i) for i in raw_insights if isinstance(i, str) and i.strip()]
            if isinstance(raw_insights, list)
            else []
        )
        result = CompletedAnalysis(
            ranked_news=ranked,
            narrative_snapshot=str(data.get("snapshot") or ""),
            market_regime=normalize_regime(data.get("regime")),
            structural_theme=str(data.get("theme") or ""),
            industry_themes=validate_industry_themes(
                raw_themes if isinstance(raw_themes, list) else [],
                run_id=self._run_id,
            ),
            key_insights=insights[: self._config.max_insights],
        )
        self._log.info(
            "deep_analysis_complete",
            market_regime=result.market_regime.value,
            industries=len(result.industry_themes),
            insights=len(result.key_insights),
        )
        return result
