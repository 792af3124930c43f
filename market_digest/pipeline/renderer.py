"""Plain-text digest rendering."""

from typing import Protocol

from market_digest.llm.models import CompletedAnalysis
from market_digest.pipeline.models import ProcessResult
from market_digest.publishers.telegram import escape_markdown


class DigestRenderer(Protocol):
    """Turns a process result into the message text to publish."""

    def render(self, result: ProcessResult, cost_summary: str | None = None) -> str:
        """Render the digest text."""
        ...


def _format_change(change_pct: float | None) -> str:
    if change_pct is None:
        return ""
    return f" ({change_pct:+.2f}%)"


class PlainDigestRenderer:
    """Default renderer: snapshot, market table, top news and themes.

    Market values are shown through ``display_value`` so degraded points
    always carry their label. The layout uses no markup, so the whole
    text is escaped for Telegram's Markdown send mode.
    """

    def __init__(self, top_news_count: int = 10) -> None:
        self._top_news_count = top_news_count

    def render(self, result: ProcessResult, cost_summary: str | None = None) -> str:
        sections: list[str] = [f"Market Digest {result.date}"]
        analysis = result.analysis

        if isinstance(analysis, CompletedAnalysis):
            header = [f"Regime: {analysis.market_regime.value}"]
            if analysis.structural_theme:
                header.append(f"Theme: {analysis.structural_theme}")
            if analysis.narrative_snapshot:
                header.insert(0, analysis.narrative_snapshot)
            sections.append("\n".join(header))
            news = analysis.ranked_news
        else:
            sections.append(f"Analysis unavailable ({analysis.reason.value})")
            news = result.news

        if result.market:
            lines = ["Markets"]
            lines.extend(
                f"{point.symbol}: {point.display_value()}{_format_change(point.change_pct)}"
                for point in result.market
            )
            sections.append("\n".join(lines))

        if news:
            lines = ["Top News"]
            for item in news[: self._top_news_count]:
                line = f"[{item.importance.value}] {item.title}"
                blurb = item.ai_summary or item.summary
                if blurb:
                    line += f"\n  {blurb}"
                lines.append(line)
            sections.append("\n".join(lines))

        if isinstance(analysis, CompletedAnalysis):
            if analysis.industry_themes:
                lines = ["Industries"]
                for theme in analysis.industry_themes:
                    line = f"- {theme.industry}"
                    if theme.summary:
                        line += f": {theme.summary}"
                    if theme.key_companies:
                        line += f" ({', '.join(theme.key_companies)})"
                    lines.append(line)
                sections.append("\n".join(lines))
            if analysis.key_insights:
                lines = ["Key Insights"]
                lines.extend(f"- {insight}" for insight in analysis.key_insights)
                sections.append("\n".join(lines))

        if cost_summary:
            sections.append(f"Cost: {cost_summary}")

        return escape_markdown("\n\n".join(sections))
