"""Compact market data summary for prompts."""

from collections.abc import Sequence

from market_digest.news.models import MarketDataPoint


NO_MARKET_DATA = "No market data available"


def _format_change(change_pct: float | None) -> str:
    if change_pct is None:
        return ""
    return f" {change_pct:+.2f}%"


def build_market_context(points: Sequence[MarketDataPoint]) -> str:
    """Render market points as one line each, skipping missing values.

    Degraded points keep their label so the model can discount them.
    """
    lines = [
        f"{point.symbol}: {point.display_value()}{_format_change(point.change_pct)}"
        for point in points
        if point.value is not None
    ]
    return "\n".join(lines) if lines else NO_MARKET_DATA
