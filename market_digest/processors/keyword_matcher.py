"""Pre-compiled keyword matching for scoring rules."""

import re
from collections.abc import Iterable


def compile_keyword(keyword: str) -> re.Pattern[str]:
    """Compile a keyword into a case-insensitive pattern.

    ASCII keywords get word guards so that short tickers do not match
    inside longer words (e.g. "AI" in "said"). Other keywords, such as
    CJK terms, match as substrings.

    Args:
        keyword: Raw keyword.

    Returns:
        Compiled regex pattern.
    """
    escaped = re.escape(keyword)
    if keyword.isascii():
        return re.compile(rf"(?<!\w){escaped}(?!\w)", re.IGNORECASE)
    return re.compile(escaped, re.IGNORECASE)


class KeywordMatcher:
    """Counts how many keywords of a fixed list occur in a text."""

    def __init__(self, keywords: Iterable[str]) -> None:
        self._patterns = [compile_keyword(kw) for kw in keywords]

    def __len__(self) -> int:
        return len(self._patterns)

    def count_hits(self, text: str) -> int:
        """Count distinct keywords found in ``text``."""
        return sum(1 for pattern in self._patterns if pattern.search(text))

    def matches(self, text: str) -> bool:
        """Whether any keyword occurs in ``text``."""
        return any(pattern.search(text) for pattern in self._patterns)
