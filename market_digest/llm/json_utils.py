"""JSON extraction from model responses.

Models sometimes wrap JSON in markdown fences or surround it with prose.
Candidates are tried in order: the whole text, the first fenced block,
then the span from the first ``{`` to the last ``}``.
"""

import json
import re

from market_digest.llm.errors import LlmProcessingError


_FENCED_BLOCK = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL)


def fix_escape_sequences(text: str) -> str:
    """Fix invalid JSON escape sequences in model output.

    Lone backslashes that do not form a valid JSON escape are doubled.

    Args:
        text: Raw text potentially containing invalid escapes.

    Returns:
        Text with invalid escape sequences fixed.
    """
    return re.sub(r'(?<!\\)\\(?!["\\/bfnrtu])', r"\\\\", text)


def json_candidates(text: str) -> list[str]:
    """Candidate JSON object strings, in the order they should be tried."""
    trimmed = text.strip()
    candidates: list[str] = []
    if trimmed.startswith("{") and trimmed.endswith("}"):
        candidates.append(trimmed)

    fenced = _FENCED_BLOCK.search(trimmed)
    if fenced:
        candidates.append(fenced.group(1))

    start = trimmed.find("{")
    end = trimmed.rfind("}")
    if start != -1 and end > start:
        candidates.append(trimmed[start : end + 1])
    return candidates


def extract_json_object(text: str) -> dict[str, object]:
    """Parse the first JSON object found in ``text``.

    Args:
        text: Raw model output.

    Returns:
        Decoded JSON object.

    Raises:
        LlmProcessingError: If no candidate decodes to a JSON object.
    """
    for candidate in json_candidates(text):
        for attempt in (candidate, fix_escape_sequences(candidate)):
            try:
                parsed = json.loads(attempt)
            except json.JSONDecodeError:
                continue
            if isinstance(parsed, dict):
                return parsed

    msg = "No JSON object found in model response"
    raise LlmProcessingError(msg)
