"""Message splitting for length-limited delivery channels."""


def part_label(index: int, total: int) -> str:
    """Suffix appended to each part when a message is split."""
    return f"\n[{index}/{total}]"


def _find_cut_point(text: str, budget: int) -> int:
    chunk = text[:budget]
    half = budget * 0.5

    blank_line = chunk.rfind("\n\n")
    if blank_line > half:
        return blank_line + 2

    newline = chunk.rfind("\n")
    if newline > half:
        return newline + 1

    return budget


def _split_by_paragraph(text: str, budget: int) -> list[str]:
    parts: list[str] = []
    remaining = text
    while len(remaining) > budget:
        cut = _find_cut_point(remaining, budget)
        part = remaining[:cut].rstrip()
        if part:
            parts.append(part)
        remaining = remaining[cut:].lstrip()
    if remaining:
        parts.append(remaining)
    return parts


def split_message(text: str, max_len: int) -> list[str]:
    """Split text into parts no longer than ``max_len``.

    Cuts prefer the last blank line past half of the budget, then the last
    newline past half, then a hard cut. When more than one part results,
    each gets a ``\\n[i/N]`` suffix whose width is reserved up front.

    Args:
        text: Message text.
        max_len: Maximum part length, suffix included.

    Returns:
        Message parts, empty for empty text.

    Raises:
        ValueError: If ``max_len`` cannot hold a part label.
    """
    if not text:
        return []
    if len(text) <= max_len:
        return [text]

    total_guess = 2
    while True:
        reserve = len(part_label(total_guess, total_guess))
        budget = max_len - reserve
        if budget <= 0:
            msg = f"max_len {max_len} is too small to hold part labels"
            raise ValueError(msg)

        parts = _split_by_paragraph(text, budget)
        if len(part_label(len(parts), len(parts))) <= reserve:
            break
        total_guess = len(parts)

    if len(parts) == 1:
        return parts
    return [part + part_label(i, len(parts)) for i, part in enumerate(parts, 1)]
