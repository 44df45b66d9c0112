"""UTF-16 helpers.

Qt measures ``QString`` and ``QTextDocument`` positions in UTF-16 code units,
while Python slices by code point. Spans are stored in UTF-16 units so that
positions coming back from the text layout can be compared directly.
"""

from __future__ import annotations

import unicodedata
from typing import List

ELLIPSIS = "..."
ZWJ = "\u200d"


def unit_length(ch: str) -> int:
    return 2 if ord(ch) > 0xFFFF else 1


def utf16_length(text: str) -> int:
    return sum(unit_length(ch) for ch in text)


def utf16_offsets(text: str) -> List[int]:
    """Return a table mapping each code-point index (0..len) to its UTF-16 offset."""

    offsets = [0] * (len(text) + 1)
    total = 0
    for index, ch in enumerate(text):
        offsets[index] = total
        total += unit_length(ch)
    offsets[len(text)] = total
    return offsets


def _is_combining(ch: str) -> bool:
    # zero-width joiner and emoji presentation selector bind like marks
    return unicodedata.combining(ch) != 0 or ch in (ZWJ, "\ufe0f")


def _take_prefix(text: str, budget: int) -> str:
    used = 0
    end = 0
    for ch in text:
        size = unit_length(ch)
        if used + size > budget:
            break
        used += size
        end += 1
    # keep a base character together with the marks that follow it and
    # never end on a joiner
    while 0 < end < len(text) and (_is_combining(text[end]) or text[end - 1] == ZWJ):
        end -= 1
    return text[:end]


def _take_suffix(text: str, budget: int) -> str:
    used = 0
    start = len(text)
    for ch in reversed(text):
        size = unit_length(ch)
        if used + size > budget:
            break
        used += size
        start -= 1
    while start < len(text) and (_is_combining(text[start]) or (start > 0 and text[start - 1] == ZWJ)):
        start += 1
    return text[start:]


def truncate_middle(text: str, max_units: int, marker: str = ELLIPSIS) -> str:
    """Shorten ``text`` to at most ``max_units`` UTF-16 units.

    Keeps a prefix and a suffix joined by ``marker``. When the budget cannot
    hold the marker plus a character on each side, a plain prefix is kept.
    Never splits a surrogate pair or detaches combining marks.
    """

    if max_units < 0:
        raise ValueError("max_units must not be negative")
    if utf16_length(text) <= max_units:
        return text

    budget = max_units - utf16_length(marker)
    if budget < 2:
        return _take_prefix(text, max_units)

    head_budget = (budget + 1) // 2
    tail_budget = budget - head_budget
    head = _take_prefix(text, head_budget)
    tail = _take_suffix(text, tail_budget)
    return f"{head}{marker}{tail}"
