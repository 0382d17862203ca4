"""Plain-text summaries stored alongside entry content."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from entrysync.domain.ports import Sanitizer

_WHITESPACE = re.compile(r"\s+")


def summarize(sanitizer: Sanitizer, content: str | None, length: int) -> str | None:
    """Return at most ``length`` characters of text, cut on a word boundary when possible."""

    if not content:
        return None
    text = _WHITESPACE.sub(" ", sanitizer.strip(content)).strip()
    if len(text) <= length:
        return text
    cut = text[:length]
    boundary = cut.rfind(" ")
    if boundary > 0:
        cut = cut[:boundary]
    return cut.rstrip()
