"""Markdown fence removal and outermost-object extraction.

Purely structural: braces are counted without any notion of strings, so
this runs safely before any string-aware repair has happened.
"""

from __future__ import annotations

import re

_LEADING_FENCE = re.compile(r"^```[\w+.-]*[ \t]*\r?\n?")
_TRAILING_FENCE = re.compile(r"\r?\n?```[ \t]*$")


def strip_fences(text: str) -> str:
    """Remove a leading ```` ```lang ```` and a trailing ```` ``` ```` fence."""
    text = text.strip()
    text = _LEADING_FENCE.sub("", text, count=1)
    text = _TRAILING_FENCE.sub("", text, count=1)
    return text.strip()


def find_envelope(text: str) -> str | None:
    """Return the first ``{`` through its matching top-level ``}``, or ``None``."""
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    for i in range(start, len(text)):
        ch = text[i]
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]
    return None


def extract_envelope(text: str) -> tuple[str, bool]:
    """Strip fences and narrow *text* to its JSON envelope.

    Returns ``(envelope, True)`` when a balanced object was found, otherwise
    ``(stripped_text, False)`` so later tiers can still scrape fields.
    """
    stripped = strip_fences(text)
    envelope = find_envelope(stripped)
    if envelope is None:
        return stripped, False
    return envelope, True
