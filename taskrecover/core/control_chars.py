"""Escape raw control characters that landed inside string values.

A value is presumed to start at a ``: "`` marker and run until the next
unescaped quote.  Line breaks the producer inserted *between* properties
are formatting, not data, and are collapsed instead.
"""

from __future__ import annotations

import re

_VALUE_REGION = re.compile(r'(:\s*")((?:[^"\\]|\\[^\r\n])*)')
_CONTROL = re.compile(r"[\n\r\t]")
_ESCAPES = {"\n": "\\n", "\r": "\\r", "\t": "\\t"}

# Quote/brace, line break(s), then the next key (lookahead keeps the quote
# available as the start of the following match)
_BREAK_BEFORE_KEY = re.compile(r'(["}])[ \t]*[\r\n]+\s*(?=")')
_BREAK_BEFORE_CLOSE = re.compile(r'(["}])[ \t]*[\r\n]+\s*(?=})')


def _escape_region(m: re.Match[str]) -> str:
    return m.group(1) + _CONTROL.sub(lambda c: _ESCAPES[c.group(0)], m.group(2))


def escape_control_chars(text: str) -> str:
    """Replace raw ``\\n`` / ``\\r`` / ``\\t`` inside presumed values with escapes."""
    return _VALUE_REGION.sub(_escape_region, text)


def collapse_property_breaks(text: str) -> str:
    """``"a"\\n  "R2"`` → ``"a", "R2"`` and ``"a"\\n}`` → ``"a"}``."""
    text = _BREAK_BEFORE_KEY.sub(r"\1, ", text)
    return _BREAK_BEFORE_CLOSE.sub(r"\1", text)


def normalize_control_chars(text: str) -> str:
    """Full control-character pass: escape inside values, collapse between them."""
    return collapse_property_breaks(escape_control_chars(text))
