"""Quote-disambiguation state machine.

Generative text often embeds quoted words inside a value
(``"Navigate to the "loading dock" now"``).  Once the producer has broken
the escaping contract there is no grammar left to lean on, so each quote
inside a value is classified from local punctuation alone:

* followed by ``,`` ``}`` ``]``, a line break, end of input, or the next
  ``"<schema key>":`` → it closes the value;
* anything else → it is content and is rewritten to ``\\"``.

Already-escaped quotes are copied through untouched, so the pass is
idempotent.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from enum import Enum

_CLOSERS = frozenset(",}]")
_LINE_BREAKS = frozenset("\r\n")
_INLINE_SPACE = frozenset(" \t")


class ScanState(Enum):
    OUTSIDE = "outside"
    IN_VALUE = "in_value"


def _key_pattern(schema_keys: Iterable[str]) -> re.Pattern[str]:
    alternatives = "|".join(re.escape(k) for k in schema_keys)
    return re.compile(rf'"(?:{alternatives})"\s*:')


def _prev_significant(text: str, i: int) -> str:
    j = i - 1
    while j >= 0 and text[j].isspace():
        j -= 1
    return text[j] if j >= 0 else ""


def _next_inline(text: str, i: int) -> int:
    """Index of the first char after *i* that is not a space or tab."""
    j = i + 1
    while j < len(text) and text[j] in _INLINE_SPACE:
        j += 1
    return j


def _closes_value(text: str, i: int, key_re: re.Pattern[str]) -> bool:
    j = _next_inline(text, i)
    if j >= len(text):
        return True
    nxt = text[j]
    if nxt in _CLOSERS or nxt in _LINE_BREAKS:
        return True
    # ``""`` that is not the next key: this quote is content and the next
    # one is classified on its own
    return nxt == '"' and key_re.match(text, j) is not None


def disambiguate_quotes(text: str, schema_keys: Iterable[str]) -> str:
    """Escape quotes that sit inside string values but do not terminate them."""
    key_re = _key_pattern(schema_keys)
    out: list[str] = []
    state = ScanState.OUTSIDE
    escape_next = False

    for i, ch in enumerate(text):
        if escape_next:
            out.append(ch)
            escape_next = False
            continue

        if ch == "\\":
            out.append(ch)
            escape_next = True
            continue

        if ch != '"':
            out.append(ch)
            continue

        if state is ScanState.OUTSIDE:
            if _prev_significant(text, i) == ":":
                state = ScanState.IN_VALUE
            out.append(ch)
        elif _closes_value(text, i, key_re):
            state = ScanState.OUTSIDE
            out.append(ch)
        else:
            out.append('\\"')

    return "".join(out)
