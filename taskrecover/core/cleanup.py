"""Structural cleanup pass: textual rewrites that are always safe.

Rules run in a fixed order because later rules assume earlier ones ran:
    1. Collapse string-concatenation artifacts (``' + '``).
    2. Remove trailing commas before ``}`` / ``]``.
    3. Quote bare identifier keys after ``{`` or ``,``.
    4. Quote bare scalar values after a colon.

Apart from the line-boundary ``",\\n' + '`` artifact, every rule only
touches text outside well-formed string literals, so prose inside a value
such as ``"Note: go north, then: turn"`` or ``"Stack crate A + 'B'"``
survives.  Every rule is iterated to a fixed point, which keeps the whole
pass idempotent.
"""

from __future__ import annotations

import re
from collections.abc import Callable

_STRING_LITERAL = re.compile(r'"(?:[^"\\]|\\.)*"', re.DOTALL)

_CONCAT_BOUNDARY = re.compile(r"([\"}])\s*,\s*[\r\n]+\s*['\"]\s*\+\s*['\"]")
_CONCAT_GAP = re.compile(r"\s*\+\s*")
_CONCAT_OPERATOR = re.compile(r"\s*\+\s*['\"]")
_TRAILING_COMMA = re.compile(r",\s*([}\]])")
_BARE_KEY = re.compile(r"([{,]\s*)([A-Za-z_]\w*)(\s*):")
_BARE_VALUE = re.compile(r":(\s*)([^\s\",{\[\]}][^,}\]\"]*?)(\s*)(?=[,}])")
_JSON_LITERAL = re.compile(r"-?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?|true|false|null")

_MAX_ROUNDS = 8


def _until_stable(rule: Callable[[str], str], text: str, limit: int | None = None) -> str:
    """Apply *rule* until the text stops changing (or *limit* rounds ran)."""
    rounds = 0
    while limit is None or rounds < limit:
        new = rule(text)
        if new == text:
            break
        text = new
        rounds += 1
    return text


def _outside_strings(text: str, rewrite: Callable[[str], str]) -> str:
    """Apply *rewrite* to every stretch of *text* between string literals."""
    out: list[str] = []
    pos = 0
    for m in _STRING_LITERAL.finditer(text):
        out.append(rewrite(text[pos : m.start()]))
        out.append(m.group(0))
        pos = m.end()
    out.append(rewrite(text[pos:]))
    return "".join(out)


# ── Rules ───────────────────────────────────────────────────────────────


def _join_adjacent_literals(text: str) -> str:
    """``"Go to " + "dock"`` → ``"Go to dock"``; only whole literals are joined."""
    out: list[str] = []
    pos = 0
    for m in _STRING_LITERAL.finditer(text):
        gap = text[pos : m.start()]
        if pos and _CONCAT_GAP.fullmatch(gap):
            out[-1] = out[-1][:-1] + m.group(0)[1:]
        else:
            out.append(gap)
            out.append(m.group(0))
        pos = m.end()
    out.append(text[pos:])
    return "".join(out)


def _concatenation_once(text: str) -> str:
    text = _CONCAT_BOUNDARY.sub(r'\1, "', text)
    text = _join_adjacent_literals(text)
    return _outside_strings(text, lambda seg: _CONCAT_OPERATOR.sub("", seg))


def collapse_concatenation(text: str) -> str:
    """Turn ``"...",\\n' + '"...`` into ``"...", "...`` and drop stray ``+ '``."""
    # Every substitution shortens the text, so this terminates
    return _until_stable(_concatenation_once, text)


def remove_trailing_commas(text: str) -> str:
    """``{"a": "b",}`` → ``{"a": "b"}``."""
    return _until_stable(lambda t: _outside_strings(t, lambda seg: _TRAILING_COMMA.sub(r"\1", seg)), text)


def quote_bare_keys(text: str) -> str:
    """``{R1: "x"}`` → ``{"R1": "x"}``."""
    return _until_stable(
        lambda t: _outside_strings(t, lambda seg: _BARE_KEY.sub(r'\1"\2"\3:', seg)),
        text,
        _MAX_ROUNDS,
    )


def _quote_value(m: re.Match[str]) -> str:
    lead, value, trail = m.group(1), m.group(2), m.group(3)
    if _JSON_LITERAL.fullmatch(value):
        return m.group(0)
    return f':{lead}"{value}"{trail}'


def quote_bare_values(text: str) -> str:
    """``{"R1": go to dock}`` → ``{"R1": "go to dock"}``; numbers and literals untouched."""
    return _until_stable(
        lambda t: _outside_strings(t, lambda seg: _BARE_VALUE.sub(_quote_value, seg)),
        text,
        _MAX_ROUNDS,
    )


RULES: tuple[Callable[[str], str], ...] = (
    collapse_concatenation,
    remove_trailing_commas,
    quote_bare_keys,
    quote_bare_values,
)


def _cleanup_once(text: str) -> str:
    for rule in RULES:
        text = rule(text)
    return text


def structural_cleanup(text: str) -> str:
    """Run every rule in order until the text reaches a fixed point."""
    return _until_stable(_cleanup_once, text, _MAX_ROUNDS)
