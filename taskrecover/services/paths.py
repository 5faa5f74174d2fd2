"""Coordinate-path extraction from recovered task text.

Locates a ``[[row, col], ...]`` literal by balanced-bracket counting, then
degrades from strict JSON to whitespace-collapsed JSON to a plain pair
scrape, so a damaged literal still yields every pair that can be read.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from taskrecover.config import RecoverySettings, get_settings
from taskrecover.core.log import safe_print
from taskrecover.errors import MalformedCoordinateLiteral
from taskrecover.grid import CellTag, Coordinate, OccupancyGrid, filter_obstacles

_MARKED_START = re.compile(r"path:\s*(?=\[\[)", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")
_PAIR = re.compile(r"\[\s*(-?\d+)\s*,\s*(-?\d+)\s*\]")
_INT_TEXT = re.compile(r"-?[0-9]+")


def find_coordinate_literal(text: str) -> str | None:
    """Return the minimal balanced ``[[...]]`` literal in *text*.

    A ``[[`` introduced by ``path:`` is preferred over an earlier bare one.
    An unclosed literal (truncated output) yields the rest of the text.
    """
    marked = _MARKED_START.search(text)
    start = marked.end() if marked else text.find("[[")
    if start == -1:
        return None

    depth = 0
    for i in range(start, len(text)):
        ch = text[i]
        if ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]
    return text[start:]


def _as_int(value: Any) -> int:
    if isinstance(value, bool):
        raise MalformedCoordinateLiteral(f"boolean is not a coordinate: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and _INT_TEXT.fullmatch(value.strip()):
        return int(value.strip())
    raise MalformedCoordinateLiteral(f"not an integer coordinate: {value!r}")


def coerce_pair(item: Any) -> Coordinate:
    """Coerce one literal item to ``(row, col)`` or raise ``MalformedCoordinateLiteral``."""
    if not isinstance(item, (list, tuple)) or len(item) < 2:
        raise MalformedCoordinateLiteral(f"not a coordinate pair: {item!r}")
    return _as_int(item[0]), _as_int(item[1])


def _load_list(literal: str) -> list | None:
    for candidate in (literal, _WHITESPACE.sub("", literal)):
        try:
            parsed = json.loads(candidate)
        except (json.JSONDecodeError, RecursionError):
            continue
        if isinstance(parsed, list):
            return parsed
    return None


def parse_coordinate_literal(literal: str) -> list[Coordinate]:
    """Parse a coordinate literal, dropping malformed items rather than failing."""
    items = _load_list(literal)
    if items is None:
        safe_print("Coordinate literal is not valid JSON; scraping pairs", logging.DEBUG)
        return [(int(a), int(b)) for a, b in _PAIR.findall(literal)]

    pairs: list[Coordinate] = []
    dropped = 0
    for item in items:
        try:
            pairs.append(coerce_pair(item))
        except MalformedCoordinateLiteral as exc:
            dropped += 1
            safe_print(f"Dropping malformed coordinate: {exc}", logging.DEBUG, error=str(exc))
    if dropped:
        safe_print(f"Dropped {dropped} malformed coordinate(s) from path", logging.WARNING)
    return pairs


def extract_path(
    value: str | None,
    grid: OccupancyGrid | None = None,
    *,
    settings: RecoverySettings | None = None,
) -> list[Coordinate]:
    """Extract the ``(row, col)`` path embedded in *value*.

    With a *grid*, coordinates on blocked cells are filtered out (falling
    back to the unfiltered path if nothing would remain).
    """
    if not value:
        return []
    literal = find_coordinate_literal(value)
    if literal is None:
        return []

    path = parse_coordinate_literal(literal)
    if grid is None or not path:
        return path

    settings = settings or get_settings()
    blocked = frozenset(CellTag(tag) for tag in settings.blocked_cell_tags)
    return filter_obstacles(path, grid, blocked)
