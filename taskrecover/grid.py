"""Occupancy grid and obstacle filtering for extracted coordinate paths."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from enum import Enum

from taskrecover.core.log import safe_print

Coordinate = tuple[int, int]


class CellTag(str, Enum):
    PATH = "."
    SHELF = "S"
    CHARGING = "C"
    LOADING = "L"
    UNLOADING = "U"


class OccupancyGrid:
    """Read-only 2-D map of cell tags, indexed ``[row][col]``.

    Usage::

        grid = OccupancyGrid.from_rows(["..S", "...", "CLU"])
        grid.tag_at(0, 2)   # CellTag.SHELF
    """

    __slots__ = ("_rows",)

    def __init__(self, rows: Iterable[Iterable[CellTag]]):
        self._rows: tuple[tuple[CellTag, ...], ...] = tuple(tuple(row) for row in rows)

    @classmethod
    def from_rows(cls, rows: Iterable[str | Sequence[str]]) -> OccupancyGrid:
        """Build a grid from strings (``"..S"``) or lists of single-char tags.

        Raises ``ValueError`` for any tag outside the known legend.
        """
        parsed = []
        for r, row in enumerate(rows):
            cells = []
            for c, raw in enumerate(row):
                try:
                    cells.append(CellTag(raw))
                except ValueError:
                    legend = ", ".join(t.value for t in CellTag)
                    raise ValueError(f"Unknown cell tag {raw!r} at ({r}, {c}); expected one of {legend}") from None
            parsed.append(cells)
        return cls(parsed)

    @property
    def rows(self) -> tuple[tuple[CellTag, ...], ...]:
        return self._rows

    @property
    def height(self) -> int:
        return len(self._rows)

    @property
    def width(self) -> int:
        return max((len(row) for row in self._rows), default=0)

    def tag_at(self, row: int, col: int) -> CellTag | None:
        """Return the tag at ``(row, col)`` or ``None`` when out of bounds."""
        if 0 <= row < len(self._rows) and 0 <= col < len(self._rows[row]):
            return self._rows[row][col]
        return None

    def is_blocked(self, row: int, col: int, blocked: frozenset[CellTag] = frozenset({CellTag.SHELF})) -> bool:
        return self.tag_at(row, col) in blocked


def filter_obstacles(
    path: Sequence[Coordinate],
    grid: OccupancyGrid,
    blocked: frozenset[CellTag] = frozenset({CellTag.SHELF}),
) -> list[Coordinate]:
    """Drop coordinates that land on a blocked cell, preserving order.

    Out-of-bounds coordinates are kept; the caller owns bounds checking.
    If every coordinate would be dropped, the original path is returned.
    """
    kept = [pair for pair in path if not grid.is_blocked(pair[0], pair[1], blocked)]
    if len(kept) < len(path):
        safe_print(f"Filtered {len(path) - len(kept)} obstacle cells from path", logging.WARNING)
    if not kept:
        return list(path)
    return kept
