"""Tiered parse attempt chain for LLM task objects.

Tiers (ordered from safest to most aggressive):
    1. ``raw``                   – ``json.loads`` on the envelope.
    2. ``structural_cleanup``    – after the structural cleanup pass.
    3. ``control_characters``    – plus the control-character normalizer.
    4. ``quote_disambiguation``  – plus the quote state machine.
    5. ``regex_fields``          – per-key regex over complete ``"KEY": "..."`` pairs.
    6. ``truncated_fields``      – per-key regex with no closing quote required.

Tiers 1–4 are structural: the first one that yields an object wins.
Tiers 5–6 scrape individual keys and merge; a key found by an earlier
tier is never overwritten.  No tier raises.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable
from functools import cached_property
from typing import Any, NamedTuple

from taskrecover.core.cleanup import structural_cleanup
from taskrecover.core.control_chars import normalize_control_chars
from taskrecover.core.log import safe_print
from taskrecover.core.quotes import disambiguate_quotes
from taskrecover.models import FieldMap

PASS_NAMES = ("structural_cleanup", "control_characters", "quote_disambiguation")
_STAGES = ("envelope", "cleaned", "normalized", "quoted")


class RepairContext:
    """Lazily computed, cumulatively repaired variants of one envelope."""

    def __init__(self, envelope: str, schema_keys: tuple[str, ...]):
        self.envelope = envelope
        self.schema_keys = schema_keys

    @cached_property
    def cleaned(self) -> str:
        return structural_cleanup(self.envelope)

    @cached_property
    def normalized(self) -> str:
        return normalize_control_chars(self.cleaned)

    @cached_property
    def quoted(self) -> str:
        return disambiguate_quotes(self.normalized, self.schema_keys)

    def stage(self, depth: int) -> str:
        """Text after the first *depth* passes (0 = untouched envelope)."""
        return getattr(self, _STAGES[depth])

    def passes_through(self, depth: int) -> tuple[str, ...]:
        """Names of the first *depth* passes that actually changed the text."""
        return tuple(
            PASS_NAMES[i] for i in range(depth) if self.stage(i) != self.stage(i + 1)
        )

    @cached_property
    def scrape_sources(self) -> tuple[str, ...]:
        """Texts the regex tiers search, best first.

        The envelope with only string-level repairs comes first because the
        structural rewrites can split a value that was merely unterminated.
        """
        lightly = disambiguate_quotes(normalize_control_chars(self.envelope), self.schema_keys)
        return tuple(dict.fromkeys((lightly, self.quoted)))


class Tier(NamedTuple):
    name: str
    attempt: Callable[[RepairContext], dict[str, str] | None]
    depth: int
    structural: bool = True
    marks_truncated: bool = False


class ChainResult(NamedTuple):
    fields: FieldMap
    tier: str
    passes: tuple[str, ...]
    truncated_keys: tuple[str, ...] = ()


# ── Parsing helpers ─────────────────────────────────────────────────────


def _parse_object(text: str) -> dict | None:
    """Strict JSON only; every relaxation is a named repair pass."""
    try:
        obj = json.loads(text)
    except (json.JSONDecodeError, RecursionError):
        return None
    return obj if isinstance(obj, dict) else None


def _as_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (bool, list, dict)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def _pick_keys(obj: dict, schema_keys: tuple[str, ...]) -> dict[str, str] | None:
    picked = {}
    for key in schema_keys:
        value = _as_text(obj.get(key))
        if value is not None:
            picked[key] = value
    return picked or None


def _unescape(raw: str) -> str:
    try:
        return json.loads(f'"{raw}"', strict=False)
    except json.JSONDecodeError:
        return raw.replace('\\"', '"').replace("\\n", "\n")


# ── Tiers ───────────────────────────────────────────────────────────────


def _structural(stage: int) -> Callable[[RepairContext], dict[str, str] | None]:
    def attempt(ctx: RepairContext) -> dict[str, str] | None:
        obj = _parse_object(ctx.stage(stage))
        if obj is None:
            return None
        return _pick_keys(obj, ctx.schema_keys)

    return attempt


def _scrape(ctx: RepairContext, pattern: str) -> dict[str, str] | None:
    found: dict[str, str] = {}
    for key in ctx.schema_keys:
        key_re = re.compile(pattern.format(key=re.escape(key)), re.DOTALL)
        for source in ctx.scrape_sources:
            m = key_re.search(source)
            if m:
                found[key] = _unescape(m.group(1))
                break
    return found or None


def regex_fields(ctx: RepairContext) -> dict[str, str] | None:
    """Extract every ``"KEY": "value"`` pair that has a closing quote."""
    return _scrape(ctx, r'"{key}"\s*:\s*"((?:[^"\\]|\\.)*)"')


def truncated_fields(ctx: RepairContext) -> dict[str, str] | None:
    """Extract values that run to end of input without a closing quote.

    A dangling backslash left by the cut is outside the captured group.
    """
    return _scrape(ctx, r'"{key}"\s*:\s*"((?:[^"\\]|\\.)*)\\?\Z')


TIERS: tuple[Tier, ...] = (
    Tier("raw", _structural(0), depth=0),
    Tier("structural_cleanup", _structural(1), depth=1),
    Tier("control_characters", _structural(2), depth=2),
    Tier("quote_disambiguation", _structural(3), depth=3),
    Tier("regex_fields", regex_fields, depth=3, structural=False),
    Tier("truncated_fields", truncated_fields, depth=3, structural=False, marks_truncated=True),
)


def parse_field_map(text: str, schema_keys: tuple[str, ...]) -> ChainResult | None:
    """Run the tier chain over an envelope.  Returns ``None`` if nothing was recovered."""
    ctx = RepairContext(text, tuple(schema_keys))
    merged: dict[str, str] = {}
    truncated: list[str] = []
    last_tier: Tier | None = None

    for tier in TIERS:
        found = tier.attempt(ctx)
        if not found:
            safe_print(f"[chain] tier '{tier.name}' produced nothing", logging.DEBUG, tier=tier.name)
            continue

        if tier.structural:
            fields = {key: found.get(key) for key in ctx.schema_keys}
            return ChainResult(fields=fields, tier=tier.name, passes=ctx.passes_through(tier.depth))

        new = {k: v for k, v in found.items() if k not in merged}
        if not new:
            continue
        merged.update(new)
        last_tier = tier
        if tier.marks_truncated:
            truncated.extend(new)
        if len(merged) == len(ctx.schema_keys):
            break

    if last_tier is None:
        return None

    fields = {key: merged.get(key) for key in ctx.schema_keys}
    return ChainResult(
        fields=fields,
        tier=last_tier.name,
        passes=ctx.passes_through(last_tier.depth),
        truncated_keys=tuple(k for k in ctx.schema_keys if k in truncated),
    )
