"""Recovery facade.

Orchestrates: envelope extraction + tier chain + schema validation.
Every call is independent; nothing is cached between calls.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable

from taskrecover.config import RecoverySettings, get_settings
from taskrecover.core.envelope import extract_envelope
from taskrecover.core.json_parser import parse_field_map
from taskrecover.core.log import request_context, safe_print, timed
from taskrecover.models import FieldMap, IssueCode, OutcomeKind, RecoveryIssue, RecoveryOutcome
from taskrecover.services.validator import validate_fields


def _classify(tier: str, fields: FieldMap, truncated_keys: tuple[str, ...]) -> OutcomeKind:
    if truncated_keys or any(v is None for v in fields.values()):
        return OutcomeKind.PARTIALLY_RECOVERED
    if tier == "raw":
        return OutcomeKind.CLEAN
    return OutcomeKind.REPAIRED


def recover(text: str, *, settings: RecoverySettings | None = None) -> RecoveryOutcome:
    """Recover the task object from one raw model response.

    Never raises for malformed input; inspect ``outcome.kind`` and
    ``outcome.issues`` or call ``outcome.raise_for_issues()``.
    """
    settings = settings or get_settings()
    keys = settings.schema_keys

    with request_context() as rid, timed("recover"):
        issues: list[RecoveryIssue] = []
        envelope, found = extract_envelope(text or "")
        if not found:
            issues.append(
                RecoveryIssue(
                    code=IssueCode.ENVELOPE_NOT_FOUND,
                    message="No brace-delimited object found; falling back to field extraction.",
                )
            )

        chain = parse_field_map(envelope, keys)
        if chain is None:
            issues.append(
                RecoveryIssue(
                    code=IssueCode.STRUCTURAL_PARSE_FAILURE,
                    message=f"Failed to recover any field from response. Raw text: {(text or '')[:300]}",
                    keys=keys,
                )
            )
            safe_print(f"[{rid}] Recovery failed: no field recoverable", logging.ERROR, outcome="failed")
            return RecoveryOutcome(
                kind=OutcomeKind.FAILED,
                fields={key: None for key in keys},
                issues=tuple(issues),
            )

        report = validate_fields(chain.fields, settings, truncated_keys=chain.truncated_keys)
        issues.extend(report.issues)
        kind = _classify(chain.tier, chain.fields, chain.truncated_keys)

        safe_print(
            f"[{rid}] Recovered via tier '{chain.tier}' ({kind.value}); usable: {', '.join(report.usable) or 'none'}",
            logging.INFO if not report.issues else logging.WARNING,
            tier=chain.tier,
            passes=list(chain.passes),
            outcome=kind.value,
        )

        return RecoveryOutcome(
            kind=kind,
            fields=chain.fields,
            tier=chain.tier,
            passes=chain.passes,
            issues=tuple(issues),
            usable_keys=report.usable,
            unusable_keys=report.unusable,
            truncated_keys=report.truncated,
        )


def load_tasks(text: str, *, settings: RecoverySettings | None = None) -> FieldMap:
    """Recover and raise on any reportable issue; returns the field map."""
    outcome = recover(text, settings=settings)
    outcome.raise_for_issues()
    return dict(outcome.fields)


async def recover_async(text: str, *, settings: RecoverySettings | None = None) -> RecoveryOutcome:
    """Run :func:`recover` in a worker thread so the event loop stays free.

    No deadline is applied here; wrap the call in ``asyncio.wait_for`` to
    bound it.  A late result is simply discarded by the caller.
    """
    return await asyncio.to_thread(recover, text, settings=settings)


async def recover_many(
    texts: Iterable[str],
    *,
    settings: RecoverySettings | None = None,
) -> list[RecoveryOutcome]:
    """Recover several responses concurrently, preserving input order."""
    return list(await asyncio.gather(*(recover_async(t, settings=settings) for t in texts)))
