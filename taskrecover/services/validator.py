"""Schema validation of a recovered field map.

A field is *usable* when it is present, at least ``min_field_length``
characters once trimmed, and does not contain an opt-out phrase such as
"idle".  The policy requires ``min_usable_fields`` usable fields.
Separately, the last usable field is checked for signs of truncation.
"""

from __future__ import annotations

import logging
import re

from pydantic import BaseModel, ConfigDict

from taskrecover.config import RecoverySettings
from taskrecover.core.log import safe_print
from taskrecover.models import FieldMap, IssueCode, RecoveryIssue


class ValidationReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    usable: tuple[str, ...] = ()
    missing: tuple[str, ...] = ()
    unusable: tuple[str, ...] = ()
    truncated: tuple[str, ...] = ()
    issues: tuple[RecoveryIssue, ...] = ()


def is_usable(value: str | None, settings: RecoverySettings) -> bool:
    if value is None:
        return False
    stripped = value.strip()
    if len(stripped) < settings.min_field_length:
        return False
    lowered = stripped.lower()
    return not any(phrase in lowered for phrase in settings.opt_out_phrases)


def looks_truncated(value: str, settings: RecoverySettings) -> bool:
    """Heuristic: an open path literal, or a long value ending mid-sentence."""
    if re.search(re.escape(settings.path_marker), value, re.IGNORECASE) and "]]" not in value:
        return True
    tail = value.rstrip()
    return len(value) > settings.truncation_length_threshold and not tail.endswith(('"', "]"))


def validate_fields(
    fields: FieldMap,
    settings: RecoverySettings,
    *,
    truncated_keys: tuple[str, ...] = (),
) -> ValidationReport:
    """Label *fields* against the usable-field policy and truncation heuristics."""
    usable: list[str] = []
    missing: list[str] = []
    unusable: list[str] = []
    for key in settings.schema_keys:
        value = fields.get(key)
        if value is None or not value.strip():
            missing.append(key)
        elif is_usable(value, settings):
            usable.append(key)
        else:
            unusable.append(key)

    truncated = list(truncated_keys)
    if usable:
        last = usable[-1]
        if last not in truncated and looks_truncated(fields[last] or "", settings):
            truncated.append(last)
    truncated = [k for k in settings.schema_keys if k in truncated]

    issues: list[RecoveryIssue] = []
    if truncated:
        issues.append(
            RecoveryIssue(
                code=IssueCode.LIKELY_TRUNCATED,
                message=(
                    f"Response appears truncated in {', '.join(truncated)}; only {len(usable)} of "
                    f"{len(settings.schema_keys)} fields are complete enough to use."
                ),
                keys=tuple(truncated),
            )
        )

    if len(usable) < settings.min_usable_fields:
        problems = []
        if missing:
            problems.append(f"missing: {', '.join(missing)}")
        if unusable:
            problems.append(f"unusable: {', '.join(unusable)}")
        issues.append(
            RecoveryIssue(
                code=IssueCode.INSUFFICIENT_FIELDS,
                message=(
                    f"Only {len(usable)} of {len(settings.schema_keys)} fields are usable "
                    f"(at least {settings.min_usable_fields} required); {'; '.join(problems)}."
                ),
                keys=tuple(missing),
            )
        )
    elif len(usable) < len(settings.schema_keys):
        safe_print(
            f"Only {len(usable)} of {len(settings.schema_keys)} fields usable. "
            f"Missing: {', '.join(missing + unusable)}",
            logging.WARNING,
            keys=missing + unusable,
        )

    return ValidationReport(
        usable=tuple(usable),
        missing=tuple(missing),
        unusable=tuple(unusable),
        truncated=tuple(truncated),
        issues=tuple(issues),
    )
