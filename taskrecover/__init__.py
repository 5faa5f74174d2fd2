"""Structured-data recovery for unreliable LLM task responses.

Usage:
    from taskrecover import recover, extract_path, OccupancyGrid

    outcome = recover(raw_model_text)
    if outcome.ok:
        path = extract_path(outcome.fields["R1"], OccupancyGrid.from_rows(rows))
"""

from taskrecover.config import RecoverySettings, get_settings
from taskrecover.errors import (
    EnvelopeNotFound,
    InsufficientFieldsError,
    LikelyTruncatedError,
    MalformedCoordinateLiteral,
    RecoveryError,
    StructuralParseFailure,
)
from taskrecover.grid import CellTag, OccupancyGrid, filter_obstacles
from taskrecover.models import IssueCode, OutcomeKind, RecoveryIssue, RecoveryOutcome
from taskrecover.services.paths import extract_path
from taskrecover.services.recovery import load_tasks, recover, recover_async, recover_many

__all__ = [
    "CellTag",
    "EnvelopeNotFound",
    "InsufficientFieldsError",
    "IssueCode",
    "LikelyTruncatedError",
    "MalformedCoordinateLiteral",
    "OccupancyGrid",
    "OutcomeKind",
    "RecoveryError",
    "RecoveryIssue",
    "RecoveryOutcome",
    "RecoverySettings",
    "StructuralParseFailure",
    "extract_path",
    "filter_obstacles",
    "get_settings",
    "load_tasks",
    "recover",
    "recover_async",
    "recover_many",
]
