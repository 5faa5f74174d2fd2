"""Immutable result types produced by a recovery call."""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict, field_serializer, field_validator

from taskrecover.errors import (
    EnvelopeNotFound,
    InsufficientFieldsError,
    LikelyTruncatedError,
    RecoveryError,
    StructuralParseFailure,
)

FieldMap = dict[str, str | None]


class OutcomeKind(str, Enum):
    CLEAN = "clean"
    REPAIRED = "repaired"
    PARTIALLY_RECOVERED = "partially_recovered"
    FAILED = "failed"


class IssueCode(str, Enum):
    ENVELOPE_NOT_FOUND = "envelope_not_found"
    STRUCTURAL_PARSE_FAILURE = "structural_parse_failure"
    INSUFFICIENT_FIELDS = "insufficient_fields"
    LIKELY_TRUNCATED = "likely_truncated"


class RecoveryIssue(BaseModel):
    """One tagged degradation attached to an outcome."""

    model_config = ConfigDict(frozen=True)

    code: IssueCode
    message: str
    keys: tuple[str, ...] = ()

    def to_exception(self) -> RecoveryError:
        """Build the matching exception from the error taxonomy."""
        if self.code is IssueCode.LIKELY_TRUNCATED:
            return LikelyTruncatedError(self.message, keys=self.keys)
        if self.code is IssueCode.INSUFFICIENT_FIELDS:
            return InsufficientFieldsError(self.message, missing=self.keys)
        if self.code is IssueCode.STRUCTURAL_PARSE_FAILURE:
            return StructuralParseFailure(self.message)
        return EnvelopeNotFound(self.message)


# Order in which raise_for_issues() reports problems
_FATAL_ORDER = (
    IssueCode.STRUCTURAL_PARSE_FAILURE,
    IssueCode.LIKELY_TRUNCATED,
    IssueCode.INSUFFICIENT_FIELDS,
)


class RecoveryOutcome(BaseModel):
    """Result of one ``recover()`` call.  Never mutated after construction."""

    model_config = ConfigDict(frozen=True)

    kind: OutcomeKind
    fields: Mapping[str, str | None]
    tier: str | None = None
    passes: tuple[str, ...] = ()
    issues: tuple[RecoveryIssue, ...] = ()
    usable_keys: tuple[str, ...] = ()
    unusable_keys: tuple[str, ...] = ()
    truncated_keys: tuple[str, ...] = ()

    @field_validator("fields", mode="after")
    @classmethod
    def _freeze_fields(cls, v: Mapping[str, str | None]) -> Mapping[str, str | None]:
        return MappingProxyType(dict(v))

    @field_serializer("fields")
    def _dump_fields(self, v: Mapping[str, str | None]) -> FieldMap:
        return dict(v)

    @property
    def ok(self) -> bool:
        """``True`` when nothing in the outcome warrants raising."""
        return not any(self.has_issue(code) for code in _FATAL_ORDER)

    def has_issue(self, code: IssueCode) -> bool:
        return any(i.code is code for i in self.issues)

    def issue(self, code: IssueCode) -> RecoveryIssue | None:
        for i in self.issues:
            if i.code is code:
                return i
        return None

    def raise_for_issues(self) -> None:
        """Raise the most severe reportable issue, if any.

        Order: structural failure, then truncation, then insufficient fields.
        ``EnvelopeNotFound`` is informational and never raised.
        """
        for code in _FATAL_ORDER:
            found = self.issue(code)
            if found is None:
                continue
            exc = found.to_exception()
            if isinstance(exc, InsufficientFieldsError):
                exc.unusable = self.unusable_keys
            raise exc
