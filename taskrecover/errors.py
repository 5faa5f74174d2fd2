"""Error taxonomy for the recovery engine.

Only :class:`StructuralParseFailure`, :class:`LikelyTruncatedError` and
:class:`InsufficientFieldsError` ever reach a caller, and only through
``RecoveryOutcome.raise_for_issues()``.  Tiers themselves never raise.
"""

from __future__ import annotations


class RecoveryError(ValueError):
    """Base class for every recovery failure."""


class EnvelopeNotFound(RecoveryError):
    """No brace-delimited substring was located; recovery fell through to the regex tiers."""


class StructuralParseFailure(RecoveryError):
    """Every tier failed to produce a single field."""


class LikelyTruncatedError(RecoveryError):
    """The producer's output appears to have been cut off mid-value."""

    def __init__(self, message: str, keys: tuple[str, ...] = ()):
        super().__init__(message)
        self.keys = keys


class InsufficientFieldsError(RecoveryError):
    """Fewer fields than the policy requires are usable."""

    def __init__(self, message: str, missing: tuple[str, ...] = (), unusable: tuple[str, ...] = ()):
        super().__init__(message)
        self.missing = missing
        self.unusable = unusable


class MalformedCoordinateLiteral(RecoveryError):
    """A single coordinate item could not be coerced to an integer pair."""
