"""Centralised recovery configuration using pydantic-settings.

Schema keys, opt-out phrases, thresholds and logging knobs live here so
the engine stays reusable outside the dashboard that feeds it.
Usage:
    from taskrecover.config import get_settings
    print(get_settings().schema_keys)
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_KNOWN_CELL_TAGS = {".", "S", "C", "L", "U"}


class RecoverySettings(BaseSettings):
    """Single source of truth for every tuneable parameter."""

    model_config = SettingsConfigDict(
        env_prefix="TASKRECOVER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # silently ignore unknown env vars
        case_sensitive=False,
    )

    # ── Target schema ───────────────────────────────────────────────────
    schema_keys: tuple[str, ...] = Field(
        default=("R1", "R2", "R3", "R4"),
        description="Case-sensitive keys of the recovered object, in report order",
    )
    opt_out_phrases: tuple[str, ...] = Field(
        default=("idle", "not assigned", "no task"),
        description="Values containing any of these (case-insensitive) are not usable",
    )

    # ── Validation policy ───────────────────────────────────────────────
    min_field_length: int = Field(default=5, ge=0)
    min_usable_fields: int = Field(default=2, ge=0)
    truncation_length_threshold: int = Field(default=300, ge=1)
    path_marker: str = Field(default="Path:", description="Marker that introduces a coordinate literal")

    # ── Obstacle filtering ──────────────────────────────────────────────
    blocked_cell_tags: tuple[str, ...] = Field(default=("S",))

    # ── Logging ─────────────────────────────────────────────────────────
    log_file: str = Field(default="taskrecover.log")
    log_max_bytes: int = Field(default=5 * 1024 * 1024)  # 5 MB
    log_backup_count: int = Field(default=3)
    log_json: bool = Field(default=True)

    # ── Validators ──────────────────────────────────────────────────────
    @field_validator("schema_keys", "opt_out_phrases", "blocked_cell_tags", mode="before")
    @classmethod
    def _split_comma_list(cls, v: object) -> object:
        if isinstance(v, str):
            return tuple(part for part in (p.strip() for p in v.split(",")) if part)
        return v

    @field_validator("schema_keys")
    @classmethod
    def _validate_schema_keys(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        keys = tuple(k.strip() for k in v)
        if not keys or any(not k for k in keys):
            raise ValueError("schema_keys must contain at least one non-empty key")
        if len(set(keys)) != len(keys):
            raise ValueError(f"schema_keys must be unique, got {keys}")
        return keys

    @field_validator("opt_out_phrases")
    @classmethod
    def _normalise_phrases(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(p.strip().lower() for p in v if p.strip())

    @field_validator("blocked_cell_tags")
    @classmethod
    def _validate_cell_tags(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        unknown = set(v) - _KNOWN_CELL_TAGS
        if unknown:
            raise ValueError(f"blocked_cell_tags must be drawn from {sorted(_KNOWN_CELL_TAGS)}, got {sorted(unknown)}")
        return v

    @model_validator(mode="after")
    def _check_policy(self) -> RecoverySettings:
        if self.min_usable_fields > len(self.schema_keys):
            raise ValueError(
                f"min_usable_fields ({self.min_usable_fields}) cannot exceed the number of schema keys "
                f"({len(self.schema_keys)})"
            )
        return self


@lru_cache(maxsize=1)
def get_settings() -> RecoverySettings:
    """Return the cached singleton settings instance."""
    return RecoverySettings()
