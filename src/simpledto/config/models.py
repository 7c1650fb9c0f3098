"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, simpledto.toml only contains
overrides. An empty file (or none at all) yields the library defaults.
"""

from __future__ import annotations

from pydantic import BaseModel, field_validator

from simpledto.domain.timestamps import resolve_timezone
from simpledto.domain.types import Mode


class ValidationConfig(BaseModel):
    """[validation] section."""

    model_config = {"frozen": True}

    default_mode: Mode = Mode.STRICT
    nested_mode: Mode = Mode.PERMISSIVE


class TimestampConfig(BaseModel):
    """[timestamps] section."""

    model_config = {"frozen": True}

    default_timezone: str = "UTC"

    @field_validator("default_timezone")
    @classmethod
    def _known_zone(cls, value: str) -> str:
        resolve_timezone(value)
        return value


class LoggingConfig(BaseModel):
    """[logging] section."""

    model_config = {"frozen": True}

    verbose: bool = False
    log_json: bool = False
