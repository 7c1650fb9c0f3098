"""Post-validation coercion of timestamps and nested DTOs.

Runs after the type validator has accepted a value:

- timestamp properties turn strings and epoch numbers into aware datetimes;
- DTO properties turn mappings and objects into instances of the declared
  class, reusing values that already are such instances;
- ``list[SomeDTO]`` properties do the same element by element.

Everything else passes through untouched.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from simpledto.domain.timestamps import parse_timestamp
from simpledto.domain.types import (
    Mode,
    dto_item_type,
    is_dto_type,
    is_timestamp_type,
    strip_optional,
    to_mapping,
)
from simpledto.errors import CoercionError, ValidationError

logger = logging.getLogger(__name__)


def coerce_timestamp(name: str, value: Any, timezone: str | None = None) -> Any:
    try:
        return parse_timestamp(value, timezone)
    except (ValueError, OverflowError, TypeError) as exc:
        raise CoercionError(
            f"{name} could not be converted to a datetime.",
            {name: f"{name} is not a valid datetime"},
        ) from exc


def coerce_dto(name: str, target: type, value: Any, mode: Mode) -> Any:
    """Build a *target* DTO from *value*, or reuse *value* if it already is one.

    Instances of other DTO classes are rebuilt from their data even when
    they have the same shape.
    """
    if isinstance(value, target):
        return value
    try:
        source = to_mapping(value)
    except TypeError as exc:
        reason = f"{name} is not a valid {target.__name__}"
        message = f"{name} could not be converted to {target.__name__}."
        raise CoercionError(message, {name: reason}) from exc
    try:
        return target(source, mode=mode)
    except ValidationError as exc:
        logger.debug("Nested %s for %r failed: %s", target.__name__, name, exc.message)
        raise CoercionError(exc.message, exc.reasons) from exc


class CoercionEngine:
    """Applies the coercions for one DTO construction."""

    def __init__(self, mode: Mode = Mode.STRICT, timezone: str | None = None) -> None:
        self.mode = mode
        self.timezone = timezone

    def coerce(self, name: str, tp: Any, value: Any) -> Any:
        if value is None:
            return None
        if is_timestamp_type(tp):
            return coerce_timestamp(name, value, self.timezone)
        if is_dto_type(tp):
            return coerce_dto(name, strip_optional(tp), value, self.mode)
        item_type = dto_item_type(tp)
        if item_type is not None:
            items = [coerce_dto(name, item_type, item, self.mode) for item in value]
            return tuple(items) if isinstance(value, tuple) else items
        return value

    def coerce_all(self, rules: Mapping[str, Any], data: Mapping[str, Any]) -> dict[str, Any]:
        return {name: self.coerce(name, rules.get(name, Any), value) for name, value in data.items()}
