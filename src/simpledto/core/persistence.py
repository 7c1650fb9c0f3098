"""Persisted-state envelope for DTOs.

The envelope keeps the four fields of the legacy layout::

    {
        "isA": "simpledto.fuzzy",          # validator identity
        "options": [101],                  # 101 = permissive
        "dataRules": {"name": "string"},   # declared rules as type strings
        "data": {"name": "World"},
    }

Restoring trusts the envelope: neither the type validator nor
``extra_validation`` runs again. Timestamps stored as ISO strings are parsed
back and nested DTO envelopes are restored recursively.
"""

from __future__ import annotations

import logging
import pydoc
from collections.abc import Mapping
from datetime import datetime
from typing import TYPE_CHECKING, Any, TypeVar

from simpledto.config.settings import get_settings
from simpledto.core.projection import json_ready
from simpledto.core.validation import validator_from_identity
from simpledto.domain.timestamps import parse_timestamp, to_iso_string
from simpledto.domain.types import (
    Mode,
    dto_item_type,
    is_dto_type,
    is_timestamp_type,
    render_type,
    strip_optional,
    to_mapping,
)
from simpledto.errors import StateError

if TYPE_CHECKING:
    from simpledto.core.simple import SimpleDTO

logger = logging.getLogger(__name__)

PERMISSIVE_OPTION = 101
STATE_KEYS = ("isA", "options", "dataRules", "data")


def options_for(mode: Mode) -> list[int]:
    return [PERMISSIVE_OPTION] if mode is Mode.PERMISSIVE else []


def is_state(value: Any) -> bool:
    """Whether *value* looks like a persisted-state envelope."""
    return isinstance(value, Mapping) and all(key in value for key in STATE_KEYS)


def resolve_dto_path(path: str) -> type | None:
    """Import the DTO class named by a rendered rule (``pkg.module.Class``)."""
    target = pydoc.locate(path.lstrip("?").removesuffix("[]"))
    return target if isinstance(target, type) and is_dto_type(target) else None


def _encode(value: Any) -> Any:
    if getattr(type(value), "__simpledto__", False) is True:
        return value.to_state()
    if isinstance(value, (list, tuple)) and value and all(
        getattr(type(item), "__simpledto__", False) is True for item in value
    ):
        return [item.to_state() for item in value]
    if isinstance(value, datetime):
        return to_iso_string(value)
    return json_ready(value)


def dump_state(dto: SimpleDTO, *, json_compatible: bool = True) -> dict[str, Any]:
    """Capture *dto* as an envelope.

    With *json_compatible* False the stored values are kept as they are
    (used by pickle, which handles datetimes and nested DTOs natively).
    """
    data = dto.get_data()
    return {
        "isA": dto._validator.identity,
        "options": options_for(dto._mode),
        "dataRules": {name: render_type(tp) for name, tp in dto._rules.items()},
        "data": {key: _encode(value) for key, value in data.items()} if json_compatible else data,
    }


def _decode(name: str, tp: Any, value: Any, mode: Mode, timezone: str | None) -> Any:
    if value is None:
        return None
    if is_timestamp_type(tp):
        try:
            return parse_timestamp(value, timezone)
        except (ValueError, OverflowError, TypeError) as exc:
            raise StateError(f"Stored value of {name} is not a timestamp.", {name: value}) from exc
    if is_dto_type(tp):
        return _decode_dto(strip_optional(tp), value, mode)
    item_type = dto_item_type(tp)
    if item_type is not None and isinstance(value, (list, tuple)):
        return [_decode_dto(item_type, item, mode) for item in value]
    return value


def _decode_dto(target: type, value: Any, mode: Mode) -> Any:
    if isinstance(value, target):
        return value
    if is_state(value):
        return target.from_state(value)
    # Plain nested data (older payloads) is built the regular way.
    return target(to_mapping(value), mode=mode)


def _check(state: Any) -> None:
    if not is_state(state):
        missing = [key for key in STATE_KEYS if not isinstance(state, Mapping) or key not in state]
        raise StateError("Malformed DTO state.", {key: "missing" for key in missing})
    if not isinstance(state["data"], Mapping):
        raise StateError("Malformed DTO state.", {"data": "not a mapping"})
    if not isinstance(state["options"], (list, tuple)):
        raise StateError("Malformed DTO state.", {"options": "not a list"})


def restore_state(dto: SimpleDTO, state: Mapping[str, Any], *, decode: bool = True) -> None:
    """Freeze *dto* (a bare, uninitialised instance) with the envelope's contents."""
    _check(state)
    validator = validator_from_identity(state["isA"])
    mode = Mode.PERMISSIVE if PERMISSIVE_OPTION in state["options"] else validator.mode
    rules = type(dto)._rules_from_state(state["dataRules"])
    data = type(dto)._data_from_state(state["data"], rules)

    if decode:
        timezone = get_settings().timestamps.default_timezone
        data = {
            key: _decode(key, rules.get(key, Any), value, mode, timezone)
            for key, value in data.items()
        }

    dto._freeze(data, mode=mode, validator=validator, rules=rules)
    logger.debug("Restored %s from %s state", type(dto).__qualname__, validator.identity)


D = TypeVar("D", bound="SimpleDTO")


def load_state(cls: type[D], state: Mapping[str, Any]) -> D:
    dto = cls.__new__(cls)
    restore_state(dto, state)
    return dto
