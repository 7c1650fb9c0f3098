"""Projection of stored DTO values into plain dicts and JSON-ready data."""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel
from pydantic_core import PydanticSerializationError, to_jsonable_python

from simpledto.domain.timestamps import to_iso_string
from simpledto.domain.types import is_generic_object

# Values stored as they are; only their JSON form differs.
SCALAR_TYPES = (str, bytes, int, float, Decimal, date, time, timedelta, Enum, UUID)


def _has_to_dict(value: Any) -> bool:
    return not isinstance(value, type) and callable(getattr(value, "to_dict", None))


def convert_value_to_dict(value: Any) -> Any | None:
    """Return the dict form of *value*, or ``None`` when it has none.

    Timestamps and bare scalars (including enum members, decimals and
    UUIDs) are not converted. Sequences and mappings
    are converted element-wise only when at least one element converts, so
    arrays of plain scalars stay as they are.
    """
    if value is None or isinstance(value, SCALAR_TYPES):
        return None
    if _has_to_dict(value):
        return value.to_dict()
    if isinstance(value, BaseModel):
        return value.model_dump()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, (list, tuple)):
        converted = [convert_value_to_dict(item) for item in value]
        if all(item is None for item in converted):
            return None
        return [item if conv is None else conv for item, conv in zip(value, converted, strict=True)]
    if isinstance(value, Mapping):
        converted_map = {key: convert_value_to_dict(item) for key, item in value.items()}
        if all(item is None for item in converted_map.values()):
            return None
        return {
            key: item if converted_map[key] is None else converted_map[key]
            for key, item in value.items()
        }
    if is_generic_object(value):
        return dict(vars(value))
    return None


def project_value(value: Any) -> Any:
    """The dict form of *value* when it has one, else *value* itself."""
    converted = convert_value_to_dict(value)
    return value if converted is None else converted


def json_ready(value: Any) -> Any:
    """Recursively turn a stored value into JSON-compatible data.

    Timestamps render as UTC ISO-8601 strings with microseconds; DTOs
    render through their own ``json_data()``. Other scalars (enums,
    decimals, dates, UUIDs) take pydantic's JSON form.
    """
    if isinstance(value, datetime):
        return to_iso_string(value)
    if getattr(type(value), "__simpledto__", False) is True:
        return value.json_data()
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, Mapping):
        return {str(key): json_ready(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [json_ready(item) for item in value]
    converted = convert_value_to_dict(value)
    if converted is not None:
        return json_ready(converted)
    try:
        return to_jsonable_python(value)
    except PydanticSerializationError as exc:
        raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable") from exc
