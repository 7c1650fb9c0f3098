"""Validation modes, the ignore marker and type-expression helpers.

A type expression is a plain Python annotation (``str``, ``int | None``,
``Optional[float]``, a DTO class, ``list[SomeDTO]`` or ``Any``).
"""

from __future__ import annotations

import types
from collections.abc import Mapping
from datetime import datetime
from enum import Enum, StrEnum
from typing import Annotated, Any, ClassVar, Optional, Union, get_args, get_origin


class Mode(StrEnum):
    """Validation policy applied while building a DTO."""

    STRICT = "strict"
    PERMISSIVE = "permissive"


class IgnoreAsDTO:
    """Marker for ``Annotated[T, IgnoreAsDTO]`` properties left out of the contract."""


_UNION_ORIGINS = (Union, types.UnionType)

_TYPE_LABELS: dict[Any, str] = {
    str: "string",
    int: "int",
    float: "float",
    bool: "bool",
    dict: "array",
    list: "array",
    tuple: "array",
}


def is_ignored(tp: Any) -> bool:
    """True when an ``Annotated`` type carries the :class:`IgnoreAsDTO` marker."""
    if get_origin(tp) is not Annotated:
        return False
    return any(meta is IgnoreAsDTO or isinstance(meta, IgnoreAsDTO) for meta in tp.__metadata__)


def is_class_var(tp: Any) -> bool:
    return tp is ClassVar or get_origin(tp) is ClassVar


def strip_annotated(tp: Any) -> Any:
    while get_origin(tp) is Annotated:
        tp = get_args(tp)[0]
    return tp


def is_nullable(tp: Any) -> bool:
    """Whether ``None`` satisfies *tp*. Untyped (``Any``) properties are nullable."""
    tp = strip_annotated(tp)
    if tp is Any or tp is None or tp is type(None):
        return True
    if get_origin(tp) in _UNION_ORIGINS:
        return any(is_nullable(arg) for arg in get_args(tp))
    return False


def make_nullable(tp: Any) -> Any:
    if is_nullable(tp):
        return tp
    return Optional[tp]  # noqa: UP007


def strip_optional(tp: Any) -> Any:
    """Return *tp* without its ``None`` member (``int | None`` -> ``int``)."""
    tp = strip_annotated(tp)
    if get_origin(tp) not in _UNION_ORIGINS:
        return tp
    members = [arg for arg in get_args(tp) if arg is not type(None)]
    if len(members) == 1:
        return members[0]
    return Union[tuple(members)]  # noqa: UP007


def is_timestamp_type(tp: Any) -> bool:
    inner = strip_optional(tp)
    return isinstance(inner, type) and issubclass(inner, datetime)


def is_dto_type(tp: Any) -> bool:
    """True for DTO classes; they advertise themselves with ``__simpledto__``."""
    inner = strip_optional(tp)
    return isinstance(inner, type) and getattr(inner, "__simpledto__", False) is True


def dto_item_type(tp: Any) -> type | None:
    """The DTO class of a ``list[SomeDTO]`` / ``tuple[SomeDTO, ...]`` expression."""
    inner = strip_optional(tp)
    if get_origin(inner) not in (list, tuple):
        return None
    args = [arg for arg in get_args(inner) if arg is not Ellipsis]
    if len(args) != 1 or not is_dto_type(args[0]):
        return None
    return strip_optional(args[0])


def is_generic_object(value: Any) -> bool:
    """Plain structured objects (``SimpleNamespace``, ordinary instances).

    Classes, functions, modules and enum members carry a ``__dict__`` too
    but are not data.
    """
    if isinstance(value, (type, Enum, types.FunctionType, types.ModuleType, types.MethodType)):
        return False
    return hasattr(value, "__dict__")


def to_mapping(value: Any) -> dict[str, Any]:
    """Read DTO input from a mapping, a DTO or a generic object."""
    if value is None:
        return {}
    if isinstance(value, Mapping):
        return dict(value)
    if getattr(type(value), "__simpledto__", False) is True:
        return value.get_data()
    if is_generic_object(value):
        return dict(vars(value))
    raise TypeError(f"Cannot read DTO input from {type(value).__name__}")


def type_label(tp: Any) -> str:
    """Human name of a type expression, used in validation reasons."""
    inner = strip_optional(tp)
    if inner is Any:
        return "mixed"
    origin = get_origin(inner)
    if origin in _UNION_ORIGINS:
        return "|".join(type_label(arg) for arg in get_args(inner))
    if origin is not None:
        inner = origin
    if inner in _TYPE_LABELS:
        return _TYPE_LABELS[inner]
    if isinstance(inner, type) and issubclass(inner, datetime):
        return "datetime"
    return getattr(inner, "__name__", str(inner))


def render_type(tp: Any) -> str:
    """Render a type expression as the type string stored in persisted state.

    Nullable expressions are prefixed with ``?``; DTO classes use their
    dotted ``module.QualName`` path.
    """
    tp = strip_annotated(tp)
    if tp is Any:
        return "mixed"
    prefix = "?" if is_nullable(tp) else ""
    inner = strip_optional(tp)
    if is_dto_type(inner):
        return f"{prefix}{inner.__module__}.{inner.__qualname__}"
    item = dto_item_type(inner)
    if item is not None:
        return f"{prefix}{item.__module__}.{item.__qualname__}[]"
    return f"{prefix}{type_label(inner)}"
