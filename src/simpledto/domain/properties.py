"""Declared-property introspection for DTO classes.

A DTO's contract is read from its class-body annotations:

- annotated names are declared properties;
- ``_private`` names and ``ClassVar`` annotations never take part;
- un-annotated class attributes are plain public attributes, not properties;
- ``Annotated[T, IgnoreAsDTO]`` properties are reported but ignored.

INVARIANT: A schema is computed once per class and never changes afterwards.
Concurrent first use may compute it twice; the results are identical.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, get_type_hints

from simpledto.domain.types import (
    is_class_var,
    is_ignored,
    is_nullable,
    make_nullable,
    strip_annotated,
)
from simpledto.errors import ImmutabilityError

logger = logging.getLogger(__name__)

SCHEMA_ATTR = "__dto_schema__"


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


@dataclass(frozen=True)
class DeclaredProperty:
    """One declared property of a DTO class."""

    name: str
    type: Any
    default: Any = MISSING
    ignored: bool = False

    @property
    def has_default(self) -> bool:
        return self.default is not MISSING

    @property
    def nullable(self) -> bool:
        return is_nullable(self.type)

    def default_value(self) -> Any:
        """A private copy of the default, so instances never share containers."""
        return copy.deepcopy(self.default)


@dataclass(frozen=True)
class DtoSchema:
    """The validated contract of a DTO class."""

    owner: type
    fields: tuple[DeclaredProperty, ...]
    ignored: frozenset[str] = field(default_factory=frozenset)

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(prop.name for prop in self.fields)

    @property
    def defaults(self) -> dict[str, Any]:
        return {prop.name: prop.default for prop in self.fields if prop.has_default}

    def rules(self, *, permissive: bool = False) -> dict[str, Any]:
        """Name -> type expression; every type becomes nullable when *permissive*."""
        if permissive:
            return {prop.name: make_nullable(prop.type) for prop in self.fields}
        return {prop.name: prop.type for prop in self.fields}


def _resolve_hints(cls: type) -> dict[str, Any]:
    # Each base resolves against its own module; the class name is added so
    # self-references work for classes defined inside functions.
    try:
        return get_type_hints(cls, localns={cls.__name__: cls}, include_extras=True)
    except NameError as exc:
        raise TypeError(f"Cannot resolve the declared types of {cls.__qualname__}: {exc}") from exc


def _find_default(cls: type, name: str) -> Any:
    """Class-body default for *name*, searched along the MRO.

    Classes whose schema is already built keep their defaults in the schema
    (the class attribute is replaced by a field descriptor).
    """
    for klass in cls.__mro__:
        own = vars(klass)
        schema = own.get(SCHEMA_ATTR)
        if schema is not None:
            for prop in schema.fields:
                if prop.name == name:
                    return prop.default
        if name in own:
            value = own[name]
            return getattr(value, "default", MISSING) if isinstance(value, FieldDescriptor) else value
    return MISSING


def declared_properties(cls: type) -> tuple[DeclaredProperty, ...]:
    """Every annotation-declared property of *cls*, ignored ones included."""
    props: list[DeclaredProperty] = []
    for name, hint in _resolve_hints(cls).items():
        if name.startswith("_") or is_class_var(strip_annotated(hint)):
            continue
        ignored = is_ignored(hint)
        props.append(
            DeclaredProperty(
                name=name,
                type=strip_annotated(hint),
                default=_find_default(cls, name),
                ignored=ignored,
            )
        )
    return tuple(props)


class FieldDescriptor:
    """Read-only class attribute standing in for a declared property.

    Instance access returns the stored value; class access returns the
    declared default (or the descriptor itself when there is none).
    """

    def __init__(self, name: str, default: Any = MISSING) -> None:
        self.name = name
        self.default = default

    def __get__(self, instance: Any, owner: type | None = None) -> Any:
        if instance is None:
            return self if self.default is MISSING else self.default
        data = instance.__dict__.get("_data", {})
        try:
            return data[self.name]
        except KeyError:
            raise AttributeError(
                f"{type(instance).__name__!r} object has no value for {self.name!r}"
            ) from None

    def __set__(self, instance: Any, value: Any) -> None:
        raise ImmutabilityError()

    def __delete__(self, instance: Any) -> None:
        raise ImmutabilityError()


def schema_for(cls: type) -> DtoSchema:
    """Return the cached contract of *cls*, computing it on first use."""
    cached = vars(cls).get(SCHEMA_ATTR)
    if cached is not None:
        return cached

    props = declared_properties(cls)
    schema = DtoSchema(
        owner=cls,
        fields=tuple(prop for prop in props if not prop.ignored),
        ignored=frozenset(prop.name for prop in props if prop.ignored),
    )
    for prop in schema.fields:
        type.__setattr__(cls, prop.name, FieldDescriptor(prop.name, prop.default))
    type.__setattr__(cls, SCHEMA_ATTR, schema)
    logger.debug("Built DTO schema for %s: %s", cls.__qualname__, ", ".join(schema.names))
    return schema
