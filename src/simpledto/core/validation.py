"""Type validators: the strict and fuzzy engines behind DTO construction.

Both engines delegate primitive checks to pydantic ``TypeAdapter``:
``StrictValidator`` runs pydantic in strict mode, ``FuzzyValidator`` in lax
mode (numeric strings pass as numbers, and so on). Timestamp and DTO types
are accepted in every literal form the coercion step knows how to convert.

INVARIANT: Validators check values, they never rewrite them. The caller's
literal is what gets stored.
"""

from __future__ import annotations

import functools
import logging
from abc import ABC
from collections.abc import Mapping
from datetime import datetime
from typing import Any, ClassVar

from pydantic import ConfigDict, PydanticUserError, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from simpledto.domain.types import (
    Mode,
    dto_item_type,
    is_dto_type,
    is_generic_object,
    is_nullable,
    is_timestamp_type,
    strip_optional,
    type_label,
)
from simpledto.errors import StateError, ValidationError

logger = logging.getLogger(__name__)

_ARBITRARY_TYPES = ConfigDict(arbitrary_types_allowed=True)


@functools.lru_cache(maxsize=512)
def _adapter(tp: Any) -> TypeAdapter[Any]:
    try:
        return TypeAdapter(tp, config=_ARBITRARY_TYPES)
    except PydanticUserError:
        # Models and dataclasses carry their own config.
        return TypeAdapter(tp)


def failure_message(count: int) -> str:
    if count == 1:
        return "There was 1 validation error."
    return f"There were {count} validation errors."


class TypeValidator(ABC):
    """Checks a mapping of values against a mapping of type expressions."""

    identity: ClassVar[str]
    mode: ClassVar[Mode]
    strict: ClassVar[bool]

    def validate(self, rules: Mapping[str, Any], data: Mapping[str, Any]) -> dict[str, Any]:
        """Return the value of every ruled field; absent fields read as ``None``.

        Raises:
            ValidationError: One or more fields do not conform; ``reasons``
                maps each of them to a readable description.
        """
        reasons: dict[str, str] = {}
        validated: dict[str, Any] = {}
        for name, tp in rules.items():
            value = data.get(name)
            if not self.conforms(value, tp):
                reasons[name] = f"{name} is not a valid {type_label(tp)}"
                continue
            validated[name] = value

        if reasons:
            logger.debug("%s rejected %s", type(self).__name__, ", ".join(reasons))
            raise ValidationError(failure_message(len(reasons)), reasons)
        return validated

    def conforms(self, value: Any, tp: Any) -> bool:
        if value is None:
            return is_nullable(tp)
        if tp is Any:
            return True
        if is_timestamp_type(tp):
            return isinstance(value, (datetime, str, int, float)) and not isinstance(value, bool)
        if is_dto_type(tp):
            return self._is_dto_input(value)
        item_type = dto_item_type(tp)
        if item_type is not None:
            return isinstance(value, (list, tuple)) and all(
                self._is_dto_input(item) for item in value
            )
        try:
            _adapter(strip_optional(tp)).validate_python(value, strict=self.strict)
        except PydanticValidationError:
            return False
        return True

    @staticmethod
    def _is_dto_input(value: Any) -> bool:
        return isinstance(value, Mapping) or is_generic_object(value)


class StrictValidator(TypeValidator):
    """Rejects any value that is not exactly of the declared type."""

    identity = "simpledto.strict"
    mode = Mode.STRICT
    strict = True


class FuzzyValidator(TypeValidator):
    """Accepts loosely-typed scalars that pydantic can convert."""

    identity = "simpledto.fuzzy"
    mode = Mode.PERMISSIVE
    strict = False


VALIDATORS: dict[str, type[TypeValidator]] = {
    StrictValidator.identity: StrictValidator,
    FuzzyValidator.identity: FuzzyValidator,
}

# Validator tags found in legacy persisted state.
LEGACY_IDENTITIES: dict[str, type[TypeValidator]] = {
    "PHPExperts\\DataTypeValidator\\IsAStrictDataType": StrictValidator,
    "PHPExperts\\DataTypeValidator\\IsAFuzzyDataType": FuzzyValidator,
}


def validator_for(mode: Mode) -> TypeValidator:
    if Mode(mode) is Mode.PERMISSIVE:
        return FuzzyValidator()
    return StrictValidator()


def validator_from_identity(identity: str) -> TypeValidator:
    """Look a validator up by the tag stored in persisted state."""
    cls = VALIDATORS.get(identity) or LEGACY_IDENTITIES.get(identity)
    if cls is None:
        raise StateError(f"Unknown validator: {identity}", {"isA": identity})
    return cls()
