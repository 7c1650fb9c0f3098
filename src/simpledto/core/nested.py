"""NestedDTO: a DTO whose shape is a runtime map of field -> DTO class.

Registered fields are required and become DTO instances (built with loose
typing unless a mode is given); any other input key is carried along as-is,
unvalidated. Extras are readable as attributes unless their name is
already taken by the class (``mode``, ``to_dict``, ...); those are read with
``get_data()``. Registered fields may not take such names.

    class Order(NestedDTO):
        nested_dtos = {"customer": Customer}

    order = Order({"customer": {"name": "Ada"}, "note": "rush"})
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any, ClassVar, Self

from simpledto.config.settings import get_settings
from simpledto.core.coercion import coerce_dto
from simpledto.core.persistence import resolve_dto_path
from simpledto.core.simple import SimpleDTO
from simpledto.core.validation import validator_for
from simpledto.domain.types import Mode, to_mapping
from simpledto.errors import MissingRegistrationError, ValidationError

logger = logging.getLogger(__name__)


class NestedDTO(SimpleDTO):
    """DTO container for registered nested DTOs plus free-form extras."""

    nested_dtos: ClassVar[Mapping[str, type[SimpleDTO]]] = {}

    def __init__(
        self,
        data: Mapping[str, Any] | Any = None,
        dtos: Mapping[str, type[SimpleDTO]] | None = None,
        mode: Mode | str | None = None,
    ) -> None:
        mode = Mode(mode) if mode is not None else get_settings().validation.nested_mode
        registration = {**self.nested_dtos, **(dtos or {})}
        shadowed = {
            key: f"{key} is a {type(self).__name__} attribute"
            for key in registration
            if hasattr(type(self), key)
        }
        if shadowed:
            raise ValidationError("Registered nested DTO names must not shadow attributes.", shadowed)
        working = to_mapping(data)

        missing = {key: cls for key, cls in registration.items() if working.get(key) is None}
        if missing:
            logger.debug("%s missing nested input(s): %s", type(self).__qualname__, ", ".join(missing))
            raise MissingRegistrationError(missing)

        resolved: dict[str, Any] = {}
        for key, value in working.items():
            target = registration.get(key)
            resolved[key] = value if target is None else coerce_dto(key, target, value, mode)

        self._freeze(resolved, mode=mode, validator=validator_for(mode), rules=registration)

    def _copy_with(self, data: dict[str, Any]) -> Self:
        return type(self)(data, dtos=self.get_registration(), mode=self._mode)

    def _keys(self) -> Iterable[str]:
        return list(self._data)

    def get_registration(self) -> dict[str, type[SimpleDTO]]:
        """Registered field -> DTO class.

        Fields restored from state whose class cannot be imported are left out.
        """
        return {key: cls for key, cls in self._rules.items() if isinstance(cls, type)}

    @classmethod
    def _rules_from_state(cls, rendered: Mapping[str, str]) -> dict[str, Any]:
        rules: dict[str, Any] = dict(cls.nested_dtos)
        for key, path in rendered.items():
            if key not in rules:
                target = resolve_dto_path(path)
                if target is not None:
                    rules[key] = target
        return rules

    @classmethod
    def _data_from_state(cls, data: Mapping[str, Any], rules: Mapping[str, Any]) -> dict[str, Any]:
        return dict(data)
