"""SimpleDTO: immutable, validated data transfer objects.

A DTO declares its contract with class-body annotations::

    class Person(SimpleDTO):
        name: str
        age: float | None
        birthday: datetime
        country: str = "US"          # default value
        notes: Annotated[str, IgnoreAsDTO]   # working state, not data

    person = Person({"name": "Ada", "age": 36.0, "birthday": "1815-12-10"})

Cross-field rules are plain callables passed in the class statement
(``class Author(SimpleDTO, validators=[check_author])``) or an override of
:meth:`SimpleDTO.extra_validation`.

Construction validates every declared property (strict by default), runs
the ``extra_validation`` hook, coerces timestamps and nested DTOs, and then
freezes the instance.

INVARIANT: A constructed DTO never changes. "Setting" a value means building
a new DTO, e.g. with :meth:`SimpleDTO.replace`.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any, ClassVar, Self

import structlog

from simpledto.config.settings import get_settings
from simpledto.core import persistence
from simpledto.core.coercion import CoercionEngine
from simpledto.core.projection import json_ready, project_value
from simpledto.core.validation import TypeValidator, validator_for
from simpledto.domain.properties import schema_for
from simpledto.domain.types import Mode, to_mapping
from simpledto.errors import ImmutabilityError, ValidationError

logger = logging.getLogger(__name__)
# Bound to the stdlib logger: silent until logging is configured.
log = structlog.wrap_logger(logger)


class SimpleDTO:
    """Base class for immutable DTOs validated against their annotations."""

    __simpledto__: ClassVar[bool] = True
    __dto_validators__: ClassVar[tuple[Callable[[dict[str, Any]], None], ...]] = ()

    def __init_subclass__(
        cls,
        validators: Iterable[Callable[[dict[str, Any]], None]] = (),
        **kwargs: Any,
    ) -> None:
        super().__init_subclass__(**kwargs)
        cls.__dto_validators__ = (*cls.__dto_validators__, *validators)

    def __init__(self, data: Mapping[str, Any] | Any = None, mode: Mode | str | None = None) -> None:
        settings = get_settings()
        mode = Mode(mode) if mode is not None else settings.validation.default_mode
        schema = schema_for(type(self))
        validator = validator_for(mode)
        rules = schema.rules(permissive=mode is Mode.PERMISSIVE)

        working = to_mapping(data)
        for prop in schema.fields:
            if prop.name not in working and prop.has_default:
                working[prop.name] = prop.default_value()

        try:
            validated = validator.validate(rules, working)
            self.extra_validation(dict(validated))
        except ValidationError as exc:
            log.debug("dto.invalid", dto=type(self).__qualname__, mode=str(mode), reasons=exc.reasons)
            raise

        engine = CoercionEngine(mode, settings.timestamps.default_timezone)
        self._freeze(
            engine.coerce_all(rules, validated),
            mode=mode,
            validator=validator,
            rules=schema.rules(),
        )

    # -- construction helpers ---------------------------------------------

    def _freeze(
        self,
        data: dict[str, Any],
        *,
        mode: Mode,
        validator: TypeValidator,
        rules: dict[str, Any],
    ) -> None:
        if "_data" in self.__dict__:
            raise ImmutabilityError()
        object.__setattr__(self, "_data", data)
        object.__setattr__(self, "_mode", mode)
        object.__setattr__(self, "_validator", validator)
        object.__setattr__(self, "_rules", rules)
        logger.debug("Froze %s with %d value(s)", type(self).__qualname__, len(data))

    def extra_validation(self, data: dict[str, Any]) -> None:
        """Cross-field rules over the validated input.

        Runs the ``validators`` given in the class statement (base classes
        first). Override to add rules in code; raise :class:`ValidationError`
        to reject *data*.
        """
        for check in self.__dto_validators__:
            check(data)

    @staticmethod
    def if_this_then_that(data: Mapping[str, Any], field: str, value: Any, required: str) -> None:
        """Require *required* to be set whenever *field* equals *value*."""
        if data.get(field) == value and data.get(required) is None:
            message = f"{required} must be set when {field} is {value!r}."
            raise ValidationError(message, {required: message})

    def _copy_with(self, data: dict[str, Any]) -> Self:
        return type(self)(data, mode=self._mode)

    def _keys(self) -> Iterable[str]:
        return schema_for(type(self)).names

    @classmethod
    def _rules_from_state(cls, rendered: Mapping[str, str]) -> dict[str, Any]:
        return schema_for(cls).rules()

    @classmethod
    def _data_from_state(cls, data: Mapping[str, Any], rules: Mapping[str, Any]) -> dict[str, Any]:
        return {name: data[name] for name in rules if name in data}

    # -- immutability -----------------------------------------------------

    def __setattr__(self, name: str, value: Any) -> None:
        if name in schema_for(type(self)).ignored:
            object.__setattr__(self, name, value)
            return
        raise ImmutabilityError()

    def __delattr__(self, name: str) -> None:
        if name in schema_for(type(self)).ignored:
            object.__delattr__(self, name)
            return
        raise ImmutabilityError()

    def __getattr__(self, name: str) -> Any:
        # Only reached when normal lookup fails: dynamic NestedDTO keys.
        data = self.__dict__.get("_data")
        if data is not None and not name.startswith("__") and name in data:
            return data[name]
        raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")

    # -- read API ---------------------------------------------------------

    @property
    def mode(self) -> Mode:
        return self._mode

    def is_permissive(self) -> bool:
        return self._mode is Mode.PERMISSIVE

    def get_data(self) -> dict[str, Any]:
        """The stored values as they are, before any dict conversion."""
        return dict(self._data)

    def get_rules(self) -> dict[str, Any]:
        """Declared property name -> type expression."""
        return dict(self._rules)

    def to_dict(self) -> dict[str, Any]:
        """Plain-dict view in declaration order.

        Nested DTOs and convertible objects become dicts; timestamps stay
        ``datetime`` objects.
        """
        return {key: project_value(self._data[key]) for key in self._keys() if key in self._data}

    def json_data(self) -> dict[str, Any]:
        """JSON-compatible view; timestamps become UTC ISO-8601 strings."""
        return {key: json_ready(self._data[key]) for key in self._keys() if key in self._data}

    def to_json(self) -> str:
        return json.dumps(self.json_data(), separators=(",", ":"))

    @classmethod
    def from_json(cls, text: str | bytes, mode: Mode | str | None = None) -> Self:
        """Decode *text* and build a validated DTO from it."""
        return cls(json.loads(text), mode=mode)

    def replace(self, **changes: Any) -> Self:
        """Return a new, re-validated DTO with *changes* applied."""
        return self._copy_with({**self._data, **changes})

    # -- persistence ------------------------------------------------------

    def to_state(self) -> dict[str, Any]:
        """JSON-compatible envelope: validator identity, options, rules and data."""
        return persistence.dump_state(self)

    @classmethod
    def from_state(cls, state: Mapping[str, Any]) -> Self:
        """Rebuild a DTO from :meth:`to_state` output without re-validating it."""
        return persistence.load_state(cls, state)

    def __getstate__(self) -> dict[str, Any]:
        return persistence.dump_state(self, json_compatible=False)

    def __setstate__(self, state: Mapping[str, Any]) -> None:
        persistence.restore_state(self, state, decode=False)

    # -- dunder -----------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SimpleDTO):
            return NotImplemented
        return type(self) is type(other) and self._data == other._data

    def __repr__(self) -> str:
        fields = ", ".join(f"{key}={value!r}" for key, value in self._data.items())
        return f"{type(self).__name__}({fields})"
