"""Error types raised while building, reading and restoring DTOs.

Every error carries a ``reasons`` mapping (field name -> reason) so calling
code can render field-level messages without parsing strings.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

IMMUTABLE_MESSAGE = "DTOs are immutable. Create a new DTO to set a new value."
MISSING_DTOS_MESSAGE = "Missing critical DTO input(s)."


class ErrorReport(BaseModel):
    """Structured, serializable view of a :class:`DTOError`."""

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    code: str
    message: str
    reasons: dict[str, Any] = Field(default_factory=dict)


class DTOError(Exception):
    """Base exception for all simpledto errors."""

    code = "dto_error"

    def __init__(self, message: str, reasons: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.reasons: dict[str, Any] = dict(reasons or {})

    def report(self) -> ErrorReport:
        return ErrorReport(code=self.code, message=self.message, reasons=self.reasons)


class ValidationError(DTOError):
    """Input did not satisfy the declared types or an extra validation rule."""

    code = "invalid_data_type"


class MissingRegistrationError(ValidationError):
    """A NestedDTO was built without one of its registered inputs."""

    code = "missing_dto_input"

    def __init__(self, reasons: dict[str, Any]) -> None:
        super().__init__(MISSING_DTOS_MESSAGE, reasons)


class CoercionError(ValidationError):
    """A validated value could not be turned into a timestamp or nested DTO.

    ``reasons`` are those of the inner failure, unchanged.
    """

    code = "coercion_failed"


class ImmutabilityError(DTOError, AttributeError):
    """Raised on any attempt to assign or delete a DTO property."""

    code = "immutable"

    def __init__(self, message: str = IMMUTABLE_MESSAGE) -> None:
        super().__init__(message)


class StateError(DTOError):
    """A persisted-state envelope is malformed or cannot be restored."""

    code = "invalid_state"
