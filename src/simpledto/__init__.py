"""simpledto: immutable, validated data transfer objects.

Public API::

    from simpledto import SimpleDTO, NestedDTO, Mode, IgnoreAsDTO
"""

from simpledto.core.nested import NestedDTO
from simpledto.core.projection import convert_value_to_dict
from simpledto.core.simple import SimpleDTO
from simpledto.domain.types import IgnoreAsDTO, Mode
from simpledto.errors import (
    CoercionError,
    DTOError,
    ErrorReport,
    ImmutabilityError,
    MissingRegistrationError,
    StateError,
    ValidationError,
)

__version__ = "1.0.0"

__all__ = [
    "CoercionError",
    "DTOError",
    "ErrorReport",
    "IgnoreAsDTO",
    "ImmutabilityError",
    "MissingRegistrationError",
    "Mode",
    "NestedDTO",
    "SimpleDTO",
    "StateError",
    "ValidationError",
    "convert_value_to_dict",
]
