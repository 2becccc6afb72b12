"""
Base class of the connection parameters stored in the registries.
"""

from pydantic import BaseModel, ConfigDict, ValidationError

from .errors import BadParameterTypeError, ConfigurationError, ParameterOutOfRangeError

RANGE_ERRORS = ("greater_than", "greater_than_equal", "less_than", "less_than_equal")


class ConfigurationModel(BaseModel):
    """Immutable value object, only raising ``ConfigurationError`` on bad input."""

    model_config = ConfigDict(frozen=True)

    def __init__(self, **data):
        try:
            super().__init__(**data)
        except ValidationError as e:
            raise _configuration_error(e) from e


def _configuration_error(error: ValidationError) -> ConfigurationError:
    details = error.errors()[0]
    cause = details.get("ctx", {}).get("error")
    if isinstance(cause, ConfigurationError):
        return cause

    location = ".".join(str(item) for item in details.get("loc", ()))
    message = f"{error.title}.{location}: {details.get('msg')}"
    if details.get("type") in RANGE_ERRORS:
        return ParameterOutOfRangeError(message)
    return BadParameterTypeError(message)
