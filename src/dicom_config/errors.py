"""
Configuration errors.

Every failure of the configuration subsystem is reported with one of the
exceptions below. Each one carries the short error ``code`` the server
reports, and also derives from the closest builtin exception so that callers
catching ``ValueError`` or ``FileNotFoundError`` keep working.
"""


class ConfigurationError(Exception):
    """Base class for configuration errors."""
    code = "InternalError"

    def __init__(self, message: str = ""):
        super().__init__(message or self.code)
        self.message = message or self.code


class BadJsonError(ConfigurationError, ValueError):
    """A configuration file is not a valid JSON object."""
    code = "BadJson"


class BadFileFormatError(ConfigurationError, ValueError):
    """A configuration section does not have the expected shape."""
    code = "BadFileFormat"


class BadParameterTypeError(ConfigurationError, TypeError):
    """A configuration option has the wrong JSON type."""
    code = "BadParameterType"


class ParameterOutOfRangeError(ConfigurationError, ValueError):
    """A configuration option is outside of its allowed range."""
    code = "ParameterOutOfRange"


class InexistentFileError(ConfigurationError, FileNotFoundError):
    """A configuration path does not exist."""
    code = "InexistentFile"


class InexistentItemError(ConfigurationError, LookupError):
    """A modality or peer is not registered."""
    code = "InexistentItem"
