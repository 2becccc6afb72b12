"""
DICOM server configuration

Loads the configuration files of a DICOM server and manages its registries
of remote modalities and HTTP peers.
"""

from .configuration import ServerConfiguration
from .encoding import Encoding
from .errors import (
    BadFileFormatError,
    BadJsonError,
    BadParameterTypeError,
    ConfigurationError,
    InexistentFileError,
    InexistentItemError,
    ParameterOutOfRangeError,
)
from .modality import ModalityManufacturer, RemoteModalityParameters
from .peer import WebServiceParameters

__version__ = "0.1.0"
__all__ = [
    "ServerConfiguration",
    "Encoding",
    "ModalityManufacturer",
    "RemoteModalityParameters",
    "WebServiceParameters",
    "ConfigurationError",
    "BadJsonError",
    "BadFileFormatError",
    "BadParameterTypeError",
    "ParameterOutOfRangeError",
    "InexistentFileError",
    "InexistentItemError",
]
