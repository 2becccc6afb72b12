"""
Connection parameters of remote DICOM modalities.

A modality is declared in the "DicomModalities" section either with the
simple format::

    "sample" : [ "STORESCP", "127.0.0.1", 2000, "Generic" ]

or with the advanced format::

    "sample" : {
      "AET" : "STORESCP",
      "Host" : "127.0.0.1",
      "Port" : 2000,
      "Manufacturer" : "Generic",
      "AllowEcho" : true,
      "AllowFind" : true,
      "AllowMove" : true,
      "AllowStore" : true
    }
"""

import logging
from enum import Enum
from typing import Any, Dict, List, Union

from pydantic import field_validator

from .base import ConfigurationModel
from .errors import BadFileFormatError, BadParameterTypeError, ParameterOutOfRangeError

logger = logging.getLogger("dicom_config.modality")


class ModalityManufacturer(str, Enum):
    """Vendor-specific behaviors of remote modalities."""
    GENERIC = "Generic"
    GENERIC_NO_WILDCARD_IN_DATES = "GenericNoWildcardInDates"
    GENERIC_NO_UNIVERSAL_WILDCARD = "GenericNoUniversalWildcard"
    STORE_SCP = "StoreScp"
    CLEAR_CANVAS = "ClearCanvas"
    DCM4CHEE = "Dcm4Chee"
    VITREA = "Vitrea"
    GE = "GE"

    @classmethod
    def from_string(cls, value: str) -> "ModalityManufacturer":
        for manufacturer in cls:
            if manufacturer.value == value:
                return manufacturer

        if value in LEGACY_MANUFACTURERS:
            logger.warning(
                'The "%s" manufacturer is obsolete, please use "%s" instead',
                value, cls.GENERIC_NO_WILDCARD_IN_DATES.value
            )
            return cls.GENERIC_NO_WILDCARD_IN_DATES

        logger.error("Unknown modality manufacturer: %s", value)
        raise BadFileFormatError(f"Unknown modality manufacturer: {value}")


LEGACY_MANUFACTURERS = ("AgfaImpax", "EFilm2", "SyngoVia")

JsonValue = Union[Dict[str, Any], List[Any]]


def _read_string(value: Any, field: str) -> str:
    if not isinstance(value, str):
        logger.error('The "%s" field of a modality must be a string', field)
        raise BadParameterTypeError(f'The "{field}" field of a modality must be a string')
    return value


def _read_port(value: Any) -> int:
    if isinstance(value, bool):
        raise BadParameterTypeError("The port of a modality must be an integer")
    if isinstance(value, str):
        try:
            value = int(value)
        except ValueError:
            raise BadParameterTypeError(f"Not a valid port number: {value!r}")
    elif not isinstance(value, int):
        raise BadParameterTypeError("The port of a modality must be an integer")

    if not 0 <= value <= 65535:
        logger.error("A port number must be between 0 and 65535, found: %d", value)
        raise ParameterOutOfRangeError(f"Port number out of range: {value}")
    return value


def _read_flag(source: Dict[str, Any], field: str) -> bool:
    value = source.get(field, True)
    if not isinstance(value, bool):
        logger.error('The "%s" field of a modality must be a Boolean', field)
        raise BadParameterTypeError(f'The "{field}" field of a modality must be a Boolean')
    return value


class RemoteModalityParameters(ConfigurationModel):
    """Parameters to connect to a remote DICOM modality."""
    application_entity_title: str = "ORTHANC"
    host: str = "127.0.0.1"
    port: int = 104
    manufacturer: ModalityManufacturer = ModalityManufacturer.GENERIC
    allow_echo: bool = True
    allow_find: bool = True
    allow_move: bool = True
    allow_store: bool = True

    @field_validator("port", mode="before")
    @classmethod
    def check_port(cls, value: Any) -> int:
        return _read_port(value)

    def is_advanced_format_needed(self) -> bool:
        """Whether the simple (array) format would lose information."""
        return not (self.allow_echo and self.allow_find and
                    self.allow_move and self.allow_store)

    def to_config(self, force_advanced_format: bool = False) -> JsonValue:
        """Serialize the modality into its configuration-file representation.

        Args:
            force_advanced_format: Always use the JSON object format

        Returns:
            A JSON array (simple format) or object (advanced format)
        """
        if force_advanced_format or self.is_advanced_format_needed():
            return {
                "AET": self.application_entity_title,
                "Host": self.host,
                "Port": self.port,
                "Manufacturer": self.manufacturer.value,
                "AllowEcho": self.allow_echo,
                "AllowFind": self.allow_find,
                "AllowMove": self.allow_move,
                "AllowStore": self.allow_store,
            }

        return [self.application_entity_title, self.host, self.port, self.manufacturer.value]

    @classmethod
    def from_config(cls, value: Any) -> "RemoteModalityParameters":
        """Parse a modality from the "DicomModalities" section.

        Raises:
            BadFileFormatError: If the value has neither the simple nor the
                advanced format
            BadParameterTypeError: If a field has the wrong type
            ParameterOutOfRangeError: If the port is not a valid TCP port
        """
        if isinstance(value, list):
            if len(value) not in (3, 4):
                logger.error("A modality must be an array of 3 or 4 items, found %d", len(value))
                raise BadFileFormatError("Bad format for a modality in the simple format")

            manufacturer = ModalityManufacturer.GENERIC
            if len(value) == 4:
                manufacturer = ModalityManufacturer.from_string(_read_string(value[3], "Manufacturer"))

            return cls(
                application_entity_title=_read_string(value[0], "AET"),
                host=_read_string(value[1], "Host"),
                port=_read_port(value[2]),
                manufacturer=manufacturer,
            )

        if isinstance(value, dict):
            for field in ("AET", "Host", "Port"):
                if field not in value:
                    logger.error('Missing "%s" field in a modality', field)
                    raise BadFileFormatError(f'Missing "{field}" field in a modality')

            manufacturer = ModalityManufacturer.GENERIC
            if "Manufacturer" in value:
                manufacturer = ModalityManufacturer.from_string(
                    _read_string(value["Manufacturer"], "Manufacturer"))

            return cls(
                application_entity_title=_read_string(value["AET"], "AET"),
                host=_read_string(value["Host"], "Host"),
                port=_read_port(value["Port"]),
                manufacturer=manufacturer,
                allow_echo=_read_flag(value, "AllowEcho"),
                allow_find=_read_flag(value, "AllowFind"),
                allow_move=_read_flag(value, "AllowMove"),
                allow_store=_read_flag(value, "AllowStore"),
            )

        logger.error("A modality must be a JSON array or a JSON object")
        raise BadFileFormatError("Bad format for a modality")

    def __str__(self):
        return f"{self.application_entity_title}@{self.host}:{self.port}"
