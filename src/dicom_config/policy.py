"""
Access policies used by the modality and peer registries.

These are plain functions: the caller reads the relevant configuration
options and passes them in.
"""

import logging

from .errors import BadFileFormatError

logger = logging.getLogger("dicom_config.policy")


def is_same_ae_title(aet1: str, aet2: str, strict: bool = False) -> bool:
    """Compare two application entity titles.

    Args:
        aet1: First AE title
        aet2: Second AE title
        strict: Case-sensitive comparison ("StrictAetComparison" option)

    Returns:
        True if both titles designate the same application entity
    """
    if strict:
        return aet1 == aet2
    return aet1.lower() == aet2.lower()


def is_allowed_host(expected_host: str, actual_host: str, check_host: bool = False) -> bool:
    """Check the host a request comes from ("DicomCheckModalityHost" option)."""
    return not check_host or actual_host == expected_host


def check_symbolic_name(name: str) -> None:
    """Ensure a modality/peer name only contains alphanumeric and dash characters.

    Raises:
        BadFileFormatError: If the name contains any other character
    """
    if not name or not all((c.isascii() and c.isalnum()) or c == "-" for c in name):
        logger.error(
            "Only alphanumeric and dash characters are allowed in the names "
            "of modalities/peers, but found: %s", name
        )
        raise BadFileFormatError(f"Invalid symbolic name: {name!r}")
