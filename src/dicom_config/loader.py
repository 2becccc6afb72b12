"""
Configuration loader.

Reads a single configuration file, or all the ``.json`` files of a
directory, and merges them into one configuration tree.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import json5

from .env import environment_snapshot, substitute_variables
from .errors import BadFileFormatError, BadJsonError, InexistentFileError

logger = logging.getLogger("dicom_config.loader")

PathLike = Union[str, Path]

# Members whose name starts with this marker are documentation only
COMMENT_MARKER = "//"


def strip_comments(value: Any) -> Any:
    """Return a copy of a JSON value without its comment members."""
    if isinstance(value, dict):
        return {
            key: strip_comments(item)
            for key, item in value.items()
            if not key.startswith(COMMENT_MARKER)
        }
    if isinstance(value, list):
        return [strip_comments(item) for item in value]
    return value


def load_file(path: PathLike, environment: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """Load one configuration fragment.

    Args:
        path: Path to the JSON file
        environment: Variables for ``${NAME}`` substitution, defaults to a
            snapshot of the process environment

    Returns:
        The parsed JSON object

    Raises:
        BadJsonError: If the file is not UTF-8 text holding a JSON object
    """
    path = Path(path)
    if environment is None:
        environment = environment_snapshot(path.parent)

    logger.warning("Reading the configuration from: %s", path)

    try:
        content = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        logger.error("The configuration file is not encoded in UTF-8: %s", path)
        raise BadJsonError(f"Invalid UTF-8 in {path}: {e}")
    content = substitute_variables(content, environment)

    try:
        data = json5.loads(content)
    except ValueError as e:
        logger.error("The configuration file does not follow the JSON syntax: %s", path)
        raise BadJsonError(f"Invalid JSON in {path}: {e}")

    if not isinstance(data, dict):
        logger.error("The configuration file does not follow the JSON syntax: %s", path)
        raise BadJsonError(f"The configuration file {path} must contain a JSON object")

    return strip_comments(data)


def merge(target: Dict[str, Any], fragment: Mapping[str, Any]) -> Dict[str, Any]:
    """Merge a fragment into the configuration tree.

    Args:
        target: Configuration tree, modified in place
        fragment: Newly loaded configuration fragment

    Returns:
        The target tree

    Raises:
        BadFileFormatError: If a top-level section is defined twice
    """
    if not target:
        target.update(fragment)
        return target

    for key in fragment:
        if key in target:
            logger.error(
                'The configuration section "%s" is defined in 2 different configuration files', key
            )
            raise BadFileFormatError(f'The configuration section "{key}" is defined twice')

    target.update(fragment)
    return target


def load_directory(path: PathLike, environment: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """Load and merge all the ``.json`` files of a directory.

    Subdirectories are not scanned. Files are merged in directory order.
    """
    path = Path(path)
    if environment is None:
        environment = environment_snapshot(path)

    logger.warning('Scanning folder "%s" for configuration files', path)

    target: Dict[str, Any] = {}
    with os.scandir(path) as entries:
        for entry in entries:
            if entry.is_file() and os.path.splitext(entry.name)[1].lower() == ".json":
                merge(target, load_file(entry.path, environment))

    return target


def read_configuration(path: Optional[PathLike] = None,
                       environment: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """Load the configuration tree from a file or a directory.

    Args:
        path: Configuration file or directory, ``None`` for the default
            (empty) configuration
        environment: Variables for ``${NAME}`` substitution

    Returns:
        The merged configuration tree

    Raises:
        InexistentFileError: If the path does not exist
    """
    if path is None:
        logger.warning("Using the default configuration")
        return {}

    path = Path(path)
    if not path.exists():
        logger.error("Inexistent path to configuration: %s", path)
        raise InexistentFileError(f"Configuration path {path} not found")

    if path.is_dir():
        return load_directory(path, environment)
    return load_file(path, environment)
