"""
Environment variable substitution in configuration files.

Placeholders of the form ``${NAME}`` are replaced in the raw text of a
configuration file before it is parsed, so that any part of the JSON
document can be templated.
"""

import logging
import os
import re
from pathlib import Path
from typing import Dict, Mapping, Optional, Union

from dotenv import dotenv_values

logger = logging.getLogger("dicom_config.env")

PLACEHOLDER = re.compile(r"\$\{(.*?)\}")


def substitute_variables(content: str, environment: Mapping[str, str]) -> str:
    """Replace every ``${NAME}`` placeholder with its value.

    Unknown variables are replaced with an empty string.

    Args:
        content: Raw text of the configuration file
        environment: Mapping from variable name to value

    Returns:
        The text with all placeholders substituted
    """
    missing = set()

    def replace(match: "re.Match[str]") -> str:
        name = match.group(1)
        if name in environment:
            return environment[name]
        if name not in missing:
            missing.add(name)
            logger.warning("Environment variable %s is not defined, substituting an empty string", name)
        return ""

    return PLACEHOLDER.sub(replace, content)


def environment_snapshot(config_dir: Optional[Union[str, Path]] = None) -> Dict[str, str]:
    """Take a copy of the process environment for variable substitution.

    If a ``.env`` file exists in ``config_dir`` (or, failing that, in the
    current directory), its values complete the snapshot. Variables of the
    process environment take precedence over the ``.env`` file.

    Args:
        config_dir: Directory containing the configuration

    Returns:
        Mapping from variable name to value
    """
    env_file = None
    if config_dir is not None and (Path(config_dir) / ".env").is_file():
        env_file = Path(config_dir) / ".env"
    elif Path(".env").is_file():
        env_file = Path(".env")

    snapshot: Dict[str, str] = {}
    if env_file is not None:
        logger.info("Loaded environment variables from %s", env_file)
        snapshot.update(
            (key, value) for key, value in dotenv_values(env_file).items() if value is not None
        )

    snapshot.update(os.environ)
    return snapshot
