"""
Reading of the diagstat configuration file (conf/config.toml).

The file holds four optional tables, [analysis], [thresholds], [queries]
and [top]. This module only turns the file into raw tables; typed
validation lives in validators.py.
"""

import logging
import tomllib
from pathlib import Path
from typing import Any, Dict

from ..validation import ValidationError

logger = logging.getLogger(__name__)

CONFIG_SECTIONS = ("analysis", "thresholds", "queries", "top")


def read_config_file(config_path: Path) -> Dict[str, Any]:
    """
    Read config.toml into a dictionary of raw section tables.

    Unknown top-level keys are logged and dropped so a typo such as
    `[threshold]` is visible instead of silently applying defaults.

    Args:
        config_path: Path to the config.toml file

    Returns:
        Mapping of known section name to its raw table

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValidationError: If the file is not UTF-8 or not valid TOML; the
                         message names the file
    """
    config_path = Path(config_path)
    logger.info(f"Reading diagstat configuration from: {config_path}")

    try:
        text = config_path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ValidationError(
            f"{config_path}: configuration is not valid UTF-8 ({e.reason})",
            field_name=str(config_path),
        ) from e

    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise ValidationError(
            f"{config_path}: invalid TOML ({e})",
            field_name=str(config_path),
        ) from e

    for name in data:
        if name not in CONFIG_SECTIONS:
            logger.warning(
                f"{config_path}: ignoring unknown section or key '{name}' "
                f"(expected one of {', '.join(CONFIG_SECTIONS)})"
            )
    return {name: data[name] for name in CONFIG_SECTIONS if name in data}
