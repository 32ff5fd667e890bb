"""
Configuration management and singleton pattern.

This module provides the main configuration loading and management interface,
implementing a singleton pattern to ensure configuration is loaded only once
per process. Parsers and builders accept an explicit AppConfig and fall back
to get_config() when none is given.
"""

import logging
from pathlib import Path
from typing import Optional

from ..models.config import AppConfig
from ..validation import ErrorSeverity, handle_config_error
from .loader import read_config_file
from .validators import validate_app_config

logger = logging.getLogger(__name__)

# --- Global Singleton for Configuration ---

_CONFIG: Optional[AppConfig] = None

# Default path to the configuration file: <repo>/conf/config.toml.
# Can be overridden with set_config_path() (e.g. in tests).
_CONFIG_FILE_PATH = Path(__file__).parent.parent.parent.parent / "conf" / "config.toml"


def set_config_path(config_path: Path) -> None:
    """
    Set a custom configuration file path.

    Clears any cached configuration so the next get_config() reloads from
    the new location.

    Args:
        config_path: Path to the config.toml file
    """
    global _CONFIG_FILE_PATH, _CONFIG
    _CONFIG_FILE_PATH = Path(config_path)
    _CONFIG = None
    logger.info(f"Configuration path set to: {config_path}")


def clear_config_cache() -> None:
    """Clear the cached configuration, forcing a reload on next access."""
    global _CONFIG
    _CONFIG = None
    logger.debug("Configuration cache cleared")


def _load_config(config_path: Path) -> AppConfig:
    """
    Load and validate the application configuration from TOML.

    A missing file is not an error: every setting has a default, so the
    built-in defaults are used and a warning is logged.

    Raises:
        ValidationError: If the file is malformed or a setting is invalid
    """
    if not config_path.exists():
        logger.warning(f"Configuration file {config_path} not found, using defaults")
        return AppConfig()

    try:
        config_data = read_config_file(config_path)
        app_config = validate_app_config(config_data)
    except Exception as e:
        handle_config_error(
            error=e,
            context=f"processing configuration {config_path}",
            severity=ErrorSeverity.CRITICAL,
            reraise=True,
            logger=logger
        )
        raise

    logger.info(
        f"Loaded configuration: bucket width {app_config.analysis.bucket_width_ms}ms, "
        f"top-N {app_config.analysis.top_n}"
    )
    return app_config


def get_config() -> AppConfig:
    """
    Get the global application configuration, loading it if necessary.

    Returns:
        The singleton AppConfig instance
    """
    global _CONFIG
    if _CONFIG is None:
        _CONFIG = _load_config(_CONFIG_FILE_PATH)
    return _CONFIG


def is_config_loaded() -> bool:
    """Check if configuration has been loaded and cached."""
    return _CONFIG is not None


def get_config_info() -> dict:
    """
    Get information about the current configuration state.

    Returns:
        Dictionary with configuration metadata
    """
    return {
        "config_loaded": is_config_loaded(),
        "config_path": str(_CONFIG_FILE_PATH),
        "bucket_width_ms": _CONFIG.analysis.bucket_width_ms if _CONFIG else 0,
        "top_n": _CONFIG.analysis.top_n if _CONFIG else 0,
    }
