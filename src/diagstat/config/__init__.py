"""
Configuration management for the diagstat package.

This module provides a clean interface for loading, validating, and accessing
configuration data from TOML files with singleton pattern management.
"""

# Main configuration interface
from .manager import (
    clear_config_cache,
    get_config,
    get_config_info,
    is_config_loaded,
    set_config_path,
)

# For advanced usage - direct access to the file reader and validators
from .loader import CONFIG_SECTIONS, read_config_file
from .validators import (
    validate_analysis_config,
    validate_app_config,
    validate_queries_config,
    validate_threshold_config,
    validate_top_config,
)

__all__ = [
    # Main interface
    "get_config",
    "set_config_path",
    "clear_config_cache",
    "is_config_loaded",
    "get_config_info",
    # Advanced interface
    "CONFIG_SECTIONS",
    "read_config_file",
    "validate_analysis_config",
    "validate_app_config",
    "validate_queries_config",
    "validate_threshold_config",
    "validate_top_config",
]
