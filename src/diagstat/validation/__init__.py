"""
Validation and error handling for the diagstat package.

This module provides input validation and error handling with consistent
error reporting across the application.
"""

# Core exception classes and error handling
from .exceptions import (
    CaptureFormatError,
    ErrorSeverity,
    FieldExtractionError,
    ValidationError,
    handle_config_error,
    handle_error,
    handle_file_error,
)

# Validation functions
from .validators import (
    validate_bool,
    validate_positive_float,
    validate_positive_integer,
    validate_string_list,
    validate_timestamp_ms,
)

__all__ = [
    # Core functionality
    "CaptureFormatError",
    "ErrorSeverity",
    "FieldExtractionError",
    "ValidationError",
    "handle_error",
    "handle_config_error",
    "handle_file_error",
    # Validators
    "validate_bool",
    "validate_positive_float",
    "validate_positive_integer",
    "validate_string_list",
    "validate_timestamp_ms",
]
