"""
Exception taxonomy and error handling helpers.

Three failure classes exist in the analysis pipeline:

- ValidationError: bad configuration or caller-supplied parameters
  (e.g. a bucket width that is not strictly positive).
- CaptureFormatError: the capture itself cannot be read (undecodable bytes).
  This is the only hard failure raised out of a parser.
- FieldExtractionError: a single record could not be parsed. Parsers catch it
  and turn it into a ParseError entry; it never escapes a parse() call.
"""

import logging
from enum import Enum
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """Severity levels for error handling."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ValidationError(Exception):
    """
    Exception raised when validation fails.

    This is the main exception type used for configuration and parameter checks.
    """

    def __init__(self, message: str, field_name: Optional[str] = None,
                 value: Any = None, severity: ErrorSeverity = ErrorSeverity.ERROR):
        super().__init__(message)
        self.field_name = field_name
        self.value = value
        self.severity = severity


class CaptureFormatError(Exception):
    """Raised when a capture is unreadable as a whole (e.g. invalid encoding)."""

    def __init__(self, message: str, source: Optional[str] = None,
                 line_number: Optional[int] = None):
        super().__init__(message)
        self.source = source
        self.line_number = line_number


class FieldExtractionError(ValueError):
    """A single field or record could not be extracted from a capture line."""

    def __init__(self, message: str, field_name: Optional[str] = None):
        super().__init__(message)
        self.field_name = field_name


_SEVERITY_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


def handle_error(
    error: Exception,
    context: str,
    severity: Union[ErrorSeverity, str] = ErrorSeverity.ERROR,
    reraise: bool = True,
    logger: Optional[logging.Logger] = None
) -> None:
    """
    Handle errors with consistent logging and optional re-raising.

    Args:
        error: The exception that occurred
        context: Context description of where the error occurred
        severity: Severity level for logging
        reraise: Whether to re-raise the exception after logging
        logger: Logger instance to use (defaults to module logger)
    """
    effective_logger = logger or globals()['logger']

    error_msg = f"Error in {context}: {error}"

    # Handle both enum and string severity values
    if isinstance(severity, str):
        severity_str = severity.lower()
    else:
        severity_str = severity.value

    level = _SEVERITY_LEVELS.get(severity_str, logging.ERROR)
    effective_logger.log(
        level, error_msg, exc_info=severity_str in ("debug", "critical")
    )

    if reraise:
        raise error


def handle_config_error(error: Exception, context: str, **kwargs) -> None:
    """Handle configuration-related errors."""
    handle_error(error, f"config {context}", **kwargs)


def handle_file_error(error: Exception, context: str, **kwargs) -> None:
    """Handle file-related errors."""
    handle_error(error, f"file {context}", **kwargs)
