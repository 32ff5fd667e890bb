"""
diagstat: diagnostic capture parsing and aggregation.

This package turns captured diagnostic logs (iostat CPU/disk reports, top
process listings, queries.json query records) into windowed statistical
summaries for report renderers.

The package is organized into specialized modules:
- models: Sample records, configuration and summary structures
- validation: Exception taxonomy, error handling and validators
- config: TOML configuration loading and caching
- parsers: One tolerant parser per capture format
- aggregation: Time-bucketing engine and aggregators
- summary: Summary builders and Polars exports

Usage:
    from diagstat import TopParser, build_top_summary
    result = TopParser().parse_file("top.txt")
    summary = build_top_summary(result)
"""

# Main interfaces
from .config import clear_config_cache, get_config, set_config_path
from .log_setup import setup_logging

# Parsers
from .parsers import IOStatParser, ParseResult, QueriesJsonParser, TopParser

# Summary builders
from .summary import (
    analyze_query_files,
    analyze_top_file,
    build_iostat_summary,
    build_queries_summary,
    build_top_summary,
)

# Model classes for external use
from .models import (
    AppConfig,
    BucketReport,
    IOStatSummary,
    ParseError,
    QueriesSummary,
    RangeStatus,
    TopSummary,
)

# Validation utilities
from .validation import CaptureFormatError, ValidationError

__version__ = "1.0.0"

__all__ = [
    # Main interfaces
    "get_config",
    "clear_config_cache",
    "set_config_path",
    "setup_logging",
    # Parsers
    "TopParser",
    "IOStatParser",
    "QueriesJsonParser",
    "ParseResult",
    # Summaries
    "build_top_summary",
    "build_iostat_summary",
    "build_queries_summary",
    "analyze_query_files",
    "analyze_top_file",
    # Models
    "AppConfig",
    "BucketReport",
    "RangeStatus",
    "TopSummary",
    "IOStatSummary",
    "QueriesSummary",
    "ParseError",
    # Validation
    "ValidationError",
    "CaptureFormatError",
]
