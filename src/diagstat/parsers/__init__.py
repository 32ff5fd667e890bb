"""
Capture parsers.

One parser per capture format, all built on AbstractCaptureParser:
each turns a line stream into an ordered record sequence plus the
recoverable ParseErrors met along the way.
"""

# Shared contract and tokenizer
from .base import (
    AbstractCaptureParser,
    FieldSpec,
    ParseResult,
    TokenLayout,
    iter_text_lines,
    open_capture,
    parse_count,
    parse_decimal,
)

# Format parsers
from .iostat import IOStatParser
from .queries import QueriesJsonParser, query_from_json
from .top import TopParser

__all__ = [
    # Contract
    "AbstractCaptureParser",
    "ParseResult",
    "FieldSpec",
    "TokenLayout",
    "parse_decimal",
    "parse_count",
    "open_capture",
    "iter_text_lines",
    # Parsers
    "TopParser",
    "IOStatParser",
    "QueriesJsonParser",
    "query_from_json",
]
