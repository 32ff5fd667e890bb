"""
Defines the shared structures and abstract class for capture parsers.

This module provides:
- ParseResult: the ordered records and recoverable errors of one parse.
- AbstractCaptureParser: an abstract base class (ABC) that drives a
  line-oriented capture through a format-specific line handler.
- parse_decimal / parse_count / keep_text: locale-invariant field converters.
- FieldSpec / TokenLayout: a declarative "named field at token offset" table,
  so each format keeps its positional knowledge in one place.
- open_capture / iter_text_lines: byte-level input handling (gzip, UTF-8).
"""

import gzip
import logging
import math
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import (
    Any,
    BinaryIO,
    Callable,
    Dict,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Type,
    TypeVar,
    Union,
)

from ..models.samples import ParseError
from ..models.summary import frozen_mapping
from ..validation import CaptureFormatError, FieldExtractionError, handle_file_error

logger = logging.getLogger(__name__)

T = TypeVar("T")

_GZIP_MAGIC = b"\x1f\x8b"
_DECIMAL_RE = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?$")
_COUNT_RE = re.compile(r"^[+-]?\d+$")


# --- Numeric field conversion ---


def parse_decimal(text: str, field_name: str = "value") -> float:
    """
    Parse a decimal field using "." as the only decimal separator.

    Unlike float(), this rejects locale-formatted numbers ("1,5"), digit
    group separators, and the special values nan/inf.

    Raises:
        FieldExtractionError: If the text is not a plain finite decimal
    """
    stripped = text.strip()
    if not _DECIMAL_RE.match(stripped):
        raise FieldExtractionError(
            f"{field_name}: expected a decimal number, got {text!r}",
            field_name=field_name,
        )
    value = float(stripped)
    if not math.isfinite(value):
        raise FieldExtractionError(
            f"{field_name}: number out of range, got {text!r}",
            field_name=field_name,
        )
    return value


def parse_count(text: str, field_name: str = "value") -> int:
    """
    Parse an integer count field.

    Raises:
        FieldExtractionError: If the text is not a plain integer
    """
    stripped = text.strip()
    if not _COUNT_RE.match(stripped):
        raise FieldExtractionError(
            f"{field_name}: expected an integer, got {text!r}",
            field_name=field_name,
        )
    return int(stripped)


def keep_text(text: str, field_name: str = "value") -> str:
    return text


# --- Tokenizer abstraction ---


@dataclass(frozen=True)
class FieldSpec:
    """One named field found at a fixed whitespace-token offset."""

    name: str
    offset: int
    # Converter called as convert(token, name); raises FieldExtractionError.
    convert: Callable[[str, str], Any] = parse_decimal


@dataclass(frozen=True)
class TokenLayout:
    """
    Declarative positional layout of a tokenized line.

    Attributes:
        fields: Fixed-offset fields to extract.
        rest_from: If set, all tokens from this offset to end of line are
                   joined with single spaces into the `rest_name` field.
        rest_name: Name of the joined remainder field.
    """

    fields: Tuple[FieldSpec, ...]
    rest_from: Optional[int] = None
    rest_name: Optional[str] = None

    @property
    def min_tokens(self) -> int:
        """Smallest token count a line must have to satisfy this layout."""
        needed = [spec.offset + 1 for spec in self.fields]
        if self.rest_from is not None:
            needed.append(self.rest_from + 1)
        return max(needed, default=0)

    def extract(self, tokens: Sequence[str]) -> Dict[str, Any]:
        """
        Extract every named field from a token sequence.

        Raises:
            FieldExtractionError: If a token is missing or fails conversion
        """
        values: Dict[str, Any] = {}
        for spec in self.fields:
            if spec.offset >= len(tokens):
                raise FieldExtractionError(
                    f"{spec.name}: missing token at offset {spec.offset} "
                    f"(line has {len(tokens)} tokens)",
                    field_name=spec.name,
                )
            values[spec.name] = spec.convert(tokens[spec.offset], spec.name)
        if self.rest_from is not None:
            name = self.rest_name or "rest"
            if self.rest_from >= len(tokens):
                raise FieldExtractionError(
                    f"{name}: missing tokens from offset {self.rest_from}",
                    field_name=name,
                )
            values[name] = " ".join(tokens[self.rest_from:])
        return values


# --- Parse results ---


@dataclass(frozen=True)
class ParseResult:
    """
    Output of one parse: records in capture order plus recoverable errors.

    Attributes:
        records: Sample/event records in the order they appeared.
        errors: Record-level failures, in the order they were encountered.
        filtered: Records dropped by a caller-supplied time-range filter.
        metadata: Informational capture properties (e.g. host name).
    """

    records: Tuple[Any, ...]
    errors: Tuple[ParseError, ...]
    filtered: int = 0
    metadata: Mapping[str, Any] = field(default_factory=lambda: frozen_mapping({}))

    def of_type(self, record_type: Type[T]) -> Tuple[T, ...]:
        """Return the records of one type, preserving capture order."""
        return tuple(r for r in self.records if isinstance(r, record_type))

    def errors_in(self, category: str) -> Tuple[ParseError, ...]:
        return tuple(e for e in self.errors if e.category == category)


# --- Byte-level input handling ---


def open_capture(path: Union[str, Path]) -> BinaryIO:
    """
    Open a capture file in binary mode, gunzipping transparently.

    Compression is detected from the gzip magic bytes, not the file name.
    """
    path = Path(path)
    with open(path, "rb") as head:
        magic = head.read(2)
    if magic == _GZIP_MAGIC:
        logger.debug(f"Opening {path} as gzip")
        return gzip.open(path, "rb")
    return open(path, "rb")


def iter_text_lines(
    lines: Iterable[Union[str, bytes]], source: str = "<stream>"
) -> Iterator[str]:
    """
    Yield text lines with trailing newlines removed.

    Bytes are decoded as strict UTF-8 (a leading BOM is dropped).

    Raises:
        CaptureFormatError: If a line is not valid UTF-8
    """
    for line_number, raw in enumerate(lines, start=1):
        if isinstance(raw, bytes):
            try:
                text = raw.decode("utf-8")
            except UnicodeDecodeError as e:
                raise CaptureFormatError(
                    f"{source}: line {line_number} is not valid UTF-8 ({e.reason})",
                    source=source,
                    line_number=line_number,
                ) from e
        else:
            text = raw
        if line_number == 1:
            text = text.lstrip("\ufeff")
        yield text.rstrip("\r\n")


# --- Parser base class ---


class AbstractCaptureParser(ABC):
    """
    Abstract base class for capture parsers.

    Subclasses implement a per-line handler and keep their scanning state on
    the instance; parse() resets that state first, so one parser instance may
    be reused for several captures, but not concurrently.
    """

    # Short name used in log messages.
    format_name: str = "capture"

    def __init__(self) -> None:
        self._records: List[Any] = []
        self._errors: List[ParseError] = []

    @abstractmethod
    def _reset(self) -> None:
        """Clear format-specific scanning state before a new parse."""
        pass

    @abstractmethod
    def _handle_line(self, line: str, line_number: int) -> None:
        """
        Process one line of the capture.

        Implementations append records with _emit() and recoverable failures
        with _record_error(); they must not raise FieldExtractionError.
        """
        pass

    def _finish(self) -> ParseResult:
        """Build the ParseResult once every line has been handled."""
        return ParseResult(records=tuple(self._records), errors=tuple(self._errors))

    def _emit(self, record: Any) -> None:
        self._records.append(record)

    def _record_error(self, category: str, message: str, line_number: int) -> None:
        logger.debug(f"{self.format_name} line {line_number}: [{category}] {message}")
        self._errors.append(
            ParseError(message=message, category=category, line_number=line_number)
        )

    def parse(
        self, lines: Iterable[Union[str, bytes]], source: str = "<stream>"
    ) -> ParseResult:
        """
        Parse a capture given as an iterable of lines.

        Args:
            lines: Text or byte lines (with or without trailing newlines).
            source: Name used in log and error messages.

        Returns:
            ParseResult with all records that parsed and all record errors.

        Raises:
            CaptureFormatError: If the input is not valid UTF-8
        """
        self._records = []
        self._errors = []
        self._reset()

        for line_number, line in enumerate(iter_text_lines(lines, source), start=1):
            self._handle_line(line, line_number)

        result = self._finish()
        message = (
            f"Parsed {self.format_name} capture {source}: "
            f"{len(result.records)} records, {len(result.errors)} errors"
        )
        if result.errors:
            logger.warning(message)
        else:
            logger.info(message)
        return result

    def parse_text(self, text: str, source: str = "<text>") -> ParseResult:
        """
        Convenience wrapper for parsing an in-memory capture.

        Lines are split on "\n" only, so numbering matches parse_file().
        """
        lines = text.split("\n")
        if lines[-1] == "":
            lines.pop()
        return self.parse(lines, source=source)

    def parse_file(self, path: Union[str, Path]) -> ParseResult:
        """
        Parse a capture file, streaming it line by line.

        Raises:
            CaptureFormatError: If the file is undecodable or a corrupt gzip
            OSError: If the file cannot be opened
        """
        try:
            with open_capture(path) as handle:
                return self.parse(handle, source=str(path))
        except (gzip.BadGzipFile, EOFError) as e:
            raise CaptureFormatError(
                f"{path}: corrupt compressed capture ({e})", source=str(path)
            ) from e
        except OSError as e:
            handle_file_error(
                error=e,
                context=f"reading capture {path}",
                reraise=True,
                logger=logger,
            )
            raise
