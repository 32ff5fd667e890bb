"""
Parser for periodic CPU/disk captures (`iostat -x -t` output).

Each report consists of a timestamp line, an `avg-cpu:` header followed by
one line of CPU percentages, and a `Device` header followed by one row per
block device, terminated by a blank line:

    Linux 5.15.0-1034-aws (ip-10-0-0-12)   01/15/2024   _x86_64_   (8 CPU)

    01/15/2024 08:00:01 AM
    avg-cpu:  %user   %nice %system %iowait  %steal   %idle
              62.10    0.00    4.30    6.20    0.40   27.00

    Device            r/s     rkB/s ... w_await wareq-sz  aqu-sz  %util
    nvme0n1          12.00   480.00 ...    1.20    20.00    1.30  45.00

Column positions differ between sysstat versions, so both sections resolve
their columns by name from the header through an alias table.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Dict, Optional, Sequence, Tuple

from ..models.samples import CPUSample, DiskSample
from ..models.summary import frozen_mapping
from ..validation import FieldExtractionError
from .base import AbstractCaptureParser, FieldSpec, ParseResult, TokenLayout, parse_count

logger = logging.getLogger(__name__)

CATEGORY_TIMESTAMP = "Timestamp"
CATEGORY_CPU = "CPU"
CATEGORY_DISK_HEADER = "Disk Header"
CATEGORY_DISK = "Disk"

# Sample field -> header column names, in order of preference.
CPU_COLUMN_ALIASES: Dict[str, Tuple[str, ...]] = {
    "user": ("%user", "%usr"),
    "nice": ("%nice",),
    "system": ("%system", "%sys"),
    "iowait": ("%iowait",),
    "steal": ("%steal",),
    "idle": ("%idle",),
}

DISK_COLUMN_ALIASES: Dict[str, Tuple[str, ...]] = {
    "average_queue_size": ("aqu-sz", "avgqu-sz"),
    "read_await_ms": ("r_await", "await"),
    "write_await_ms": ("w_await", "await"),
    "read_kbps": ("rkB/s",),
    "write_kbps": ("wkB/s",),
    "reads_per_sec": ("r/s",),
    "writes_per_sec": ("w/s",),
    "utilization_pct": ("%util",),
}

# Accepted timestamp line formats, tried in order. ISO lines are handled
# separately via datetime.fromisoformat.
TIMESTAMP_FORMATS: Tuple[str, ...] = (
    "%m/%d/%Y %I:%M:%S %p",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%y %I:%M:%S %p",
    "%m/%d/%y %H:%M:%S",
)

_BANNER_RE = re.compile(r"^Linux\s+\S+\s+\((?P<host>[^)]+)\).*?\((?P<cpus>\d+)\s+CPU\)")
_SLASH_TIME_RE = re.compile(r"^\d{2}/\d{2}/\d{2,4}\s+\d{1,2}:\d{2}:\d{2}")
_ISO_TIME_RE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}")


def resolve_layout(
    header: Sequence[str], aliases: Dict[str, Tuple[str, ...]], offset: int = 0
) -> TokenLayout:
    """
    Build a TokenLayout from a header row using an alias table.

    Args:
        header: Column names as they appear in the header line.
        aliases: Sample field -> acceptable column names.
        offset: Token position of header[0] within a data row.

    Raises:
        FieldExtractionError: If any field has no matching column
    """
    positions = {name: i for i, name in enumerate(header)}
    specs = []
    missing = []
    for field_name, candidates in aliases.items():
        column = next((c for c in candidates if c in positions), None)
        if column is None:
            missing.append("|".join(candidates))
            continue
        specs.append(FieldSpec(field_name, positions[column] + offset))
    if missing:
        raise FieldExtractionError(f"header is missing column(s): {', '.join(missing)}")
    return TokenLayout(fields=tuple(specs))


def parse_report_time(text: str) -> int:
    """
    Convert a report timestamp line into epoch milliseconds.

    Naive times are taken as UTC.

    Raises:
        FieldExtractionError: If no supported format matches
    """
    text = text.strip()
    parsed: Optional[datetime] = None
    if _ISO_TIME_RE.match(text):
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            parsed = None
    else:
        for fmt in TIMESTAMP_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue
    if parsed is None:
        raise FieldExtractionError(f"unrecognized timestamp {text!r}", field_name="timestamp")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp() * 1000)


class IOStatParser(AbstractCaptureParser):
    """
    Parses `iostat -x` captures into CPUSample and DiskSample records.

    The host name and CPU count from the banner line are returned in
    ParseResult.metadata under "host" and "cpu_count".
    """

    format_name = "iostat"

    def __init__(self) -> None:
        super().__init__()
        self._reset()

    def _reset(self) -> None:
        self._timestamp: Optional[int] = None
        self._host = ""
        self._cpu_count = 0
        # Layout of the pending avg-cpu value line, if the previous line was its header.
        self._cpu_layout: Optional[TokenLayout] = None
        self._in_disk_section = False
        # None while inside a disk section whose header could not be resolved.
        self._disk_layout: Optional[TokenLayout] = None

    def _finish(self) -> ParseResult:
        return ParseResult(
            records=tuple(self._records),
            errors=tuple(self._errors),
            metadata=frozen_mapping({"host": self._host, "cpu_count": self._cpu_count}),
        )

    def _handle_line(self, line: str, line_number: int) -> None:
        stripped = line.strip()

        if self._cpu_layout is not None:
            layout, self._cpu_layout = self._cpu_layout, None
            self._handle_cpu_values(stripped, layout, line_number)
            return

        if self._in_disk_section:
            if not stripped:
                self._in_disk_section = False
                self._disk_layout = None
            elif self._disk_layout is not None:
                self._handle_disk_row(stripped, line_number)
            return

        if not stripped:
            return
        if stripped.startswith("Linux"):
            self._handle_banner(stripped)
        elif stripped.startswith("avg-cpu:"):
            self._handle_cpu_header(stripped, line_number)
        elif stripped.startswith("Device"):
            self._handle_disk_header(stripped, line_number)
        elif _SLASH_TIME_RE.match(stripped) or _ISO_TIME_RE.match(stripped):
            self._handle_timestamp(stripped, line_number)
        else:
            logger.debug(f"Ignoring unrecognized iostat line {line_number}: '{stripped}'")

    def _handle_banner(self, line: str) -> None:
        match = _BANNER_RE.match(line)
        if not match:
            return
        self._host = match.group("host")
        try:
            self._cpu_count = parse_count(match.group("cpus"), "cpu_count")
        except FieldExtractionError:
            self._cpu_count = 0

    def _handle_timestamp(self, line: str, line_number: int) -> None:
        try:
            self._timestamp = parse_report_time(line)
        except FieldExtractionError as e:
            self._record_error(CATEGORY_TIMESTAMP, str(e), line_number)

    def _handle_cpu_header(self, line: str, line_number: int) -> None:
        try:
            self._cpu_layout = resolve_layout(line.split()[1:], CPU_COLUMN_ALIASES)
        except FieldExtractionError as e:
            self._record_error(CATEGORY_CPU, f"unusable avg-cpu header: {e}", line_number)

    def _handle_cpu_values(self, line: str, layout: TokenLayout, line_number: int) -> None:
        try:
            values = layout.extract(line.split())
        except FieldExtractionError as e:
            self._record_error(
                CATEGORY_CPU, f"unable to parse cpu values '{line}': {e}", line_number
            )
            return
        self._emit(CPUSample(timestamp=self._timestamp, **values))

    def _handle_disk_header(self, line: str, line_number: int) -> None:
        self._in_disk_section = True
        try:
            # Data rows carry the device name at token 0, so columns shift by one.
            self._disk_layout = resolve_layout(line.split()[1:], DISK_COLUMN_ALIASES, offset=1)
        except FieldExtractionError as e:
            self._disk_layout = None
            self._record_error(CATEGORY_DISK_HEADER, str(e), line_number)

    def _handle_disk_row(self, line: str, line_number: int) -> None:
        tokens = line.split()
        try:
            values = self._disk_layout.extract(tokens)
        except FieldExtractionError as e:
            self._record_error(
                CATEGORY_DISK, f"unable to parse disk row '{line}': {e}", line_number
            )
            return
        self._emit(DiskSample(timestamp=self._timestamp, device=tokens[0], **values))
