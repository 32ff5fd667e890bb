"""
Parser for periodic process-list captures (`top -b` batch output).

A capture is a sequence of snapshots. Each snapshot starts with a
`top - HH:MM:SS ...` line, followed by summary lines (threads/tasks, CPU,
memory, swap) and a process table introduced by a `PID USER ...` header and
terminated by the first blank line:

    top - 10:15:32 up 3 days,  2:01,  0 users,  load average: 1.20, 1.05, 0.98
    Threads: 525 total,   1 running, 524 sleeping,   0 stopped,   0 zombie
    %Cpu(s): 75.3 us,  3.2 sy,  0.0 ni, 20.4 id,  0.0 wa,  0.0 hi,  1.0 si,  0.0 st
    MiB Mem :  15869.4 total,   1234.5 free,   8000.0 used,   6634.9 buff/cache
    MiB Swap:   2048.0 total,   2048.0 free,      0.0 used.  7012.3 avail Mem

        PID USER      PR  NI    VIRT    RES    SHR S  %CPU  %MEM     TIME+ COMMAND
       1234 dremio    20   0   12.3g   4.1g  40212 S  93.8  26.4  10:02.11 java -Xmx4g

The scanner is a two-state machine (outside-table / inside-table); every
other line is classified by its leading marker.
"""

import logging
import re
from datetime import date, datetime, time, timezone
from typing import Dict, List, Optional

from ..models.samples import (
    CPUSample,
    MemSample,
    ProcessUsageSample,
    SwapSample,
    ThreadStateSample,
)
from ..validation import FieldExtractionError
from .base import (
    AbstractCaptureParser,
    FieldSpec,
    TokenLayout,
    parse_count,
    parse_decimal,
    keep_text,
)

logger = logging.getLogger(__name__)

MILLIS_PER_DAY = 24 * 60 * 60 * 1000

# Error categories reported in ParseError.category.
CATEGORY_TIMESTAMP = "Timestamp"
CATEGORY_THREADS = "Thread Stats"
CATEGORY_CPU = "CPU"
CATEGORY_MEMORY = "Memory"
CATEGORY_SWAP = "Swap"
CATEGORY_PROCESS = "Process"

# --- Positional layouts ---

# "top - 10:15:32 up ...": the clock is the third whitespace token.
TIMESTAMP_LAYOUT = TokenLayout(fields=(FieldSpec("clock", 2, keep_text),))

# Tokens after "%Cpu(s):" alternate value/label: "75.3 us, 3.2 sy, 0.0 ni, ...".
CPU_LAYOUT = TokenLayout(
    fields=(
        FieldSpec("user", 0),
        FieldSpec("system", 2),
        FieldSpec("nice", 4),
        FieldSpec("idle", 6),
        FieldSpec("iowait", 8),
        FieldSpec("steal", 14),
    )
)

# Leading token of each comma-delimited part of a "Threads:" line.
THREAD_LAYOUT = TokenLayout(
    fields=(
        FieldSpec("total", 0, parse_count),
        FieldSpec("running", 1, parse_count),
        FieldSpec("sleeping", 2, parse_count),
        FieldSpec("stopped", 3, parse_count),
        FieldSpec("zombie", 4, parse_count),
    )
)

# Leading token of each comma-delimited part of a "MiB Mem :" line.
MEMORY_LAYOUT = TokenLayout(
    fields=(
        FieldSpec("total", 0),
        FieldSpec("free", 1),
        FieldSpec("used", 2),
        FieldSpec("cache", 3),
    )
)

# Process table row; the command is everything from the twelfth token on.
PROCESS_LAYOUT = TokenLayout(
    fields=(
        FieldSpec("pid", 0, keep_text),
        FieldSpec("cpu", 8),
    ),
    rest_from=11,
    rest_name="command",
)

# Multipliers converting top's memory units into MiB.
UNIT_TO_MIB: Dict[str, float] = {
    "KiB": 1.0 / 1024.0,
    "MiB": 1.0,
    "GiB": 1024.0,
    "TiB": 1024.0 * 1024.0,
}

_MEMORY_RE = re.compile(r"^(KiB|MiB|GiB|TiB) Mem\s*:")
_SWAP_RE = re.compile(r"^(KiB|MiB|GiB|TiB) Swap\s*:")
_PARTS_RE = re.compile(r",\s*")


def _comma_parts(line: str) -> List[str]:
    """Split the text after the first ':' on commas."""
    body = line.split(":", 1)[1].strip()
    return [part for part in _PARTS_RE.split(body) if part]


def _leading_tokens(parts: List[str]) -> List[str]:
    return [part.split()[0] for part in parts if part.split()]


def _value_before(tokens: List[str], label: str, field_name: str) -> Optional[float]:
    """Return the decimal token immediately preceding `label`, if present."""
    for i, token in enumerate(tokens):
        if token.rstrip(",.") == label and i > 0:
            return parse_decimal(tokens[i - 1], field_name)
    return None


def clock_to_millis(clock: str) -> int:
    """
    Convert an HH:MM:SS wall-clock token into milliseconds since midnight.

    Raises:
        FieldExtractionError: If the token is not a valid time of day
    """
    try:
        parsed = datetime.strptime(clock, "%H:%M:%S").time()
    except ValueError as e:
        raise FieldExtractionError(
            f"clock: expected HH:MM:SS, got {clock!r}", field_name="clock"
        ) from e
    return ((parsed.hour * 60 + parsed.minute) * 60 + parsed.second) * 1000


class TopParser(AbstractCaptureParser):
    """
    Parses `top` batch captures into CPU, memory, swap, thread-state and
    per-process CPU samples.

    Timestamps are milliseconds since midnight of the first snapshot, with a
    day added each time the clock goes backwards. When `capture_date` is
    given, they are anchored to epoch milliseconds (UTC) of that date.
    """

    format_name = "top"

    def __init__(self, capture_date: Optional[date] = None):
        super().__init__()
        self.capture_date = capture_date
        self._anchor_ms = 0
        if capture_date is not None:
            midnight = datetime.combine(capture_date, time(0, 0), tzinfo=timezone.utc)
            self._anchor_ms = int(midnight.timestamp() * 1000)
        self._reset()

    def _reset(self) -> None:
        self._timestamp: Optional[int] = None
        self._last_clock_ms: Optional[int] = None
        self._day_offset_ms = 0
        self._in_table = False

    def _handle_line(self, line: str, line_number: int) -> None:
        if self._in_table:
            if not line.strip():
                self._in_table = False
                return
            if not line.startswith("top - "):
                self._handle_process_row(line, line_number)
                return
            # A new snapshot without a separating blank line.
            self._in_table = False

        if line.startswith("top - "):
            self._handle_timestamp(line, line_number)
        elif line.startswith("Threads:") or line.startswith("Tasks:"):
            self._handle_threads(line, line_number)
        elif line.startswith("%Cpu(s):"):
            self._handle_cpu(line, line_number)
        elif _MEMORY_RE.match(line):
            self._handle_memory(line, line_number)
        elif _SWAP_RE.match(line):
            self._handle_swap(line, line_number)
        elif "PID USER" in line:
            self._in_table = True

    def _handle_timestamp(self, line: str, line_number: int) -> None:
        try:
            clock = TIMESTAMP_LAYOUT.extract(line.split())["clock"]
            clock_ms = clock_to_millis(clock)
        except FieldExtractionError as e:
            self._record_error(
                CATEGORY_TIMESTAMP, f"unable to parse time from '{line}': {e}", line_number
            )
            return
        if self._last_clock_ms is not None and clock_ms < self._last_clock_ms:
            self._day_offset_ms += MILLIS_PER_DAY
            logger.debug(f"Clock rolled over midnight at line {line_number}")
        self._last_clock_ms = clock_ms
        self._timestamp = self._anchor_ms + self._day_offset_ms + clock_ms

    def _handle_threads(self, line: str, line_number: int) -> None:
        try:
            parts = _comma_parts(line)
            if len(parts) != len(THREAD_LAYOUT.fields):
                raise FieldExtractionError(
                    f"expected {len(THREAD_LAYOUT.fields)} counts, found {len(parts)}"
                )
            values = THREAD_LAYOUT.extract(_leading_tokens(parts))
        except FieldExtractionError as e:
            self._record_error(
                CATEGORY_THREADS, f"unable to parse thread stats '{line}': {e}", line_number
            )
            return
        self._emit(ThreadStateSample(timestamp=self._timestamp, **values))

    def _handle_cpu(self, line: str, line_number: int) -> None:
        body = line[len("%Cpu(s):"):].replace(",", ", ")
        try:
            values = CPU_LAYOUT.extract(body.split())
        except FieldExtractionError as e:
            self._record_error(
                CATEGORY_CPU, f"unable to parse cpu line '{line}': {e}", line_number
            )
            return
        self._emit(CPUSample(timestamp=self._timestamp, **values))

    def _handle_memory(self, line: str, line_number: int) -> None:
        scale = UNIT_TO_MIB[line[:3]]
        try:
            parts = _comma_parts(line)
            values = MEMORY_LAYOUT.extract(_leading_tokens(parts))
        except FieldExtractionError as e:
            self._record_error(
                CATEGORY_MEMORY, f"unable to parse memory line '{line}': {e}", line_number
            )
            return
        self._emit(
            MemSample(
                timestamp=self._timestamp,
                total_mib=values["total"] * scale,
                free_mib=values["free"] * scale,
                used_mib=values["used"] * scale,
                cache_mib=values["cache"] * scale,
            )
        )

    def _handle_swap(self, line: str, line_number: int) -> None:
        scale = UNIT_TO_MIB[line[:3]]
        try:
            parts = _comma_parts(line)
            tokens = line.split(":", 1)[1].split()
            total = _value_before(tokens, "total", "total")
            if total is None or len(parts) < 3:
                raise FieldExtractionError("expected 'total', 'free' and 'used' fields")
            leading = _leading_tokens(parts)
            free = parse_decimal(leading[1], "free")
            used = parse_decimal(leading[2], "used")
            avail = _value_before(tokens, "avail", "avail") or 0.0
        except (FieldExtractionError, IndexError) as e:
            self._record_error(
                CATEGORY_SWAP, f"unable to parse swap line '{line}': {e}", line_number
            )
            return
        self._emit(
            SwapSample(
                timestamp=self._timestamp,
                total_mib=total * scale,
                free_mib=free * scale,
                used_mib=used * scale,
                avail_mib=avail * scale,
            )
        )

    def _handle_process_row(self, line: str, line_number: int) -> None:
        try:
            values = PROCESS_LAYOUT.extract(line.split())
        except FieldExtractionError as e:
            self._record_error(
                CATEGORY_PROCESS, f"unable to parse process row '{line.strip()}': {e}",
                line_number,
            )
            return
        self._emit(
            ProcessUsageSample(
                timestamp=self._timestamp,
                process_id=values["pid"],
                command=values["command"],
                cpu_usage_pct=values["cpu"],
            )
        )
