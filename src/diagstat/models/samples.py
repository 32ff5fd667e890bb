"""
Sample and event records produced by the capture parsers.

Every record is a frozen dataclass: records are created once during parsing and
never mutated afterwards. Timestamps are integer milliseconds (epoch based, or
capture-relative for process-list captures without a known date) and are None
when a record was parsed before any timestamp marker appeared in the capture.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class CPUSample:
    """
    Aggregate CPU utilization percentages at a point in time.

    The six percentages are observed independently; source tools round each
    field separately, so they are not required to sum to 100.
    """

    timestamp: Optional[int]
    user: float
    nice: float
    system: float
    iowait: float
    steal: float
    idle: float

    @property
    def busy(self) -> float:
        """User + system + nice + steal, the "CPU in use" measure."""
        return self.user + self.system + self.nice + self.steal


@dataclass(frozen=True)
class DiskSample:
    """Extended statistics for one block device at a point in time."""

    timestamp: Optional[int]
    device: str
    average_queue_size: float
    read_await_ms: float
    write_await_ms: float
    read_kbps: float
    write_kbps: float
    reads_per_sec: float
    writes_per_sec: float
    utilization_pct: float


@dataclass(frozen=True)
class MemSample:
    """Physical memory summary, all values in MiB."""

    timestamp: Optional[int]
    total_mib: float
    free_mib: float
    used_mib: float
    cache_mib: float


@dataclass(frozen=True)
class SwapSample:
    """Swap summary, all values in MiB. avail_mib is the "avail Mem" figure."""

    timestamp: Optional[int]
    total_mib: float
    free_mib: float
    used_mib: float
    avail_mib: float


@dataclass(frozen=True)
class ThreadStateSample:
    """Thread (or task) counts by scheduler state."""

    timestamp: Optional[int]
    total: int
    running: int
    sleeping: int
    stopped: int
    zombie: int


@dataclass(frozen=True)
class ProcessKey:
    """
    Identity of a logical process across a capture.

    The operating system recycles process ids, so the id alone is not enough:
    two samples are the same logical process only when both the id and the
    command line match.
    """

    process_id: str
    command: str

    def __str__(self) -> str:
        return f"{self.process_id}:{self.command}"


@dataclass(frozen=True)
class ProcessUsageSample:
    """CPU usage of a single process (or thread) row of a process-list capture."""

    timestamp: Optional[int]
    process_id: str
    command: str
    cpu_usage_pct: float

    @property
    def key(self) -> ProcessKey:
        return ProcessKey(self.process_id, self.command)


@dataclass(frozen=True)
class QueryRecord:
    """
    One query execution from a structured query capture.

    start/end are epoch milliseconds. Phase durations are milliseconds,
    peak memory is bytes and cpu time is milliseconds.
    """

    query_id: str
    start: int
    end: int
    queued_ms: int = 0
    metadata_ms: int = 0
    planning_ms: int = 0
    pool_wait_ms: int = 0
    pending_ms: int = 0
    peak_memory_bytes: int = 0
    cpu_time_ms: int = 0
    queue_name: str = ""
    request_type: str = ""
    username: str = ""
    outcome: str = ""
    failed: bool = False
    error_text: str = ""
    query_text: str = ""

    @property
    def duration_ms(self) -> int:
        """Wall-clock duration; records with end before start report 0."""
        return max(self.end - self.start, 0)


@dataclass(frozen=True)
class ParseError:
    """
    A recoverable, record-level parse failure.

    Accumulated alongside successfully parsed records; never raised.
    """

    message: str
    category: str
    line_number: int = 0
