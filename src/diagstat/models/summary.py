"""
Summary data models.

This module defines the immutable structures handed to report renderers:
the fragments produced by individual aggregators (threshold results, capture
statistics, per-process series, bucket reports) and the three top-level
summaries, one per capture kind.

Every field is always populated. When there is no underlying data the value is
an explicit zero, an empty tuple or an empty mapping, never None, so renderers
can rely on total field presence. Per-bucket mappings are sparse
(bucket index -> value); a missing bucket means "no data", not zero.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Tuple

from .samples import (
    CPUSample,
    DiskSample,
    MemSample,
    ParseError,
    ProcessKey,
    ProcessUsageSample,
    QueryRecord,
    SwapSample,
    ThreadStateSample,
)


def _empty_mapping() -> Mapping:
    return MappingProxyType({})


def frozen_mapping(data: Mapping) -> Mapping:
    """Wrap a dict in a read-only view (nested dict values are wrapped too)."""
    return MappingProxyType(
        {
            k: frozen_mapping(v) if isinstance(v, dict) else v
            for k, v in data.items()
        }
    )


class RangeStatus(Enum):
    """Outcome of checking a bucket width against the observed capture span."""

    OK = "ok"
    # The bucket width is larger than the whole capture span.
    INSUFFICIENT_RANGE = "insufficient_range"
    # No timestamped records at all.
    EMPTY = "empty"


@dataclass(frozen=True)
class ThresholdResult:
    """How many of `total` samples exceeded `threshold`."""

    threshold: float
    count: int
    total: int
    percentage: float


@dataclass(frozen=True)
class CaptureStats:
    """Whole-capture scalars."""

    count: int = 0
    first_timestamp: int = 0
    last_timestamp: int = 0
    duration_ms: int = 0
    rate_per_second: float = 0.0


@dataclass(frozen=True)
class ProcessSeries:
    """All samples of one logical process, in timestamp order."""

    key: ProcessKey
    samples: Tuple[ProcessUsageSample, ...]
    total_cpu: float
    peak_cpu: float


@dataclass(frozen=True)
class BucketReport:
    """
    Time-bucketed aggregates sharing one origin and width.

    When `status` is not OK the maps are empty and renderers should show a
    corrective message (e.g. "bucket width exceeds capture range") instead.
    """

    status: RangeStatus
    origin_ms: int
    width_ms: int
    span_ms: int
    maxima: Mapping[str, Mapping[int, float]] = field(default_factory=_empty_mapping)
    concurrency: Mapping[str, Mapping[int, int]] = field(default_factory=_empty_mapping)
    sums: Mapping[str, Mapping[int, float]] = field(default_factory=_empty_mapping)

    @property
    def is_bucketed(self) -> bool:
        return self.status is RangeStatus.OK


@dataclass(frozen=True)
class SearchedFile:
    """Per-source-file outcome of a multi-file query analysis."""

    name: str
    parsed: int
    filtered: int
    error_text: str = ""

    @property
    def failed(self) -> bool:
        return self.error_text != ""


@dataclass(frozen=True)
class TopSummary:
    """Summary of a periodic process-list capture."""

    capture: CaptureStats
    cpu: Tuple[CPUSample, ...]
    memory: Tuple[MemSample, ...]
    swap: Tuple[SwapSample, ...]
    threads: Tuple[ThreadStateSample, ...]
    processes: Tuple[ProcessSeries, ...]
    top_processes: Tuple[ProcessSeries, ...]
    cpu_busy: ThresholdResult
    cpu_iowait: ThresholdResult
    buckets: BucketReport
    parse_errors: Tuple[ParseError, ...]


@dataclass(frozen=True)
class IOStatSummary:
    """Summary of a periodic CPU/disk capture."""

    host: str
    cpu_count: int
    capture: CaptureStats
    cpu: Tuple[CPUSample, ...]
    disks: Mapping[str, Tuple[DiskSample, ...]]
    cpu_over_busy: ThresholdResult
    cpu_over_saturated: ThresholdResult
    iowait_over: ThresholdResult
    queue_depth: Mapping[str, ThresholdResult]
    recommendations: Tuple[str, ...]
    buckets: BucketReport
    parse_errors: Tuple[ParseError, ...]

    @property
    def disk_names(self) -> Tuple[str, ...]:
        return tuple(self.disks.keys())


@dataclass(frozen=True)
class QueriesSummary:
    """Summary of one or more structured query captures."""

    files: Tuple[SearchedFile, ...]
    invalid_file_count: int
    start_filter_ms: int
    end_filter_ms: int
    capture: CaptureStats
    requests_by_type: Mapping[str, int]
    requests_by_queue: Mapping[str, int]
    slowest_planning: Tuple[QueryRecord, ...]
    slowest_metadata: Tuple[QueryRecord, ...]
    most_memory: Tuple[QueryRecord, ...]
    most_cpu_time: Tuple[QueryRecord, ...]
    longest_duration: Tuple[QueryRecord, ...]
    failed_queries: Tuple[QueryRecord, ...]
    failed_count: int
    buckets: BucketReport
    parse_errors: Tuple[ParseError, ...]

    @property
    def total_queries(self) -> int:
        return self.capture.count
