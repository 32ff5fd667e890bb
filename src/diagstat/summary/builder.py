"""
Summary builders.

Each builder takes parsed records, runs the aggregators that capture kind
needs (once each, over the same record sequence), and assembles the frozen
summary object handed to renderers. Every summary field is populated even
when there is no data.
"""

import logging
from operator import attrgetter
from pathlib import Path
from typing import Callable, Dict, Hashable, Iterable, Optional, Sequence, Tuple, Union

from ..aggregation import (
    Aggregator,
    BucketMaxTracker,
    BucketSpec,
    BucketSum,
    CaptureStatsCollector,
    ConcurrencyCounter,
    Filtered,
    GroupBy,
    KeyCounter,
    ProcessSeriesResolver,
    ThresholdCounter,
    TopNSelector,
    check_bucket_range,
    execution_interval,
    of_type,
    phase_interval,
    run_aggregators,
)
from ..config import get_config
from ..models.config import AppConfig
from ..models.samples import (
    CPUSample,
    DiskSample,
    MemSample,
    ParseError,
    ProcessUsageSample,
    QueryRecord,
    SwapSample,
    ThreadStateSample,
)
from ..models.summary import (
    BucketReport,
    IOStatSummary,
    QueriesSummary,
    RangeStatus,
    SearchedFile,
    ThresholdResult,
    TopSummary,
    frozen_mapping,
)
from ..parsers import ParseResult, QueriesJsonParser, TopParser
from ..validation import CaptureFormatError, ErrorSeverity, handle_file_error
from .recommendations import iostat_recommendations

logger = logging.getLogger(__name__)

MAXIMA = "maxima"
CONCURRENCY = "concurrency"
SUMS = "sums"

# Bucket plans map (kind, series name) to an aggregator built for one BucketSpec.
BucketPlan = Callable[[BucketSpec], Dict[Tuple[str, str], Aggregator]]


def build_bucket_report(
    records: Sequence,
    first_ms: Optional[int],
    last_ms: Optional[int],
    plan: BucketPlan,
    config: AppConfig,
) -> BucketReport:
    """
    Run the bucketed aggregators of `plan`, or report why they were skipped.

    The origin is the first timestamp of the capture. When the configured
    width exceeds the capture span (or nothing is timed) the report carries
    that status and empty maps instead of one misleading bucket.
    """
    width_ms = config.analysis.bucket_width_ms
    status = check_bucket_range(first_ms, last_ms, width_ms)
    origin_ms = first_ms if first_ms is not None else 0
    span_ms = (last_ms - first_ms) if first_ms is not None else 0
    if status is not RangeStatus.OK:
        return BucketReport(
            status=status, origin_ms=origin_ms, width_ms=width_ms, span_ms=span_ms
        )

    results = run_aggregators(
        plan(BucketSpec(origin_ms, width_ms)),
        records,
        parallel=config.analysis.parallel_aggregation,
        max_workers=config.analysis.max_workers,
    )
    grouped: Dict[str, Dict[str, object]] = {MAXIMA: {}, CONCURRENCY: {}, SUMS: {}}
    for (kind, name), value in results.items():
        grouped[kind][name] = value
    return BucketReport(
        status=status,
        origin_ms=origin_ms,
        width_ms=width_ms,
        span_ms=span_ms,
        maxima=frozen_mapping(grouped[MAXIMA]),
        concurrency=frozen_mapping(grouped[CONCURRENCY]),
        sums=frozen_mapping(grouped[SUMS]),
    )


def _run(aggregators: Dict[Hashable, Aggregator], records: Sequence, config: AppConfig):
    return run_aggregators(
        aggregators,
        records,
        parallel=config.analysis.parallel_aggregation,
        max_workers=config.analysis.max_workers,
    )


# --- Process-list captures ---


def _top_bucket_plan(spec: BucketSpec) -> Dict[Tuple[str, str], Aggregator]:
    return {
        (MAXIMA, "cpu_busy"): of_type(CPUSample, BucketMaxTracker(spec, attrgetter("busy"))),
        (MAXIMA, "cpu_iowait"): of_type(CPUSample, BucketMaxTracker(spec, attrgetter("iowait"))),
        (MAXIMA, "memory_used_mib"): of_type(
            MemSample, BucketMaxTracker(spec, attrgetter("used_mib"))
        ),
        (MAXIMA, "swap_used_mib"): of_type(
            SwapSample, BucketMaxTracker(spec, attrgetter("used_mib"))
        ),
        (MAXIMA, "process_cpu"): of_type(
            ProcessUsageSample, BucketMaxTracker(spec, attrgetter("cpu_usage_pct"))
        ),
    }


def build_top_summary(result: ParseResult, config: Optional[AppConfig] = None) -> TopSummary:
    """
    Summarize a parsed process-list capture.

    Args:
        result: Output of TopParser.parse().
        config: Analysis settings; the loaded configuration when omitted.
    """
    config = config or get_config()
    thresholds = config.thresholds
    records = result.records

    capture = CaptureStatsCollector()
    scalars = _run(
        {
            "capture": capture,
            "processes": of_type(ProcessUsageSample, ProcessSeriesResolver()),
            "cpu_busy": of_type(
                CPUSample, ThresholdCounter(attrgetter("busy"), thresholds.cpu_busy_pct)
            ),
            "cpu_iowait": of_type(
                CPUSample, ThresholdCounter(attrgetter("iowait"), thresholds.iowait_pct)
            ),
        },
        records,
        config,
    )
    first_ms, last_ms = capture.bounds
    processes = scalars["processes"]

    summary = TopSummary(
        capture=scalars["capture"],
        cpu=result.of_type(CPUSample),
        memory=result.of_type(MemSample),
        swap=result.of_type(SwapSample),
        threads=result.of_type(ThreadStateSample),
        processes=processes,
        top_processes=processes[: config.analysis.top_n],
        cpu_busy=scalars["cpu_busy"],
        cpu_iowait=scalars["cpu_iowait"],
        buckets=build_bucket_report(records, first_ms, last_ms, _top_bucket_plan, config),
        parse_errors=result.errors,
    )
    logger.info(
        f"Built top summary: {len(summary.cpu)} snapshots, "
        f"{len(processes)} logical processes, {len(summary.parse_errors)} parse errors"
    )
    return summary


# --- CPU/disk captures ---


def _group_disks(samples: Iterable[DiskSample]) -> Dict[str, Tuple[DiskSample, ...]]:
    disks: Dict[str, list] = {}
    for sample in samples:
        disks.setdefault(sample.device, []).append(sample)
    return {device: tuple(series) for device, series in disks.items()}


def _device_is(device: str) -> Callable[[object], bool]:
    return lambda record: isinstance(record, DiskSample) and record.device == device


def _iostat_bucket_plan(devices: Sequence[str]) -> BucketPlan:
    def plan(spec: BucketSpec) -> Dict[Tuple[str, str], Aggregator]:
        aggregators: Dict[Tuple[str, str], Aggregator] = {
            (MAXIMA, "cpu_busy"): of_type(
                CPUSample, BucketMaxTracker(spec, attrgetter("busy"))
            ),
            (MAXIMA, "cpu_iowait"): of_type(
                CPUSample, BucketMaxTracker(spec, attrgetter("iowait"))
            ),
        }
        for device in devices:
            aggregators[(MAXIMA, f"queue:{device}")] = Filtered(
                BucketMaxTracker(spec, attrgetter("average_queue_size")), _device_is(device)
            )
            aggregators[(MAXIMA, f"util:{device}")] = Filtered(
                BucketMaxTracker(spec, attrgetter("utilization_pct")), _device_is(device)
            )
        return aggregators

    return plan


def build_iostat_summary(
    result: ParseResult, config: Optional[AppConfig] = None
) -> IOStatSummary:
    """
    Summarize a parsed CPU/disk capture, including tuning recommendations.

    CPU percentages are taken over the CPU sample count; each device's
    queue-depth percentage is taken over that device's own sample count.
    """
    config = config or get_config()
    thresholds = config.thresholds
    records = result.records

    capture = CaptureStatsCollector()

    def queue_depth_factory() -> ThresholdCounter:
        return ThresholdCounter(attrgetter("average_queue_size"), thresholds.disk_queue_depth)

    scalars = _run(
        {
            "capture": capture,
            "cpu_over_busy": of_type(
                CPUSample, ThresholdCounter(attrgetter("busy"), thresholds.cpu_busy_pct)
            ),
            "cpu_over_saturated": of_type(
                CPUSample, ThresholdCounter(attrgetter("busy"), thresholds.cpu_saturated_pct)
            ),
            "iowait_over": of_type(
                CPUSample, ThresholdCounter(attrgetter("iowait"), thresholds.iowait_pct)
            ),
            "queue_depth": of_type(
                DiskSample, GroupBy(attrgetter("device"), queue_depth_factory)
            ),
        },
        records,
        config,
    )
    first_ms, last_ms = capture.bounds
    disks = _group_disks(result.of_type(DiskSample))
    queue_depth: Dict[str, ThresholdResult] = dict(scalars["queue_depth"])

    recommendations = iostat_recommendations(
        cpu_over_busy=scalars["cpu_over_busy"],
        cpu_over_saturated=scalars["cpu_over_saturated"],
        iowait_over=scalars["iowait_over"],
        queue_depth=queue_depth,
    )
    summary = IOStatSummary(
        host=str(result.metadata.get("host", "")),
        cpu_count=int(result.metadata.get("cpu_count", 0)),
        capture=scalars["capture"],
        cpu=result.of_type(CPUSample),
        disks=frozen_mapping(disks),
        cpu_over_busy=scalars["cpu_over_busy"],
        cpu_over_saturated=scalars["cpu_over_saturated"],
        iowait_over=scalars["iowait_over"],
        queue_depth=frozen_mapping(queue_depth),
        recommendations=recommendations,
        buckets=build_bucket_report(
            records, first_ms, last_ms, _iostat_bucket_plan(list(disks)), config
        ),
        parse_errors=result.errors,
    )
    logger.info(
        f"Built iostat summary for host '{summary.host}': {len(summary.cpu)} reports, "
        f"{len(disks)} devices, {len(recommendations)} recommendations"
    )
    return summary


# --- Query captures ---


def _queries_bucket_plan(queues: Sequence[str], schema_types: Sequence[str]) -> BucketPlan:
    start_of = attrgetter("start")
    schema_set = frozenset(schema_types)

    def plan(spec: BucketSpec) -> Dict[Tuple[str, str], Aggregator]:
        aggregators: Dict[Tuple[str, str], Aggregator] = {
            (CONCURRENCY, "queries"): ConcurrencyCounter(spec, execution_interval),
            (CONCURRENCY, "schema_ops"): Filtered(
                ConcurrencyCounter(spec, execution_interval),
                lambda record: record.request_type in schema_set,
            ),
            (CONCURRENCY, "queued"): ConcurrencyCounter(spec, phase_interval("queued_ms")),
            (MAXIMA, "pending_ms"): BucketMaxTracker(spec, attrgetter("pending_ms"), start_of),
            (MAXIMA, "metadata_ms"): BucketMaxTracker(spec, attrgetter("metadata_ms"), start_of),
            (MAXIMA, "queued_ms"): BucketMaxTracker(spec, attrgetter("queued_ms"), start_of),
            (MAXIMA, "planning_ms"): BucketMaxTracker(spec, attrgetter("planning_ms"), start_of),
            (MAXIMA, "pool_wait_ms"): BucketMaxTracker(
                spec, attrgetter("pool_wait_ms"), start_of
            ),
            (SUMS, "memory_allocated_bytes"): BucketSum(
                spec, attrgetter("peak_memory_bytes"), start_of
            ),
            (SUMS, "query_starts"): BucketSum(spec, lambda record: 1, start_of),
        }
        for queue in queues:
            aggregators[(CONCURRENCY, f"queue:{queue}")] = Filtered(
                ConcurrencyCounter(spec, execution_interval),
                lambda record, queue=queue: record.queue_name == queue,
            )
        return aggregators

    return plan


def build_queries_summary(
    records: Sequence[QueryRecord],
    files: Sequence[SearchedFile] = (),
    parse_errors: Sequence[ParseError] = (),
    config: Optional[AppConfig] = None,
) -> QueriesSummary:
    """
    Summarize query records gathered from one or more captures.

    Args:
        records: Query records that passed the time filter.
        files: Per-file outcomes of the search.
        parse_errors: Record-level errors from every file.
        config: Analysis settings; the loaded configuration when omitted.
    """
    config = config or get_config()
    analysis = config.analysis
    records = tuple(records)
    top_n = analysis.top_n

    capture = CaptureStatsCollector(start=attrgetter("start"), end=attrgetter("end"))
    scalars = _run(
        {
            "capture": capture,
            "requests_by_type": KeyCounter(attrgetter("request_type")),
            "requests_by_queue": KeyCounter(attrgetter("queue_name")),
            "slowest_planning": TopNSelector(top_n, attrgetter("planning_ms")),
            "slowest_metadata": TopNSelector(top_n, attrgetter("metadata_ms")),
            "most_memory": TopNSelector(top_n, attrgetter("peak_memory_bytes")),
            "most_cpu_time": TopNSelector(top_n, attrgetter("cpu_time_ms")),
            "longest_duration": TopNSelector(top_n, attrgetter("duration_ms")),
            # Most recent failures first.
            "failed_queries": Filtered(
                TopNSelector(analysis.problematic_query_limit, attrgetter("start")),
                attrgetter("failed"),
            ),
        },
        records,
        config,
    )
    first_ms, last_ms = capture.bounds
    queues = [name for name in scalars["requests_by_queue"] if name]

    summary = QueriesSummary(
        files=tuple(files),
        invalid_file_count=sum(1 for f in files if f.failed),
        start_filter_ms=config.queries.start_filter_ms or 0,
        end_filter_ms=config.queries.end_filter_ms or 0,
        capture=scalars["capture"],
        requests_by_type=scalars["requests_by_type"],
        requests_by_queue=scalars["requests_by_queue"],
        slowest_planning=scalars["slowest_planning"],
        slowest_metadata=scalars["slowest_metadata"],
        most_memory=scalars["most_memory"],
        most_cpu_time=scalars["most_cpu_time"],
        longest_duration=scalars["longest_duration"],
        failed_queries=scalars["failed_queries"],
        failed_count=sum(1 for record in records if record.failed),
        buckets=build_bucket_report(
            records,
            first_ms,
            last_ms,
            _queries_bucket_plan(queues, config.queries.schema_request_types),
            config,
        ),
        parse_errors=tuple(parse_errors),
    )
    logger.info(
        f"Built queries summary: {summary.total_queries} queries from {len(files)} files "
        f"({summary.invalid_file_count} invalid), {summary.failed_count} failed"
    )
    return summary


def analyze_query_files(
    paths: Sequence[Union[str, Path]], config: Optional[AppConfig] = None
) -> QueriesSummary:
    """
    Parse several queries.json captures and summarize them together.

    A file that cannot be read at all is recorded as a failed SearchedFile
    (with its error text) and the remaining files are still analyzed.
    """
    config = config or get_config()
    parser = QueriesJsonParser(
        start_filter_ms=config.queries.start_filter_ms,
        end_filter_ms=config.queries.end_filter_ms,
    )
    records = []
    errors = []
    files = []
    for path in paths:
        name = Path(path).name
        try:
            result = parser.parse_file(path)
        except (CaptureFormatError, OSError) as e:
            handle_file_error(
                error=e,
                context=f"analyzing {path}",
                severity=ErrorSeverity.WARNING,
                reraise=False,
                logger=logger,
            )
            files.append(SearchedFile(name=name, parsed=0, filtered=0, error_text=str(e)))
            continue
        records.extend(result.records)
        errors.extend(result.errors)
        files.append(
            SearchedFile(name=name, parsed=len(result.records), filtered=result.filtered)
        )
    return build_queries_summary(records, files=files, parse_errors=errors, config=config)


def analyze_top_file(
    path: Union[str, Path], config: Optional[AppConfig] = None
) -> TopSummary:
    """
    Parse one process-list capture and summarize it.

    When `[top] capture_date` is configured, sample timestamps are anchored
    to that UTC date; otherwise they count from midnight of the first day.

    Raises:
        CaptureFormatError: If the file is undecodable or a corrupt gzip
        OSError: If the file cannot be opened
    """
    config = config or get_config()
    result = TopParser(capture_date=config.top.capture_date).parse_file(path)
    return build_top_summary(result, config)
