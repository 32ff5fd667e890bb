"""
Polars DataFrame exports of summary structures.

Renderers (charting, tables, CSV export) work on tabular data; these helpers
flatten the frozen summary objects into long-format Polars DataFrames with
fixed schemas, so an empty summary still yields a frame with every column.
"""

import logging
from dataclasses import asdict
from typing import Iterable, List, Mapping, Sequence

import polars as pl

from ..models.samples import DiskSample, QueryRecord
from ..models.summary import BucketReport, ProcessSeries

logger = logging.getLogger(__name__)

BUCKET_SCHEMA = {
    "kind": pl.Utf8,
    "series": pl.Utf8,
    "bucket": pl.Int64,
    "bucket_start_ms": pl.Int64,
    "value": pl.Float64,
}

PROCESS_SCHEMA = {
    "process_id": pl.Utf8,
    "command": pl.Utf8,
    "timestamp": pl.Int64,
    "cpu_usage_pct": pl.Float64,
}

DISK_SCHEMA = {
    "timestamp": pl.Int64,
    "device": pl.Utf8,
    "average_queue_size": pl.Float64,
    "read_await_ms": pl.Float64,
    "write_await_ms": pl.Float64,
    "read_kbps": pl.Float64,
    "write_kbps": pl.Float64,
    "reads_per_sec": pl.Float64,
    "writes_per_sec": pl.Float64,
    "utilization_pct": pl.Float64,
}

QUERY_SCHEMA = {
    "query_id": pl.Utf8,
    "start": pl.Int64,
    "end": pl.Int64,
    "duration_ms": pl.Int64,
    "queued_ms": pl.Int64,
    "metadata_ms": pl.Int64,
    "planning_ms": pl.Int64,
    "pool_wait_ms": pl.Int64,
    "pending_ms": pl.Int64,
    "peak_memory_bytes": pl.Int64,
    "cpu_time_ms": pl.Int64,
    "queue_name": pl.Utf8,
    "request_type": pl.Utf8,
    "username": pl.Utf8,
    "outcome": pl.Utf8,
    "failed": pl.Boolean,
    "error_text": pl.Utf8,
    "query_text": pl.Utf8,
}


def bucket_frame(report: BucketReport) -> pl.DataFrame:
    """
    One row per (kind, series, bucket) of a BucketReport.

    `kind` is "maxima", "concurrency" or "sums". A report whose status is
    not OK yields an empty frame.
    """
    rows: List[dict] = []
    sections: Mapping[str, Mapping[str, Mapping[int, float]]] = {
        "maxima": report.maxima,
        "concurrency": report.concurrency,
        "sums": report.sums,
    }
    for kind, series_map in sections.items():
        for series, buckets in series_map.items():
            for index, value in buckets.items():
                rows.append(
                    {
                        "kind": kind,
                        "series": series,
                        "bucket": index,
                        "bucket_start_ms": report.origin_ms + index * report.width_ms,
                        "value": float(value),
                    }
                )
    return pl.DataFrame(rows, schema=BUCKET_SCHEMA)


def process_frame(series: Iterable[ProcessSeries]) -> pl.DataFrame:
    """One row per process sample, grouped by logical process."""
    rows = [
        {
            "process_id": s.key.process_id,
            "command": s.key.command,
            "timestamp": sample.timestamp,
            "cpu_usage_pct": sample.cpu_usage_pct,
        }
        for s in series
        for sample in s.samples
    ]
    return pl.DataFrame(rows, schema=PROCESS_SCHEMA)


def disk_frame(disks: Mapping[str, Sequence[DiskSample]]) -> pl.DataFrame:
    rows = [asdict(sample) for samples in disks.values() for sample in samples]
    return pl.DataFrame(rows, schema=DISK_SCHEMA)


def query_frame(records: Iterable[QueryRecord]) -> pl.DataFrame:
    """One row per query record, including the derived duration."""
    rows = []
    for record in records:
        row = asdict(record)
        row["duration_ms"] = record.duration_ms
        rows.append(row)
    frame = pl.DataFrame(rows, schema=QUERY_SCHEMA)
    logger.debug(f"Exported {frame.height} query records to a DataFrame")
    return frame
