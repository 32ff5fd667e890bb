"""
Configuration data models.

This module contains the configuration structures for an analysis run:
bucketing and selection bounds, diagnostic thresholds, query-capture filters
and process-list capture options. Values are established once per run and
shared read-only by every parser and aggregator.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

DEFAULT_SCHEMA_REQUEST_TYPES = [
    "GET_CATALOGS",
    "GET_SCHEMAS",
    "GET_TABLES",
    "GET_COLUMNS",
]


@dataclass
class AnalysisConfig:
    """
    Global aggregation settings, loaded from the `[analysis]` table.
    """

    # Width of one time bucket in milliseconds.
    bucket_width_ms: int = 60000
    # How many records each top-N extremes list retains.
    top_n: int = 10
    # Upper bound on the failed-query list.
    problematic_query_limit: int = 50
    # Run independent aggregators on a thread pool.
    parallel_aggregation: bool = False
    max_workers: int = 4


@dataclass
class ThresholdConfig:
    """
    Cutoffs for threshold-crossing percentages, loaded from `[thresholds]`.
    """

    cpu_busy_pct: float = 50.0
    cpu_saturated_pct: float = 90.0
    iowait_pct: float = 5.0
    disk_queue_depth: float = 1.0


@dataclass
class QueriesConfig:
    """
    Query-capture options, loaded from `[queries]`.
    """

    # Inclusive epoch-millisecond range on query start; None means unbounded.
    start_filter_ms: Optional[int] = None
    end_filter_ms: Optional[int] = None
    # Request types counted as schema/metadata operations.
    schema_request_types: List[str] = field(
        default_factory=lambda: list(DEFAULT_SCHEMA_REQUEST_TYPES)
    )


@dataclass
class TopConfig:
    """
    Process-list capture options, loaded from `[top]`.
    """

    # Date the capture was taken; anchors wall-clock times to epoch ms.
    capture_date: Optional[date] = None


@dataclass
class AppConfig:
    """
    The root configuration object that aggregates all loaded settings.
    """

    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    thresholds: ThresholdConfig = field(default_factory=ThresholdConfig)
    queries: QueriesConfig = field(default_factory=QueriesConfig)
    top: TopConfig = field(default_factory=TopConfig)
