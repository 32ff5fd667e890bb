"""
Aggregation engine.

Time-bucketing, process identity resolution, and the independent stateful
reducers that turn parsed record streams into summary fragments.
"""

# Interface and composition
from .base import Aggregator, Filtered, GroupBy, of_type

# Time-bucketing
from .buckets import BucketSpec, bucket_index, check_bucket_range

# Aggregators
from .counters import CaptureStatsCollector, KeyCounter
from .extremes import TopNSelector
from .identity import ProcessSeriesResolver
from .threshold import ThresholdCounter, percentage_of
from .windowed import (
    BucketMaxTracker,
    BucketSum,
    ConcurrencyCounter,
    execution_interval,
    phase_interval,
)

# Execution
from .runner import run_aggregators

__all__ = [
    # Interface
    "Aggregator",
    "Filtered",
    "GroupBy",
    "of_type",
    # Bucketing
    "BucketSpec",
    "bucket_index",
    "check_bucket_range",
    # Aggregators
    "ThresholdCounter",
    "percentage_of",
    "BucketMaxTracker",
    "BucketSum",
    "ConcurrencyCounter",
    "phase_interval",
    "execution_interval",
    "TopNSelector",
    "KeyCounter",
    "CaptureStatsCollector",
    "ProcessSeriesResolver",
    # Execution
    "run_aggregators",
]
