"""
Unit tests for per-bucket maxima, sums and interval concurrency.
"""

from dataclasses import dataclass
from typing import Optional

import pytest

from diagstat.aggregation import (
    BucketMaxTracker,
    BucketSpec,
    BucketSum,
    ConcurrencyCounter,
    execution_interval,
    phase_interval,
)
from diagstat.models import QueryRecord


@dataclass(frozen=True)
class Point:
    timestamp: Optional[int]
    value: float


SPEC = BucketSpec(origin_ms=0, width_ms=1000)


def query(start, end, **fields):
    return QueryRecord(query_id=f"{start}-{end}", start=start, end=end, **fields)


@pytest.mark.unit
class TestBucketMaxTracker:
    """Test cases for the running maximum per bucket."""

    def test_maximum_per_bucket(self):
        tracker = BucketMaxTracker(SPEC, lambda p: p.value)

        result = tracker.consume([Point(10, 1.0), Point(900, 5.0), Point(2500, 3.0), Point(500, 2.0)])

        assert dict(result) == {0: 5.0, 2: 3.0}

    def test_gaps_stay_absent(self):
        result = BucketMaxTracker(SPEC, lambda p: p.value).consume([Point(0, 0.0), Point(5000, 0.0)])

        assert 1 not in result
        assert result[0] == 0.0

    def test_untimed_records_are_skipped(self):
        result = BucketMaxTracker(SPEC, lambda p: p.value).consume([Point(None, 9.0)])

        assert dict(result) == {}

    def test_result_is_read_only(self):
        result = BucketMaxTracker(SPEC, lambda p: p.value).consume([Point(0, 1.0)])

        with pytest.raises(TypeError):
            result[0] = 2.0

    def test_custom_timestamp(self):
        tracker = BucketMaxTracker(SPEC, lambda q: q.planning_ms, timestamp=lambda q: q.start)

        result = tracker.consume([query(1500, 9000, planning_ms=40), query(1700, 1800, planning_ms=90)])

        assert dict(result) == {1: 90}


@pytest.mark.unit
class TestBucketSum:
    """Test cases for the per-bucket sum."""

    def test_sum_per_bucket(self):
        result = BucketSum(SPEC, lambda p: p.value).consume(
            [Point(0, 1.0), Point(999, 2.0), Point(1000, 4.0)]
        )

        assert dict(result) == {0: 3.0, 1: 4.0}


@pytest.mark.unit
class TestConcurrencyCounter:
    """Test cases for interval concurrency."""

    def test_end_bucket_is_inclusive(self):
        counter = ConcurrencyCounter(SPEC, execution_interval)

        result = counter.consume([query(0, 2500)])

        assert dict(result) == {0: 1, 1: 1, 2: 1}

    def test_overlapping_intervals(self):
        counter = ConcurrencyCounter(SPEC, execution_interval)

        result = counter.consume([query(0, 1500), query(1200, 3100), query(2000, 2100)])

        assert dict(result) == {0: 1, 1: 2, 2: 2, 3: 1}

    def test_idle_gap_reports_zero(self):
        counter = ConcurrencyCounter(SPEC, execution_interval)

        result = counter.consume([query(0, 100), query(4000, 4100)])

        assert dict(result) == {0: 1, 1: 0, 2: 0, 3: 0, 4: 1}

    def test_degenerate_interval_counts_zero(self):
        counter = ConcurrencyCounter(SPEC, phase_interval("queued_ms"))

        result = counter.consume([query(1500, 1600, queued_ms=0)])

        assert dict(result) == {1: 0}

    def test_end_before_start_counts_zero(self):
        result = ConcurrencyCounter(SPEC, execution_interval).consume([query(3000, 1000)])

        assert dict(result) == {3: 0}

    def test_empty(self):
        assert dict(ConcurrencyCounter(SPEC, execution_interval).finalize()) == {}

    def test_negative_buckets(self):
        spec = BucketSpec(origin_ms=10_000, width_ms=1000)

        result = ConcurrencyCounter(spec, execution_interval).consume([query(8500, 10_200)])

        assert dict(result) == {-2: 1, -1: 1, 0: 1}

    def test_phase_interval(self):
        interval = phase_interval("planning_ms")

        assert interval(query(100, 900, planning_ms=250)) == (100, 350)
