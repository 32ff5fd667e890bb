"""
Unit tests for aggregator composition and the aggregation runner.
"""

from operator import attrgetter

import pytest

from diagstat.aggregation import (
    Aggregator,
    BucketMaxTracker,
    BucketSpec,
    GroupBy,
    KeyCounter,
    ThresholdCounter,
    TopNSelector,
    of_type,
    run_aggregators,
)
from diagstat.models import CPUSample, DiskSample


def cpu(ts, user):
    return CPUSample(timestamp=ts, user=user, nice=0.0, system=0.0, iowait=0.0, steal=0.0, idle=0.0)


def disk(ts, device, queue):
    return DiskSample(
        timestamp=ts, device=device, average_queue_size=queue, read_await_ms=0.0,
        write_await_ms=0.0, read_kbps=0.0, write_kbps=0.0, reads_per_sec=0.0,
        writes_per_sec=0.0, utilization_pct=0.0,
    )


RECORDS = [
    cpu(0, 80.0),
    disk(0, "sda", 2.0),
    disk(0, "sdb", 0.1),
    cpu(1000, 20.0),
    disk(1000, "sda", 0.5),
    cpu(2000, 70.0),
]


def build_aggregators():
    spec = BucketSpec(origin_ms=0, width_ms=1000)
    return {
        "busy": of_type(CPUSample, ThresholdCounter(lambda s: s.busy, 50.0)),
        "busy_max": of_type(CPUSample, BucketMaxTracker(spec, lambda s: s.busy)),
        "queue": of_type(
            DiskSample,
            GroupBy(
                attrgetter("device"),
                lambda: ThresholdCounter(attrgetter("average_queue_size"), 1.0),
            ),
        ),
        "devices": of_type(DiskSample, KeyCounter(attrgetter("device"))),
        "top": TopNSelector(2, key=lambda r: r.timestamp),
    }


class Exploding(Aggregator):
    def add(self, record):
        raise RuntimeError("cannot aggregate")

    def finalize(self):
        return None


@pytest.mark.unit
class TestComposition:
    """Test cases for Filtered and GroupBy."""

    def test_of_type_filters_mixed_stream(self):
        result = of_type(CPUSample, ThresholdCounter(lambda s: s.busy, 50.0)).consume(RECORDS)

        assert result.total == 3
        assert result.count == 2

    def test_group_by_uses_own_totals(self):
        """Each device's percentage is over that device's samples only."""
        result = build_aggregators()["queue"].consume(RECORDS)

        assert list(result) == ["sda", "sdb"]
        assert result["sda"].total == 2
        assert result["sda"].percentage == 50.0
        assert result["sdb"].count == 0


@pytest.mark.unit
class TestRunAggregators:
    """Test cases for sequential and parallel execution."""

    def test_sequential(self):
        results = run_aggregators(build_aggregators(), RECORDS)

        assert list(results) == ["busy", "busy_max", "queue", "devices", "top"]
        assert dict(results["busy_max"]) == {0: 80.0, 1: 20.0, 2: 70.0}
        assert [r.timestamp for r in results["top"]] == [2000, 1000]

    def test_parallel_matches_sequential(self):
        sequential = run_aggregators(build_aggregators(), RECORDS)
        parallel = run_aggregators(build_aggregators(), RECORDS, parallel=True, max_workers=3)

        assert parallel == sequential

    def test_iterator_is_materialized_once(self):
        results = run_aggregators(build_aggregators(), iter(RECORDS), parallel=True)

        assert results["busy"].total == 3
        assert dict(results["devices"]) == {"sda": 2, "sdb": 1}

    def test_parallel_error_is_reraised(self):
        aggregators = {"ok": KeyCounter(attrgetter("timestamp")), "bad": Exploding()}

        with pytest.raises(RuntimeError, match="cannot aggregate"):
            run_aggregators(aggregators, RECORDS, parallel=True, max_workers=2)
