"""
Per-bucket aggregators: running maximum, sum, and interval concurrency.

Maxima and sums are sparse (a bucket that received no record is absent, so
"no data" stays distinguishable from "observed zero"). Concurrency is dense
across the observed index range, since zero active intervals is a real
observation between two busy buckets.
"""

import logging
from operator import attrgetter
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from ..models.summary import frozen_mapping
from .base import Aggregator
from .buckets import BucketSpec

logger = logging.getLogger(__name__)

_timestamp_of = attrgetter("timestamp")


class BucketMaxTracker(Aggregator[Mapping[int, float]]):
    """Maximum of `extractor(record)` per bucket; untimed records are skipped."""

    def __init__(
        self,
        spec: BucketSpec,
        extractor: Callable[[Any], float],
        timestamp: Callable[[Any], Optional[int]] = _timestamp_of,
    ):
        self.spec = spec
        self.extractor = extractor
        self.timestamp = timestamp
        self._maxima: Dict[int, float] = {}

    def add(self, record: Any) -> None:
        ts = self.timestamp(record)
        if ts is None:
            return
        index = self.spec.index(ts)
        value = self.extractor(record)
        current = self._maxima.get(index)
        if current is None or value > current:
            self._maxima[index] = value

    def finalize(self) -> Mapping[int, float]:
        return frozen_mapping(dict(sorted(self._maxima.items())))


class BucketSum(Aggregator[Mapping[int, float]]):
    """Sum of `extractor(record)` per bucket; untimed records are skipped."""

    def __init__(
        self,
        spec: BucketSpec,
        extractor: Callable[[Any], float],
        timestamp: Callable[[Any], Optional[int]] = _timestamp_of,
    ):
        self.spec = spec
        self.extractor = extractor
        self.timestamp = timestamp
        self._sums: Dict[int, float] = {}

    def add(self, record: Any) -> None:
        ts = self.timestamp(record)
        if ts is None:
            return
        index = self.spec.index(ts)
        self._sums[index] = self._sums.get(index, 0) + self.extractor(record)

    def finalize(self) -> Mapping[int, float]:
        return frozen_mapping(dict(sorted(self._sums.items())))


class ConcurrencyCounter(Aggregator[Mapping[int, int]]):
    """
    Number of intervals active in each bucket.

    Each interval (start, end) becomes a +1 event at index(start) and a -1
    event at index(end) + 1; a prefix sum over the events then yields the
    active count per bucket, from the lowest to the highest index any
    interval touched. An interval covers every bucket from the one holding
    its start through the one holding its end, inclusive.

    Degenerate intervals (end <= start) still register their +1/-1 pair,
    both in the start bucket, so they cancel out and count as zero while
    keeping that bucket inside the reported range.
    """

    def __init__(
        self,
        spec: BucketSpec,
        interval: Callable[[Any], Tuple[Optional[int], Optional[int]]],
    ):
        self.spec = spec
        self.interval = interval
        self._deltas: Dict[int, int] = {}
        self._low: Optional[int] = None
        self._high: Optional[int] = None

    def _touch(self, index: int) -> None:
        if self._low is None or index < self._low:
            self._low = index
        if self._high is None or index > self._high:
            self._high = index

    def add(self, record: Any) -> None:
        start, end = self.interval(record)
        if start is None or end is None:
            return
        first = self.spec.index(start)
        if end <= start:
            # +1 and -1 in the same bucket: net zero.
            self._deltas.setdefault(first, 0)
            self._touch(first)
            return
        last = self.spec.index(end)
        self._deltas[first] = self._deltas.get(first, 0) + 1
        self._deltas[last + 1] = self._deltas.get(last + 1, 0) - 1
        self._touch(first)
        self._touch(last)

    def finalize(self) -> Mapping[int, int]:
        if self._low is None:
            return frozen_mapping({})
        active = 0
        counts: Dict[int, int] = {}
        for index in range(self._low, self._high + 1):
            active += self._deltas.get(index, 0)
            counts[index] = active
        return frozen_mapping(counts)


def phase_interval(offset_field: str) -> Callable[[Any], Tuple[int, int]]:
    """
    Interval from a query's start to start + one phase duration.

    e.g. phase_interval("queued_ms") spans the time a query sat in its queue.
    """
    getter = attrgetter(offset_field)

    def interval(record: Any) -> Tuple[int, int]:
        return record.start, record.start + getter(record)

    return interval


def execution_interval(record: Any) -> Tuple[int, int]:
    """Whole-query interval, start to end."""
    return record.start, record.end
