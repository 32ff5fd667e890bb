"""
Counting aggregators: per-key counts and whole-capture scalars.
"""

import logging
from collections import Counter
from operator import attrgetter
from typing import Any, Callable, Hashable, Mapping, Optional

from ..models.summary import CaptureStats, frozen_mapping
from .base import Aggregator

logger = logging.getLogger(__name__)


class KeyCounter(Aggregator[Mapping[Hashable, int]]):
    """
    Number of records per key (e.g. requests by type or by queue).

    The result is ordered by count descending, then by key.
    """

    def __init__(self, key: Callable[[Any], Hashable]):
        self.key = key
        self._counts: Counter = Counter()

    def add(self, record: Any) -> None:
        self._counts[self.key(record)] += 1

    def finalize(self) -> Mapping[Hashable, int]:
        ordered = sorted(self._counts.items(), key=lambda item: (-item[1], str(item[0])))
        return frozen_mapping(dict(ordered))


class CaptureStatsCollector(Aggregator[CaptureStats]):
    """
    Record count, first/last timestamp, span and average rate.

    `start` and `end` extract the time bounds of a record; for point
    samples both default to the record's timestamp, for queries pass the
    start and end getters. Records without a timestamp still count.
    """

    def __init__(
        self,
        start: Callable[[Any], Optional[int]] = attrgetter("timestamp"),
        end: Optional[Callable[[Any], Optional[int]]] = None,
    ):
        self.start = start
        self.end = end or start
        self._count = 0
        self._first: Optional[int] = None
        self._last: Optional[int] = None

    def add(self, record: Any) -> None:
        self._count += 1
        first = self.start(record)
        last = self.end(record)
        if first is not None and (self._first is None or first < self._first):
            self._first = first
        if last is not None and (self._last is None or last > self._last):
            self._last = last

    @property
    def bounds(self):
        """(first, last) timestamps, or (None, None) when nothing was timed."""
        if self._first is None or self._last is None:
            return None, None
        return self._first, self._last

    def finalize(self) -> CaptureStats:
        first, last = self.bounds
        if first is None:
            return CaptureStats(count=self._count)
        duration_ms = max(last - first, 0)
        rate = self._count / (duration_ms / 1000.0) if duration_ms > 0 else 0.0
        return CaptureStats(
            count=self._count,
            first_timestamp=first,
            last_timestamp=last,
            duration_ms=duration_ms,
            rate_per_second=rate,
        )
