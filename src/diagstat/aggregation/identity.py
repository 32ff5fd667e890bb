"""
Process identity resolution for process-list captures.

Process ids are recycled by the operating system over a long capture, so a
pid alone does not identify a process. Samples are grouped by
ProcessKey(process_id, command): the same pid running a different command is
a different logical process.
"""

import logging
from typing import Dict, List, Tuple

from ..models.samples import ProcessKey, ProcessUsageSample
from ..models.summary import ProcessSeries
from .base import Aggregator

logger = logging.getLogger(__name__)


def _time_order(sample: ProcessUsageSample) -> Tuple[bool, int]:
    # Untimed samples sort first; sorted() keeps capture order among equals.
    return (sample.timestamp is not None, sample.timestamp or 0)


class ProcessSeriesResolver(Aggregator[Tuple[ProcessSeries, ...]]):
    """
    Merges ProcessUsageSamples into one time series per logical process.

    finalize() returns the series ordered by total CPU descending, ties
    broken by the order in which each process was first seen.
    """

    def __init__(self):
        # Insertion order doubles as first-seen order.
        self._samples: Dict[ProcessKey, List[ProcessUsageSample]] = {}

    def add(self, record: ProcessUsageSample) -> None:
        self._samples.setdefault(record.key, []).append(record)

    def finalize(self) -> Tuple[ProcessSeries, ...]:
        series = []
        for key, samples in self._samples.items():
            ordered = tuple(sorted(samples, key=_time_order))
            usage = [s.cpu_usage_pct for s in ordered]
            series.append(
                ProcessSeries(
                    key=key,
                    samples=ordered,
                    total_cpu=sum(usage),
                    peak_cpu=max(usage),
                )
            )
        # Stable sort keeps first-seen order among equal totals.
        series.sort(key=lambda s: s.total_cpu, reverse=True)
        logger.debug(f"Resolved {len(series)} logical processes")
        return tuple(series)
