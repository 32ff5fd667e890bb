"""Threshold-crossing counter."""

import logging
from typing import Any, Callable

from ..models.summary import ThresholdResult
from .base import Aggregator

logger = logging.getLogger(__name__)


def percentage_of(count: int, total: int) -> float:
    """100 * count / total, defined as 0.0 when total is zero."""
    if total == 0:
        return 0.0
    return 100.0 * count / total


class ThresholdCounter(Aggregator[ThresholdResult]):
    """
    Counts the records whose extracted value is strictly above a threshold.

    Example: ThresholdCounter(lambda s: s.busy, 50.0) answers "in what
    percentage of samples was the CPU more than 50% busy".
    """

    def __init__(self, extractor: Callable[[Any], float], threshold: float):
        self.extractor = extractor
        self.threshold = threshold
        self._count = 0
        self._total = 0

    def add(self, record: Any) -> None:
        self._total += 1
        if self.extractor(record) > self.threshold:
            self._count += 1

    def finalize(self) -> ThresholdResult:
        return ThresholdResult(
            threshold=self.threshold,
            count=self._count,
            total=self._total,
            percentage=percentage_of(self._count, self._total),
        )
