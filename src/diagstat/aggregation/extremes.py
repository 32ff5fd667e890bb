"""Bounded top-N extremes selection."""

import heapq
import logging
from typing import Any, Callable, List, Tuple

from ..validation import ValidationError
from .base import Aggregator

logger = logging.getLogger(__name__)


class TopNSelector(Aggregator[Tuple[Any, ...]]):
    """
    Retains the `n` records with the highest `key`.

    Memory is bounded by n: a min-heap holds the current winners with the
    weakest at the root, and each new record either replaces the root or is
    dropped. Ties are broken by arrival order, the first-seen record wins,
    so output is deterministic for a given input sequence.

    finalize() returns the winners sorted by key descending, then by
    arrival order.
    """

    def __init__(self, n: int, key: Callable[[Any], Any]):
        if isinstance(n, bool) or not isinstance(n, int) or n < 0:
            raise ValidationError(f"top-N bound must be a non-negative integer, got {n!r}",
                                  field_name="top_n", value=n)
        self.n = n
        self.key = key
        # Entries are (key, -sequence, record): among equal keys the latest
        # arrival has the smallest -sequence and is evicted first.
        self._heap: List[Tuple[Any, int, Any]] = []
        self._seen = 0

    def add(self, record: Any) -> None:
        entry = (self.key(record), -self._seen, record)
        self._seen += 1
        if len(self._heap) < self.n:
            heapq.heappush(self._heap, entry)
        elif self._heap and entry[:2] > self._heap[0][:2]:
            heapq.heapreplace(self._heap, entry)

    def finalize(self) -> Tuple[Any, ...]:
        ordered = sorted(self._heap, key=lambda entry: entry[:2], reverse=True)
        return tuple(entry[2] for entry in ordered)
