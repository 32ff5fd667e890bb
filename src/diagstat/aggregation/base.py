"""
Defines the abstract aggregator interface and its composition helpers.

An aggregator is a stateful reducer: records go in through add(), and
finalize() returns an immutable summary fragment. Aggregators own their
state privately and never look at each other's, which is what allows the
runner to execute them concurrently over one shared record sequence.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Generic, Hashable, Iterable, Mapping, TypeVar

from ..models.summary import frozen_mapping

logger = logging.getLogger(__name__)

R = TypeVar("R")


class Aggregator(ABC, Generic[R]):
    """
    Abstract base class for aggregators.

    Subclasses implement add() and finalize(). finalize() may be called more
    than once and must not mutate accumulated state.
    """

    @abstractmethod
    def add(self, record: Any) -> None:
        """Fold one record into the aggregator's state."""
        pass

    @abstractmethod
    def finalize(self) -> R:
        """Produce the immutable result for everything added so far."""
        pass

    def consume(self, records: Iterable[Any]) -> R:
        """Add every record, then finalize."""
        for record in records:
            self.add(record)
        return self.finalize()


class Filtered(Aggregator[R]):
    """Forwards only the records accepted by `predicate` to `inner`."""

    def __init__(self, inner: Aggregator[R], predicate: Callable[[Any], bool]):
        self.inner = inner
        self.predicate = predicate

    def add(self, record: Any) -> None:
        if self.predicate(record):
            self.inner.add(record)

    def finalize(self) -> R:
        return self.inner.finalize()

    def __repr__(self) -> str:
        return f"Filtered({self.inner!r})"


def of_type(record_type: type, inner: Aggregator[R]) -> Filtered:
    """Restrict `inner` to records of one type in a mixed record stream."""
    return Filtered(inner, lambda record: isinstance(record, record_type))


class GroupBy(Aggregator[Mapping[Hashable, Any]]):
    """
    Runs one inner aggregator per group key.

    Groups appear in the result in first-seen order.
    """

    def __init__(
        self, key: Callable[[Any], Hashable], factory: Callable[[], Aggregator]
    ):
        self.key = key
        self.factory = factory
        self._groups: Dict[Hashable, Aggregator] = {}

    def add(self, record: Any) -> None:
        group = self.key(record)
        aggregator = self._groups.get(group)
        if aggregator is None:
            aggregator = self._groups[group] = self.factory()
        aggregator.add(record)

    def finalize(self) -> Mapping[Hashable, Any]:
        return frozen_mapping(
            {group: aggregator.finalize() for group, aggregator in self._groups.items()}
        )
