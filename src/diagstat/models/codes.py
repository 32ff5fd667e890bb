"""
Classification of numeric codes found in captures.

Captures sometimes carry enumerations as bare integers. Rather than indexing
an enumeration by ordinal (where an out-of-range code silently yields nothing),
codes are classified into an explicit known/unknown result so callers can tell
"unrecognized" apart from "recognized as the first variant".
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Type, TypeVar, Union

E = TypeVar("E", bound=Enum)


class QueryState(Enum):
    """Query lifecycle states, keyed by their numeric wire code."""

    STARTING = 0
    RUNNING = 1
    COMPLETED = 2
    CANCELED = 3
    FAILED = 4
    CANCELLATION_REQUESTED = 5
    ENQUEUED = 6


@dataclass(frozen=True)
class KnownCode(Generic[E]):
    variant: E

    @property
    def label(self) -> str:
        return self.variant.name


@dataclass(frozen=True)
class UnknownCode:
    code: int

    @property
    def label(self) -> str:
        return f"UNKNOWN({self.code})"


CodeClassification = Union[KnownCode, UnknownCode]


def classify_code(enum_cls: Type[E], code: int) -> CodeClassification:
    """
    Map a numeric code to a variant of ``enum_cls``.

    Args:
        enum_cls: Enumeration whose member values are the wire codes.
        code: The numeric code read from the capture.

    Returns:
        KnownCode wrapping the matching member, or UnknownCode(code).

    Examples:
        >>> classify_code(QueryState, 4).label
        'FAILED'
        >>> classify_code(QueryState, 42).label
        'UNKNOWN(42)'
    """
    try:
        return KnownCode(enum_cls(code))
    except ValueError:
        return UnknownCode(code)
