"""
Time-bucketing engine shared by every windowed aggregator.

All aggregators feeding one report share a single BucketSpec (one origin,
one width) so their bucket indices line up.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from ..models.summary import RangeStatus
from ..validation import ValidationError

logger = logging.getLogger(__name__)


def _check_width(width_ms: int) -> None:
    if isinstance(width_ms, bool) or not isinstance(width_ms, int) or width_ms <= 0:
        raise ValidationError(
            f"bucket width must be a positive integer number of milliseconds, got {width_ms!r}",
            field_name="bucket_width_ms",
            value=width_ms,
        )


def bucket_index(timestamp: int, origin_ms: int, width_ms: int) -> int:
    """
    Map a timestamp to its bucket index.

    Floor division, so timestamps before the origin land in negative buckets.

    Raises:
        ValidationError: If width_ms is not strictly positive

    Examples:
        >>> bucket_index(119_999, 0, 60_000)
        1
        >>> bucket_index(-1, 0, 60_000)
        -1
    """
    _check_width(width_ms)
    return (timestamp - origin_ms) // width_ms


@dataclass(frozen=True)
class BucketSpec:
    """Origin and width of one aggregation run's buckets."""

    origin_ms: int
    width_ms: int

    def __post_init__(self):
        _check_width(self.width_ms)

    def index(self, timestamp: int) -> int:
        return (timestamp - self.origin_ms) // self.width_ms

    def start_of(self, index: int) -> int:
        """Timestamp at which bucket `index` begins."""
        return self.origin_ms + index * self.width_ms


def check_bucket_range(
    first_ms: Optional[int], last_ms: Optional[int], width_ms: int
) -> RangeStatus:
    """
    Decide whether a capture span can be meaningfully bucketed.

    Returns:
        EMPTY when there are no timestamps, INSUFFICIENT_RANGE when the width
        exceeds the span from first to last timestamp, otherwise OK.

    Raises:
        ValidationError: If width_ms is not strictly positive
    """
    _check_width(width_ms)
    if first_ms is None or last_ms is None:
        return RangeStatus.EMPTY
    span = last_ms - first_ms
    if width_ms > span:
        logger.info(
            f"Bucket width {width_ms}ms exceeds capture span {span}ms, skipping bucketed report"
        )
        return RangeStatus.INSUFFICIENT_RANGE
    return RangeStatus.OK
