"""
Unit tests for threshold-crossing counts.
"""

import pytest

from diagstat.aggregation import ThresholdCounter, percentage_of
from diagstat.models import CPUSample, ThresholdResult


def cpu(user, iowait=0.0):
    return CPUSample(
        timestamp=None, user=user, nice=0.0, system=0.0, iowait=iowait, steal=0.0, idle=0.0
    )


@pytest.mark.unit
class TestThresholdCounter:
    """Test cases for ThresholdCounter."""

    def test_strictly_greater(self):
        counter = ThresholdCounter(lambda s: s.busy, 50.0)

        result = counter.consume([cpu(50.0), cpu(50.1), cpu(10.0), cpu(99.0)])

        assert result == ThresholdResult(threshold=50.0, count=2, total=4, percentage=50.0)

    def test_empty_input_is_zero(self):
        result = ThresholdCounter(lambda s: s.busy, 50.0).finalize()

        assert result.total == 0
        assert result.percentage == 0.0

    def test_finalize_is_repeatable(self):
        counter = ThresholdCounter(lambda s: s.iowait, 5.0)
        counter.add(cpu(0.0, iowait=6.0))

        assert counter.finalize() == counter.finalize()

    def test_percentage_of(self):
        assert percentage_of(1, 3) == pytest.approx(33.333, rel=1e-3)
        assert percentage_of(0, 0) == 0.0
