"""
Unit tests for logging setup.
"""

import io
import logging

import pytest

from diagstat.log_setup import setup_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.mark.unit
class TestSetupLogging:
    """Test cases for root logger configuration."""

    def test_format_and_level(self):
        stream = io.StringIO()

        setup_logging("debug", stream=stream)
        logging.getLogger("diagstat.parsers.top").debug("parsed 3 snapshots")

        output = stream.getvalue()
        assert "[DEBUG] diagstat.parsers.top:test_log_setup.py:" in output
        assert output.rstrip().endswith("parsed 3 snapshots")

    def test_unknown_level(self):
        with pytest.raises(ValueError):
            setup_logging("chatty")
