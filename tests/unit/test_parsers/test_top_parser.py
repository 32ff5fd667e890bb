"""
Unit tests for the `top` batch capture parser.
"""

from datetime import date

import pytest

from diagstat.models import (
    CPUSample,
    MemSample,
    ProcessUsageSample,
    SwapSample,
    ThreadStateSample,
)
from diagstat.parsers import TopParser
from diagstat.parsers.top import clock_to_millis

TOP_LINE = "top - 10:15:30 up 3 days,  2:01,  0 users,  load average: 1.20, 1.05, 0.98"


@pytest.mark.unit
class TestSummaryLines:
    """Test cases for the marker-driven summary lines."""

    def test_cpu_line(self):
        result = TopParser().parse(
            ["%Cpu(s): 75.3 us, 3.2 sy, 0.0 ni, 20.4 id, 0.0 wa, 0.0 hi, 1.0 si, 0.0 st"]
        )

        assert result.records == (
            CPUSample(
                timestamp=None, user=75.3, nice=0.0, system=3.2, iowait=0.0, steal=0.0, idle=20.4
            ),
        )
        assert result.errors == ()

    def test_cpu_line_without_space_after_marker(self):
        result = TopParser().parse(
            ["%Cpu(s):100.0 us,  0.0 sy,  0.0 ni,  0.0 id,  0.0 wa,  0.0 hi,  0.0 si,  0.0 st"]
        )

        assert result.of_type(CPUSample)[0].user == 100.0

    def test_truncated_cpu_line(self):
        result = TopParser().parse(["%Cpu(s): 75.3 us, 3.2 sy, 0.0 ni"])

        assert result.records == ()
        assert [e.category for e in result.errors] == ["CPU"]

    def test_threads_line(self):
        result = TopParser().parse(
            ["Threads: 525 total, 1 running, 524 sleeping, 0 stopped, 0 zombie"]
        )

        assert result.records == (ThreadStateSample(None, 525, 1, 524, 0, 0),)

    def test_tasks_line(self):
        result = TopParser().parse(
            ["Tasks: 301 total,   2 running, 299 sleeping,   0 stopped,   0 zombie"]
        )

        assert result.of_type(ThreadStateSample)[0].total == 301

    def test_malformed_threads_line(self):
        """A threads line missing a field adds no sample and exactly one error."""
        result = TopParser().parse(["Threads: 525 total, 1 running, 524 sleeping, 0 stopped"])

        assert result.of_type(ThreadStateSample) == ()
        assert len(result.errors) == 1
        assert result.errors[0].category == "Thread Stats"
        assert result.errors[0].line_number == 1

    def test_threads_line_with_bad_count(self):
        result = TopParser().parse(
            ["Threads: 525 total, x running, 524 sleeping, 0 stopped, 0 zombie"]
        )

        assert result.records == ()
        assert result.errors_in("Thread Stats")

    def test_memory_line_mib(self):
        result = TopParser().parse(
            ["MiB Mem :  15869.4 total,   1234.5 free,   8000.0 used,   6634.9 buff/cache"]
        )

        assert result.records == (MemSample(None, 15869.4, 1234.5, 8000.0, 6634.9),)

    def test_memory_line_kib_is_converted(self):
        result = TopParser().parse(
            ["KiB Mem : 16384000 total,  1024000 free,  8192000 used,  7168000 buff/cache"]
        )

        mem = result.of_type(MemSample)[0]
        assert mem.total_mib == pytest.approx(16000.0)
        assert mem.used_mib == pytest.approx(8000.0)

    def test_bad_memory_line(self):
        result = TopParser().parse(["MiB Mem :  15869.4 total,   lots free"])

        assert [e.category for e in result.errors] == ["Memory"]

    def test_swap_line(self):
        result = TopParser().parse(
            ["MiB Swap:   2048.0 total,   1024.0 free,   1024.0 used.   7012.3 avail Mem"]
        )

        assert result.records == (SwapSample(None, 2048.0, 1024.0, 1024.0, 7012.3),)

    def test_swap_line_without_avail(self):
        result = TopParser().parse(["KiB Swap:  2048 total,  2048 free,  0 used."])

        swap = result.of_type(SwapSample)[0]
        assert swap.avail_mib == 0.0
        assert swap.total_mib == pytest.approx(2.0)

    def test_bad_swap_line(self):
        result = TopParser().parse(["MiB Swap:   2048.0 total"])

        assert [e.category for e in result.errors] == ["Swap"]


@pytest.mark.unit
class TestTimestamps:
    """Test cases for snapshot timestamps."""

    def test_clock_to_millis(self):
        assert clock_to_millis("10:15:30") == (10 * 3600 + 15 * 60 + 30) * 1000

    def test_records_take_snapshot_time(self):
        result = TopParser().parse(
            [TOP_LINE, "Threads: 5 total, 1 running, 4 sleeping, 0 stopped, 0 zombie"]
        )

        assert result.records[0].timestamp == clock_to_millis("10:15:30")

    def test_midnight_rollover_adds_a_day(self):
        result = TopParser().parse(
            [
                "top - 23:59:50 up 1 day",
                "%Cpu(s): 1.0 us, 1.0 sy, 0.0 ni, 98.0 id, 0.0 wa, 0.0 hi, 0.0 si, 0.0 st",
                "top - 00:00:05 up 1 day",
                "%Cpu(s): 1.0 us, 1.0 sy, 0.0 ni, 98.0 id, 0.0 wa, 0.0 hi, 0.0 si, 0.0 st",
            ]
        )

        first, second = result.of_type(CPUSample)
        assert second.timestamp - first.timestamp == 15000

    def test_capture_date_anchors_to_epoch(self):
        result = TopParser(capture_date=date(2024, 1, 15)).parse(
            ["top - 08:00:00 up 1 day", "Threads: 5 total, 1 running, 4 sleeping, 0 stopped, 0 zombie"]
        )

        assert result.records[0].timestamp == 1705305600000

    def test_bad_timestamp_line(self):
        result = TopParser().parse(["top - 25:99:00 up 1 day"])

        assert [e.category for e in result.errors] == ["Timestamp"]


@pytest.mark.unit
class TestProcessTable:
    """Test cases for the process table state machine."""

    def test_full_capture(self, top_capture_text):
        result = TopParser().parse_text(top_capture_text)

        processes = result.of_type(ProcessUsageSample)
        assert len(processes) == 4
        assert processes[0].process_id == "1234"
        assert processes[0].command == "java -Xmx4g -cp /opt/dremio"
        assert processes[0].cpu_usage_pct == 93.8
        assert processes[1].command == "sshd: admin"
        assert len(result.of_type(CPUSample)) == 2
        assert result.errors == ()

    def test_blank_line_ends_table(self):
        result = TopParser().parse(
            [
                "  PID USER      PR  NI    VIRT    RES    SHR S  %CPU  %MEM     TIME+ COMMAND",
                "    1 root      20   0  168000  12000   8000 S   0.0   0.1   0:05.00 /sbin/init",
                "",
                "    2 root      20   0       0      0      0 S   0.0   0.0   0:00.00 kthreadd",
            ]
        )

        assert len(result.of_type(ProcessUsageSample)) == 1
        assert result.errors == ()

    def test_command_whitespace_is_normalized(self):
        result = TopParser().parse(
            [
                "  PID USER      PR  NI    VIRT    RES    SHR S  %CPU  %MEM     TIME+ COMMAND",
                "  77 app       20   0  1000  100  10 R  50.0   0.1   0:05.00 run   --flag    x",
            ]
        )

        assert result.records[0].command == "run --flag x"

    def test_short_row_is_a_process_error(self):
        result = TopParser().parse(
            [
                "  PID USER      PR  NI    VIRT    RES    SHR S  %CPU  %MEM     TIME+ COMMAND",
                "  77 app 20 0",
                "  78 app       20   0  1000  100  10 R  bad   0.1   0:05.00 worker",
                "  79 app       20   0  1000  100  10 R  25.0   0.1   0:05.00 worker",
            ]
        )

        assert [e.category for e in result.errors] == ["Process", "Process"]
        assert [s.process_id for s in result.records] == ["79"]

    def test_new_snapshot_ends_table(self):
        result = TopParser().parse(
            [
                "  PID USER      PR  NI    VIRT    RES    SHR S  %CPU  %MEM     TIME+ COMMAND",
                "  79 app       20   0  1000  100  10 R  25.0   0.1   0:05.00 worker",
                "top - 10:00:03 up 1 day",
                "%Cpu(s): 1.0 us, 1.0 sy, 0.0 ni, 98.0 id, 0.0 wa, 0.0 hi, 0.0 si, 0.0 st",
            ]
        )

        assert len(result.of_type(CPUSample)) == 1
        assert result.errors == ()

    def test_parser_is_reusable(self, top_capture_text):
        parser = TopParser()

        first = parser.parse_text(top_capture_text)
        second = parser.parse_text(top_capture_text)

        assert first == second
