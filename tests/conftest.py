"""
Pytest configuration and shared fixtures for the diagstat test suite.

This module provides common fixtures (sample captures, configuration
objects and files) and marker registration for all test modules.
"""

import json
import shutil
import sys
import tempfile
from pathlib import Path

import pytest

# Add src to Python path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from diagstat.models import AnalysisConfig, AppConfig, QueriesConfig  # noqa: E402


# ============================================================================
# Test Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "property: mark test as a property-based test")


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


# Epoch milliseconds of 2024-01-15T08:00:00Z.
T0 = 1705305600000


@pytest.fixture
def t0():
    return T0


# ============================================================================
# Sample Captures
# ============================================================================


TOP_CAPTURE = """\
top - 10:15:30 up 3 days,  2:01,  0 users,  load average: 1.20, 1.05, 0.98
Threads: 525 total,   1 running, 524 sleeping,   0 stopped,   0 zombie
%Cpu(s): 75.3 us,  3.2 sy,  0.0 ni, 20.4 id,  0.0 wa,  0.0 hi,  1.0 si,  0.0 st
MiB Mem :  15869.4 total,   1234.5 free,   8000.0 used,   6634.9 buff/cache
MiB Swap:   2048.0 total,   2048.0 free,      0.0 used.   7012.3 avail Mem

    PID USER      PR  NI    VIRT    RES    SHR S  %CPU  %MEM     TIME+ COMMAND
   1234 dremio    20   0   12.3g   4.1g  40212 S  93.8  26.4  10:02.11 java -Xmx4g -cp /opt/dremio
   2001 root      20   0  123456  12345   1234 S   5.0   0.1   0:01.23 sshd: admin

top - 10:15:40 up 3 days,  2:01,  0 users,  load average: 1.30, 1.05, 0.98
Threads: 530 total,   2 running, 528 sleeping,   0 stopped,   0 zombie
%Cpu(s): 40.0 us,  5.0 sy,  1.0 ni, 50.0 id,  4.0 wa,  0.0 hi,  0.0 si,  0.0 st
MiB Mem :  15869.4 total,   1000.0 free,   8500.0 used,   6369.4 buff/cache
MiB Swap:   2048.0 total,   2048.0 free,      0.0 used.   6800.0 avail Mem

    PID USER      PR  NI    VIRT    RES    SHR S  %CPU  %MEM     TIME+ COMMAND
   1234 dremio    20   0   12.3g   4.2g  40212 S  60.0  26.9  10:08.11 java -Xmx4g -cp /opt/dremio
   2001 root      20   0  123456  12345   1234 S  12.0   0.1   0:01.50 python3 job.py
"""

_DISK_HEADER = (
    "Device            r/s     rkB/s   rrqm/s  %rrqm r_await rareq-sz     w/s     wkB/s"
    "   wrqm/s  %wrqm w_await wareq-sz  aqu-sz  %util"
)


def _disk_row(device, reads, rkb, r_await, writes, wkb, w_await, queue, util):
    return (
        f"{device:<12} {reads:8.2f} {rkb:9.2f}     0.00   0.00 {r_await:7.2f}    40.00"
        f" {writes:7.2f} {wkb:9.2f}     0.00   0.00 {w_await:7.2f}    40.00"
        f" {queue:7.2f} {util:6.2f}"
    )


IOSTAT_CAPTURE = "\n".join(
    [
        "Linux 5.15.0-1034-aws (ip-10-0-0-12) \t01/15/2024 \t_x86_64_\t(8 CPU)",
        "",
        "01/15/2024 08:00:00 AM",
        "avg-cpu:  %user   %nice %system %iowait  %steal   %idle",
        "          62.10    0.00    4.30   12.20    0.40   21.00",
        "",
        _DISK_HEADER,
        _disk_row("nvme0n1", 12.0, 480.0, 0.8, 50.0, 2000.0, 1.2, 2.5, 85.0),
        _disk_row("nvme1n1", 1.0, 10.0, 0.5, 2.0, 20.0, 0.7, 0.1, 3.0),
        "",
        "01/15/2024 08:01:00 AM",
        "avg-cpu:  %user   %nice %system %iowait  %steal   %idle",
        "          30.00    0.00    3.00    1.00    0.00   66.00",
        "",
        _DISK_HEADER,
        _disk_row("nvme0n1", 6.0, 240.0, 0.6, 20.0, 800.0, 1.0, 0.5, 40.0),
        _disk_row("nvme1n1", 1.0, 10.0, 0.5, 2.0, 20.0, 0.7, 0.2, 5.0),
        "",
        "01/15/2024 08:02:00 AM",
        "avg-cpu:  %user   %nice %system %iowait  %steal   %idle",
        "          95.00    0.00    3.00    0.50    0.00    1.50",
        "",
        _DISK_HEADER,
        _disk_row("nvme0n1", 10.0, 400.0, 0.9, 40.0, 1600.0, 1.1, 1.5, 90.0),
        _disk_row("nvme1n1", 0.5, 5.0, 0.4, 1.0, 10.0, 0.6, 0.05, 1.0),
        "",
    ]
)


def _query(query_id, start, finish, **fields):
    record = {"queryId": query_id, "start": T0 + start, "finish": T0 + finish}
    record.update(fields)
    return json.dumps(record)


QUERIES_CAPTURE = "\n".join(
    [
        _query(
            "q1", 0, 30000,
            queuedTime=1000, metadataRetrievalTime=200, planningTime=500,
            poolWaitTime=0, pendingTime=10, memoryAllocated=100 * 1024 * 1024,
            executionCpuTimeNs=2_000_000_000, queueName="High Cost",
            requestType="RUN_SQL", username="alice", outcome="COMPLETED",
        ),
        _query(
            "q2", 20000, 90000,
            queuedTime=5000, metadataRetrievalTime=50, planningTime=3000,
            poolWaitTime=7, pendingTime=3, memoryAllocated=500 * 1024 * 1024,
            executionCpuTimeNs=9_000_000_000, queueName="Low Cost",
            requestType="RUN_SQL", username="bob", outcome="FAILED",
            outcomeReason="OUT_OF_MEMORY ERROR: Query was cancelled",
        ),
        "",
        _query(
            "q3", 65000, 66000,
            metadataRetrieval=900, planningTime=20, queueName="Low Cost",
            requestType="GET_TABLES", username="tableau", state=2,
        ),
        "{not json",
        json.dumps({"queryId": "broken", "start": T0 + 70000}),
        _query(
            "q4", 100000, 130000,
            planningTime=40, memoryAllocated=1024, queueName="High Cost",
            requestType="RUN_SQL", username="alice", state=42,
        ),
    ]
)


@pytest.fixture
def top_capture_text():
    """Two `top` snapshots ten seconds apart, with pid 2001 reused."""
    return TOP_CAPTURE


@pytest.fixture
def iostat_capture_text():
    """Three iostat reports one minute apart, two devices."""
    return IOSTAT_CAPTURE


@pytest.fixture
def queries_capture_text():
    """Four valid queries plus two malformed lines."""
    return QUERIES_CAPTURE


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def app_config():
    """Default configuration object (no file involved)."""
    return AppConfig()


@pytest.fixture
def fine_bucket_config():
    """Configuration with 5 second buckets, fine enough for the top capture."""
    return AppConfig(analysis=AnalysisConfig(bucket_width_ms=5000))


@pytest.fixture
def filtered_queries_config():
    """Configuration whose query filter starts ten seconds into the capture."""
    return AppConfig(queries=QueriesConfig(start_filter_ms=T0 + 10000))


@pytest.fixture
def sample_config_data():
    """Sample configuration data for testing."""
    return {
        "analysis": {
            "bucket_width_ms": 30000,
            "top_n": 5,
            "problematic_query_limit": 20,
            "parallel_aggregation": True,
            "max_workers": 2,
        },
        "thresholds": {
            "cpu_busy_pct": 60.0,
            "cpu_saturated_pct": 95.0,
            "iowait_pct": 10.0,
            "disk_queue_depth": 2.0,
        },
        "queries": {
            "start_filter": "2024-01-15T08:00:00Z",
            "end_filter": "2024-01-15T09:00:00Z",
            "schema_request_types": ["GET_TABLES"],
        },
        "top": {
            "capture_date": "2024-01-15",
        },
    }


@pytest.fixture
def config_files(temp_dir, sample_config_data):
    """Create a temporary config.toml for testing."""
    import toml

    config_file = temp_dir / "config.toml"
    with open(config_file, "w") as f:
        toml.dump(sample_config_data, f)

    return {"config": config_file, "dir": temp_dir}


@pytest.fixture(autouse=True)
def clear_config_after_test():
    """Automatically clear configuration cache after each test."""
    original_config_path = Path(__file__).parent.parent / "conf" / "config.toml"

    yield  # Run the test

    from diagstat.config import clear_config_cache, set_config_path

    clear_config_cache()
    set_config_path(original_config_path)
