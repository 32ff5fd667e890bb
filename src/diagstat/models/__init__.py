"""
Data models for the diagnostic analysis pipeline.

Sample Models:
- Per-domain value records created by the capture parsers
- Recoverable parse errors collected alongside them

Code Models:
- Explicit known/unknown classification of numeric codes

Configuration Models:
- Bucketing, threshold, query-filter and capture settings

Summary Models:
- Aggregator fragments and the immutable per-capture summaries

All models are dataclasses with type hints.
"""

# Sample models
from .samples import (
    CPUSample,
    DiskSample,
    MemSample,
    ParseError,
    ProcessKey,
    ProcessUsageSample,
    QueryRecord,
    SwapSample,
    ThreadStateSample,
)

# Code classification
from .codes import KnownCode, QueryState, UnknownCode, classify_code

# Configuration models
from .config import AnalysisConfig, AppConfig, QueriesConfig, ThresholdConfig, TopConfig

# Summary models
from .summary import (
    BucketReport,
    CaptureStats,
    IOStatSummary,
    ProcessSeries,
    QueriesSummary,
    RangeStatus,
    SearchedFile,
    ThresholdResult,
    TopSummary,
)

__all__ = [
    # Samples
    "CPUSample",
    "DiskSample",
    "MemSample",
    "ParseError",
    "ProcessKey",
    "ProcessUsageSample",
    "QueryRecord",
    "SwapSample",
    "ThreadStateSample",
    # Codes
    "KnownCode",
    "QueryState",
    "UnknownCode",
    "classify_code",
    # Configuration
    "AnalysisConfig",
    "AppConfig",
    "QueriesConfig",
    "ThresholdConfig",
    "TopConfig",
    # Summaries
    "BucketReport",
    "CaptureStats",
    "IOStatSummary",
    "ProcessSeries",
    "QueriesSummary",
    "RangeStatus",
    "SearchedFile",
    "ThresholdResult",
    "TopSummary",
]
