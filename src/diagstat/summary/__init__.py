"""
Summary builders and tabular exports.

Builders compose aggregator outputs into the frozen summary objects handed
to renderers; frames flattens those summaries into Polars DataFrames.
"""

# Builders
from .builder import (
    analyze_query_files,
    analyze_top_file,
    build_bucket_report,
    build_iostat_summary,
    build_queries_summary,
    build_top_summary,
)

# Recommendations
from .recommendations import iostat_recommendations

# DataFrame exports
from .frames import bucket_frame, disk_frame, process_frame, query_frame

__all__ = [
    # Builders
    "build_top_summary",
    "build_iostat_summary",
    "build_queries_summary",
    "analyze_query_files",
    "analyze_top_file",
    "build_bucket_report",
    # Recommendations
    "iostat_recommendations",
    # Frames
    "bucket_frame",
    "process_frame",
    "disk_frame",
    "query_frame",
]
