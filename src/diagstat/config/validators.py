"""
Configuration validation utilities.

This module turns the raw TOML tables into typed configuration models,
applying defaults for missing keys and raising ValidationError (naming the
dotted field) for invalid values.
"""

import logging
from datetime import date, datetime
from typing import Any, Dict

from ..models.config import (
    DEFAULT_SCHEMA_REQUEST_TYPES,
    AnalysisConfig,
    AppConfig,
    QueriesConfig,
    ThresholdConfig,
    TopConfig,
)
from ..validation import (
    ValidationError,
    validate_bool,
    validate_positive_float,
    validate_positive_integer,
    validate_string_list,
    validate_timestamp_ms,
)

logger = logging.getLogger(__name__)


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = data.get(name, {})
    if not isinstance(section, dict):
        raise ValidationError(f"[{name}] must be a table", field_name=name, value=section)
    return section


def validate_analysis_config(analysis_data: Dict[str, Any]) -> AnalysisConfig:
    """
    Validate and create an AnalysisConfig from the raw `[analysis]` table.

    Raises:
        ValidationError: If validation fails
    """
    bucket_width_ms = validate_positive_integer(
        analysis_data.get("bucket_width_ms", 60000),
        min_value=1,
        field_name="analysis.bucket_width_ms",
    )
    top_n = validate_positive_integer(
        analysis_data.get("top_n", 10),
        min_value=0,
        max_value=10000,
        field_name="analysis.top_n",
    )
    problematic_query_limit = validate_positive_integer(
        analysis_data.get("problematic_query_limit", 50),
        min_value=0,
        max_value=100000,
        field_name="analysis.problematic_query_limit",
    )
    parallel_aggregation = validate_bool(
        analysis_data.get("parallel_aggregation", False),
        field_name="analysis.parallel_aggregation",
    )
    max_workers = validate_positive_integer(
        analysis_data.get("max_workers", 4),
        min_value=1,
        max_value=64,
        field_name="analysis.max_workers",
    )
    return AnalysisConfig(
        bucket_width_ms=bucket_width_ms,
        top_n=top_n,
        problematic_query_limit=problematic_query_limit,
        parallel_aggregation=parallel_aggregation,
        max_workers=max_workers,
    )


def validate_threshold_config(threshold_data: Dict[str, Any]) -> ThresholdConfig:
    """
    Validate and create a ThresholdConfig from the raw `[thresholds]` table.

    Percent thresholds must lie in [0, 100]; queue depth must be >= 0.
    """
    return ThresholdConfig(
        cpu_busy_pct=validate_positive_float(
            threshold_data.get("cpu_busy_pct", 50.0),
            min_value=0.0,
            max_value=100.0,
            field_name="thresholds.cpu_busy_pct",
        ),
        cpu_saturated_pct=validate_positive_float(
            threshold_data.get("cpu_saturated_pct", 90.0),
            min_value=0.0,
            max_value=100.0,
            field_name="thresholds.cpu_saturated_pct",
        ),
        iowait_pct=validate_positive_float(
            threshold_data.get("iowait_pct", 5.0),
            min_value=0.0,
            max_value=100.0,
            field_name="thresholds.iowait_pct",
        ),
        disk_queue_depth=validate_positive_float(
            threshold_data.get("disk_queue_depth", 1.0),
            min_value=0.0,
            field_name="thresholds.disk_queue_depth",
        ),
    )


def validate_queries_config(queries_data: Dict[str, Any]) -> QueriesConfig:
    """
    Validate and create a QueriesConfig from the raw `[queries]` table.

    Raises:
        ValidationError: If a filter is malformed or the range is inverted
    """
    start_filter_ms = validate_timestamp_ms(
        queries_data.get("start_filter"), field_name="queries.start_filter"
    )
    end_filter_ms = validate_timestamp_ms(
        queries_data.get("end_filter"), field_name="queries.end_filter"
    )
    if (
        start_filter_ms is not None
        and end_filter_ms is not None
        and end_filter_ms < start_filter_ms
    ):
        raise ValidationError(
            "queries.end_filter must not be earlier than queries.start_filter",
            field_name="queries.end_filter",
            value=queries_data.get("end_filter"),
        )
    schema_request_types = validate_string_list(
        queries_data.get("schema_request_types", list(DEFAULT_SCHEMA_REQUEST_TYPES)),
        field_name="queries.schema_request_types",
    )
    return QueriesConfig(
        start_filter_ms=start_filter_ms,
        end_filter_ms=end_filter_ms,
        schema_request_types=schema_request_types,
    )


def validate_top_config(top_data: Dict[str, Any]) -> TopConfig:
    """Validate and create a TopConfig from the raw `[top]` table."""
    capture_date = top_data.get("capture_date")
    if capture_date in (None, ""):
        return TopConfig()
    if isinstance(capture_date, datetime):
        capture_date = capture_date.date()
    elif isinstance(capture_date, str):
        try:
            capture_date = date.fromisoformat(capture_date.strip())
        except ValueError:
            raise ValidationError(
                f"top.capture_date must be a YYYY-MM-DD date, got {capture_date!r}",
                field_name="top.capture_date",
                value=capture_date,
            )
    if not isinstance(capture_date, date):
        raise ValidationError(
            f"top.capture_date must be a date, got {capture_date!r}",
            field_name="top.capture_date",
            value=capture_date,
        )
    return TopConfig(capture_date=capture_date)


def validate_app_config(config_data: Dict[str, Any]) -> AppConfig:
    """
    Validate the whole parsed config.toml and assemble the AppConfig.

    Every section is optional; missing sections take their defaults.
    """
    return AppConfig(
        analysis=validate_analysis_config(_section(config_data, "analysis")),
        thresholds=validate_threshold_config(_section(config_data, "thresholds")),
        queries=validate_queries_config(_section(config_data, "queries")),
        top=validate_top_config(_section(config_data, "top")),
    )
