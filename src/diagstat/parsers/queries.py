"""
Parser for structured query-execution captures (queries.json).

Each non-blank line is one JSON object describing one query:

    {"queryId": "1b2c...", "start": 1705305600000, "finish": 1705305601250,
     "queuedTime": 5, "metadataRetrievalTime": 40, "planningTime": 120,
     "poolWaitTime": 0, "pendingTime": 2, "memoryAllocated": 104857600,
     "executionCpuTimeNs": 850000000, "queueName": "Low Cost User Queries",
     "requestType": "RUN_SQL", "username": "alice", "outcome": "COMPLETED"}

Lines are parsed independently; a bad line becomes a "Query JSON" ParseError
and scanning continues with the next line.
"""

import json
import logging
import math
from typing import Any, Dict, Optional

from ..models.codes import QueryState, classify_code
from ..models.samples import QueryRecord
from ..validation import FieldExtractionError
from .base import AbstractCaptureParser, ParseResult, parse_decimal

logger = logging.getLogger(__name__)

CATEGORY_QUERY = "Query JSON"

NANOS_PER_MILLI = 1_000_000

# QueryRecord field -> JSON keys, in order of preference.
DURATION_KEYS: Dict[str, tuple] = {
    "queued_ms": ("queuedTime",),
    "metadata_ms": ("metadataRetrievalTime", "metadataRetrieval"),
    "planning_ms": ("planningTime",),
    "pool_wait_ms": ("poolWaitTime",),
    "pending_ms": ("pendingTime",),
    "peak_memory_bytes": ("memoryAllocated",),
}

TEXT_KEYS: Dict[str, str] = {
    "query_id": "queryId",
    "queue_name": "queueName",
    "request_type": "requestType",
    "username": "username",
    "error_text": "outcomeReason",
    "query_text": "queryText",
}


def _as_int(value: Any, field_name: str) -> int:
    """Coerce a JSON number (or numeric string) into an int."""
    if isinstance(value, bool):
        raise FieldExtractionError(
            f"{field_name}: expected a number, got {value!r}", field_name=field_name
        )
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise FieldExtractionError(
                f"{field_name}: expected a finite number, got {value!r}",
                field_name=field_name,
            )
        return int(value)
    if isinstance(value, str):
        return int(parse_decimal(value, field_name))
    raise FieldExtractionError(
        f"{field_name}: expected a number, got {value!r}", field_name=field_name
    )


def _first_present(obj: Dict[str, Any], keys: tuple) -> Optional[Any]:
    for key in keys:
        if obj.get(key) is not None:
            return obj[key]
    return None


def resolve_outcome(obj: Dict[str, Any]) -> str:
    """
    Determine the query outcome label.

    A string `outcome` is used as-is (upper-cased). Numeric codes, whether in
    `outcome` or `state`, are classified against QueryState; codes outside
    the enumeration yield "UNKNOWN(<code>)".
    """
    raw = obj.get("outcome")
    if raw is None:
        raw = obj.get("state")
    if raw is None:
        return ""
    if isinstance(raw, str):
        return raw.strip().upper()
    return classify_code(QueryState, _as_int(raw, "state")).label


def query_from_json(obj: Any) -> QueryRecord:
    """
    Build a QueryRecord from one decoded JSON object.

    Raises:
        FieldExtractionError: If the object is not a mapping, or start/finish
                              are missing or non-numeric
    """
    if not isinstance(obj, dict):
        raise FieldExtractionError(f"expected a JSON object, got {type(obj).__name__}")
    for key in ("start", "finish"):
        if obj.get(key) is None:
            raise FieldExtractionError(f"missing required field '{key}'", field_name=key)

    values: Dict[str, Any] = {
        "start": _as_int(obj["start"], "start"),
        "end": _as_int(obj["finish"], "finish"),
    }
    for field_name, keys in DURATION_KEYS.items():
        raw = _first_present(obj, keys)
        values[field_name] = 0 if raw is None else _as_int(raw, keys[0])

    cpu_ns = obj.get("executionCpuTimeNs")
    values["cpu_time_ms"] = (
        0 if cpu_ns is None
        else _as_int(cpu_ns, "executionCpuTimeNs") // NANOS_PER_MILLI
    )

    for field_name, key in TEXT_KEYS.items():
        raw = obj.get(key)
        values[field_name] = "" if raw is None else str(raw)

    outcome = resolve_outcome(obj)
    values["outcome"] = outcome
    values["failed"] = outcome == QueryState.FAILED.name
    return QueryRecord(**values)


class QueriesJsonParser(AbstractCaptureParser):
    """
    Parses queries.json captures into QueryRecord instances.

    Records whose start lies outside the inclusive [start_filter_ms,
    end_filter_ms] range are counted in ParseResult.filtered instead of
    being returned. A bound of None leaves that side open.
    """

    format_name = "queries.json"

    def __init__(
        self,
        start_filter_ms: Optional[int] = None,
        end_filter_ms: Optional[int] = None,
    ):
        super().__init__()
        self.start_filter_ms = start_filter_ms
        self.end_filter_ms = end_filter_ms
        self._reset()

    def _reset(self) -> None:
        self._filtered = 0

    def _finish(self) -> ParseResult:
        if self._filtered:
            logger.info(f"{self._filtered} queries fell outside the time filter")
        return ParseResult(
            records=tuple(self._records),
            errors=tuple(self._errors),
            filtered=self._filtered,
        )

    def in_range(self, record: QueryRecord) -> bool:
        if self.start_filter_ms is not None and record.start < self.start_filter_ms:
            return False
        if self.end_filter_ms is not None and record.start > self.end_filter_ms:
            return False
        return True

    def _handle_line(self, line: str, line_number: int) -> None:
        if not line.strip():
            return
        try:
            record = query_from_json(json.loads(line))
        except json.JSONDecodeError as e:
            self._record_error(CATEGORY_QUERY, f"invalid JSON: {e.msg}", line_number)
            return
        except RecursionError:
            self._record_error(CATEGORY_QUERY, "invalid JSON: nested too deeply", line_number)
            return
        except FieldExtractionError as e:
            self._record_error(CATEGORY_QUERY, str(e), line_number)
            return
        if not self.in_range(record):
            self._filtered += 1
            return
        self._emit(record)
