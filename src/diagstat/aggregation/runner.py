"""
Runs a set of independent aggregators over one record sequence.

Aggregators never observe each other's state, so they can run on a thread
pool; the sequential path is the default and produces identical results.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Hashable, Iterable, Mapping, Sequence

from ..validation import ErrorSeverity, handle_error, validate_positive_integer
from .base import Aggregator

logger = logging.getLogger(__name__)


def run_aggregators(
    aggregators: Mapping[Hashable, Aggregator],
    records: Iterable[Any],
    parallel: bool = False,
    max_workers: int = 4,
) -> Dict[Hashable, Any]:
    """
    Feed the same records to every aggregator and collect their results.

    Args:
        aggregators: Name -> aggregator. Each aggregator is consumed once.
        records: The parsed record sequence (materialized once if it is an
                 iterator, so every aggregator sees every record).
        parallel: Run the aggregators on a ThreadPoolExecutor.
        max_workers: Pool size when parallel is set.

    Returns:
        Name -> finalized result, in the same order as `aggregators`.
    """
    if not isinstance(records, Sequence):
        records = tuple(records)

    if not parallel or len(aggregators) < 2:
        return {name: aggregator.consume(records) for name, aggregator in aggregators.items()}

    max_workers = validate_positive_integer(max_workers, min_value=1, field_name="max_workers")
    logger.debug(f"Running {len(aggregators)} aggregators on {max_workers} threads")
    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="Aggregator") as executor:
        futures = {
            name: executor.submit(aggregator.consume, records)
            for name, aggregator in aggregators.items()
        }
        results: Dict[Hashable, Any] = {}
        for name, future in futures.items():
            try:
                results[name] = future.result()
            except Exception as e:
                handle_error(
                    error=e,
                    context=f"aggregator {name}",
                    severity=ErrorSeverity.ERROR,
                    reraise=True,
                    logger=logger,
                )
    return results
