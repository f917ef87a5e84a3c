"""
Order deduplication by business key.
"""

from collections.abc import Iterable
from typing import Any

from fieldops.core.models import DedupResult, DedupStats
from fieldops.observability.logger import get_logger
from fieldops.observability.metrics import record_dedup
from fieldops.pipeline.identity import extract_key


logger = get_logger(__name__)


def dedupe(orders: Iterable[Any] | None) -> DedupResult:
    """
    Remove duplicate raw orders, keeping the first occurrence of each key.

    Single left-to-right pass. Orders with no extractable key are dropped
    and counted in ``unkeyable_count``; both duplicates and unkeyable orders
    count towards ``removed_count``. The input objects are returned as
    given, in input order.

    Args:
        orders: Raw order mappings or adapted raw order models

    Returns:
        DedupResult with the unique orders and pass statistics
    """
    if not orders:
        return DedupResult()

    unique: dict[str, Any] = {}
    original_count = 0
    duplicate_count = 0
    unkeyable_count = 0

    for order in orders:
        original_count += 1
        key = extract_key(order)
        if key is None:
            unkeyable_count += 1
        elif key in unique:
            duplicate_count += 1
        else:
            unique[key] = order

    stats = DedupStats(
        original_count=original_count,
        unique_count=len(unique),
        removed_count=duplicate_count + unkeyable_count,
        duplicate_count=duplicate_count,
        unkeyable_count=unkeyable_count,
    )

    logger.info(
        f"Deduplicated {original_count} orders: {stats.unique_count} unique, "
        f"{duplicate_count} duplicates, {unkeyable_count} without an order number"
    )
    record_dedup(stats.unique_count, duplicate_count, unkeyable_count)

    return DedupResult(unique_orders=list(unique.values()), stats=stats)
