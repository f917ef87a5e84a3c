"""
Status aggregation for dashboard counts.
"""

from collections.abc import Iterable, Mapping
from typing import Any

from fieldops.core.models import StatusCounts, WorkOrderStatus
from fieldops.observability.metrics import record_status_counts


# Raw status -> bucket. Statuses missing here fall in no bucket.
STATUS_BUCKETS: dict[str, str] = {
    WorkOrderStatus.APPROVED.value: "approved",
    WorkOrderStatus.PENDING_REVIEW.value: "pending_review",
    WorkOrderStatus.IMPORTED.value: "pending_review",
    WorkOrderStatus.PENDING.value: "pending_review",
    WorkOrderStatus.FLAGGED.value: "flagged",
    WorkOrderStatus.FLAGGED_FOLLOWUP.value: "flagged",
    WorkOrderStatus.RESOLVED.value: "resolved",
    WorkOrderStatus.REJECTED.value: "rejected",
}

BUCKETS = ("approved", "pending_review", "flagged", "resolved", "rejected")


def bucket_for(status: str | None) -> str | None:
    """Return the bucket a status counts towards, or None."""
    if status is None:
        return None
    return STATUS_BUCKETS.get(str(status).strip())


def statuses_in_bucket(bucket: str) -> list[str]:
    """All raw statuses folded into ``bucket``."""
    return sorted(status for status, name in STATUS_BUCKETS.items() if name == bucket)


def _status_of(order: Any) -> str | None:
    if isinstance(order, Mapping):
        return order.get("status")
    return getattr(order, "status", None)


def aggregate(orders: Iterable[Any]) -> StatusCounts:
    """
    Count work orders per status bucket.

    Recomputed from scratch on every call. ``imported`` and ``pending`` fold
    into ``pending_review``; ``flagged_followup`` folds into ``flagged``.
    Unrecognised statuses are counted only in ``all``.

    Args:
        orders: WorkOrders, or mappings with a ``status`` key

    Returns:
        StatusCounts
    """
    counts = dict.fromkeys(BUCKETS, 0)
    total = 0

    for order in orders or ():
        total += 1
        bucket = bucket_for(_status_of(order))
        if bucket is not None:
            counts[bucket] += 1

    result = StatusCounts(**counts, all=total)
    record_status_counts(result.to_dict())
    return result
