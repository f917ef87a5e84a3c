"""
Work order filtering, sorting and pagination for list views.
"""

from collections.abc import Sequence
from datetime import date, datetime, time
from typing import Literal

from pydantic import BaseModel

from fieldops.core.models import WorkOrder
from fieldops.pipeline.status import bucket_for
from fieldops.utils.validation import validate_page

SortField = Literal["order_no", "service_date", "driver", "location", "status"]


class WorkOrderFilters(BaseModel):
    """
    Attributes:
        status: Exact status, or a bucket name ("flagged" also matches
            "flagged_followup")
        order_no: Case-insensitive substring of the order number
        driver: Case-insensitive substring of the driver name
        location: Case-insensitive substring of the location name
        date_from: First day (inclusive) of the resolved service date
        date_to: Last day (inclusive) of the resolved service date
    """

    status: str | None = None
    order_no: str | None = None
    driver: str | None = None
    location: str | None = None
    date_from: date | None = None
    date_to: date | None = None

    @property
    def is_empty(self) -> bool:
        return not any(self.model_dump().values())


def _contains(haystack: str | None, needle: str) -> bool:
    return needle.lower() in (haystack or "").lower()


def _matches_status(order: WorkOrder, status: str) -> bool:
    if order.status == status:
        return True
    return status == "flagged" and bucket_for(order.status) == "flagged"


def filter_orders(orders: Sequence[WorkOrder], filters: WorkOrderFilters) -> list[WorkOrder]:
    """
    Keep orders matching every set filter.

    Orders without a resolved date are excluded whenever a date bound is set.
    """
    start = datetime.combine(filters.date_from, time.min) if filters.date_from else None
    end = datetime.combine(filters.date_to, time.max) if filters.date_to else None

    matched = []
    for order in orders:
        if filters.status and not _matches_status(order, filters.status):
            continue
        if filters.order_no and not _contains(order.order_no, filters.order_no):
            continue
        if filters.driver and not _contains(order.driver.name if order.driver else None, filters.driver):
            continue
        if filters.location and not _contains(order.location.name if order.location else None, filters.location):
            continue
        if start or end:
            resolved = order.service_date
            if resolved is None:
                continue
            resolved = resolved.replace(tzinfo=None)
            if start and resolved < start:
                continue
            if end and resolved > end:
                continue
        matched.append(order)
    return matched


def _sort_value(order: WorkOrder, field: SortField):
    if field == "service_date":
        return order.service_date.replace(tzinfo=None) if order.service_date else None
    if field == "driver":
        return (order.driver.name or "").lower() if order.driver else ""
    if field == "location":
        return (order.location.name or "").lower() if order.location else ""
    if field == "status":
        return order.status or ""
    return order.order_no or ""


def sort_orders(orders: Sequence[WorkOrder], field: SortField, descending: bool = False) -> list[WorkOrder]:
    """
    Sort orders by ``field``. Missing dates sort last in either direction.
    """
    present = [o for o in orders if _sort_value(o, field) is not None]
    missing = [o for o in orders if _sort_value(o, field) is None]
    present.sort(key=lambda o: _sort_value(o, field), reverse=descending)
    return present + missing


def paginate(orders: Sequence[WorkOrder], page: int = 1, page_size: int = 10) -> list[WorkOrder]:
    """Return one 1-based page of orders."""
    page, page_size = validate_page(page, page_size)
    start = (page - 1) * page_size
    return list(orders[start:start + page_size])
