"""
WorkOrder model: the application's canonical, normalized order.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class WorkOrderStatus(str, Enum):
    """Statuses the back office knows how to bucket."""

    PENDING_REVIEW = "pending_review"
    IMPORTED = "imported"
    PENDING = "pending"
    APPROVED = "approved"
    FLAGGED = "flagged"
    FLAGGED_FOLLOWUP = "flagged_followup"
    RESOLVED = "resolved"
    REJECTED = "rejected"


DEFAULT_STATUS = WorkOrderStatus.PENDING_REVIEW.value

KNOWN_STATUSES = frozenset(status.value for status in WorkOrderStatus)


class Location(BaseModel):
    name: str = "N/A"
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip: str | None = None


class Driver(BaseModel):
    id: str | None = None
    name: str | None = None


class WorkOrder(BaseModel):
    """
    Canonical work order used for display and persistence.

    Created by the order transformer; the status only changes through an
    explicit status update (approve, flag, resolve, reject).

    Attributes:
        id: Store identifier, or a temporary id for unsaved orders
        order_no: Business key
        status: Review status, a WorkOrderStatus value or a remote status verbatim
        timestamp: When the raw order was recorded
        service_date: Resolved date (completion end time, then service date,
            then timestamp)
        end_time: Completion end time when the provider reported one
        optimoroute_status: Routing provider's own order status
    """

    id: str
    order_no: str = Field(..., min_length=1)
    status: str = DEFAULT_STATUS
    timestamp: datetime | None = None
    service_date: datetime | None = None
    end_time: datetime | None = None

    service_notes: str = ""
    tech_notes: str = ""
    notes: str = ""
    qc_notes: str = ""
    resolution_notes: str = ""

    location: Location | None = None
    driver: Driver | None = None
    lds: str = ""

    has_images: bool = False
    signature_url: str | None = None
    tracking_url: str | None = None
    completion_status: str | None = None
    optimoroute_status: str | None = None

    approved_by: str | None = None
    approved_user: str | None = None
    approved_at: datetime | None = None
    flagged_by: str | None = None
    flagged_user: str | None = None
    flagged_at: datetime | None = None
    resolved_by: str | None = None
    resolved_user: str | None = None
    resolved_at: datetime | None = None
    rejected_by: str | None = None
    rejected_user: str | None = None
    rejected_at: datetime | None = None
    last_action_by: str | None = None
    last_action_user: str | None = None
    last_action_at: datetime | None = None

    search_response: dict[str, Any] | None = None
    completion_response: dict[str, Any] | None = None

    @property
    def date(self) -> datetime | None:
        """The resolved service date."""
        return self.service_date

    class Config:
        json_schema_extra = {
            "example": {
                "id": "7d0c1f7e-4d7b-4b53-a0a5-3b1f1e0b9b11",
                "order_no": "WO-1001",
                "status": "pending_review",
                "service_date": "2024-01-05T10:00:00",
                "location": {"name": "Main St Depot", "city": "Springfield"},
                "driver": {"id": "D-7", "name": "Sam Lee"},
                "optimoroute_status": "success",
            }
        }


class StatusCounts(BaseModel):
    """
    Per-bucket work order counts, recomputed on demand.

    ``all`` counts every order, including statuses that fall in no bucket.
    """

    approved: int = 0
    pending_review: int = 0
    flagged: int = 0
    resolved: int = 0
    rejected: int = 0
    all: int = 0

    def to_dict(self) -> dict[str, int]:
        return self.model_dump()
