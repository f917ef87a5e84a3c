"""
StatusChange model: audit entry for an explicit work order status transition.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, Field


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class StatusChange(BaseModel):
    """
    Attributes:
        change_id: Auto-increment primary key
        order_no: Which work order changed
        old_status: Status before the change (None if unknown)
        new_status: Status after the change
        changed_by: Acting user's id
        changed_user: Acting user's display name
        changed_at: When the change happened
    """

    change_id: int | None = None
    order_no: str = Field(..., min_length=1)
    old_status: str | None = None
    new_status: str = Field(..., min_length=1)
    changed_by: str | None = None
    changed_user: str | None = None
    changed_at: datetime = Field(default_factory=_utc_now)

    class Config:
        json_schema_extra = {
            "example": {
                "change_id": 1,
                "order_no": "WO-1001",
                "old_status": "pending_review",
                "new_status": "approved",
                "changed_by": "0b6c7a4e-2f43-4bb2-9d0e-1c1b2c3d4e5f",
                "changed_user": "jsmith",
            }
        }
