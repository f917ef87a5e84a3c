"""
FetchResult model: outcome of one order fetch for a date range (ephemeral).
"""

from datetime import date
from typing import Any

from pydantic import BaseModel, Field

from .work_order import WorkOrder


class FetchResult(BaseModel):
    """
    Attributes:
        start_date: First day requested
        end_date: Last day requested
        orders: Transformed work orders
        raw_orders: Raw order documents as returned, for a later import
        total_count: Count reported by the provider (falls back to len(raw_orders))
        error: Transport failure message; orders are empty when set
        warning: Provider-level notice, e.g. a success:false body with a code
    """

    start_date: date
    end_date: date
    orders: list[WorkOrder] = Field(default_factory=list)
    raw_orders: list[dict[str, Any]] = Field(default_factory=list)
    total_count: int = 0
    error: str | None = None
    warning: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
