"""
Core data models for the work-order ingestion pipeline.

All models use Pydantic for runtime validation and type safety.
"""

from .dedup import DedupResult, DedupStats
from .fetch_result import FetchResult
from .import_result import ImportResult, ImportSummary
from .raw_order import (
    ApiFetchOrder,
    ManualEntryOrder,
    RawOrder,
    SpreadsheetOrder,
    adapt_raw_order,
    raw_payload,
)
from .status_change import StatusChange
from .work_order import (
    DEFAULT_STATUS,
    KNOWN_STATUSES,
    Driver,
    Location,
    StatusCounts,
    WorkOrder,
    WorkOrderStatus,
)

__all__ = [
    "ApiFetchOrder",
    "DedupResult",
    "DedupStats",
    "DEFAULT_STATUS",
    "Driver",
    "FetchResult",
    "ImportResult",
    "ImportSummary",
    "KNOWN_STATUSES",
    "Location",
    "ManualEntryOrder",
    "RawOrder",
    "SpreadsheetOrder",
    "StatusChange",
    "StatusCounts",
    "WorkOrder",
    "WorkOrderStatus",
    "adapt_raw_order",
    "raw_payload",
]
