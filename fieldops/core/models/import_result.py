"""
ImportResult and ImportSummary models (ephemeral, never persisted).
"""

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field

from .dedup import DedupStats


class ImportResult(BaseModel):
    """
    Outcome of one bulk import submission.

    Produced once per submission, never retried or mutated. Serialises with
    the transport's ``errorDetails`` spelling.

    Attributes:
        success: True when the transport reported no errors
        total: Orders submitted
        imported: Orders newly stored
        duplicates: Orders skipped because the store already held them
        errors: Orders that failed (1 for a transport-level failure)
        error_details: One message per failure
    """

    success: bool
    total: int = Field(..., ge=0)
    imported: int = Field(..., ge=0)
    duplicates: int = Field(..., ge=0)
    errors: int = Field(..., ge=0)
    error_details: list[str] | None = Field(default=None, alias="errorDetails")

    @property
    def is_partial(self) -> bool:
        """Some orders imported while others failed."""
        return self.imported > 0 and self.errors > 0

    @property
    def outcome(self) -> str:
        if self.success:
            return "success"
        if self.is_partial:
            return "partial"
        return "failure"

    @classmethod
    def from_response(cls, data: Any, submitted: int) -> "ImportResult":
        """
        Parse an import transport response.

        ``total`` defaults to the number of orders submitted and a top-level
        ``error`` message is appended to the error details.

        Raises:
            TypeError: If the response is not a mapping
            pydantic.ValidationError: If a required count is missing or invalid
        """
        if not isinstance(data, Mapping):
            raise TypeError(f"Malformed import response: expected an object, got {type(data).__name__}")

        fields = dict(data)
        fields.setdefault("total", submitted)

        details = fields.get("errorDetails", fields.pop("error_details", None))
        if details is not None and not isinstance(details, list):
            details = [str(details)]
        if fields.get("error"):
            details = [*(details or []), str(fields["error"])]
        fields["errorDetails"] = [str(d) for d in details] if details is not None else None

        return cls.model_validate(fields)

    @classmethod
    def transport_failure(cls, submitted: int, message: str) -> "ImportResult":
        return cls(
            success=False,
            total=submitted,
            imported=0,
            duplicates=0,
            errors=1,
            error_details=[message],
        )

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)

    class Config:
        frozen = True
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "success": False,
                "total": 50,
                "imported": 47,
                "duplicates": 2,
                "errors": 1,
                "errorDetails": ["Error inserting order: value too long"],
            }
        }


class ImportSummary(BaseModel):
    """
    Merged outcome of a coordinated import (dedupe plus one or more batches).

    Attributes:
        dedup: Deduplication statistics for the submitted orders
        skipped_existing: Orders dropped before submission because the store
            already held their key
        batches: One ImportResult per submitted batch, in submission order
    """

    dedup: DedupStats
    skipped_existing: int = 0
    batches: list[ImportResult] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(batch.total for batch in self.batches)

    @property
    def imported(self) -> int:
        return sum(batch.imported for batch in self.batches)

    @property
    def duplicates(self) -> int:
        return sum(batch.duplicates for batch in self.batches) + self.skipped_existing

    @property
    def errors(self) -> int:
        return sum(batch.errors for batch in self.batches)

    @property
    def error_details(self) -> list[str]:
        return [detail for batch in self.batches for detail in (batch.error_details or [])]

    @property
    def success(self) -> bool:
        return all(batch.success for batch in self.batches)

    def as_result(self) -> ImportResult | None:
        """Collapse the batches into a single ImportResult, or None if nothing was submitted."""
        if not self.batches:
            return None
        return ImportResult(
            success=self.success,
            total=self.total,
            imported=self.imported,
            duplicates=self.duplicates,
            errors=self.errors,
            error_details=self.error_details or None,
        )
