"""
Deduplication result models (ephemeral).
"""

from typing import Any

from pydantic import BaseModel, Field, model_validator


class DedupStats(BaseModel):
    """
    Counts from one deduplication pass.

    ``removed_count`` covers both true duplicates and orders with no
    extractable key; the two causes are also counted separately.
    """

    original_count: int = Field(0, ge=0)
    unique_count: int = Field(0, ge=0)
    removed_count: int = Field(0, ge=0)
    duplicate_count: int = Field(0, ge=0)
    unkeyable_count: int = Field(0, ge=0)

    @model_validator(mode="after")
    def check_counts(self) -> "DedupStats":
        if self.unique_count + self.removed_count != self.original_count:
            raise ValueError("unique_count + removed_count must equal original_count")
        if self.duplicate_count + self.unkeyable_count != self.removed_count:
            raise ValueError("duplicate_count + unkeyable_count must equal removed_count")
        return self


class DedupResult(BaseModel):
    """Unique orders (first occurrence per key, input order kept) plus stats."""

    unique_orders: list[Any] = Field(default_factory=list)
    stats: DedupStats = Field(default_factory=DedupStats)
