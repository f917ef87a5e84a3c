"""
Presentation adapter: turn pipeline results into user-facing notifications.

Pure functions only. The pipeline returns structured results and the
presentation layer decides how to show them (toast, banner, log line).
"""

from typing import Literal

from pydantic import BaseModel

from fieldops.core.models import FetchResult, ImportResult, ImportSummary

Level = Literal["success", "info", "warning", "error"]


class Notification(BaseModel):
    level: Level
    message: str


def describe_import(result: ImportResult | ImportSummary | None) -> Notification:
    """
    Describe an import outcome.

    Examples:
        >>> describe_import(None).message
        'No orders to import'
    """
    if isinstance(result, ImportSummary):
        summary = result
        result = summary.as_result()
        if result is None and summary.skipped_existing:
            return Notification(
                level="success",
                message=f"Successfully imported 0 orders ({summary.duplicates} duplicates skipped)",
            )

    if result is None:
        return Notification(level="error", message="No orders to import")

    if result.success:
        return Notification(
            level="success",
            message=f"Successfully imported {result.imported} orders ({result.duplicates} duplicates skipped)",
        )

    if result.imported > 0:
        return Notification(
            level="warning",
            message=(
                f"Imported {result.imported} orders with {result.errors} errors "
                f"({result.duplicates} duplicates skipped)"
            ),
        )

    if result.errors == 1 and result.duplicates == 0 and result.error_details:
        return Notification(level="error", message=f"Error importing orders: {result.error_details[0]}")

    return Notification(
        level="error",
        message=f"Import failed with {result.errors} errors ({result.duplicates} duplicates skipped)",
    )


def describe_fetch(result: FetchResult) -> Notification:
    if result.error:
        return Notification(level="error", message=f"Error: {result.error}")
    if result.warning:
        return Notification(level="warning", message=result.warning)
    return Notification(level="success", message=f"Retrieved {result.total_count} orders")
