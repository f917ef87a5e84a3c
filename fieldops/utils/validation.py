"""
Input validation utilities for the work-order pipeline.

Reusable checks for order numbers, statuses, date ranges and paging
parameters, applied at the boundaries where caller input reaches the
store or a transport.
"""

import re
from datetime import date, datetime
from typing import Iterable


class ValidationError(ValueError):
    """Raised when input validation fails."""
    pass


def validate_order_no(order_no: str, field_name: str = "order_no") -> str:
    """
    Validate an order number.

    Order numbers must be non-empty strings made of letters, digits,
    spaces and the separators ``- _ . / #``.

    Args:
        order_no: The order number to validate
        field_name: Name of the field (for error messages)

    Returns:
        The validated order number (stripped of whitespace)

    Raises:
        ValidationError: If validation fails

    Examples:
        >>> validate_order_no("WO-1001")
        'WO-1001'
        >>> validate_order_no("  A/22  ")
        'A/22'
    """
    if not order_no or not isinstance(order_no, str):
        raise ValidationError(f"{field_name} must be a non-empty string")

    order_no = order_no.strip()

    if not order_no:
        raise ValidationError(f"{field_name} cannot be empty or whitespace-only")

    if not re.match(r'^[A-Za-z0-9_\-\./# ]+$', order_no):
        raise ValidationError(
            f"{field_name} contains invalid characters. "
            "Only letters, digits, spaces and - _ . / # are allowed."
        )

    if len(order_no) > 255:
        raise ValidationError(f"{field_name} exceeds maximum length of 255 characters")

    return order_no



def validate_status(status: str, allowed: Iterable[str], field_name: str = "status") -> str:
    """
    Validate a status value against an allowed set.

    Args:
        status: Status to validate
        allowed: Accepted status values
        field_name: Name of the field (for error messages)

    Returns:
        The validated status (stripped of whitespace)

    Raises:
        ValidationError: If the status is empty or not allowed
    """
    if not status or not isinstance(status, str):
        raise ValidationError(f"{field_name} must be a non-empty string")

    status = status.strip()
    allowed = sorted(allowed)
    if status not in allowed:
        raise ValidationError(
            f"{field_name} '{status}' is not one of: {', '.join(allowed)}"
        )

    return status


def validate_date_range(
    start: date | datetime,
    end: date | datetime,
    max_days: int = 366,
) -> tuple[date, date]:
    """
    Validate an inclusive date range.

    Datetimes are reduced to their date part.

    Returns:
        (start, end) as dates

    Raises:
        ValidationError: If either bound is missing, start is after end,
            or the range is longer than max_days

    Examples:
        >>> validate_date_range(date(2024, 1, 1), date(2024, 1, 7))
        (datetime.date(2024, 1, 1), datetime.date(2024, 1, 7))
    """
    if start is None or end is None:
        raise ValidationError("Please select both start and end dates")

    if isinstance(start, datetime):
        start = start.date()
    if isinstance(end, datetime):
        end = end.date()

    if not isinstance(start, date) or not isinstance(end, date):
        raise ValidationError("start and end must be dates")

    if start > end:
        raise ValidationError(f"start date {start} is after end date {end}")

    if (end - start).days + 1 > max_days:
        raise ValidationError(f"date range exceeds maximum of {max_days} days")

    return start, end


def validate_batch_size(batch_size: int, field_name: str = "batch_size", max_size: int = 1000) -> int:
    """
    Validate an import batch size.

    Raises:
        ValidationError: If not a positive integer up to max_size
    """
    if not isinstance(batch_size, int) or isinstance(batch_size, bool):
        raise ValidationError(f"{field_name} must be an integer, got {type(batch_size).__name__}")

    if batch_size <= 0:
        raise ValidationError(f"{field_name} must be a positive integer, got {batch_size}")

    if batch_size > max_size:
        raise ValidationError(f"{field_name} exceeds maximum of {max_size}")

    return batch_size


def validate_page(page: int, page_size: int, max_page_size: int = 500) -> tuple[int, int]:
    """
    Validate 1-based pagination parameters.

    Raises:
        ValidationError: If page < 1 or page_size is outside 1..max_page_size
    """
    if not isinstance(page, int) or page < 1:
        raise ValidationError(f"page must be a positive integer, got {page}")

    if not isinstance(page_size, int) or page_size < 1:
        raise ValidationError(f"page_size must be a positive integer, got {page_size}")

    if page_size > max_page_size:
        raise ValidationError(f"page_size exceeds maximum of {max_page_size}")

    return page, page_size
