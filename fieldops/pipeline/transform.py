"""
Order transformation: raw or provider orders into canonical WorkOrders.

Fields are resolved from the known nested locations in priority order.
The resolved service date follows a fixed fallback chain:

1. completion end time (local time reported by the driver app)
2. service date from the search response
3. the raw record's timestamp

An unparsable candidate counts as absent. When every candidate is absent
the resolved date is None; it never defaults to the current time.
"""

import json
import uuid
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any

from fieldops.core.models import DEFAULT_STATUS, Driver, Location, WorkOrder, raw_payload
from fieldops.core.paths import as_mapping, first_present, get_path
from fieldops.observability.logger import get_logger
from fieldops.observability.metrics import date_resolution_total, increment_counter
from fieldops.pipeline.identity import extract_key


logger = get_logger(__name__)

END_TIME_PATHS = (
    ("completion_response", "orders", 0, "data", "endTime", "localTime"),
    ("completionDetails", "data", "endTime", "localTime"),
    ("completionDetails", "orders", 0, "data", "endTime", "localTime"),
    ("completion_response", "data", "endTime", "localTime"),
)

SEARCH_DATE_PATHS = (
    ("searchResponse", "data", "date"),
    ("search_response", "data", "date"),
    ("data", "date"),
    ("extracted", "date"),
    ("service_date",),
)

TIMESTAMP_PATHS = (("timestamp",),)

ORDER_NO_PATHS = (
    ("order_no",),
    ("searchResponse", "data", "orderNo"),
    ("search_response", "data", "orderNo"),
)

PROVIDER_STATUS_PATHS = (
    ("completion_response", "orders", 0, "data", "status"),
    ("completion_response", "data", "status"),
    ("completionDetails", "data", "status"),
    ("completionDetails", "orders", 0, "data", "status"),
    ("optimoroute_status",),
)


def parse_datetime(value: Any) -> datetime | None:
    """
    Parse an ISO-8601 date or datetime, returning None for anything invalid.

    Examples:
        >>> parse_datetime("2024-01-05T10:00:00")
        datetime.datetime(2024, 1, 5, 10, 0)
        >>> parse_datetime("2024-01-01")
        datetime.datetime(2024, 1, 1, 0, 0)
        >>> parse_datetime("not-a-date") is None
        True
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"

    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def _first_datetime(document: Mapping[str, Any], paths) -> datetime | None:
    for path in paths:
        parsed = parse_datetime(get_path(document, *path))
        if parsed is not None:
            return parsed
    return None


def resolve_service_date(raw: Any) -> datetime | None:
    """
    Resolve a raw order's service date through the fallback chain.

    Returns:
        The first valid candidate, or None
    """
    document = _document(raw)
    for source, paths in (
        ("end_time", END_TIME_PATHS),
        ("search_date", SEARCH_DATE_PATHS),
        ("timestamp", TIMESTAMP_PATHS),
    ):
        resolved = _first_datetime(document, paths)
        if resolved is not None:
            increment_counter(date_resolution_total, source=source)
            return resolved

    increment_counter(date_resolution_total, source="none")
    return None


def transform(raw: Any) -> WorkOrder:
    """
    Map one raw or provider order into a canonical WorkOrder.

    Status is the record's own ``status`` verbatim when present, otherwise
    ``pending_review``.

    Args:
        raw: Raw order mapping, adapted raw order model, or a stored row

    Returns:
        WorkOrder
    """
    document = _document(raw)
    search_data = as_mapping(first_present(document, (("searchResponse", "data"), ("search_response", "data"))))
    completion = as_mapping(first_present(document, (("completionDetails",), ("completion_response",))))
    form = as_mapping(first_present(completion, (("data", "form"), ("orders", 0, "data", "form"))))

    order_no = extract_key(document) or _text(first_present(document, ORDER_NO_PATHS)) or "N/A"
    status = document.get("status")
    if not isinstance(status, str) or not status.strip():
        status = DEFAULT_STATUS
    order_id = _text(document.get("id")) or f"temp-{uuid.uuid4().hex[:13]}"

    logger.debug(f"Transforming order: {order_no}")

    return WorkOrder(
        id=order_id,
        order_no=order_no,
        status=status,
        timestamp=parse_datetime(document.get("timestamp")),
        service_date=resolve_service_date(document),
        end_time=_first_datetime(document, END_TIME_PATHS),
        service_notes=_text(search_data.get("notes")) or "",
        tech_notes=_text(form.get("note")) or _text(get_path(completion, "data", "note")) or "",
        notes=_text(document.get("notes")) or "",
        qc_notes=_text(document.get("qc_notes")) or "",
        resolution_notes=_text(document.get("resolution_notes")) or "",
        location=extract_location(document, search_data),
        driver=extract_driver(document, search_data),
        lds=extract_lds(search_data) or _text(document.get("lds")) or "",
        has_images=bool(form.get("images")),
        signature_url=_text(get_path(form, "signature", "url")),
        tracking_url=_text(first_present(completion, (("data", "tracking_url"), ("data", "trackingUrl")))),
        completion_status=_text(first_present(completion, (("data", "status"), ("orders", 0, "data", "status")))),
        optimoroute_status=_text(first_present(document, PROVIDER_STATUS_PATHS)),
        search_response=as_mapping(first_present(document, (("searchResponse",), ("search_response",)))) or None,
        completion_response=completion or None,
        **_attribution(document),
    )


def transform_many(raws) -> list[WorkOrder]:
    return [transform(raw) for raw in raws]


def extract_driver(document: Mapping[str, Any], search_data: Mapping[str, Any]) -> Driver | None:
    """
    Resolve the assigned driver from the search data, the schedule
    information or the record itself.
    """
    driver = search_data.get("driver")
    if isinstance(driver, Mapping):
        return Driver(
            id=_text(driver.get("id") or driver.get("driverId")),
            name=_text(driver.get("name") or driver.get("driverName")),
        )

    if search_data.get("driverName"):
        return Driver(id=_text(search_data.get("driverId")), name=_text(search_data["driverName"]))

    schedule = first_present(
        document,
        (
            ("scheduleInformation",),
            ("searchResponse", "scheduleInformation"),
            ("search_response", "scheduleInformation"),
        ),
    )
    if isinstance(schedule, Mapping) and schedule.get("driverName"):
        return Driver(
            id=_text(schedule.get("driverId") or schedule.get("driverSerial")),
            name=_text(schedule["driverName"]),
        )

    driver = document.get("driver")
    if isinstance(driver, Mapping):
        return Driver(id=_text(driver.get("id")), name=_text(driver.get("name")))
    if isinstance(driver, str) and driver.strip():
        return Driver(name=driver.strip())

    return None


def extract_location(document: Mapping[str, Any], search_data: Mapping[str, Any]) -> Location:
    """
    Resolve the service location name and address parts.

    The name comes from the first of the search data location, its
    locationName fields, the record's own location, or the customer.
    """
    name = None
    details: Mapping[str, Any] = {}

    location = search_data.get("location")
    own_location = document.get("location")
    customer = search_data.get("customer")

    if location:
        if isinstance(location, Mapping):
            details = location
            name = location.get("name") or location.get("locationName")
        elif isinstance(location, str):
            name = location
    elif search_data.get("locationName") or search_data.get("location_name"):
        name = search_data.get("locationName") or search_data.get("location_name")
    elif own_location:
        if isinstance(own_location, Mapping):
            details = own_location
            name = own_location.get("name") or own_location.get("locationName")
        elif isinstance(own_location, str):
            name = own_location
    elif isinstance(customer, Mapping):
        name = customer.get("name")
        if isinstance(customer.get("location"), Mapping):
            details = customer["location"]

    if not name:
        name = _text(get_path(document, "data", "location", "locationName")) or _text(document.get("location_name"))

    def part(field: str) -> str | None:
        return _text(details.get(field) or search_data.get(field) or document.get(field))

    return Location(
        name=_text(name) or "N/A",
        address=part("address"),
        city=part("city"),
        state=part("state"),
        zip=part("zip"),
    )


def extract_lds(search_data: Mapping[str, Any]) -> str | None:
    """LDS date from customField5, trimmed to its date part."""
    lds = _text(search_data.get("customField5"))
    if lds and " " in lds:
        lds = lds.split(" ")[0]
    return lds


def _attribution(document: Mapping[str, Any]) -> dict[str, Any]:
    fields: dict[str, Any] = {}
    for action in ("approved", "flagged", "resolved", "rejected", "last_action"):
        fields[f"{action}_by"] = _text(document.get(f"{action}_by"))
        fields[f"{action}_user"] = _text(document.get(f"{action}_user"))
        fields[f"{action}_at"] = parse_datetime(document.get(f"{action}_at"))
    return fields


def _document(raw: Any) -> dict[str, Any]:
    document = dict(raw_payload(raw))
    # Stored rows may hold the provider documents as JSON text.
    for field in ("search_response", "completion_response"):
        value = document.get(field)
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
            except ValueError:
                parsed = None
            document[field] = parsed if isinstance(parsed, Mapping) else None
    # Spreadsheet columns fill in fields the record does not set itself.
    extracted = document.get("extracted")
    if isinstance(extracted, Mapping):
        for key, value in extracted.items():
            if document.get(key) is None:
                document[key] = value
    return document


def _text(value: Any) -> str | None:
    if value is None or isinstance(value, (Mapping, list)):
        return None
    text = str(value).strip()
    return text or None
