"""
RawOrder models: the three known shapes of an incoming order record.

Raw orders arrive as untyped mappings from manual entry, spreadsheet
uploads or the routing provider's API. ``adapt_raw_order`` classifies a
mapping into one of the tagged shapes below. Every shape requires an order
number, so a payload that yields no key cannot be adapted.
"""

from collections.abc import Mapping
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

from fieldops.pipeline.identity import extract_key

SOURCES = ("manual", "spreadsheet", "api")

API_MARKERS = ("searchResponse", "search_response", "completionDetails", "completion_response")


class _RawOrderBase(BaseModel):
    """
    Fields shared by every raw order shape.

    Attributes:
        order_no: Business key extracted from the payload
        payload: The original mapping, untouched
    """

    order_no: str = Field(..., min_length=1)
    payload: dict[str, Any]


class ManualEntryOrder(_RawOrderBase):
    """Order typed in by an operator."""

    source: Literal["manual"] = "manual"


class SpreadsheetOrder(_RawOrderBase):
    """
    Order read from an uploaded spreadsheet row.

    Attributes:
        extracted: Normalised column values for the row
    """

    source: Literal["spreadsheet"] = "spreadsheet"
    extracted: dict[str, Any] = Field(default_factory=dict)


class ApiFetchOrder(_RawOrderBase):
    """
    Order fetched from the routing provider.

    Attributes:
        search_response: Search endpoint document (service date, location, driver)
        completion_details: Completion endpoint document (end time, form, status)
    """

    source: Literal["api"] = "api"
    search_response: dict[str, Any] | None = None
    completion_details: dict[str, Any] | None = None

    class Config:
        json_schema_extra = {
            "example": {
                "source": "api",
                "order_no": "WO-1001",
                "payload": {
                    "orderNo": "WO-1001",
                    "searchResponse": {"data": {"date": "2024-01-01"}},
                },
                "search_response": {"data": {"date": "2024-01-01"}},
            }
        }


RawOrder = Annotated[
    Union[ManualEntryOrder, SpreadsheetOrder, ApiFetchOrder],
    Field(discriminator="source"),
]

_raw_order_adapter = TypeAdapter(RawOrder)


def detect_source(payload: Mapping[str, Any]) -> str:
    """
    Classify a raw mapping by the sections it carries.

    An explicit ``source`` field naming a known shape takes precedence.
    """
    declared = payload.get("source")
    if declared in SOURCES:
        return declared
    if any(isinstance(payload.get(marker), Mapping) for marker in API_MARKERS):
        return "api"
    if isinstance(payload.get("extracted"), Mapping):
        return "spreadsheet"
    return "manual"


def adapt_raw_order(raw: Any) -> ManualEntryOrder | SpreadsheetOrder | ApiFetchOrder | None:
    """
    Adapt a raw mapping into its tagged shape.

    Already-adapted models are returned as is.

    Returns:
        The adapted order, or None when the payload has no extractable key
    """
    if isinstance(raw, _RawOrderBase):
        return raw
    if not isinstance(raw, Mapping):
        return None

    key = extract_key(raw)
    if key is None:
        return None

    source = detect_source(raw)
    fields: dict[str, Any] = {"source": source, "order_no": key, "payload": dict(raw)}

    if source == "spreadsheet":
        extracted = raw.get("extracted")
        fields["extracted"] = dict(extracted) if isinstance(extracted, Mapping) else {}
    elif source == "api":
        search = raw.get("searchResponse") or raw.get("search_response")
        completion = raw.get("completionDetails") or raw.get("completion_response")
        fields["search_response"] = dict(search) if isinstance(search, Mapping) else None
        fields["completion_details"] = dict(completion) if isinstance(completion, Mapping) else None

    return _raw_order_adapter.validate_python(fields)


def raw_payload(raw: Any) -> dict[str, Any]:
    """Return the original mapping behind a raw order or adapted model."""
    if isinstance(raw, _RawOrderBase):
        return raw.payload
    if isinstance(raw, Mapping):
        return dict(raw)
    raise TypeError(f"Unsupported raw order type: {type(raw).__name__}")
