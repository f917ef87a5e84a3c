"""
Order identity extraction.

A raw order's business key is its order number, which may live at
different paths depending on where the record came from.
"""

from collections.abc import Mapping
from typing import Any

from fieldops.core.paths import get_path

# Probed in this order; the first non-empty value wins.
KEY_PATHS: tuple[tuple[str, ...], ...] = (
    ("data", "orderNo"),
    ("orderNo",),
    ("completionDetails", "orderNo"),
    ("extracted", "orderNo"),
)


def extract_key(raw: Any) -> str | None:
    """
    Extract the order number from a raw order.

    Accepts a plain mapping or an adapted raw-order model (its original
    payload is probed). Returns None when no candidate path holds a
    non-empty value.

    Examples:
        >>> extract_key({"data": {"orderNo": "A"}, "orderNo": "B"})
        'A'
        >>> extract_key({"extracted": {"orderNo": 1042}})
        '1042'
        >>> extract_key({"notes": "no key"}) is None
        True
    """
    payload = getattr(raw, "payload", raw)
    if not isinstance(payload, Mapping):
        return None

    for path in KEY_PATHS:
        value = get_path(payload, *path)
        if value is None or isinstance(value, (Mapping, list, bool)):
            continue
        key = str(value).strip()
        if key:
            return key
    return None
