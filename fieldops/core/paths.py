"""
Helpers for reading values out of nested, loosely-shaped order documents.
"""

from collections.abc import Mapping, Sequence
from typing import Any


def get_path(document: Any, *path: str | int) -> Any:
    """
    Walk ``path`` through nested mappings and sequences.

    String steps index mappings, integer steps index sequences. Any missing
    step, or a step applied to the wrong container type, yields None.

    Examples:
        >>> get_path({"data": {"orderNo": "A1"}}, "data", "orderNo")
        'A1'
        >>> get_path({"orders": [{"id": 3}]}, "orders", 0, "id")
        3
        >>> get_path({"data": "text"}, "data", "orderNo") is None
        True
    """
    current = document
    for step in path:
        if isinstance(step, int):
            if isinstance(current, (str, bytes)) or not isinstance(current, Sequence):
                return None
            if step >= len(current) or step < -len(current):
                return None
            current = current[step]
        else:
            if not isinstance(current, Mapping):
                return None
            current = current.get(step)
        if current is None:
            return None
    return current


def first_present(document: Any, paths: Sequence[tuple[str | int, ...]]) -> Any:
    """
    Return the first value found along ``paths`` that is neither None nor an
    empty/whitespace-only string.
    """
    for path in paths:
        value = get_path(document, *path)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def as_mapping(value: Any) -> dict[str, Any]:
    """Return ``value`` as a dict, or an empty dict when it is not a mapping."""
    if isinstance(value, Mapping):
        return dict(value)
    return {}
