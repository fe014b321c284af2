"""Defensive accessors for untyped JSON structures.

Every helper returns an absence (``None`` / empty container) instead of
raising when a key is missing or holds the wrong type.
"""

from __future__ import annotations

import math
from typing import Any


def get_dict(obj: object, key: str) -> dict[str, Any]:
    if not isinstance(obj, dict):
        return {}
    value = obj.get(key)
    return value if isinstance(value, dict) else {}


def get_list(obj: object, key: str) -> list[Any]:
    if not isinstance(obj, dict):
        return []
    value = obj.get(key)
    return value if isinstance(value, list) else []


def get_str(obj: object, key: str) -> str | None:
    if not isinstance(obj, dict):
        return None
    value = obj.get(key)
    return value if isinstance(value, str) else None


def get_float(obj: object, key: str) -> float | None:
    if not isinstance(obj, dict):
        return None
    value = obj.get(key)
    # bool is an int subclass
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return float(value)
        except OverflowError:
            return None
    return None


def get_int(obj: object, key: str) -> int | None:
    value = get_float(obj, key)
    if value is None or not math.isfinite(value):
        return None
    return int(value)


def str_map(obj: object) -> dict[str, str]:
    """Keep only the string-valued entries of a mapping."""
    if not isinstance(obj, dict):
        return {}
    return {str(k): v for k, v in obj.items() if isinstance(v, str)}


def first_dict(items: list[Any]) -> dict[str, Any]:
    """First element of *items* if it is a mapping, else empty."""
    if items and isinstance(items[0], dict):
        return items[0]
    return {}
