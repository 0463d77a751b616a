"""Primitive query-parameter parsers.

Every numeric acceptance in the package goes through the safe-integer
predicates below: out-of-range or malformed values are dropped, never
clamped and never raised.
"""

from __future__ import annotations

import re
from typing import Any

from .constants import MAX_SAFE_INTEGER

_DIGITS = re.compile(r"[0-9]+")
_MAX_DIGITS = len(str(MAX_SAFE_INTEGER))


def first_value(param: Any) -> str | None:
    """Return the string value of a single or repeated query parameter."""
    if isinstance(param, str):
        return param
    if isinstance(param, (list, tuple)) and param and isinstance(param[0], str):
        return param[0]
    return None


def is_safe_integer(num: Any) -> bool:
    if isinstance(num, bool) or not isinstance(num, int):
        return False
    return -MAX_SAFE_INTEGER <= num <= MAX_SAFE_INTEGER


def is_safe_positive_integer(num: Any) -> bool:
    return is_safe_integer(num) and num > 0


def is_safe_non_negative_integer(num: Any) -> bool:
    return is_safe_integer(num) and num >= 0


def parse_int_param(param: Any) -> int | None:
    """Parse an unsigned decimal string into a safe integer, else ``None``."""
    raw = first_value(param)
    if raw is None or len(raw) > _MAX_DIGITS or not _DIGITS.fullmatch(raw):
        return None
    parsed = int(raw)
    return parsed if is_safe_integer(parsed) else None


def parse_bool_param(param: Any) -> bool | None:
    """Accept exactly ``"true"`` or ``"false"``."""
    raw = first_value(param)
    if raw == "true":
        return True
    if raw == "false":
        return False
    return None


def normalize_query(items: Any) -> dict[str, str | list[str]]:
    """Collapse ``(key, value)`` pairs into a raw query mapping.

    Repeated keys become lists in encounter order; single keys stay strings.
    Accepts ``urllib.parse.parse_qsl`` output or a framework's multi-items.
    """
    query: dict[str, str | list[str]] = {}
    for key, value in items:
        existing = query.get(key)
        if existing is None:
            query[key] = value
        elif isinstance(existing, list):
            existing.append(value)
        else:
            query[key] = [existing, value]
    return query
