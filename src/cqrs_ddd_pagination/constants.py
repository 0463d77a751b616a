"""Defaults, integer bounds, and token grammar patterns."""

from __future__ import annotations

import re

# Largest integer every JSON consumer can represent exactly (2**53 - 1).
MAX_SAFE_INTEGER = 9_007_199_254_740_991

DEFAULT_PAGE = 1
DEFAULT_SIZE = 10
DEFAULT_MAX_SIZE = 100

# Sort clause: property[<name>];direction[asc|desc];nulls-first[true|false];
SORT_SEPARATOR = ";"
SORT_PATTERNS: dict[str, re.Pattern[str]] = {
    "property": re.compile(r"property\[(?P<property>.+)\]", re.DOTALL),
    "direction": re.compile(r"direction\[(?P<direction>asc|desc)\]"),
    "nulls_first": re.compile(r"nulls-first\[(?P<nulls_first>true|false)\]"),
}

# Filter token: up to four operator segments, e.g. $and:$not:$eq:<value>
FILTER_OPERAND_SEPARATOR = ":"
FILTER_MAX_OPERATORS = 4
FILTER_LIST_SEPARATOR = ","

ISO_DATE_PATTERN = re.compile(
    r"\d{4}-[01]\d-[0-3]\dT[0-2]\d:[0-5]\d(?::[0-5]\d(?:\.\d+)?)?"
    r"(?:[+-][0-2]\d:[0-5]\d|Z)"
)
