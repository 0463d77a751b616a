"""
Filter-token grammar.

A filter is supplied per column as ``filter[<column>]=<token>`` and may be
repeated. A token is up to four ``$``-prefixed operator segments followed by
a literal value, separated by colons::

    filter[created_at]=$or:$not:$gte:2024-01-01T00:00:00Z

The scan stops at the first segment that is not an operator; the rest of
the raw string is the value, so values may contain colons. A value that
itself starts with ``$`` cannot be expressed.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from .constants import (
    FILTER_LIST_SEPARATOR,
    FILTER_MAX_OPERATORS,
    FILTER_OPERAND_SEPARATOR,
    ISO_DATE_PATTERN,
)

NEGATION = "$not"


class GroupOperator(str, Enum):
    AND = "$and"
    OR = "$or"


class QueryOperator(str, Enum):
    """Comparison operators accepted in filter tokens."""

    EQ = "$eq"
    NE = "$ne"
    GT = "$gt"
    GTE = "$gte"
    LT = "$lt"
    LTE = "$lte"
    IN = "$in"
    NIN = "$nin"
    LIKE = "$like"
    ILIKE = "$ilike"
    CONTAINS = "$contains"
    OVERLAP = "$overlap"
    EXISTS = "$exists"


_GROUP_OPERATORS = {op.value: op for op in GroupOperator}
_QUERY_OPERATORS = {op.value: op for op in QueryOperator}
_LIST_OPERATORS = frozenset({QueryOperator.IN, QueryOperator.NIN, QueryOperator.CONTAINS})

FilterValue = str | list[str] | datetime | None


@dataclass(frozen=True)
class FilterToken:
    """One parsed predicate on a column."""

    group: GroupOperator = GroupOperator.AND
    negate: bool = False
    operator: QueryOperator = QueryOperator.EQ
    value: FilterValue = None


ColumnsFilters = dict[str, list[FilterToken]]


def coerce_date(value: str) -> str | datetime:
    """Convert an ISO-8601 date-time string to ``datetime``; keep others as-is."""
    if not ISO_DATE_PATTERN.fullmatch(value):
        return value
    normalized = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        return datetime.fromisoformat(normalized)
    except ValueError:
        # pattern-shaped but not a calendar date, e.g. 2024-19-39
        return value


def coerce_value(operator: QueryOperator, raw: str) -> FilterValue:
    if operator in _LIST_OPERATORS:
        return raw.split(FILTER_LIST_SEPARATOR)
    if operator is QueryOperator.ILIKE:
        return f"%{raw}%"
    return coerce_date(raw)


def parse_filter_token(raw: Any) -> FilterToken | None:
    """Parse one token; ``None`` when it carries no value."""
    if not isinstance(raw, str):
        return None
    segments = raw.split(FILTER_OPERAND_SEPARATOR)
    group = GroupOperator.AND
    negate = False
    operator = QueryOperator.EQ
    for index, segment in enumerate(segments[:FILTER_MAX_OPERATORS]):
        if not segment.startswith("$"):
            literal = FILTER_OPERAND_SEPARATOR.join(segments[index:])
            return FilterToken(
                group=group,
                negate=negate,
                operator=operator,
                value=coerce_value(operator, literal),
            )
        if segment == NEGATION:
            negate = True
        elif segment in _GROUP_OPERATORS:
            group = _GROUP_OPERATORS[segment]
        elif segment in _QUERY_OPERATORS:
            operator = _QUERY_OPERATORS[segment]
    return None


def parse_filter(filter_map: Mapping[str, Any] | None) -> ColumnsFilters:
    """Parse every column's token(s); columns without a valid token are omitted."""
    if not filter_map:
        return {}
    filters: ColumnsFilters = {}
    for column, raw in filter_map.items():
        statements = raw if isinstance(raw, (list, tuple)) else [raw]
        tokens = [
            token
            for token in (parse_filter_token(statement) for statement in statements)
            if token is not None
        ]
        if tokens:
            filters[column] = tokens
    return filters


def extract_filter_params(
    query: Mapping[str, Any], key: str = "filter"
) -> dict[str, Any] | None:
    """Collect the filter mapping from a raw query.

    Supports a nested mapping (``{"filter": {"id": "$gte:2"}}``) as produced
    by frameworks that parse deep objects, and flat bracket keys
    (``{"filter[id]": "$gte:2"}``). Returns ``None`` when neither is present.
    """
    nested = query.get(key)
    found = isinstance(nested, Mapping)
    collected: dict[str, Any] = dict(nested) if isinstance(nested, Mapping) else {}
    prefix = f"{key}["
    for name, value in query.items():
        if name.startswith(prefix) and name.endswith("]") and len(name) > len(prefix) + 1:
            collected[name[len(prefix) : -1]] = value
            found = True
    return collected if found else None


def split_by_group(
    tokens: list[FilterToken],
) -> tuple[list[FilterToken], list[FilterToken]]:
    """Split a column's tokens into ``(all_of, any_of)``.

    The column predicate is ``AND(all_of)`` OR-ed with each ``any_of`` token.
    """
    all_of = [token for token in tokens if token.group is GroupOperator.AND]
    any_of = [token for token in tokens if token.group is GroupOperator.OR]
    return all_of, any_of
