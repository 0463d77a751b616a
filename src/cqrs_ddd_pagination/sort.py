"""
Sort-token grammar.

One clause per query value, fields separated by ``;`` in any order::

    property[<name>];direction[asc|desc];nulls-first[true|false];

``property`` and ``direction`` are mandatory; unrecognised fields are
ignored so that new fields can be added without breaking old clients.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from .constants import SORT_PATTERNS, SORT_SEPARATOR

if TYPE_CHECKING:
    from collections.abc import Iterable


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class Sort:
    """One parsed sort clause.

    Attributes:
        property: Column or dotted relation path to order by.
        direction: Ascending or descending.
        nulls_first: Explicit null placement; ``None`` leaves it to the backend.
    """

    property: str
    direction: SortDirection
    nulls_first: bool | None = None

    def to_token(self) -> str:
        """Render the clause in query-string form."""
        token = f"property[{self.property}];direction[{self.direction.value}];"
        if self.nulls_first is not None:
            token += f"nulls-first[{str(self.nulls_first).lower()}];"
        return token

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "property": self.property,
            "direction": self.direction.value,
        }
        if self.nulls_first is not None:
            result["nullsFirst"] = self.nulls_first
        return result


def parse_sort_string(raw: str) -> Sort | None:
    """Parse a single clause; ``None`` if property or direction is missing."""
    prop: str | None = None
    direction: SortDirection | None = None
    nulls_first: bool | None = None
    for part in raw.split(SORT_SEPARATOR):
        match = SORT_PATTERNS["property"].fullmatch(part)
        if match:
            prop = match.group("property")
            continue
        match = SORT_PATTERNS["direction"].fullmatch(part)
        if match:
            direction = SortDirection(match.group("direction"))
            continue
        match = SORT_PATTERNS["nulls_first"].fullmatch(part)
        if match:
            nulls_first = match.group("nulls_first") == "true"
    if prop and direction:
        return Sort(property=prop, direction=direction, nulls_first=nulls_first)
    return None


def remove_sort_duplicates(sorts: Iterable[Sort]) -> list[Sort]:
    """Keep one clause per property.

    The first occurrence of a property keeps its position in the list, the
    last occurrence supplies the direction and null placement.
    """
    by_property: dict[str, Sort] = {}
    for sort in sorts:
        by_property[sort.property] = sort
    return list(by_property.values())


def parse_sort_param(param: Any) -> list[Sort] | None:
    """Parse a single or repeated ``sortBy`` value.

    Returns ``None`` when no string value was supplied at all, otherwise the
    (possibly empty) deduplicated list of valid clauses.
    """
    if isinstance(param, str):
        raw_values = [param]
    elif isinstance(param, (list, tuple)):
        raw_values = [value for value in param if isinstance(value, str)]
    else:
        raw_values = []
    if not raw_values:
        return None
    parsed = (parse_sort_string(value) for value in raw_values)
    return remove_sort_duplicates(sort for sort in parsed if sort is not None)
