"""
Null-aware ordering strategy.

Maps ``(dialect, sort descriptors)`` to ordering instructions without
touching a live connection. MySQL, MariaDB and SQL Server have no
``NULLS FIRST`` / ``NULLS LAST``; for them an ``ISNULL(<property>)``
tiebreaker is placed in front of the property instead.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from .sort import SortDirection

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .sort import Sort


class Dialect(str, Enum):
    POSTGRESQL = "postgresql"
    SQLITE = "sqlite"
    MYSQL = "mysql"
    MARIADB = "mariadb"
    MSSQL = "mssql"
    # any other backend with native NULLS FIRST / NULLS LAST (Oracle, ...)
    GENERIC = "generic"

    @classmethod
    def from_name(cls, name: str) -> Dialect:
        """Resolve a driver/dialect name such as ``engine.dialect.name``.

        Unrecognised names resolve to :attr:`GENERIC`.
        """
        normalized = name.lower()
        for dialect in cls:
            if normalized.startswith(dialect.value):
                return dialect
        if normalized.startswith("postgres"):
            return cls.POSTGRESQL
        return cls.GENERIC

    @property
    def supports_nulls_ordering(self) -> bool:
        return self not in (Dialect.MYSQL, Dialect.MARIADB, Dialect.MSSQL)


class QueryOrder(str, Enum):
    ASC = "ASC"
    DESC = "DESC"
    ASC_NULLS_FIRST = "ASC NULLS FIRST"
    ASC_NULLS_LAST = "ASC NULLS LAST"
    DESC_NULLS_FIRST = "DESC NULLS FIRST"
    DESC_NULLS_LAST = "DESC NULLS LAST"

    @property
    def descending(self) -> bool:
        return self.value.startswith("DESC")

    @property
    def nulls_first(self) -> bool | None:
        if self.value.endswith("NULLS FIRST"):
            return True
        if self.value.endswith("NULLS LAST"):
            return False
        return None


@dataclass(frozen=True)
class OrderDirective:
    """One ordering instruction for a query builder.

    When ``null_check`` is set the directive orders by whether ``property``
    is null (``ISNULL(property)``) rather than by its value.
    """

    property: str
    order: QueryOrder
    null_check: bool = False


_NULLS_ORDER = {
    (SortDirection.ASC, True): QueryOrder.ASC_NULLS_FIRST,
    (SortDirection.ASC, False): QueryOrder.ASC_NULLS_LAST,
    (SortDirection.DESC, True): QueryOrder.DESC_NULLS_FIRST,
    (SortDirection.DESC, False): QueryOrder.DESC_NULLS_LAST,
}


def get_query_order(direction: SortDirection, nulls_first: bool | None = None) -> QueryOrder:
    if nulls_first is None:
        return QueryOrder.ASC if direction is SortDirection.ASC else QueryOrder.DESC
    return _NULLS_ORDER[(direction, nulls_first)]


def resolve_ordering(sorts: Iterable[Sort], dialect: Dialect) -> list[OrderDirective]:
    """Translate sort descriptors into ordered directives for ``dialect``."""
    directives: list[OrderDirective] = []
    for sort in sorts:
        if dialect.supports_nulls_ordering:
            directives.append(
                OrderDirective(sort.property, get_query_order(sort.direction, sort.nulls_first))
            )
            continue
        if sort.nulls_first is not None:
            # ISNULL() is 1 for nulls, so descending puts them first
            null_order = QueryOrder.DESC if sort.nulls_first else QueryOrder.ASC
            directives.append(OrderDirective(sort.property, null_order, null_check=True))
        directives.append(OrderDirective(sort.property, get_query_order(sort.direction)))
    return directives
