"""
In-memory query builder over a list of rows.

Rows may be mappings or plain objects; dotted paths (``author.name``) are
resolved through nested keys and attributes. Predicates are callables
``row -> bool``, so a :class:`PaginateConfig` ``where`` for this backend is
a function. Null placement follows PostgreSQL unless the dialect says
otherwise: nulls sort as the largest value.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any

from ..exceptions import UnsupportedOperatorError
from ..filtering import QueryOperator
from ..ordering import Dialect, OrderDirective

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence

    from ..filtering import FilterToken

logger = logging.getLogger("cqrs_ddd.pagination.memory")

_MISSING = object()


def resolve_path(row: Any, path: str) -> Any:
    """Resolve a dotted path through mappings and attributes; missing is ``None``."""
    value = row
    for part in path.split("."):
        if isinstance(value, Mapping):
            value = value.get(part, _MISSING)
        else:
            value = getattr(value, part, _MISSING)
        if value is _MISSING or value is None:
            return None
    return value


def _coerce(field_value: Any, value: Any) -> Any:
    """Convert a query-string value to the type of the stored value."""
    if not isinstance(value, str) or field_value is None or isinstance(field_value, str):
        return value
    try:
        if isinstance(field_value, bool):
            return value == "true"
        if isinstance(field_value, int):
            return int(value)
        if isinstance(field_value, float):
            return float(value)
        if isinstance(field_value, Decimal):
            return Decimal(value)
        if isinstance(field_value, datetime):
            return datetime.fromisoformat(value)
    except (ValueError, InvalidOperation):
        return _MISSING
    return value


def _like_pattern(pattern: str, flags: int = 0) -> re.Pattern[str]:
    regex = "".join(
        ".*" if ch == "%" else "." if ch == "_" else re.escape(ch) for ch in pattern
    )
    return re.compile(regex, flags | re.DOTALL)


def _compare(op: Callable[[Any, Any], bool]) -> Callable[[Any, Any], bool]:
    def evaluate(field_value: Any, value: Any) -> bool:
        value = _coerce(field_value, value)
        if field_value is None or value is _MISSING:
            return False
        try:
            return bool(op(field_value, value))
        except TypeError:
            return False

    return evaluate


def _eq(field_value: Any, value: Any) -> bool:
    return field_value == _coerce(field_value, value)


def _in(field_value: Any, value: Any) -> bool:
    values = value if isinstance(value, list) else [value]
    return any(_eq(field_value, v) for v in values)


def _like(flags: int = 0) -> Callable[[Any, Any], bool]:
    def evaluate(field_value: Any, value: Any) -> bool:
        if field_value is None:
            return False
        return _like_pattern(str(value), flags).fullmatch(str(field_value)) is not None

    return evaluate


def _contains(field_value: Any, value: Any) -> bool:
    if field_value is None:
        return False
    values = value if isinstance(value, list) else [value]
    if isinstance(field_value, str):
        return all(v in field_value for v in values)
    return all(any(_eq(item, v) for item in field_value) for v in values)


def _overlap(field_value: Any, value: Any) -> bool:
    if field_value is None or isinstance(field_value, str):
        return False
    values = value if isinstance(value, list) else [value]
    return any(_eq(item, v) for item in field_value for v in values)


def _exists(field_value: Any, value: Any) -> bool:
    return (field_value is not None) == (value != "false")


DEFAULT_MEMORY_OPERATORS: dict[QueryOperator, Callable[[Any, Any], bool]] = {
    QueryOperator.EQ: _eq,
    QueryOperator.NE: lambda fv, v: not _eq(fv, v),
    QueryOperator.GT: _compare(lambda a, b: a > b),
    QueryOperator.GTE: _compare(lambda a, b: a >= b),
    QueryOperator.LT: _compare(lambda a, b: a < b),
    QueryOperator.LTE: _compare(lambda a, b: a <= b),
    QueryOperator.IN: _in,
    QueryOperator.NIN: lambda fv, v: not _in(fv, v),
    QueryOperator.LIKE: _like(),
    QueryOperator.ILIKE: _like(re.IGNORECASE),
    QueryOperator.CONTAINS: _contains,
    QueryOperator.OVERLAP: _overlap,
    QueryOperator.EXISTS: _exists,
}


@dataclass(frozen=True)
class _State:
    fields: tuple[str, ...] | None = None
    aliases: Mapping[str, str] = field(default_factory=dict)
    joins: tuple[tuple[str, str, str], ...] = ()
    join_filters: tuple[Callable[[Any], bool], ...] = ()
    predicate: Any = None
    order: tuple[OrderDirective, ...] = ()
    offset: int = 0
    limit: int | None = None


class InMemoryQueryBuilder:
    """Generative query builder evaluating everything in Python."""

    def __init__(
        self,
        rows: Iterable[Any],
        *,
        dialect: Dialect = Dialect.POSTGRESQL,
        operators: Mapping[QueryOperator, Callable[[Any, Any], bool]] | None = None,
        alias: str | None = None,
        _state: _State | None = None,
    ) -> None:
        self._rows = tuple(rows)
        self._dialect = dialect
        self._operators = DEFAULT_MEMORY_OPERATORS if operators is None else operators
        self._state = _state or _State(aliases={alias: ""} if alias else {})

    def _evolve(self, **changes: Any) -> InMemoryQueryBuilder:
        return InMemoryQueryBuilder(
            self._rows,
            dialect=self._dialect,
            operators=self._operators,
            _state=replace(self._state, **changes),
        )

    @property
    def dialect(self) -> Dialect:
        return self._dialect

    @property
    def joins(self) -> tuple[tuple[str, str, str], ...]:
        """Recorded ``(kind, property, alias)`` joins."""
        return self._state.joins

    # -- building -----------------------------------------------------------

    def select(self, fields: Sequence[str] | None) -> InMemoryQueryBuilder:
        return self._evolve(fields=tuple(fields) if fields else None)

    def _join(self, kind: str, property: str, alias: str) -> InMemoryQueryBuilder:
        # Rows already carry their related data; a join only registers the alias.
        aliases = dict(self._state.aliases)
        aliases[alias] = self._path(property)
        return self._evolve(aliases=aliases, joins=(*self._state.joins, (kind, property, alias)))

    def join(
        self,
        property: str,
        alias: str,
        *,
        cond: Any = None,
        and_select: bool = False,  # noqa: ARG002
    ) -> InMemoryQueryBuilder:
        builder = self._join("inner", property, alias)
        path = builder._path(alias)

        # inner join semantics: rows without the relation are dropped
        def joined(row: Any) -> bool:
            return resolve_path(row, path) is not None and (cond is None or cond(row))

        return builder._evolve(join_filters=(*builder._state.join_filters, joined))

    def left_join(
        self,
        property: str,
        alias: str,
        *,
        cond: Any = None,  # noqa: ARG002
        and_select: bool = False,  # noqa: ARG002
    ) -> InMemoryQueryBuilder:
        return self._join("left", property, alias)

    def where(self, predicate: Any) -> InMemoryQueryBuilder:
        return self._evolve(predicate=predicate)

    def and_where(self, predicate: Any) -> InMemoryQueryBuilder:
        current = self._state.predicate
        if current is None:
            return self.where(predicate)
        return self.where(self.all_of([current, predicate]))

    def or_where(self, predicate: Any) -> InMemoryQueryBuilder:
        current = self._state.predicate
        if current is None:
            return self.where(predicate)
        return self.where(self.any_of([current, predicate]))

    def predicate(self, column: str, token: FilterToken) -> Any:
        evaluate = self._operators.get(token.operator)
        if evaluate is None:
            raise UnsupportedOperatorError(token.operator.value, "in-memory")
        path = self._path(column)
        value = token.value

        def matches(row: Any) -> bool:
            result = evaluate(resolve_path(row, path), value)
            return not result if token.negate else result

        return matches

    def all_of(self, predicates: Sequence[Any]) -> Any:
        checks = tuple(predicates)
        return lambda row: all(check(row) for check in checks)

    def any_of(self, predicates: Sequence[Any]) -> Any:
        checks = tuple(predicates)
        return lambda row: any(check(row) for check in checks)

    def order_by(self, directives: Sequence[OrderDirective]) -> InMemoryQueryBuilder:
        return self._evolve(order=tuple(directives))

    def offset(self, offset: int) -> InMemoryQueryBuilder:
        return self._evolve(offset=offset)

    def limit(self, limit: int) -> InMemoryQueryBuilder:
        return self._evolve(limit=limit)

    # -- execution ----------------------------------------------------------

    async def get_count(self) -> int:
        return len(self._filtered())

    async def get_result_list(self) -> list[Any]:
        rows = self._sorted(self._filtered())
        end = None if self._state.limit is None else self._state.offset + self._state.limit
        rows = rows[self._state.offset : end]
        if self._state.fields is None:
            return rows
        paths = {name: self._path(name) for name in self._state.fields}
        return [{name: resolve_path(row, path) for name, path in paths.items()} for row in rows]

    def _path(self, column: str) -> str:
        head, _, rest = column.partition(".")
        if head in self._state.aliases:
            prefix = self._state.aliases[head]
            return ".".join(part for part in (prefix, rest) if part)
        return column

    def _filtered(self) -> list[Any]:
        checks = list(self._state.join_filters)
        if self._state.predicate is not None:
            checks.append(self._state.predicate)
        return [row for row in self._rows if all(check(row) for check in checks)]

    def _sorted(self, rows: list[Any]) -> list[Any]:
        # Stable sorts applied from the least to the most significant key.
        for directive in reversed(self._state.order):
            path = self._path(directive.property)
            descending = directive.order.descending
            if directive.null_check:
                rows.sort(key=lambda row: resolve_path(row, path) is None, reverse=descending)
                continue
            nulls_first = directive.order.nulls_first
            if nulls_first is None:
                # PostgreSQL sorts nulls as the largest value, the others as the smallest
                nulls_first = descending if self._dialect is Dialect.POSTGRESQL else not descending
            null_rank = int(nulls_first == descending)

            def key(row: Any, path: str = path, null_rank: int = null_rank) -> tuple[int, Any]:
                value = resolve_path(row, path)
                if value is None:
                    return (null_rank, 0)
                return (1 - null_rank, value)

            rows.sort(key=key, reverse=descending)
        return rows


class InMemoryCollection:
    """Repository-style source creating :class:`InMemoryQueryBuilder` objects."""

    def __init__(self, rows: Iterable[Any], *, dialect: Dialect = Dialect.POSTGRESQL) -> None:
        self._rows = list(rows)
        self._dialect = dialect

    def create_query_builder(self, alias: str | None = None) -> InMemoryQueryBuilder:
        logger.debug("Creating in-memory query builder over %s rows", len(self._rows))
        return InMemoryQueryBuilder(self._rows, dialect=self._dialect, alias=alias)

    def __len__(self) -> int:
        return len(self._rows)
