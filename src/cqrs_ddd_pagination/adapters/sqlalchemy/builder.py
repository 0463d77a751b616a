"""
SQLAlchemy query builder adapter.

Holds the query as an immutable description (projection, joins, predicate,
ordering, offset, limit) and compiles it to a ``Select`` only when counting
or fetching, so each builder method can return a new builder without
touching the previous one.

Column paths are resolved against the root entity, or against a joined
alias when the first segment names one (``author.name`` after joining
``author``). A dotted path through an un-joined relationship compiles to
``EXISTS`` via ``any()`` / ``has()``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from sqlalchemy import and_, case, func, not_, or_, select
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import ColumnProperty, RelationshipProperty, aliased, contains_eager

from ...exceptions import InvalidRelationError
from ...filtering import QueryOperator
from ...ordering import Dialect
from .operators import DEFAULT_FILTER_REGISTRY

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from sqlalchemy import ColumnElement, Select
    from sqlalchemy.ext.asyncio import AsyncSession

    from ...filtering import FilterToken
    from ...ordering import OrderDirective
    from .operators import SQLAlchemyFilterRegistry

logger = logging.getLogger("cqrs_ddd.pagination.sqlalchemy")

# Operators whose query-string values are converted to the column's Python type
_TYPED_OPERATORS = frozenset(
    {
        QueryOperator.EQ,
        QueryOperator.NE,
        QueryOperator.GT,
        QueryOperator.GTE,
        QueryOperator.LT,
        QueryOperator.LTE,
        QueryOperator.IN,
        QueryOperator.NIN,
    }
)


def coerce_to_column(column: Any, value: Any) -> Any:
    """Convert string token values to the Python type of ``column``."""
    if isinstance(value, list):
        return [coerce_to_column(column, v) for v in value]
    if not isinstance(value, str):
        return value
    try:
        python_type = column.type.python_type
    except (AttributeError, NotImplementedError):
        return value
    try:
        if python_type is bool:
            return value == "true"
        if python_type in (int, float, Decimal):
            return python_type(value)
        if python_type is datetime:
            return datetime.fromisoformat(value)
        if python_type is date:
            return date.fromisoformat(value)
    except (ValueError, ArithmeticError):
        return value
    return value


def _entity_name(entity: Any) -> str:
    return sa_inspect(entity).mapper.class_.__name__


@dataclass(frozen=True)
class _Join:
    alias: str
    target: Any
    onclause: Any
    outer: bool
    loader: Any = None


@dataclass(frozen=True)
class _State:
    fields: tuple[str, ...] | None = None
    aliases: Mapping[str, Any] = field(default_factory=dict)
    joins: tuple[_Join, ...] = ()
    predicate: Any = None
    order: tuple[Any, ...] = ()
    offset: int | None = None
    limit: int | None = None


class SQLAlchemyQueryBuilder:
    """Generative :class:`IQueryBuilder` over an ``AsyncSession`` and a mapped model.

    Args:
        session: Session used for the count and fetch queries.
        model: Mapped class to paginate.
        dialect: Null-ordering dialect; defaults to the session bind's dialect.
        registry: Filter operator registry; defaults to
            ``DEFAULT_FILTER_REGISTRY``.
        alias: Name of the root entity alias.
    """

    def __init__(
        self,
        session: AsyncSession,
        model: type[Any],
        *,
        dialect: Dialect | None = None,
        registry: SQLAlchemyFilterRegistry | None = None,
        alias: str | None = None,
        _root: Any = None,
        _state: _State | None = None,
    ) -> None:
        self._session = session
        self._model = model
        self._dialect = dialect or self._bind_dialect(session)
        self._registry = DEFAULT_FILTER_REGISTRY if registry is None else registry
        if _root is None:
            _root = aliased(model, name=alias) if alias else model
        self._root = _root
        self._state = _state or _State(aliases={alias: _root} if alias else {})

    @staticmethod
    def _bind_dialect(session: AsyncSession) -> Dialect:
        bind = session.bind
        if bind is None:
            return Dialect.POSTGRESQL
        return Dialect.from_name(bind.dialect.name)

    def _evolve(self, **changes: Any) -> SQLAlchemyQueryBuilder:
        return SQLAlchemyQueryBuilder(
            self._session,
            self._model,
            dialect=self._dialect,
            registry=self._registry,
            _root=self._root,
            _state=replace(self._state, **changes),
        )

    @property
    def dialect(self) -> Dialect:
        return self._dialect

    # -- building -----------------------------------------------------------

    def select(self, fields: Sequence[str] | None) -> SQLAlchemyQueryBuilder:
        return self._evolve(fields=tuple(fields) if fields else None)

    def join(
        self, property: str, alias: str, *, cond: Any = None, and_select: bool = False
    ) -> SQLAlchemyQueryBuilder:
        return self._join(property, alias, cond=cond, and_select=and_select, outer=False)

    def left_join(
        self, property: str, alias: str, *, cond: Any = None, and_select: bool = False
    ) -> SQLAlchemyQueryBuilder:
        return self._join(property, alias, cond=cond, and_select=and_select, outer=True)

    def _join(
        self, property: str, alias: str, *, cond: Any, and_select: bool, outer: bool
    ) -> SQLAlchemyQueryBuilder:
        parent, rel_name = self._split(property)
        rel_attr = getattr(parent, rel_name, None)
        if "." in rel_name or not isinstance(
            getattr(rel_attr, "property", None), RelationshipProperty
        ):
            raise InvalidRelationError(property, _entity_name(parent))
        target = aliased(rel_attr.property.mapper.class_, name=alias)  # type: ignore[union-attr]
        path = rel_attr.of_type(target)  # type: ignore[union-attr]
        onclause = path
        if cond is not None:
            onclause = path.and_(cond(target) if callable(cond) else cond)

        loader = None
        if and_select and rel_attr.property.uselist:  # type: ignore[union-attr]
            # LIMIT counts joined rows, so a collection cannot be eager-loaded per entity
            logger.warning(
                "Ignored and_select on collection %r: only many-to-one joins are eager-loaded",
                property,
            )
        elif and_select:
            parent_join = next((j for j in self._state.joins if j.target is parent), None)
            if parent_join is None:
                loader = contains_eager(path)
            elif parent_join.loader is not None:
                loader = parent_join.loader.contains_eager(path)
            else:
                logger.debug(
                    "Cannot eager-load %s: parent %s is not selected", alias, parent_join.alias
                )

        aliases = dict(self._state.aliases)
        aliases[alias] = target
        join = _Join(alias=alias, target=target, onclause=onclause, outer=outer, loader=loader)
        return self._evolve(aliases=aliases, joins=(*self._state.joins, join))

    def where(self, predicate: Any) -> SQLAlchemyQueryBuilder:
        return self._evolve(predicate=predicate)

    def and_where(self, predicate: Any) -> SQLAlchemyQueryBuilder:
        current = self._state.predicate
        return self.where(predicate if current is None else and_(current, predicate))

    def or_where(self, predicate: Any) -> SQLAlchemyQueryBuilder:
        current = self._state.predicate
        return self.where(predicate if current is None else or_(current, predicate))

    def predicate(self, column: str, token: FilterToken) -> ColumnElement[bool] | None:
        entity, path = self._split(column)
        return self._compile(entity, path, token)

    def _compile(self, entity: Any, path: str, token: FilterToken) -> ColumnElement[bool] | None:
        head, dot, rest = path.partition(".")
        attr = getattr(entity, head, None)
        prop = getattr(attr, "property", None)
        if dot:
            if not isinstance(prop, RelationshipProperty):
                return None
            inner = self._compile(prop.mapper.class_, rest, token)
            if inner is None:
                return None
            return attr.any(inner) if prop.uselist else attr.has(inner)  # type: ignore[union-attr]
        if not isinstance(prop, ColumnProperty):
            return None
        value = token.value
        if token.operator in _TYPED_OPERATORS:
            value = coerce_to_column(attr, value)
        expr = self._registry.apply(token.operator, attr, value)
        return not_(expr) if token.negate else expr

    def all_of(self, predicates: Sequence[Any]) -> Any:
        return and_(*predicates)

    def any_of(self, predicates: Sequence[Any]) -> Any:
        return or_(*predicates)

    def order_by(self, directives: Sequence[OrderDirective]) -> SQLAlchemyQueryBuilder:
        clauses = []
        for directive in directives:
            column = self._column(directive.property)
            if column is None:
                logger.debug("Ignored ordering on unknown column %r", directive.property)
                continue
            if directive.null_check:
                # 1 for nulls; SQL Server rejects a bare predicate in ORDER BY
                column = case((column.is_(None), 1), else_=0)
            clause = column.desc() if directive.order.descending else column.asc()
            nulls_first = directive.order.nulls_first
            if nulls_first is True:
                clause = clause.nulls_first()
            elif nulls_first is False:
                clause = clause.nulls_last()
            clauses.append(clause)
        return self._evolve(order=tuple(clauses))

    def offset(self, offset: int) -> SQLAlchemyQueryBuilder:
        return self._evolve(offset=offset)

    def limit(self, limit: int) -> SQLAlchemyQueryBuilder:
        return self._evolve(limit=limit)

    # -- compilation --------------------------------------------------------

    def _split(self, path: str) -> tuple[Any, str]:
        head, dot, rest = path.partition(".")
        if dot and head in self._state.aliases:
            return self._state.aliases[head], rest
        return self._root, path

    def _column(self, path: str) -> Any | None:
        entity, name = self._split(path)
        attr = getattr(entity, name, None) if "." not in name else None
        if not isinstance(getattr(attr, "property", None), ColumnProperty):
            return None
        return attr

    def statement(self, *, paginated: bool = True) -> Select[Any]:
        """Compile the current description into a ``Select``.

        With ``paginated=False`` ordering, offset, limit and eager loading
        are left out, as needed for counting.
        """
        state = self._state
        if state.fields:
            columns = []
            for name in state.fields:
                column = self._column(name)
                if column is None:
                    logger.warning("Ignored unknown select field %r", name)
                    continue
                columns.append(column.label(name))
            stmt = select(*columns).select_from(self._root)
        else:
            stmt = select(self._root)
        for join in state.joins:
            stmt = stmt.join(join.target, join.onclause, isouter=join.outer)
        if state.predicate is not None:
            stmt = stmt.where(state.predicate)
        if not paginated:
            return stmt
        loaders = [join.loader for join in state.joins if join.loader is not None]
        if loaders and not state.fields:
            stmt = stmt.options(*loaders)
        if state.order:
            stmt = stmt.order_by(*state.order)
        if state.offset:
            stmt = stmt.offset(state.offset)
        if state.limit is not None:
            stmt = stmt.limit(state.limit)
        return stmt

    # -- execution ----------------------------------------------------------

    async def get_count(self) -> int:
        count_stmt = select(func.count()).select_from(self.statement(paginated=False).subquery())
        return int((await self._session.execute(count_stmt)).scalar_one())

    async def get_result_list(self) -> list[Any]:
        result = await self._session.execute(self.statement())
        if self._state.fields:
            return [dict(row) for row in result.mappings().all()]
        scalars = result.scalars()
        if any(join.loader is not None for join in self._state.joins):
            scalars = scalars.unique()
        return list(scalars.all())


class SQLAlchemyQuerySource:
    """Repository-style source creating :class:`SQLAlchemyQueryBuilder` objects."""

    def __init__(
        self,
        session: AsyncSession,
        model: type[Any],
        *,
        dialect: Dialect | None = None,
        registry: SQLAlchemyFilterRegistry | None = None,
    ) -> None:
        self._session = session
        self._model = model
        self._dialect = dialect
        self._registry = registry

    def create_query_builder(self, alias: str | None = None) -> SQLAlchemyQueryBuilder:
        return SQLAlchemyQueryBuilder(
            self._session,
            self._model,
            dialect=self._dialect,
            registry=self._registry,
            alias=alias,
        )
