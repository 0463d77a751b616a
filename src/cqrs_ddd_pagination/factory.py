"""
PageFactory: run a :class:`PaginationRequest` against a query builder.

The builder value is threaded through each step of the pipeline::

    select → join → where → filter → count → fixed limit → sort
           → offset/limit → execute → map → links

Counting happens before any limit or offset is applied because both the
fixed-limit ceiling and the last-page limit adjustment depend on the total.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Generic, TypeVar
from urllib.parse import urlencode

from .filtering import parse_filter, split_by_group
from .ordering import resolve_ordering
from .page import Page, PageLinks, PageMeta

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping, Sequence

    from .ports import IQueryBuilder, IQueryBuilderFactory
    from .request import PaginationRequest

logger = logging.getLogger("cqrs_ddd.pagination")

TRow = TypeVar("TRow")
TOut = TypeVar("TOut")


class JoinKind(str, Enum):
    INNER = "inner"
    LEFT = "left"


class SourceKind(str, Enum):
    """How the factory obtains its query builder."""

    REPOSITORY = "repository"
    QUERY_BUILDER = "query_builder"


@dataclass(frozen=True)
class Relation:
    """A relation to join before filtering.

    Attributes:
        property: Relationship path, e.g. ``"author"`` or ``"author.company"``.
        kind: Inner or left join.
        alias: Alias for the joined entity; defaults to the last path segment.
        and_select: Also load the joined entity into the result rows. Only
            many-to-one relations are eager-loaded; a collection join still
            yields one row per joined pair.
        cond: Extra backend predicate for the join condition.
    """

    property: str
    kind: JoinKind = JoinKind.INNER
    alias: str | None = None
    and_select: bool = False
    cond: Any = None

    @property
    def resolved_alias(self) -> str:
        return self.alias or self.property.split(".")[-1]


@dataclass(frozen=True)
class PaginateConfig:
    """Per-call query configuration.

    Attributes:
        alias: Root alias; only used when the source is a repository.
        sortable: Properties clients may sort by; ``None`` allows all.
        select: Fields to project; ``None`` selects every column.
        relations: Relations to join, in order.
        where: Backend predicate applied before the client filter.
    """

    alias: str | None = None
    sortable: Sequence[str] | None = None
    select: str | Sequence[str] | None = None
    relations: Relation | Sequence[Relation] = ()
    where: Any = None


def _identity(row: Any) -> Any:
    return row


class PageFactory(Generic[TRow, TOut]):
    """Build a :class:`Page` from a request and a query source.

    Use :meth:`from_repository` or :meth:`from_query_builder`; the source
    kind is fixed at construction.
    """

    def __init__(
        self,
        request: PaginationRequest,
        source: IQueryBuilder | IQueryBuilderFactory,
        kind: SourceKind,
        config: PaginateConfig | None = None,
        mapper: Callable[[TRow], TOut | Awaitable[TOut]] | None = None,
    ) -> None:
        self._request = request
        self._source = source
        self._kind = kind
        self._config = config or PaginateConfig()
        self._mapper: Callable[[Any], Any] = mapper or _identity

    @classmethod
    def from_repository(
        cls,
        request: PaginationRequest,
        repository: IQueryBuilderFactory,
        config: PaginateConfig | None = None,
    ) -> PageFactory[Any, Any]:
        return cls(request, repository, SourceKind.REPOSITORY, config)

    @classmethod
    def from_query_builder(
        cls,
        request: PaginationRequest,
        query_builder: IQueryBuilder,
        config: PaginateConfig | None = None,
    ) -> PageFactory[Any, Any]:
        return cls(request, query_builder, SourceKind.QUERY_BUILDER, config)

    def map(self, mapper: Callable[[TRow], Any]) -> PageFactory[TRow, Any]:
        """Return a factory that transforms each row with ``mapper``.

        ``mapper`` may be a coroutine function.
        """
        return PageFactory(self._request, self._source, self._kind, self._config, mapper)

    def configure(self, config: PaginateConfig) -> PageFactory[TRow, TOut]:
        return PageFactory(self._request, self._source, self._kind, config, self._mapper)

    async def create(self) -> Page[TOut]:
        request = self._request.as_unpaged() if self._request.unpaged else self._request
        config = self._config

        qb = self._query_builder()
        qb = qb.select(self._select_fields())
        qb = self._apply_relations(qb)
        if config.where is not None:
            qb = qb.where(config.where)
        qb = self._apply_filter(qb, request.filter)

        total_items = await qb.get_count()

        if request.limit is not None:
            qb = qb.limit(request.limit)
            total_items = min(total_items, request.limit)

        sort_by = tuple(
            sort
            for sort in request.sort_by
            if config.sortable is None or sort.property in config.sortable
        )
        if len(sort_by) != len(request.sort_by):
            logger.debug(
                "Dropped sort properties not in sortable list: %s",
                [s.property for s in request.sort_by if s not in sort_by],
            )
        request = request.with_sort(sort_by)
        if sort_by:
            qb = qb.order_by(resolve_ordering(sort_by, qb.dialect))

        if not request.unpaged:
            overflow = max(0, request.offset + request.items_per_page - total_items)
            qb = qb.offset(request.offset).limit(max(0, request.items_per_page - overflow))

        rows = await qb.get_result_list()
        data = [await self._map_row(row) for row in rows]

        total_pages = (
            None
            if request.unpaged
            else (total_items + request.items_per_page - 1) // request.items_per_page
        )
        logger.debug(
            "Built page %s (%s items of %s, %s pages)",
            request.current_page,
            len(data),
            total_items,
            total_pages,
        )
        return Page(
            data=data,
            meta=PageMeta(
                current_page=request.current_page,
                items_per_page=request.items_per_page,
                offset=request.offset,
                unpaged=request.unpaged,
                total_pages=total_pages,
                total_items=total_items,
                sort_by=[sort.to_dict() for sort in sort_by],
                filter=dict(request.filter),
            ),
            links=build_links(request, total_items, total_pages),
        )

    # -- pipeline steps -----------------------------------------------------

    def _query_builder(self) -> IQueryBuilder:
        if self._kind is SourceKind.REPOSITORY:
            return self._source.create_query_builder(self._config.alias)  # type: ignore[union-attr]
        return self._source  # type: ignore[return-value]

    def _select_fields(self) -> list[str] | None:
        select = self._config.select
        if select is None:
            return None
        return [select] if isinstance(select, str) else list(select)

    def _apply_relations(self, qb: IQueryBuilder) -> IQueryBuilder:
        relations = self._config.relations
        if isinstance(relations, Relation):
            relations = (relations,)
        for relation in relations:
            join = qb.left_join if relation.kind is JoinKind.LEFT else qb.join
            qb = join(
                relation.property,
                relation.resolved_alias,
                cond=relation.cond,
                and_select=relation.and_select,
            )
        return qb

    @staticmethod
    def _apply_filter(qb: IQueryBuilder, filter_map: Mapping[str, Any]) -> IQueryBuilder:
        for column, tokens in parse_filter(filter_map).items():
            all_of, any_of = split_by_group(tokens)
            required = [qb.predicate(column, token) for token in all_of]
            alternatives = [qb.predicate(column, token) for token in any_of]
            if any(p is None for p in (*required, *alternatives)):
                logger.debug("Dropped filter on unknown column %r", column)
                continue
            parts = [qb.all_of(required)] if required else []
            parts.extend(alternatives)
            qb = qb.and_where(parts[0] if len(parts) == 1 else qb.any_of(parts))
        return qb

    async def _map_row(self, row: Any) -> Any:
        result = self._mapper(row)
        if inspect.isawaitable(result):
            result = await result
        return result


def build_links(
    request: PaginationRequest, total_items: int, total_pages: int | None
) -> PageLinks:
    """Navigation links for ``request``; inapplicable links are ``None``."""
    size = request.items_per_page

    def link(page: int) -> str:
        return f"{request.base_path}?{urlencode({'page': page, 'limit': size})}"

    page = request.current_page
    if total_pages is None:
        return PageLinks(current=link(page))
    return PageLinks(
        first=None if page == 1 else link(1),
        previous=None if page <= 1 else link(page - 1),
        current=link(page),
        next=None if page + 1 > total_pages else link(page + 1),
        last=None if page == total_pages or total_items == 0 else link(total_pages),
    )
