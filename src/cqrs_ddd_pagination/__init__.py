"""Pagination, sorting and filtering for list endpoints.

Turns raw query-string parameters into a normalized
:class:`PaginationRequest` and runs it against a query builder to produce a
:class:`Page` envelope (data, metadata, navigation links).

Usage:
    ```python
    from cqrs_ddd_pagination import (
        PageFactory,
        PaginateConfig,
        build_pagination_request,
    )

    request = build_pagination_request(query, url=str(request.url))
    page = await PageFactory.from_repository(request, repository).create()
    return page.to_dict()
    ```

Backends:
    - `adapters.memory`: in-memory rows, predicates are callables
    - `adapters.sqlalchemy`: SQLAlchemy 2.x ``AsyncSession`` (``sqlalchemy`` extra)
"""

from __future__ import annotations

from .constants import DEFAULT_MAX_SIZE, DEFAULT_PAGE, DEFAULT_SIZE, MAX_SAFE_INTEGER
from .exceptions import InvalidRelationError, PaginationError, UnsupportedOperatorError
from .factory import (
    JoinKind,
    PageFactory,
    PaginateConfig,
    Relation,
    SourceKind,
    build_links,
)
from .filtering import (
    ColumnsFilters,
    FilterToken,
    GroupOperator,
    QueryOperator,
    parse_filter,
    parse_filter_token,
)
from .options import PaginationDefaults, PaginationOptions, QueryParamNames
from .ordering import Dialect, OrderDirective, QueryOrder, get_query_order, resolve_ordering
from .page import Page, PageLinks, PageMeta
from .params import (
    is_safe_integer,
    is_safe_non_negative_integer,
    is_safe_positive_integer,
    normalize_query,
    parse_bool_param,
    parse_int_param,
)
from .ports import IQueryBuilder, IQueryBuilderFactory
from .request import (
    PaginationRequest,
    PaginationRequestBuilder,
    build_pagination_request,
)
from .sort import Sort, SortDirection, parse_sort_param, parse_sort_string, remove_sort_duplicates

__all__ = [
    "DEFAULT_MAX_SIZE",
    "DEFAULT_PAGE",
    "DEFAULT_SIZE",
    "MAX_SAFE_INTEGER",
    "ColumnsFilters",
    "Dialect",
    "FilterToken",
    "GroupOperator",
    "IQueryBuilder",
    "IQueryBuilderFactory",
    "InvalidRelationError",
    "JoinKind",
    "OrderDirective",
    "Page",
    "PageFactory",
    "PageLinks",
    "PageMeta",
    "PaginateConfig",
    "PaginationDefaults",
    "PaginationError",
    "PaginationOptions",
    "PaginationRequest",
    "PaginationRequestBuilder",
    "QueryOperator",
    "QueryOrder",
    "QueryParamNames",
    "Relation",
    "Sort",
    "SortDirection",
    "SourceKind",
    "UnsupportedOperatorError",
    "build_links",
    "build_pagination_request",
    "get_query_order",
    "is_safe_integer",
    "is_safe_non_negative_integer",
    "is_safe_positive_integer",
    "normalize_query",
    "parse_bool_param",
    "parse_filter",
    "parse_filter_token",
    "parse_int_param",
    "parse_sort_param",
    "parse_sort_string",
    "remove_sort_duplicates",
    "resolve_ordering",
]
