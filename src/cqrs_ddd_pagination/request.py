"""
Pagination request builder.

Merges call-site defaults, endpoint options and the raw query into one
normalized :class:`PaginationRequest`. Every value is accepted or rejected
on its own; a rejected value falls back to the default and is never
reported as an error, so a list endpoint stays usable with a malformed
query string.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any
from urllib.parse import urlsplit, urlunsplit

from .constants import DEFAULT_PAGE, DEFAULT_SIZE
from .filtering import extract_filter_params
from .options import PaginationDefaults, PaginationOptions
from .params import (
    is_safe_non_negative_integer,
    is_safe_positive_integer,
    parse_bool_param,
    parse_int_param,
)
from .sort import Sort, parse_sort_param

logger = logging.getLogger("cqrs_ddd.pagination")


@dataclass(frozen=True)
class PaginationRequest:
    """Normalized description of the requested slice of a collection.

    Under unpaged mode ``current_page``, ``offset`` and ``items_per_page``
    are all ``0``.
    """

    current_page: int = DEFAULT_PAGE
    items_per_page: int = DEFAULT_SIZE
    offset: int = 0
    unpaged: bool = False
    sort_by: tuple[Sort, ...] = ()
    filter: Mapping[str, Any] = field(default_factory=dict)
    limit: int | None = None
    base_path: str = ""

    def as_unpaged(self) -> PaginationRequest:
        """Return a copy with the paging fields set to the unpaged sentinel."""
        return replace(self, current_page=0, offset=0, items_per_page=0)

    def with_sort(self, sort_by: tuple[Sort, ...]) -> PaginationRequest:
        return replace(self, sort_by=sort_by)


def base_path_from_url(url: str | None) -> str:
    """Strip query string and fragment, keeping scheme, host and path."""
    if not url:
        return ""
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))


class PaginationRequestBuilder:
    """Builds :class:`PaginationRequest` objects for one endpoint."""

    def __init__(
        self,
        defaults: PaginationDefaults | None = None,
        options: PaginationOptions | None = None,
    ) -> None:
        self._defaults = defaults or PaginationDefaults()
        self._options = options or PaginationOptions()

    @property
    def options(self) -> PaginationOptions:
        return self._options

    def build(self, query: Mapping[str, Any] | None, url: str | None = None) -> PaginationRequest:
        defaults = self._defaults
        options = self._options
        params = options.params
        query = query or {}

        current_page = DEFAULT_PAGE
        items_per_page = self._base_size()
        offset = 0

        page = self._resolve_page(query.get(params.page), defaults.current_page)
        size = self._resolve_size(self._size_param(query), defaults.items_per_page)
        candidate_offset = (page - 1) * size
        if is_safe_non_negative_integer(candidate_offset):
            current_page, items_per_page, offset = page, size, candidate_offset
        else:
            logger.debug(
                "Rejected page=%s size=%s: offset %s is not a safe integer",
                page,
                size,
                candidate_offset,
            )

        sort_by = tuple(defaults.sort_by)
        if options.enable_sort and params.sort in query:
            parsed_sort = parse_sort_param(query[params.sort])
            if parsed_sort:
                sort_by = tuple(parsed_sort)
            else:
                logger.debug("Ignored sort parameter %r", query[params.sort])

        unpaged = defaults.unpaged
        if options.enable_unpaged and params.unpaged in query:
            parsed_unpaged = parse_bool_param(query[params.unpaged])
            if parsed_unpaged is not None:
                unpaged = parsed_unpaged

        filter_params = extract_filter_params(query, params.filter)
        return PaginationRequest(
            current_page=current_page,
            items_per_page=items_per_page,
            offset=offset,
            unpaged=unpaged,
            sort_by=sort_by,
            filter=filter_params if filter_params is not None else dict(defaults.filter),
            limit=options.limit,
            base_path=base_path_from_url(url),
        )

    def _size_param(self, query: Mapping[str, Any]) -> Any:
        if not self._options.enable_size:
            return None
        for key in self._options.params.size:
            if key in query:
                return query[key]
        return None

    @staticmethod
    def _resolve_page(raw: Any, default_page: int) -> int:
        parsed = parse_int_param(raw) if raw is not None else None
        if parsed is not None and is_safe_positive_integer(parsed):
            return parsed
        if raw is not None:
            logger.debug("Rejected page parameter %r", raw)
        if is_safe_positive_integer(default_page):
            return default_page
        return DEFAULT_PAGE

    def _resolve_size(self, raw: Any, default_size: int) -> int:
        max_size = self._options.max_size
        parsed = parse_int_param(raw) if raw is not None else None
        if parsed is not None and is_safe_positive_integer(parsed) and parsed <= max_size:
            return parsed
        if raw is not None:
            logger.debug("Rejected size parameter %r (max_size=%s)", raw, max_size)
        if is_safe_positive_integer(default_size) and default_size <= max_size:
            return default_size
        return self._base_size()

    def _base_size(self) -> int:
        max_size = self._options.max_size
        return DEFAULT_SIZE if DEFAULT_SIZE <= max_size else max_size


def build_pagination_request(
    query: Mapping[str, Any] | None,
    *,
    url: str | None = None,
    defaults: PaginationDefaults | None = None,
    options: PaginationOptions | None = None,
) -> PaginationRequest:
    """Shortcut for ``PaginationRequestBuilder(defaults, options).build(query, url)``."""
    return PaginationRequestBuilder(defaults, options).build(query, url)
