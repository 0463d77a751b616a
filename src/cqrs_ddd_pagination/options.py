"""Endpoint-level pagination configuration and call-site defaults."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .constants import DEFAULT_MAX_SIZE, DEFAULT_PAGE, DEFAULT_SIZE
from .sort import Sort


class QueryParamNames(BaseModel):
    """Names of the query parameters read by the request builder.

    ``size`` lists alternative keys for the page size; the first key present
    in the query wins.
    """

    model_config = ConfigDict(frozen=True)

    page: str = "page"
    size: tuple[str, ...] = ("limit", "size")
    sort: str = "sortBy"
    filter: str = "filter"
    unpaged: str = "unpaged"


class PaginationOptions(BaseModel):
    """Per-endpoint switches and ceilings, constant after route definition.

    Attributes:
        enable_unpaged: Allow clients to request the whole collection.
        enable_size: Allow clients to choose the page size.
        enable_sort: Allow clients to choose the ordering.
        limit: Hard ceiling on the number of addressable rows, independent
            of the page size. ``None`` means no ceiling.
        max_size: Largest page size a client may request.
    """

    model_config = ConfigDict(frozen=True)

    enable_unpaged: bool = False
    enable_size: bool = True
    enable_sort: bool = True
    limit: int | None = Field(default=None, gt=0)
    max_size: int = Field(default=DEFAULT_MAX_SIZE, gt=0)
    params: QueryParamNames = Field(default_factory=QueryParamNames)


class PaginationDefaults(BaseModel):
    """Values used when the query does not supply an acceptable one."""

    model_config = ConfigDict(frozen=True)

    current_page: int = DEFAULT_PAGE
    items_per_page: int = DEFAULT_SIZE
    unpaged: bool = False
    sort_by: tuple[Sort, ...] = ()
    filter: dict[str, Any] = Field(default_factory=dict)
