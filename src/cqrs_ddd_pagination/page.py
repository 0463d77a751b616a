"""Paginated response envelope: data, metadata and navigation links."""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class PageMeta(BaseModel):
    """Resolved request values plus the counted totals."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    current_page: int
    items_per_page: int
    offset: int
    unpaged: bool
    total_pages: int | None
    total_items: int
    sort_by: list[dict[str, Any]] = Field(default_factory=list)
    filter: dict[str, Any] = Field(default_factory=dict)


class PageLinks(BaseModel):
    model_config = ConfigDict(frozen=True)

    first: str | None = None
    previous: str | None = None
    current: str
    next: str | None = None
    last: str | None = None


class Page(BaseModel, Generic[T]):
    """One page of results.

    ``to_dict()`` gives the JSON envelope with camelCase metadata keys and
    without the links that do not apply to this page.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    data: list[T]
    meta: PageMeta
    links: PageLinks

    def to_dict(self) -> dict[str, Any]:
        return {
            "data": list(self.data),
            "meta": self.meta.model_dump(by_alias=True),
            "links": self.links.model_dump(exclude_none=True),
        }
