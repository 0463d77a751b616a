"""IQueryBuilder: the query-builder capability the page assembler consumes.

Implementations are generative: every non-async method returns a new
builder and leaves the receiver untouched, so the assembler can thread one
builder value through select → join → where → filter → count → limit /
offset → sort → execute.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from typing_extensions import Self

    from .filtering import FilterToken
    from .ordering import Dialect, OrderDirective


@runtime_checkable
class IQueryBuilder(Protocol):
    """Narrow facade over a backend query builder."""

    @property
    def dialect(self) -> Dialect: ...

    def select(self, fields: Sequence[str] | None) -> Self:
        """Project ``fields``; ``None`` selects every column."""
        ...

    def join(
        self,
        property: str,
        alias: str,
        *,
        cond: Any = None,
        and_select: bool = False,
    ) -> Self: ...

    def left_join(
        self,
        property: str,
        alias: str,
        *,
        cond: Any = None,
        and_select: bool = False,
    ) -> Self: ...

    def where(self, predicate: Any) -> Self:
        """Replace the current predicate."""
        ...

    def and_where(self, predicate: Any) -> Self: ...

    def or_where(self, predicate: Any) -> Self: ...

    def predicate(self, column: str, token: FilterToken) -> Any | None:
        """Compile one filter token into a backend predicate.

        Returns ``None`` when ``column`` is not addressable by this builder.

        Raises:
            UnsupportedOperatorError: The backend cannot express the operator.
        """
        ...

    def all_of(self, predicates: Sequence[Any]) -> Any: ...

    def any_of(self, predicates: Sequence[Any]) -> Any: ...

    def order_by(self, directives: Sequence[OrderDirective]) -> Self: ...

    def offset(self, offset: int) -> Self: ...

    def limit(self, limit: int) -> Self: ...

    async def get_count(self) -> int:
        """Count matching rows, ignoring any limit and offset."""
        ...

    async def get_result_list(self) -> list[Any]: ...


@runtime_checkable
class IQueryBuilderFactory(Protocol):
    """A repository-like source that creates fresh query builders."""

    def create_query_builder(self, alias: str | None = None) -> IQueryBuilder: ...
