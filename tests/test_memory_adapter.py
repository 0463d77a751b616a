"""Tests for the in-memory query builder."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import pytest

from cqrs_ddd_pagination.adapters.memory import (
    InMemoryCollection,
    InMemoryQueryBuilder,
    resolve_path,
)
from cqrs_ddd_pagination.exceptions import UnsupportedOperatorError
from cqrs_ddd_pagination.filtering import parse_filter_token
from cqrs_ddd_pagination.ordering import OrderDirective, QueryOrder
from cqrs_ddd_pagination.ports import IQueryBuilder, IQueryBuilderFactory

UTC = timezone.utc


@dataclass
class Author:
    name: str


@dataclass
class Book:
    id: int
    title: str
    author: Author | None
    tags: list[str]
    published: datetime | None = None


BOOKS = [
    Book(1, "Dune", Author("Herbert"), ["scifi", "classic"], datetime(1965, 8, 1, tzinfo=UTC)),
    Book(2, "Emma", Author("Austen"), ["romance", "classic"], datetime(1815, 12, 23, tzinfo=UTC)),
    Book(3, "Neuromancer", Author("Gibson"), ["scifi", "cyberpunk"]),
    Book(4, "Anonymous Poems", None, []),
]


async def _ids(qb: Any) -> list[int]:
    return [book.id for book in await qb.get_result_list()]


async def _filter(column: str, raw: str) -> list[int]:
    qb = InMemoryQueryBuilder(BOOKS)
    token = parse_filter_token(raw)
    assert token is not None
    return await _ids(qb.where(qb.predicate(column, token)))


def test_resolve_path() -> None:
    assert resolve_path(BOOKS[0], "author.name") == "Herbert"
    assert resolve_path(BOOKS[3], "author.name") is None
    assert resolve_path({"a": {"b": 1}}, "a.b") == 1
    assert resolve_path({"a": 1}, "missing") is None


def test_builders_satisfy_ports() -> None:
    assert isinstance(InMemoryQueryBuilder([]), IQueryBuilder)
    assert isinstance(InMemoryCollection([]), IQueryBuilderFactory)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("column", "raw", "expected"),
    [
        ("id", "2", [2]),
        ("id", "$ne:2", [1, 3, 4]),
        ("id", "$gt:2", [3, 4]),
        ("id", "$lt:x", []),
        ("id", "$in:1,4", [1, 4]),
        ("id", "$nin:1,4", [2, 3]),
        ("title", "$like:%man%", [3]),
        ("title", "$like:e_ma", []),
        ("title", "$like:E_ma", [2]),
        ("title", "$ilike:POEM", [4]),
        ("author.name", "$ilike:au", [2]),
        ("tags", "$contains:scifi,classic", [1]),
        ("tags", "$overlap:romance,cyberpunk", [2, 3]),
        ("author", "$exists:true", [1, 2, 3]),
        ("author", "$exists:false", [4]),
        ("published", "$lt:1900-01-01T00:00:00Z", [2]),
        ("title", "$not:$eq:Dune", [2, 3, 4]),
    ],
)
async def test_operators(column: str, raw: str, expected: list[int]) -> None:
    assert await _filter(column, raw) == expected


def test_missing_operator_is_unsupported() -> None:
    qb = InMemoryQueryBuilder(BOOKS, operators={})
    token = parse_filter_token("$eq:1")
    assert token is not None

    with pytest.raises(UnsupportedOperatorError) as exc_info:
        qb.predicate("id", token)

    assert exc_info.value.to_dict() == {
        "error": "UNSUPPORTED_OPERATOR",
        "operator": "$eq",
        "backend": "in-memory",
    }


@pytest.mark.asyncio
async def test_builder_is_generative() -> None:
    qb = InMemoryQueryBuilder(BOOKS)
    limited = qb.offset(1).limit(2)

    assert await _ids(limited) == [2, 3]
    assert await _ids(qb) == [1, 2, 3, 4]


@pytest.mark.asyncio
async def test_count_ignores_offset_and_limit() -> None:
    qb = InMemoryQueryBuilder(BOOKS).offset(3).limit(1)
    assert await qb.get_count() == 4


@pytest.mark.asyncio
async def test_or_where() -> None:
    qb = InMemoryQueryBuilder(BOOKS)
    qb = qb.where(lambda book: book.id == 1).or_where(lambda book: book.id == 3)
    assert await _ids(qb) == [1, 3]


@pytest.mark.asyncio
async def test_root_alias_and_select() -> None:
    qb = InMemoryCollection(BOOKS).create_query_builder("b")
    qb = qb.select(["b.id", "author.name"]).order_by(
        [OrderDirective("b.title", QueryOrder.DESC)]
    )

    assert await qb.limit(2).get_result_list() == [
        {"b.id": 3, "author.name": "Gibson"},
        {"b.id": 2, "author.name": "Austen"},
    ]


@pytest.mark.asyncio
async def test_null_check_ordering() -> None:
    qb = InMemoryQueryBuilder(BOOKS).order_by(
        [
            OrderDirective("published", QueryOrder.DESC, null_check=True),
            OrderDirective("published", QueryOrder.ASC),
        ]
    )
    assert await _ids(qb) == [3, 4, 2, 1]


@pytest.mark.asyncio
async def test_join_records_relation() -> None:
    qb = InMemoryQueryBuilder(BOOKS).join("author", "a", cond=lambda book: book.id > 1)

    assert qb.joins == (("inner", "author", "a"),)
    assert await _ids(qb) == [2, 3]


@pytest.mark.asyncio
async def test_join_filter_is_kept_when_predicate_is_replaced() -> None:
    qb = InMemoryQueryBuilder(BOOKS).join("author", "a").where(lambda book: book.id >= 3)

    assert await _ids(qb) == [3]
    assert await qb.get_count() == 1
