"""Tests for the null-aware ordering strategy."""

from __future__ import annotations

import pytest

from cqrs_ddd_pagination.ordering import (
    Dialect,
    OrderDirective,
    QueryOrder,
    get_query_order,
    resolve_ordering,
)
from cqrs_ddd_pagination.sort import Sort, SortDirection


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("postgresql", Dialect.POSTGRESQL),
        ("postgres", Dialect.POSTGRESQL),
        ("sqlite", Dialect.SQLITE),
        ("mysql", Dialect.MYSQL),
        ("MariaDB", Dialect.MARIADB),
    ],
)
def test_dialect_from_name(name: str, expected: Dialect) -> None:
    assert Dialect.from_name(name) is expected


def test_dialect_from_unknown_name() -> None:
    assert Dialect.from_name("oracle") is Dialect.GENERIC
    assert Dialect.from_name("mssql") is Dialect.MSSQL
    assert Dialect.GENERIC.supports_nulls_ordering
    assert not Dialect.MSSQL.supports_nulls_ordering


def test_query_order_properties() -> None:
    assert QueryOrder.DESC_NULLS_LAST.descending
    assert QueryOrder.DESC_NULLS_LAST.nulls_first is False
    assert not QueryOrder.ASC_NULLS_FIRST.descending
    assert QueryOrder.ASC_NULLS_FIRST.nulls_first is True
    assert QueryOrder.ASC.nulls_first is None


def test_get_query_order() -> None:
    assert get_query_order(SortDirection.ASC) is QueryOrder.ASC
    assert get_query_order(SortDirection.DESC, nulls_first=True) is QueryOrder.DESC_NULLS_FIRST
    assert get_query_order(SortDirection.ASC, nulls_first=False) is QueryOrder.ASC_NULLS_LAST


@pytest.mark.parametrize("dialect", [Dialect.POSTGRESQL, Dialect.SQLITE, Dialect.GENERIC])
def test_native_nulls_ordering(dialect: Dialect) -> None:
    sorts = [Sort("score", SortDirection.DESC, nulls_first=True), Sort("id", SortDirection.ASC)]
    assert resolve_ordering(sorts, dialect) == [
        OrderDirective("score", QueryOrder.DESC_NULLS_FIRST),
        OrderDirective("id", QueryOrder.ASC),
    ]


@pytest.mark.parametrize("dialect", [Dialect.MYSQL, Dialect.MARIADB, Dialect.MSSQL])
def test_null_check_ordering(dialect: Dialect) -> None:
    sorts = [
        Sort("score", SortDirection.ASC, nulls_first=True),
        Sort("rank", SortDirection.DESC, nulls_first=False),
        Sort("id", SortDirection.ASC),
    ]
    assert resolve_ordering(sorts, dialect) == [
        OrderDirective("score", QueryOrder.DESC, null_check=True),
        OrderDirective("score", QueryOrder.ASC),
        OrderDirective("rank", QueryOrder.ASC, null_check=True),
        OrderDirective("rank", QueryOrder.DESC),
        OrderDirective("id", QueryOrder.ASC),
    ]
