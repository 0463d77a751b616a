"""Tests for the pagination exception hierarchy."""

from __future__ import annotations

from cqrs_ddd_pagination.exceptions import (
    InvalidRelationError,
    PaginationError,
    UnsupportedOperatorError,
)


def test_base_error_to_dict() -> None:
    assert PaginationError("boom").to_dict() == {"error": "PaginationError", "message": "boom"}


def test_unsupported_operator_error() -> None:
    err = UnsupportedOperatorError("$overlap", "in-memory")
    assert isinstance(err, PaginationError)
    assert str(err) == "Unsupported operator '$overlap' for in-memory"
    assert err.to_dict()["operator"] == "$overlap"


def test_invalid_relation_error() -> None:
    err = InvalidRelationError("publisher", "Book")
    assert str(err) == "'Book' has no relationship 'publisher'"
    assert err.to_dict() == {"error": "INVALID_RELATION", "relation": "publisher", "model": "Book"}
