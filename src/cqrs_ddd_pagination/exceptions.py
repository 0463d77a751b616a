"""
Pagination exception hierarchy.

Malformed query input never raises; these exceptions signal programming or
configuration errors that must surface while the request is handled.
All exceptions provide ``to_dict()`` for API-friendly error responses.
"""

from __future__ import annotations

from typing import Any


class PaginationError(Exception):
    """Base exception for all pagination errors."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.__class__.__name__,
            "message": str(self),
        }


class UnsupportedOperatorError(PaginationError):
    """A filter operator has no predicate implementation in the target backend."""

    def __init__(self, operator: str, backend: str) -> None:
        self.operator = operator
        self.backend = backend
        super().__init__(f"Unsupported operator {operator!r} for {backend}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "UNSUPPORTED_OPERATOR",
            "operator": self.operator,
            "backend": self.backend,
        }


class InvalidRelationError(PaginationError):
    """A configured relation cannot be joined on the queried model."""

    def __init__(self, relation: str, model_name: str) -> None:
        self.relation = relation
        self.model_name = model_name
        super().__init__(f"'{model_name}' has no relationship '{relation}'")

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "INVALID_RELATION",
            "relation": self.relation,
            "model": self.model_name,
        }
