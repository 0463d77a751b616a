"""Query-builder adapters implementing :class:`~cqrs_ddd_pagination.ports.IQueryBuilder`."""

from __future__ import annotations

from .memory import InMemoryCollection, InMemoryQueryBuilder

__all__ = [
    "InMemoryCollection",
    "InMemoryQueryBuilder",
]
