"""SQLAlchemy 2.x adapter (requires the ``sqlalchemy`` extra)."""

from __future__ import annotations

from .builder import SQLAlchemyQueryBuilder, SQLAlchemyQuerySource, coerce_to_column
from .operators import (
    DEFAULT_FILTER_REGISTRY,
    SQLAlchemyFilterOperator,
    SQLAlchemyFilterRegistry,
    build_default_registry,
)

__all__ = [
    "DEFAULT_FILTER_REGISTRY",
    "SQLAlchemyFilterOperator",
    "SQLAlchemyFilterRegistry",
    "SQLAlchemyQueryBuilder",
    "SQLAlchemyQuerySource",
    "build_default_registry",
    "coerce_to_column",
]
