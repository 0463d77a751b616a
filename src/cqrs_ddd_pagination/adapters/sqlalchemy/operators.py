"""
SQLAlchemy filter operator compilation strategy.

Each :class:`QueryOperator` is compiled by an isolated
``SQLAlchemyFilterOperator`` registered in a ``SQLAlchemyFilterRegistry``.
Looking up an operator that is not registered raises
:class:`UnsupportedOperatorError` instead of silently dropping the filter.
"""

from __future__ import annotations

import operator as op_module
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import and_
from sqlalchemy.types import ARRAY

from ...exceptions import UnsupportedOperatorError
from ...filtering import QueryOperator

if TYPE_CHECKING:
    from sqlalchemy import ColumnElement

BACKEND_NAME = "SQLAlchemy"


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else [value]


def _is_array(column: Any) -> bool:
    return isinstance(getattr(column, "type", None), ARRAY)


class SQLAlchemyFilterOperator(ABC):
    """
    Strategy interface for compiling a filter operator into a SQLAlchemy
    ``ColumnElement[bool]``.
    """

    @property
    @abstractmethod
    def name(self) -> QueryOperator:
        """The operator this strategy handles."""
        ...

    @abstractmethod
    def apply(self, column: Any, value: Any) -> ColumnElement[bool]:
        """
        Build a SQLAlchemy filter clause.

        Args:
            column: A SQLAlchemy column or instrumented attribute.
            value: The token value, already coerced to the column type.
        """
        ...


class _BinaryOperator(SQLAlchemyFilterOperator):
    operator: QueryOperator
    function: Any

    @property
    def name(self) -> QueryOperator:
        return self.operator

    def apply(self, column: Any, value: Any) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", self.function(column, value))


class EqualOperator(_BinaryOperator):
    operator = QueryOperator.EQ
    function = staticmethod(op_module.eq)


class NotEqualOperator(_BinaryOperator):
    operator = QueryOperator.NE
    function = staticmethod(op_module.ne)


class GreaterThanOperator(_BinaryOperator):
    operator = QueryOperator.GT
    function = staticmethod(op_module.gt)


class GreaterEqualOperator(_BinaryOperator):
    operator = QueryOperator.GTE
    function = staticmethod(op_module.ge)


class LessThanOperator(_BinaryOperator):
    operator = QueryOperator.LT
    function = staticmethod(op_module.lt)


class LessEqualOperator(_BinaryOperator):
    operator = QueryOperator.LTE
    function = staticmethod(op_module.le)


class InOperator(SQLAlchemyFilterOperator):
    @property
    def name(self) -> QueryOperator:
        return QueryOperator.IN

    def apply(self, column: Any, value: Any) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", column.in_(_as_list(value)))


class NotInOperator(SQLAlchemyFilterOperator):
    @property
    def name(self) -> QueryOperator:
        return QueryOperator.NIN

    def apply(self, column: Any, value: Any) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", column.not_in(_as_list(value)))


class LikeOperator(SQLAlchemyFilterOperator):
    @property
    def name(self) -> QueryOperator:
        return QueryOperator.LIKE

    def apply(self, column: Any, value: Any) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", column.like(value))


class ILikeOperator(SQLAlchemyFilterOperator):
    @property
    def name(self) -> QueryOperator:
        return QueryOperator.ILIKE

    def apply(self, column: Any, value: Any) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", column.ilike(value))


class ContainsOperator(SQLAlchemyFilterOperator):
    """Array containment on ``ARRAY`` columns, substring match otherwise."""

    @property
    def name(self) -> QueryOperator:
        return QueryOperator.CONTAINS

    def apply(self, column: Any, value: Any) -> ColumnElement[bool]:
        values = _as_list(value)
        if _is_array(column):
            return cast("ColumnElement[bool]", column.contains(values))
        return and_(*(column.contains(v) for v in values))


class OverlapOperator(SQLAlchemyFilterOperator):
    @property
    def name(self) -> QueryOperator:
        return QueryOperator.OVERLAP

    def apply(self, column: Any, value: Any) -> ColumnElement[bool]:
        if not _is_array(column):
            raise UnsupportedOperatorError(
                QueryOperator.OVERLAP.value, f"{BACKEND_NAME} non-ARRAY column"
            )
        return cast("ColumnElement[bool]", column.overlap(_as_list(value)))


class ExistsOperator(SQLAlchemyFilterOperator):
    """``$exists:true`` → ``IS NOT NULL``; ``$exists:false`` → ``IS NULL``."""

    @property
    def name(self) -> QueryOperator:
        return QueryOperator.EXISTS

    def apply(self, column: Any, value: Any) -> ColumnElement[bool]:
        if value is False or value == "false":
            return cast("ColumnElement[bool]", column.is_(None))
        return cast("ColumnElement[bool]", column.is_not(None))


class SQLAlchemyFilterRegistry:
    """
    Registry of ``SQLAlchemyFilterOperator`` instances keyed by
    :class:`QueryOperator`.
    """

    def __init__(self) -> None:
        self._operators: dict[QueryOperator, SQLAlchemyFilterOperator] = {}

    def register(self, operator: SQLAlchemyFilterOperator) -> None:
        self._operators[operator.name] = operator

    def register_all(self, *operators: SQLAlchemyFilterOperator) -> None:
        for op in operators:
            self.register(op)

    def unregister(self, name: QueryOperator) -> None:
        self._operators.pop(name, None)

    def get(self, name: QueryOperator) -> SQLAlchemyFilterOperator | None:
        return self._operators.get(name)

    def has(self, name: QueryOperator) -> bool:
        return name in self._operators

    @property
    def supported_operators(self) -> set[QueryOperator]:
        return set(self._operators.keys())

    def apply(self, name: QueryOperator, column: Any, value: Any) -> ColumnElement[bool]:
        """
        Look up the operator and apply.

        Raises:
            UnsupportedOperatorError: If the operator is not registered.
        """
        op = self.get(name)
        if op is None:
            raise UnsupportedOperatorError(name.value, BACKEND_NAME)
        return op.apply(column, value)


def build_default_registry() -> SQLAlchemyFilterRegistry:
    registry = SQLAlchemyFilterRegistry()
    registry.register_all(
        EqualOperator(),
        NotEqualOperator(),
        GreaterThanOperator(),
        GreaterEqualOperator(),
        LessThanOperator(),
        LessEqualOperator(),
        InOperator(),
        NotInOperator(),
        LikeOperator(),
        ILikeOperator(),
        ContainsOperator(),
        OverlapOperator(),
        ExistsOperator(),
    )
    return registry


DEFAULT_FILTER_REGISTRY = build_default_registry()
