"""Structured WHERE / ORDER BY builder.

Repositories never accept SQL text from callers.  A :class:`Filter` is an
immutable conjunction of :class:`Condition` objects, and rendering it checks
each column against the repository's static column tuple.  Only values
travel as bound parameters; identifiers come from code.

    >>> flt = Filter().eq("category", "health").where("sentiment", Operator.LT, 0)
    >>> flt.render(("id", "category", "sentiment"))
    ('category = ? AND sentiment < ?', ['health', 0])
"""

from __future__ import annotations

from collections.abc import Collection, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from smartgov.utils.errors import QueryError


class Operator(str, Enum):
    """Comparison operators a condition may use."""

    EQ = "="
    NE = "!="
    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="
    LIKE = "LIKE"
    IS_NULL = "IS NULL"
    IS_NOT_NULL = "IS NOT NULL"

    @property
    def takes_value(self) -> bool:
        return self not in (Operator.IS_NULL, Operator.IS_NOT_NULL)


def _check_column(column: str, allowed: Collection[str]) -> None:
    if column not in allowed:
        msg = f"Unknown column {column!r}"
        raise QueryError(msg)


@dataclass(frozen=True)
class Condition:
    """A single ``column <op> ?`` predicate."""

    column: str
    operator: Operator = Operator.EQ
    value: Any = None

    def render(self, allowed: Collection[str]) -> tuple[str, list[Any]]:
        _check_column(self.column, allowed)
        if not self.operator.takes_value:
            return f"{self.column} {self.operator.value}", []
        if self.operator is Operator.LIKE:
            # Backslash is the escape character for escape_like() patterns.
            return f"{self.column} LIKE ? ESCAPE '\\'", [self.value]
        return f"{self.column} {self.operator.value} ?", [self.value]


@dataclass(frozen=True)
class Filter:
    """Immutable AND of conditions.  Builder methods return new filters."""

    conditions: tuple[Condition, ...] = ()

    def where(self, column: str, operator: Operator = Operator.EQ, value: Any = None) -> Filter:
        return Filter((*self.conditions, Condition(column, Operator(operator), value)))

    def eq(self, column: str, value: Any) -> Filter:
        """Equality; ``None`` becomes ``IS NULL``."""
        if value is None:
            return self.where(column, Operator.IS_NULL)
        return self.where(column, Operator.EQ, value)

    def __bool__(self) -> bool:
        return bool(self.conditions)

    def render(self, allowed: Collection[str]) -> tuple[str, list[Any]]:
        """Return ``(fragment, params)``; an empty filter renders ``("", [])``."""
        fragments: list[str] = []
        params: list[Any] = []
        for condition in self.conditions:
            fragment, values = condition.render(allowed)
            fragments.append(fragment)
            params.extend(values)
        return " AND ".join(fragments), params


@dataclass(frozen=True)
class OrderBy:
    column: str
    descending: bool = False

    def render(self, allowed: Collection[str]) -> str:
        _check_column(self.column, allowed)
        return f"{self.column} {'DESC' if self.descending else 'ASC'}"


def render_order(order_by: Iterable[OrderBy], allowed: Collection[str]) -> str:
    return ", ".join(order.render(allowed) for order in order_by)


def escape_like(term: str) -> str:
    """Escape ``%``, ``_`` and ``\\`` so *term* matches literally inside LIKE."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
