"""Database access: connection pool, query builder and executor."""

from smartgov.db.executor import MutationResult, QueryExecutor
from smartgov.db.pool import SQLiteConnectionPool
from smartgov.db.query import Condition, Filter, Operator, OrderBy, escape_like

__all__ = [
    "Condition",
    "Filter",
    "MutationResult",
    "Operator",
    "OrderBy",
    "QueryExecutor",
    "SQLiteConnectionPool",
    "escape_like",
]
