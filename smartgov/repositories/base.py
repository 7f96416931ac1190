"""Table-scoped CRUD building blocks shared by every repository.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: Generic Repository (between the domain repositories and the
#        QueryExecutor).
#
# A concrete repository declares four class attributes:
#
#   table         - the table name
#   columns       - every column, in storage order
#   model         - the pydantic model a row maps to
#   json_columns  - columns holding JSON text
#
# Only these static identifiers are ever interpolated into SQL text.
# Column names arriving at runtime (field-map keys, filter columns, order
# columns) are checked against ``columns``; every value is a bound ``?``.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import copy
import json
from collections.abc import Awaitable, Callable, Iterable, Mapping
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar, Generic, TypeVar

import structlog
from pydantic import BaseModel

from smartgov.db.executor import QueryExecutor
from smartgov.db.query import Filter, OrderBy, render_order
from smartgov.utils.errors import QueryError, RepositoryError
from smartgov.utils.timestamps import to_db_timestamp, utcnow

logger = structlog.get_logger(logger_name=__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)
_RepoT = TypeVar("_RepoT", bound="BaseRepository[Any]")
_T = TypeVar("_T")


class BaseRepository(Generic[ModelT]):
    """Generic CRUD over one table, mapping rows to ``ModelT``."""

    table: ClassVar[str]
    columns: ClassVar[tuple[str, ...]]
    model: ClassVar[type[BaseModel]]
    json_columns: ClassVar[frozenset[str]] = frozenset()

    def __init__(self, executor: QueryExecutor) -> None:
        self._executor = executor

    @property
    def executor(self) -> QueryExecutor:
        return self._executor

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def find_by_id(self, record_id: str) -> ModelT | None:
        """Return the row with *record_id*, or ``None`` if there is none."""
        row = await self._executor.fetch_one(
            f"SELECT * FROM {self.table} WHERE id = ? LIMIT 1",
            (record_id,),
        )
        return self._to_model(row) if row is not None else None

    async def find_many(
        self,
        where: Filter | None = None,
        order_by: Iterable[OrderBy] = (),
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[ModelT]:
        """Return matching rows in order.

        *offset* only applies together with *limit*; on its own it is ignored.
        """
        sql, params = self._select("SELECT *", where)
        order_sql = render_order(order_by, self.columns)
        if order_sql:
            sql += f" ORDER BY {order_sql}"
        if limit is not None:
            if limit < 0:
                raise QueryError(f"limit must be non-negative, got {limit}", self.table)
            sql += " LIMIT ?"
            params.append(limit)
            if offset:
                if offset < 0:
                    raise QueryError(f"offset must be non-negative, got {offset}", self.table)
                sql += " OFFSET ?"
                params.append(offset)
        rows = await self._executor.fetch_all(sql, params)
        return [self._to_model(row) for row in rows]

    async def find_one(
        self,
        where: Filter,
        order_by: Iterable[OrderBy] = (),
    ) -> ModelT | None:
        rows = await self.find_many(where, order_by, limit=1)
        return rows[0] if rows else None

    async def count(self, where: Filter | None = None) -> int:
        sql, params = self._select("SELECT COUNT(*) AS count", where)
        value = await self._executor.fetch_value(sql, params)
        return int(value or 0)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def insert(self, fields: Mapping[str, Any]) -> str:
        """Insert one row and return its identifier.

        The engine-generated id (via ``RETURNING id``) wins; otherwise the
        ``id`` supplied in *fields* is returned.
        """
        columns = self._ordered_columns(fields)
        if not columns:
            raise QueryError("No fields to insert", self.table)
        placeholders = ", ".join("?" for _ in columns)
        sql = (
            f"INSERT INTO {self.table} ({', '.join(columns)}) "
            f"VALUES ({placeholders}) RETURNING id"
        )
        params = [self._encode(col, fields[col]) for col in columns]
        row = await self._executor.fetch_one(sql, params)

        record_id = row.get("id") if row else None
        if record_id is None:
            record_id = fields.get("id")
        if record_id is None:
            raise RepositoryError("Insert produced no identifier", self.table)
        logger.debug("row_inserted", table=self.table, id=str(record_id))
        return str(record_id)

    async def update_by_id(self, record_id: str, fields: Mapping[str, Any]) -> bool:
        """Update the given columns; ``False`` if *record_id* does not exist.

        ``updated_at`` is stamped automatically when the table has it and
        the caller did not set it.
        """
        if not fields:
            raise QueryError("No fields to update", self.table)
        values = dict(fields)
        if "updated_at" in self.columns and "updated_at" not in values:
            values["updated_at"] = utcnow()
        columns = self._ordered_columns(values)
        set_clause = ", ".join(f"{col} = ?" for col in columns)
        params = [self._encode(col, values[col]) for col in columns]
        params.append(record_id)
        result = await self._executor.execute(
            f"UPDATE {self.table} SET {set_clause} WHERE id = ?",
            params,
        )
        return result.rowcount > 0

    async def delete_by_id(self, record_id: str) -> bool:
        result = await self._executor.execute(
            f"DELETE FROM {self.table} WHERE id = ?",
            (record_id,),
        )
        return result.rowcount > 0

    async def delete_where(self, where: Filter) -> int:
        """Delete every row matching *where*; returns the number removed."""
        if not where:
            raise QueryError("delete_where requires a non-empty filter", self.table)
        fragment, params = self._render_where(where)
        result = await self._executor.execute(
            f"DELETE FROM {self.table} WHERE {fragment}",
            params,
        )
        return result.rowcount

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    async def transaction(
        self: _RepoT,
        unit_of_work: Callable[[_RepoT], Awaitable[_T]],
    ) -> _T:
        """Run *unit_of_work* atomically and return its result.

        The unit of work receives a copy of this repository bound to one
        dedicated connection; every call it makes through that copy is part
        of the transaction.  On any failure the transaction is rolled back
        and the original exception propagates.
        """
        async with self._executor.transaction() as tx_executor:
            return await unit_of_work(self.bind(tx_executor))

    def bind(self: _RepoT, executor: QueryExecutor) -> _RepoT:
        """Return a shallow copy of this repository that uses *executor*.

        Lets several repositories share one transaction::

            async with ctx.executor.transaction() as tx:
                await ctx.feedback.bind(tx).mark_as_processed(...)
                await ctx.agent_logs.bind(tx).complete(...)
        """
        bound = copy.copy(self)
        bound._executor = executor
        return bound

    # ------------------------------------------------------------------
    # Row mapping
    # ------------------------------------------------------------------

    def _render_where(self, where: Filter) -> tuple[str, list[Any]]:
        fragment, params = where.render(self.columns)
        return fragment, [self._encode_param(value) for value in params]

    def _select(self, head: str, where: Filter | None) -> tuple[str, list[Any]]:
        sql = f"{head} FROM {self.table}"
        params: list[Any] = []
        if where:
            fragment, params = self._render_where(where)
            sql += f" WHERE {fragment}"
        return sql, params

    def _ordered_columns(self, fields: Mapping[str, Any]) -> list[str]:
        unknown = sorted(set(fields) - set(self.columns))
        if unknown:
            raise QueryError(f"Unknown column(s): {', '.join(unknown)}", self.table)
        return [col for col in self.columns if col in fields]

    def _encode(self, column: str, value: Any) -> Any:
        if value is None:
            return None
        if column in self.json_columns:
            if isinstance(value, BaseModel):
                value = value.model_dump(mode="json", by_alias=True)
            return json.dumps(value)
        return self._encode_param(value)

    @staticmethod
    def _encode_param(value: Any) -> Any:
        if isinstance(value, datetime):
            return to_db_timestamp(value)
        if isinstance(value, Enum):
            return value.value
        if isinstance(value, bool):
            return int(value)
        return value

    def _decode_row(self, row: Mapping[str, Any]) -> dict[str, Any]:
        decoded = dict(row)
        for column in self.json_columns:
            raw = decoded.get(column)
            if isinstance(raw, (str, bytes)):
                decoded[column] = json.loads(raw)
        return decoded

    def _to_model(self, row: Mapping[str, Any]) -> ModelT:
        return self.model.model_validate(self._decode_row(row))  # type: ignore[return-value]
