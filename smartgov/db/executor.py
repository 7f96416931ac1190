"""Query executor: SQL text + parameters in, rows or a mutation summary out.

An executor is either *pooled* (each call checks a connection out of the
:class:`~smartgov.interfaces.connection_source.IConnectionSource` and
returns it) or *bound* to the single connection of an open transaction.
:meth:`QueryExecutor.transaction` produces bound executors.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Awaitable, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, TypeVar

import aiosqlite
import structlog

from smartgov.interfaces.connection_source import IConnectionSource
from smartgov.utils.errors import TransactionError

logger = structlog.get_logger(logger_name=__name__)

_T = TypeVar("_T")


@dataclass(frozen=True)
class MutationResult:
    """Outcome of an INSERT / UPDATE / DELETE / DDL statement."""

    rowcount: int
    last_row_id: int | None = None


class QueryExecutor:
    """Runs parameterized statements against pooled or bound connections.

    Parameters
    ----------
    source:
        Where connections come from.
    statement_timeout:
        Optional per-statement deadline in seconds.
    connection:
        Internal: the transaction connection a bound executor is tied to.
    """

    def __init__(
        self,
        source: IConnectionSource,
        statement_timeout: float | None = None,
        *,
        connection: aiosqlite.Connection | None = None,
    ) -> None:
        self._source = source
        self._statement_timeout = statement_timeout
        self._connection = connection

    @property
    def in_transaction(self) -> bool:
        return self._connection is not None

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    async def fetch_all(self, sql: str, params: Sequence[Any] = ()) -> list[dict[str, Any]]:
        async with self._connection_scope() as conn:
            return await self._with_deadline(self._fetch(conn, sql, params, limit=None))

    async def fetch_one(self, sql: str, params: Sequence[Any] = ()) -> dict[str, Any] | None:
        async with self._connection_scope() as conn:
            rows = await self._with_deadline(self._fetch(conn, sql, params, limit=1))
        return rows[0] if rows else None

    async def fetch_value(self, sql: str, params: Sequence[Any] = ()) -> Any:
        """Return the first column of the first row, or ``None``."""
        row = await self.fetch_one(sql, params)
        if row is None:
            return None
        return next(iter(row.values()), None)

    async def execute(self, sql: str, params: Sequence[Any] = ()) -> MutationResult:
        async with self._connection_scope() as conn:
            return await self._with_deadline(self._mutate(conn, sql, params))

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[QueryExecutor]:
        """Run the block inside BEGIN / COMMIT on one dedicated connection.

        Yields an executor bound to that connection.  Any exception raised
        by the block, by COMMIT, or a cancellation rolls the transaction
        back before being re-raised.  The connection goes back to the pool
        exactly once, on every exit path.
        """
        if self._connection is not None:
            raise TransactionError("Nested transactions are not supported")

        async with self._source.acquire() as conn:
            await conn.execute("BEGIN")
            logger.debug("transaction_started")
            try:
                yield QueryExecutor(
                    self._source,
                    self._statement_timeout,
                    connection=conn,
                )
                await conn.execute("COMMIT")
            except BaseException as exc:
                await self._rollback(conn, exc)
                raise
            logger.debug("transaction_committed")

    @staticmethod
    async def _rollback(conn: aiosqlite.Connection, cause: BaseException) -> None:
        try:
            await conn.execute("ROLLBACK")
        except aiosqlite.Error as rollback_exc:
            # The original error is what the caller needs to see.
            logger.error(
                "transaction_rollback_failed",
                error=str(rollback_exc),
                cause=repr(cause),
            )
            return
        logger.warning("transaction_rolled_back", cause=repr(cause))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _connection_scope(self) -> AsyncIterator[aiosqlite.Connection]:
        if self._connection is not None:
            yield self._connection
            return
        async with self._source.acquire() as conn:
            yield conn

    async def _with_deadline(self, awaitable: Awaitable[_T]) -> _T:
        if self._statement_timeout is None:
            return await awaitable
        return await asyncio.wait_for(awaitable, timeout=self._statement_timeout)

    @staticmethod
    async def _fetch(
        conn: aiosqlite.Connection,
        sql: str,
        params: Sequence[Any],
        limit: int | None,
    ) -> list[dict[str, Any]]:
        async with conn.execute(sql, tuple(params)) as cursor:
            if limit is None:
                rows = await cursor.fetchall()
            else:
                rows = await cursor.fetchmany(limit)
            columns = [col[0] for col in cursor.description or ()]
        return [dict(zip(columns, row)) for row in rows]

    @staticmethod
    async def _mutate(
        conn: aiosqlite.Connection,
        sql: str,
        params: Sequence[Any],
    ) -> MutationResult:
        async with conn.execute(sql, tuple(params)) as cursor:
            return MutationResult(
                rowcount=max(cursor.rowcount, 0),
                last_row_id=cursor.lastrowid or None,
            )
