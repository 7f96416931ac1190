"""Unit tests for QueryExecutor transaction control using a fake connection source."""

from __future__ import annotations

import sqlite3
from contextlib import asynccontextmanager

import pytest

from smartgov.db.executor import QueryExecutor
from smartgov.interfaces.connection_source import IConnectionSource
from smartgov.utils.errors import TransactionError


class FakeConnection:
    """Records statements; raises for any statement listed in ``fail_on``."""

    def __init__(self, fail_on: tuple[str, ...] = ()) -> None:
        self.statements: list[str] = []
        self.fail_on = set(fail_on)

    async def execute(self, sql: str, params=()):  # noqa: ANN001, ANN201
        self.statements.append(sql)
        if sql in self.fail_on:
            raise sqlite3.OperationalError(f"{sql} failed")


class FakeSource(IConnectionSource):
    def __init__(self, conn: FakeConnection) -> None:
        self.conn = conn
        self.acquired = 0
        self.released = 0

    async def open(self) -> None:
        return None

    @asynccontextmanager
    async def acquire(self):  # noqa: ANN201
        self.acquired += 1
        try:
            yield self.conn
        finally:
            self.released += 1

    async def close(self) -> None:
        return None

    async def ping(self) -> bool:
        return True

    def get_provider_name(self) -> str:
        return "fake"


@pytest.mark.asyncio
async def test_commit_on_success():
    source = FakeSource(FakeConnection())
    async with QueryExecutor(source).transaction() as tx:
        assert tx.in_transaction
    assert source.conn.statements == ["BEGIN", "COMMIT"]
    assert (source.acquired, source.released) == (1, 1)


@pytest.mark.asyncio
async def test_rollback_on_error_reraises_original():
    source = FakeSource(FakeConnection())
    with pytest.raises(KeyError):
        async with QueryExecutor(source).transaction():
            raise KeyError("missing")
    assert source.conn.statements == ["BEGIN", "ROLLBACK"]
    assert source.released == 1


@pytest.mark.asyncio
async def test_failed_commit_is_rolled_back():
    source = FakeSource(FakeConnection(fail_on=("COMMIT",)))
    with pytest.raises(sqlite3.OperationalError, match="COMMIT failed"):
        async with QueryExecutor(source).transaction():
            pass
    assert source.conn.statements == ["BEGIN", "COMMIT", "ROLLBACK"]
    assert source.released == 1


@pytest.mark.asyncio
async def test_failed_rollback_still_surfaces_original_error():
    source = FakeSource(FakeConnection(fail_on=("ROLLBACK",)))
    with pytest.raises(ValueError, match="original"):
        async with QueryExecutor(source).transaction():
            raise ValueError("original")
    assert source.conn.statements == ["BEGIN", "ROLLBACK"]
    assert (source.acquired, source.released) == (1, 1)


@pytest.mark.asyncio
async def test_nested_transaction_does_not_acquire():
    source = FakeSource(FakeConnection())
    async with QueryExecutor(source).transaction() as tx:
        with pytest.raises(TransactionError):
            async with tx.transaction():
                pass
    assert source.acquired == 1
    assert source.conn.statements == ["BEGIN", "COMMIT"]


def test_pooled_executor_is_not_in_transaction():
    assert QueryExecutor(FakeSource(FakeConnection())).in_transaction is False
