"""Shared pytest fixtures for the SmartGov test suite.

Every database fixture points at a fresh SQLite file under ``tmp_path`` so
tests never touch the real data directory and never share state.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path

import aiosqlite
import pytest

from smartgov.config.settings import Settings
from smartgov.context import DatabaseContext, build_database_context
from smartgov.db.executor import QueryExecutor
from smartgov.db.pool import SQLiteConnectionPool
from smartgov.interfaces.connection_source import IConnectionSource
from smartgov.repositories.summary_cache_repository import SummaryCacheRepository

# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------


class FixedClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class CountingConnectionSource(IConnectionSource):
    """Wraps a real pool and counts checkouts and returns."""

    def __init__(self, inner: IConnectionSource) -> None:
        self.inner = inner
        self.acquired = 0
        self.released = 0

    async def open(self) -> None:
        await self.inner.open()

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[aiosqlite.Connection]:
        async with self.inner.acquire() as conn:
            self.acquired += 1
            try:
                yield conn
            finally:
                self.released += 1

    async def close(self) -> None:
        await self.inner.close()

    async def ping(self) -> bool:
        return await self.inner.ping()

    def get_provider_name(self) -> str:
        return f"counting:{self.inner.get_provider_name()}"


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


def make_settings(db_path: Path, **overrides) -> Settings:
    """Build Settings for a temp database, ignoring any local .env file."""
    defaults = {
        "database_path": str(db_path),
        "pool_size": 3,
        "pool_acquire_timeout": 2.0,
        "app_env": "test",
    }
    defaults.update(overrides)
    return Settings(_env_file=None, **defaults)


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "smartgov.db"


@pytest.fixture
def settings(db_path: Path) -> Settings:
    return make_settings(db_path)


@pytest.fixture
def settings_factory(db_path: Path):
    """Settings for the test database with per-test overrides."""

    def factory(**overrides) -> Settings:
        return make_settings(db_path, **overrides)

    return factory


@pytest.fixture
async def pool(settings: Settings) -> AsyncIterator[SQLiteConnectionPool]:
    p = SQLiteConnectionPool(
        settings.database_path,
        size=settings.pool_size,
        acquire_timeout=settings.pool_acquire_timeout,
    )
    await p.open()
    yield p
    await p.close()


@pytest.fixture
async def counting_pool(pool: SQLiteConnectionPool) -> CountingConnectionSource:
    return CountingConnectionSource(pool)


@pytest.fixture
async def ctx(settings: Settings, pool: SQLiteConnectionPool) -> DatabaseContext:
    """A fully migrated data layer on a fresh database."""
    context = build_database_context(settings, pool)
    await context.migrations.run_migrations()
    return context


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def cache(ctx: DatabaseContext, clock: FixedClock) -> SummaryCacheRepository:
    """Summary cache on the migrated database, driven by a fixed clock."""
    return SummaryCacheRepository(ctx.executor, default_ttl=timedelta(hours=24), clock=clock)


@pytest.fixture
def executor(ctx: DatabaseContext) -> QueryExecutor:
    return ctx.executor
