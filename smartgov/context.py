"""Wiring for the data layer: one place that builds the pool, executor,
repositories and migration runner from a :class:`Settings` object.

Nothing here is a module-level singleton.  Long-running processes build one
context at startup and pass it down; scripts and tests use the
:func:`database_context` async context manager, which always closes the
pool on the way out::

    async with database_context(Settings()) as ctx:
        await ctx.migrations.run_migrations()
        page = await ctx.feedback.list_feedback(category="health")
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import timedelta

import structlog

from smartgov.config.settings import Settings
from smartgov.db.executor import QueryExecutor
from smartgov.db.pool import SQLiteConnectionPool
from smartgov.interfaces.connection_source import IConnectionSource
from smartgov.migrations.runner import MigrationRunner
from smartgov.repositories.agent_log_repository import AgentLogRepository
from smartgov.repositories.feedback_repository import FeedbackRepository
from smartgov.repositories.summary_cache_repository import SummaryCacheRepository

logger = structlog.get_logger(logger_name=__name__)


@dataclass(frozen=True)
class DatabaseContext:
    """Everything a caller needs to talk to the database."""

    settings: Settings
    pool: IConnectionSource
    executor: QueryExecutor
    feedback: FeedbackRepository
    summary_cache: SummaryCacheRepository
    agent_logs: AgentLogRepository
    migrations: MigrationRunner

    async def close(self) -> None:
        await self.pool.close()


def build_database_context(settings: Settings, pool: IConnectionSource) -> DatabaseContext:
    """Assemble a context around an existing connection source.

    The pool is not opened here; :func:`create_database_context` does that.
    """
    executor = QueryExecutor(pool, statement_timeout=settings.statement_timeout)
    return DatabaseContext(
        settings=settings,
        pool=pool,
        executor=executor,
        feedback=FeedbackRepository(executor),
        summary_cache=SummaryCacheRepository(
            executor,
            default_ttl=timedelta(hours=settings.summary_cache_ttl_hours),
        ),
        agent_logs=AgentLogRepository(executor),
        migrations=MigrationRunner(executor, settings),
    )


async def create_database_context(settings: Settings) -> DatabaseContext:
    """Open a SQLite pool per *settings* and wire the data layer around it."""
    pool = SQLiteConnectionPool(
        settings.database_path,
        size=settings.pool_size,
        acquire_timeout=settings.pool_acquire_timeout,
    )
    await pool.open()
    logger.info(
        "database_context_created",
        provider=pool.get_provider_name(),
        pool_size=settings.pool_size,
        environment=settings.app_env,
    )
    return build_database_context(settings, pool)


@asynccontextmanager
async def database_context(settings: Settings) -> AsyncIterator[DatabaseContext]:
    ctx = await create_database_context(settings)
    try:
        yield ctx
    finally:
        await ctx.close()
        logger.info("database_context_closed", provider=ctx.pool.get_provider_name())
