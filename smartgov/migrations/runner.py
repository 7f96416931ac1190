"""Apply, reset and verify the database schema.

# ─── HOW MIGRATIONS ARE APPLIED ──────────────────────────────────────
#
# The ``migrations`` ledger table records one row per applied version.
# ``run_migrations()`` walks the catalog in declared order and, for each
# version missing from the ledger, runs the migration's statements AND
# inserts its ledger row inside one transaction.  SQLite DDL is
# transactional, so a failed migration leaves neither schema changes nor a
# ledger row behind, and the next run resumes at that same version.
#
# Two runners pointed at the same database at the same time may both see a
# version as pending.  Deployments run one migrator at a time.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import aiosqlite
import structlog

from smartgov.config.settings import Settings
from smartgov.db.executor import QueryExecutor
from smartgov.migrations.catalog import (
    CREATE_LEDGER_SQL,
    LEDGER_TABLE,
    MANAGED_TABLES,
    MIGRATIONS,
    validate_catalog,
)
from smartgov.models.migration import Migration, MigrationRecord
from smartgov.repositories.agent_log_repository import AgentLogRepository
from smartgov.repositories.feedback_repository import FeedbackRepository
from smartgov.repositories.summary_cache_repository import SummaryCacheRepository
from smartgov.utils.errors import ProductionGuardError, SmartGovError

logger = structlog.get_logger(logger_name=__name__)

_SELECT_APPLIED_SQL = f"""\
SELECT id, description, applied_at
FROM {LEDGER_TABLE}
ORDER BY applied_at, id;
"""

_RECORD_SQL = f"INSERT INTO {LEDGER_TABLE} (id, description) VALUES (?, ?);"

_TABLE_INFO_SQL = "SELECT name, pk FROM pragma_table_info(?);"

# Every table the application reads, with the columns it reads.
REQUIRED_SCHEMA: dict[str, tuple[str, ...]] = {
    FeedbackRepository.table: FeedbackRepository.columns,
    SummaryCacheRepository.table: SummaryCacheRepository.columns,
    AgentLogRepository.table: AgentLogRepository.columns,
    LEDGER_TABLE: ("id", "description", "applied_at"),
}


class MigrationRunner:
    """Applies the migration catalog through a :class:`QueryExecutor`.

    Parameters
    ----------
    executor:
        Pooled (unbound) executor; each migration gets its own transaction.
    settings:
        Consulted for the production guard on :meth:`reset_database`.
    migrations:
        The ordered catalog.  Defaults to :data:`MIGRATIONS`.
    """

    def __init__(
        self,
        executor: QueryExecutor,
        settings: Settings,
        migrations: tuple[Migration, ...] = MIGRATIONS,
    ) -> None:
        validate_catalog(migrations)
        self._executor = executor
        self._settings = settings
        self._migrations = migrations

    @property
    def migrations(self) -> tuple[Migration, ...]:
        return self._migrations

    # ------------------------------------------------------------------
    # Ledger
    # ------------------------------------------------------------------

    async def ensure_ledger(self) -> None:
        await self._executor.execute(CREATE_LEDGER_SQL)

    async def applied_migrations(self) -> list[MigrationRecord]:
        await self.ensure_ledger()
        rows = await self._executor.fetch_all(_SELECT_APPLIED_SQL)
        return [MigrationRecord.model_validate(row) for row in rows]

    async def pending_migrations(self) -> list[Migration]:
        """Catalog entries missing from the ledger, in catalog order."""
        applied = {record.id for record in await self.applied_migrations()}
        return [m for m in self._migrations if m.id not in applied]

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def run_migrations(self) -> list[str]:
        """Apply every pending migration and return the ids applied.

        Stops at the first failure and re-raises it; migrations applied
        before the failure stay applied.
        """
        logger.info("migrations_starting", total=len(self._migrations))
        pending = await self.pending_migrations()
        if not pending:
            logger.info("migrations_up_to_date")
            return []

        applied: list[str] = []
        for migration in pending:
            logger.info(
                "migration_applying",
                migration_id=migration.id,
                description=migration.description,
            )
            try:
                async with self._executor.transaction() as tx:
                    for statement in migration.statements:
                        await tx.execute(statement)
                    await tx.execute(_RECORD_SQL, (migration.id, migration.description))
            except Exception as exc:
                logger.error(
                    "migration_failed",
                    migration_id=migration.id,
                    error=str(exc),
                    applied=applied,
                )
                raise
            applied.append(migration.id)
            logger.info("migration_applied", migration_id=migration.id)

        logger.info("migrations_completed", applied=applied)
        return applied

    async def reset_database(self) -> list[str]:
        """Drop every managed table, then re-apply the whole catalog.

        Raises:
            ProductionGuardError: when settings mark this deployment as
                production.  Nothing is touched in that case.
        """
        if self._settings.is_production:
            logger.error("database_reset_refused", app_env=self._settings.app_env)
            raise ProductionGuardError()

        logger.warning("database_resetting", tables=list(MANAGED_TABLES))
        async with self._executor.transaction() as tx:
            for table in MANAGED_TABLES:
                await tx.execute(f"DROP TABLE IF EXISTS {table}")
        logger.info("database_reset_completed")
        return await self.run_migrations()

    async def verify_schema(self) -> bool:
        """Check that every required table and column exists.

        Returns ``False`` (after logging the reason) on a missing table,
        a missing column, a table whose primary key is not ``id``, or a
        database error.
        """
        logger.info("schema_verifying")
        try:
            for table, columns in REQUIRED_SCHEMA.items():
                rows = await self._executor.fetch_all(_TABLE_INFO_SQL, (table,))
                if not rows:
                    logger.error("schema_table_missing", table=table)
                    return False
                present = {row["name"] for row in rows}
                missing = [col for col in columns if col not in present]
                if missing:
                    logger.error("schema_columns_missing", table=table, columns=missing)
                    return False
                primary_key = [row["name"] for row in rows if row["pk"]]
                if primary_key != ["id"]:
                    logger.error("schema_primary_key_mismatch", table=table, primary_key=primary_key)
                    return False
        except (aiosqlite.Error, SmartGovError) as exc:
            logger.error("schema_verification_failed", error=str(exc))
            return False

        logger.info("schema_verified", tables=list(REQUIRED_SCHEMA))
        return True
