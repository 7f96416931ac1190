"""Unit tests for the exception hierarchy, settings and the migration catalog."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from smartgov.config.settings import Settings, load_settings
from smartgov.migrations.catalog import MANAGED_TABLES, MIGRATIONS, validate_catalog
from smartgov.models.migration import Migration
from smartgov.utils.errors import (
    ConfigurationError,
    ConnectionUnavailableError,
    MigrationError,
    ProductionGuardError,
    QueryError,
    SmartGovError,
)
from smartgov.utils.timestamps import to_db_timestamp


class TestErrors:
    def test_table_prefix_in_str(self) -> None:
        assert str(QueryError("No fields to update", "feedback")) == "[feedback] No fields to update"

    def test_no_prefix_without_table(self) -> None:
        assert str(ConnectionUnavailableError()) == "No database connection available"

    def test_migration_error_defaults_to_ledger_table(self) -> None:
        assert MigrationError().table == "migrations"

    @pytest.mark.parametrize("cls", [QueryError, ProductionGuardError, MigrationError])
    def test_all_errors_share_base(self, cls) -> None:
        assert issubclass(cls, SmartGovError)


class TestSettings:
    def test_defaults(self, monkeypatch) -> None:
        for var in ("DATABASE_PATH", "APP_ENV", "POOL_SIZE", "SUMMARY_CACHE_TTL_HOURS"):
            monkeypatch.delenv(var, raising=False)
        s = Settings(_env_file=None)
        assert s.database_path == "data/smartgov.db"
        assert s.pool_size == 5
        assert s.statement_timeout is None
        assert s.summary_cache_ttl_hours == 24
        assert not s.is_production

    def test_environment_overrides(self, monkeypatch) -> None:
        monkeypatch.setenv("APP_ENV", "Production")
        monkeypatch.setenv("POOL_SIZE", "2")
        s = Settings(_env_file=None)
        assert s.is_production
        assert s.pool_size == 2

    def test_load_settings_wraps_validation_errors(self, monkeypatch) -> None:
        monkeypatch.setenv("POOL_SIZE", "0")
        with pytest.raises(ConfigurationError, match="pool_size") as exc_info:
            load_settings(_env_file=None)
        assert isinstance(exc_info.value, SmartGovError)

    def test_load_settings_passes_overrides(self) -> None:
        s = load_settings(_env_file=None, database_path="x.db")
        assert s.database_path == "x.db"


class TestTimestamps:
    def test_fixed_width_utc_format(self) -> None:
        local = datetime(2026, 1, 2, 5, 4, 3, 7000, tzinfo=timezone(timedelta(hours=2)))
        assert to_db_timestamp(local) == "2026-01-02T03:04:03.007000Z"

    def test_naive_datetime_is_treated_as_utc(self) -> None:
        assert to_db_timestamp(datetime(2026, 1, 2)) == "2026-01-02T00:00:00.000000Z"


class TestMigrationCatalog:
    def test_catalog_order_and_ids(self) -> None:
        assert [m.id for m in MIGRATIONS] == ["001_initial_schema", "002_query_indexes"]

    def test_duplicate_ids_rejected(self) -> None:
        dup = Migration(id="001_x", description="x", statements=("SELECT 1",))
        with pytest.raises(MigrationError, match="Duplicate"):
            validate_catalog((dup, dup))

    def test_reset_drops_children_before_parents(self) -> None:
        assert MANAGED_TABLES.index("agent_log") < MANAGED_TABLES.index("feedback")
        assert MANAGED_TABLES[-1] == "migrations"
