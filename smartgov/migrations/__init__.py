"""Schema migrations: the ordered catalog and the runner that applies it."""

from smartgov.migrations.catalog import MANAGED_TABLES, MIGRATIONS, validate_catalog
from smartgov.migrations.runner import REQUIRED_SCHEMA, MigrationRunner

__all__ = [
    "MANAGED_TABLES",
    "MIGRATIONS",
    "REQUIRED_SCHEMA",
    "MigrationRunner",
    "validate_catalog",
]
