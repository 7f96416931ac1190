"""Utility modules for the SmartGov data layer.

- **errors** -- exception hierarchy rooted at SmartGovError.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
- **timestamps** -- the fixed-width UTC text format used by every
  timestamp column.
"""

from smartgov.utils.errors import (
    ConfigurationError,
    ConnectionUnavailableError,
    MigrationError,
    ProductionGuardError,
    QueryError,
    RepositoryError,
    SmartGovError,
    TransactionError,
)
from smartgov.utils.logging import configure_logging
from smartgov.utils.timestamps import to_db_timestamp, utcnow

__all__ = [
    "ConfigurationError",
    "ConnectionUnavailableError",
    "MigrationError",
    "ProductionGuardError",
    "QueryError",
    "RepositoryError",
    "SmartGovError",
    "TransactionError",
    "configure_logging",
    "to_db_timestamp",
    "utcnow",
]
