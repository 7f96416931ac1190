"""Custom exception hierarchy for the SmartGov data layer.

All application exceptions inherit from :class:`SmartGovError`, which
carries an optional ``table`` so error handlers can identify which table
(e.g. "feedback", "summary_cache", "migrations") the failure concerns.

    SmartGovError  (base -- catch-all for any data-layer error)
    +-- ConfigurationError         (startup / invalid settings)
    +-- ConnectionUnavailableError (pool closed or acquire timed out)
    +-- QueryError                 (statement could not be built safely)
    +-- RepositoryError            (a CRUD primitive could not complete)
    +-- TransactionError           (misuse of a transaction scope)
    +-- MigrationError             (migration catalog problems)
    +-- ProductionGuardError       (destructive operation refused)

Driver errors (``sqlite3.Error`` subclasses such as ``IntegrityError``) are
NOT wrapped: they propagate to the caller unmodified so constraint
violations and connection failures stay distinguishable.
"""


class SmartGovError(Exception):
    """Base exception for all SmartGov data-layer errors.

    The ``__str__`` method prefixes the table name in brackets for
    structured log output, e.g. ``[feedback] No fields to update``.
    """

    def __init__(
        self,
        message: str = "An unexpected data-layer error occurred",
        table: str | None = None,
    ) -> None:
        self._message = message
        self._table = table
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def table(self) -> str | None:
        return self._table

    def __str__(self) -> str:
        if self._table:
            return f"[{self._table}] {self._message}"
        return self._message


class ConfigurationError(SmartGovError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        table: str | None = None,
    ) -> None:
        super().__init__(message=message, table=table)


# ---------------------------------------------------------------------------
# Connection / statement errors
# ---------------------------------------------------------------------------

class ConnectionUnavailableError(SmartGovError):
    """Raised when no pooled connection can be handed out.

    Either the pool has not been opened, has already been closed, or the
    acquire deadline elapsed while every connection was checked out.
    """

    def __init__(
        self,
        message: str = "No database connection available",
        table: str | None = None,
    ) -> None:
        super().__init__(message=message, table=table)


class QueryError(SmartGovError):
    """Raised when a statement cannot be built from the given arguments.

    Typical causes: a column name outside the repository's static column
    set, an empty update map, or invalid pagination arguments.
    """

    def __init__(
        self,
        message: str = "Query could not be built",
        table: str | None = None,
    ) -> None:
        super().__init__(message=message, table=table)


class RepositoryError(SmartGovError):
    """Raised when a CRUD primitive cannot complete its contract."""

    def __init__(
        self,
        message: str = "Repository operation failed",
        table: str | None = None,
    ) -> None:
        super().__init__(message=message, table=table)


class TransactionError(SmartGovError):
    """Raised when a transaction scope is misused (e.g. nested)."""

    def __init__(
        self,
        message: str = "Invalid transaction usage",
        table: str | None = None,
    ) -> None:
        super().__init__(message=message, table=table)


# ---------------------------------------------------------------------------
# Migration errors
# ---------------------------------------------------------------------------

class MigrationError(SmartGovError):
    """Raised when the migration catalog itself is inconsistent."""

    def __init__(
        self,
        message: str = "Migration catalog is invalid",
        table: str | None = "migrations",
    ) -> None:
        super().__init__(message=message, table=table)


class ProductionGuardError(SmartGovError):
    """Raised when a destructive operation is attempted in production."""

    def __init__(
        self,
        message: str = "Database reset is not allowed in production",
        table: str | None = None,
    ) -> None:
        super().__init__(message=message, table=table)
