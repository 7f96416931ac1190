"""The ordered migration catalog.

Migrations are applied in the order they appear in :data:`MIGRATIONS`,
never re-sorted.  Version tokens are permanent: once a migration has shipped
its id and statements must not change.  New schema changes are appended as
new entries.
"""

from __future__ import annotations

from smartgov.models.migration import Migration
from smartgov.utils.errors import MigrationError
from smartgov.utils.timestamps import SQLITE_NOW

LEDGER_TABLE = "migrations"

CREATE_LEDGER_SQL = f"""\
CREATE TABLE IF NOT EXISTS {LEDGER_TABLE} (
    id          TEXT PRIMARY KEY,
    description TEXT,
    applied_at  TEXT NOT NULL DEFAULT ({SQLITE_NOW})
);
"""

# ── 001: tables ───────────────────────────────────────────────────────

_CREATE_FEEDBACK = f"""\
CREATE TABLE IF NOT EXISTS feedback (
    id               TEXT    PRIMARY KEY DEFAULT (lower(hex(randomblob(16)))),
    text             TEXT    NOT NULL,
    category         TEXT    NOT NULL DEFAULT 'other'
                     CHECK (category IN ('health', 'infrastructure', 'safety', 'other')),
    sentiment        REAL    NOT NULL DEFAULT 0.0 CHECK (sentiment BETWEEN -1.0 AND 1.0),
    confidence       REAL    NOT NULL DEFAULT 0.0 CHECK (confidence BETWEEN 0.0 AND 1.0),
    timestamp        TEXT    NOT NULL DEFAULT ({SQLITE_NOW}),
    processed        INTEGER NOT NULL DEFAULT 0 CHECK (processed IN (0, 1)),
    vector_embedding TEXT,
    created_at       TEXT    NOT NULL DEFAULT ({SQLITE_NOW}),
    updated_at       TEXT    NOT NULL DEFAULT ({SQLITE_NOW})
);
"""

_CREATE_SUMMARY_CACHE = f"""\
CREATE TABLE IF NOT EXISTS summary_cache (
    id           TEXT PRIMARY KEY DEFAULT (lower(hex(randomblob(16)))),
    cache_key    TEXT NOT NULL UNIQUE,
    category     TEXT,
    summary_data TEXT NOT NULL,
    created_at   TEXT NOT NULL DEFAULT ({SQLITE_NOW}),
    updated_at   TEXT NOT NULL DEFAULT ({SQLITE_NOW}),
    expires_at   TEXT NOT NULL,
    CHECK (expires_at > created_at)
);
"""

_CREATE_AGENT_LOG = f"""\
CREATE TABLE IF NOT EXISTS agent_log (
    id                 TEXT    PRIMARY KEY DEFAULT (lower(hex(randomblob(16)))),
    agent_type         TEXT    NOT NULL CHECK (agent_type IN ('categorizer', 'summarizer')),
    feedback_id        TEXT    REFERENCES feedback(id) ON DELETE CASCADE,
    status             TEXT    NOT NULL DEFAULT 'pending'
                       CHECK (status IN ('pending', 'processing', 'completed', 'failed')),
    error_message      TEXT,
    processing_time_ms INTEGER CHECK (processing_time_ms IS NULL OR processing_time_ms >= 0),
    created_at         TEXT    NOT NULL DEFAULT ({SQLITE_NOW}),
    updated_at         TEXT    NOT NULL DEFAULT ({SQLITE_NOW}),
    CHECK (error_message IS NULL OR status = 'failed'),
    CHECK (processing_time_ms IS NULL OR status IN ('completed', 'failed'))
);
"""

# ── 002: indexes ──────────────────────────────────────────────────────

_QUERY_INDEXES = (
    "CREATE INDEX IF NOT EXISTS idx_feedback_category ON feedback(category);",
    "CREATE INDEX IF NOT EXISTS idx_feedback_timestamp ON feedback(timestamp);",
    "CREATE INDEX IF NOT EXISTS idx_feedback_sentiment ON feedback(sentiment);",
    "CREATE INDEX IF NOT EXISTS idx_feedback_processed ON feedback(processed);",
    "CREATE INDEX IF NOT EXISTS idx_feedback_created_at ON feedback(created_at);",
    "CREATE INDEX IF NOT EXISTS idx_summary_cache_category ON summary_cache(category);",
    "CREATE INDEX IF NOT EXISTS idx_summary_cache_expires_at ON summary_cache(expires_at);",
    "CREATE INDEX IF NOT EXISTS idx_agent_log_agent_type ON agent_log(agent_type);",
    "CREATE INDEX IF NOT EXISTS idx_agent_log_feedback_id ON agent_log(feedback_id);",
    "CREATE INDEX IF NOT EXISTS idx_agent_log_status ON agent_log(status);",
    "CREATE INDEX IF NOT EXISTS idx_agent_log_created_at ON agent_log(created_at);",
)

MIGRATIONS: tuple[Migration, ...] = (
    Migration(
        id="001_initial_schema",
        description="Create feedback, summary_cache and agent_log tables",
        statements=(_CREATE_FEEDBACK, _CREATE_SUMMARY_CACHE, _CREATE_AGENT_LOG),
    ),
    Migration(
        id="002_query_indexes",
        description="Add lookup indexes for listing, cache expiry and agent log queries",
        statements=_QUERY_INDEXES,
    ),
)

# Dropped by reset, children before parents.
MANAGED_TABLES: tuple[str, ...] = ("agent_log", "summary_cache", "feedback", LEDGER_TABLE)


def validate_catalog(migrations: tuple[Migration, ...]) -> None:
    """Raise MigrationError if two catalog entries share a version token."""
    seen: set[str] = set()
    for migration in migrations:
        if migration.id in seen:
            raise MigrationError(f"Duplicate migration id {migration.id!r}")
        seen.add(migration.id)
