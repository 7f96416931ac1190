# =============================================================================
# smartgov/cli/migrate.py - Database Migration CLI
# =============================================================================
#
# Applies, resets and verifies the SmartGov database schema.
#
# Supported commands:
#
#   up      - Apply every pending migration (default when no command given)
#   reset   - Drop all SmartGov tables and re-apply every migration
#             (refused when APP_ENV=production)
#   verify  - Check that every required table and column exists
#   help    - Show usage
#
# Exit codes: 0 on success, 1 on any failure, a refused reset, a failed
# verification, or an unknown command.  The connection pool is closed on
# every path.
#
# Usage examples:
#   python -m smartgov.cli
#   python -m smartgov.cli up
#   DATABASE_PATH=/srv/smartgov.db python -m smartgov.cli verify
#   python -m smartgov.cli reset
# =============================================================================

"""Command-line entry point for schema migrations.

Usage::

    python -m smartgov.cli [up|reset|verify|help]
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import Sequence

import structlog

from smartgov.config.settings import Settings, load_settings
from smartgov.context import create_database_context
from smartgov.utils.errors import ConfigurationError
from smartgov.utils.logging import configure_logging

logger = structlog.get_logger(logger_name=__name__)

_USAGE_EPILOG = """\
commands:
  up       Run all pending migrations (default)
  reset    Reset database and re-run all migrations (development only)
  verify   Verify database schema integrity
  help     Show this help message

examples:
  python -m smartgov.cli
  python -m smartgov.cli up
  python -m smartgov.cli reset
  python -m smartgov.cli verify
"""


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m smartgov.cli",
        description="SmartGov database migration tool.",
        epilog=_USAGE_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    # A plain positional so unknown commands reach our own handling
    # instead of argparse's exit code 2.
    parser.add_argument("command", nargs="?", default="up", metavar="command")
    return parser


async def _handle_up(ctx) -> int:  # noqa: ANN001
    applied = await ctx.migrations.run_migrations()
    if applied:
        print(f"Applied {len(applied)} migration(s):")
        for migration_id in applied:
            print(f"  {migration_id}")
    else:
        print("Database is up to date.")
    return 0


async def _handle_reset(ctx) -> int:  # noqa: ANN001
    applied = await ctx.migrations.reset_database()
    print(f"Database reset; re-applied {len(applied)} migration(s).")
    return 0


async def _handle_verify(ctx) -> int:  # noqa: ANN001
    if await ctx.migrations.verify_schema():
        print("Schema verification passed.")
        return 0
    print("Schema verification failed.", file=sys.stderr)
    return 1


_HANDLERS = {
    "up": _handle_up,
    "reset": _handle_reset,
    "verify": _handle_verify,
}


async def run(command: str, app_settings: Settings) -> int:
    """Execute *command* against the database described by *app_settings*."""
    if command == "reset" and app_settings.is_production:
        logger.error("database_reset_refused", app_env=app_settings.app_env)
        print("Error: database reset is not allowed in production", file=sys.stderr)
        return 1

    ctx = None
    try:
        ctx = await create_database_context(app_settings)
        return await _HANDLERS[command](ctx)
    except Exception as exc:
        logger.error("migration_command_failed", command=command, error=str(exc))
        print(f"Error: migration command '{command}' failed: {exc}", file=sys.stderr)
        return 1
    finally:
        if ctx is not None:
            await ctx.close()


def main(argv: Sequence[str] | None = None) -> int:
    """Parse *argv*, run the command and return the process exit code."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    command = args.command

    if command == "help":
        parser.print_help()
        return 0
    if command not in _HANDLERS:
        print(f"Unknown command: {command}", file=sys.stderr)
        parser.print_help()
        return 1

    try:
        app_settings = load_settings()
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    configure_logging(log_level=app_settings.log_level)
    return asyncio.run(run(command, app_settings))


if __name__ == "__main__":
    sys.exit(main())
