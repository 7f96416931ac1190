"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# pydantic-settings reads configuration from TWO sources (in priority order):
#
#   1. **Environment variables** - e.g., DATABASE_PATH=/srv/smartgov.db
#      (highest priority, always wins)
#   2. **.env file** - key=value lines in the project root .env file
#      (lower priority, used for local development)
#
# Field ``database_path`` maps to env var ``DATABASE_PATH``; defaults apply
# when neither source sets a value.
#
# ``APP_ENV=production`` is the production indicator: it switches logging
# to JSON and makes destructive operations such as ``migrate reset`` refuse
# to run.
# ──────────────────────────────────────────────────────────────────────
"""

from typing import Any

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from smartgov.utils.errors import ConfigurationError


class Settings(BaseSettings):
    """SmartGov data-layer settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Database ===
    database_path: str = "data/smartgov.db"
    pool_size: int = Field(default=5, ge=1)
    pool_acquire_timeout: float = Field(default=10.0, gt=0)
    # None = statements run without a deadline.
    statement_timeout: float | None = Field(default=None, gt=0)

    # === Summary cache ===
    summary_cache_ttl_hours: float = Field(default=24.0, gt=0)

    # === App Config ===
    app_env: str = "development"
    log_level: str = "INFO"

    @property
    def is_production(self) -> bool:
        """True when the environment marks this deployment as production."""
        return self.app_env.strip().lower() == "production"


def load_settings(**overrides: Any) -> Settings:
    """Build :class:`Settings`, converting validation failures to ConfigurationError."""
    try:
        return Settings(**overrides)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc
