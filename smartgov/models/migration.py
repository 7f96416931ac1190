"""Migration catalog entries and ledger records."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class Migration(BaseModel):
    """A forward-only schema change identified by a stable version token."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1, description="Version token, e.g. '001_initial_schema'.")
    description: str
    statements: tuple[str, ...] = Field(min_length=1)


class MigrationRecord(BaseModel):
    """A ledger row: proof that a migration was applied."""

    model_config = ConfigDict(frozen=True)

    id: str
    description: str | None = None
    applied_at: datetime
