"""Feedback domain models.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: Models (bottom of the dependency graph, no imports from upper layers).
#
# ``Feedback`` mirrors one row of the ``feedback`` table.  The range
# invariants (sentiment in [-1, 1], confidence in [0, 1], category in the
# four enumerated values) are declared on the fields, so a row that
# violates them fails loudly when read back.
#
# ``FeedbackCreate`` is the intake payload; ``FeedbackPage`` and the stats
# models are the JSON shapes handed upward to the HTTP layer, serialized
# with camelCase aliases where the frontend expects them.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class FeedbackCategory(str, Enum):
    """The four categories the categorizer agent assigns."""

    HEALTH = "health"
    INFRASTRUCTURE = "infrastructure"
    SAFETY = "safety"
    OTHER = "other"


class Feedback(BaseModel):
    """A single citizen feedback submission."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Unique string token (UUID4 unless supplied).")
    text: str = Field(description="Free-text feedback body.")
    category: FeedbackCategory = Field(default=FeedbackCategory.OTHER)
    sentiment: float = Field(default=0.0, ge=-1.0, le=1.0)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    timestamp: datetime
    processed: bool = Field(
        default=False,
        description="Whether the categorizer agent has processed this row.",
    )
    vector_embedding: Any | None = Field(
        default=None,
        description="Opaque embedding payload used by semantic search.",
    )
    created_at: datetime
    updated_at: datetime


class FeedbackCreate(BaseModel):
    """Intake payload for a new feedback row."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(min_length=1)
    category: FeedbackCategory = FeedbackCategory.OTHER
    sentiment: float = Field(default=0.0, ge=-1.0, le=1.0)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    processed: bool = False
    timestamp: datetime | None = None
    vector_embedding: Any | None = None


class FeedbackPage(BaseModel):
    """One page of a filtered feedback listing plus the unpaged total."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    items: list[Feedback] = Field(default_factory=list, serialization_alias="feedback")
    total: int = Field(ge=0)
    page: int = Field(ge=1)
    limit: int = Field(ge=1)


class SentimentStats(BaseModel):
    """Counts of processed feedback by sentiment band."""

    positive: int = 0
    neutral: int = 0
    negative: int = 0


class CategoryStats(BaseModel):
    """Counts of processed feedback per category (zero when absent)."""

    health: int = 0
    infrastructure: int = 0
    safety: int = 0
    other: int = 0
