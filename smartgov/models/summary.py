"""Summary cache models and the summary payload shapes.

``SummaryCacheEntry`` is one row of ``summary_cache``.  ``CategorySummary``
is the payload the summarizer agent stores in ``summary_data`` and the HTTP
layer serves as JSON, so it serializes with camelCase aliases.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class SummaryCacheEntry(BaseModel):
    """A cached summary keyed by ``cache_key``."""

    model_config = ConfigDict(frozen=True)

    id: str
    cache_key: str
    category: str | None = None
    summary_data: Any
    created_at: datetime
    updated_at: datetime
    expires_at: datetime

    @model_validator(mode="after")
    def _expiry_after_creation(self) -> SummaryCacheEntry:
        if self.expires_at <= self.created_at:
            msg = "expires_at must be strictly after created_at"
            raise ValueError(msg)
        return self

    def is_live(self, now: datetime) -> bool:
        """True while ``now`` is strictly before ``expires_at``."""
        return now < self.expires_at


class CacheStats(BaseModel):
    total: int = 0
    valid: int = 0
    expired: int = 0
    by_category: dict[str, int] = Field(default_factory=dict)


class CategorySummary(BaseModel):
    """Aggregate view of one category, as produced by the summarizer."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    category: str
    count: int = Field(ge=0)
    average_sentiment: float = Field(ge=-1.0, le=1.0)
    key_issues: list[str] = Field(default_factory=list)
    trends: list[str] = Field(default_factory=list)
