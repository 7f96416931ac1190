"""Feedback repository.

Stores citizen feedback and serves the listing and aggregate queries the
dashboard needs.  Rows are created at intake and later updated in place by
the categorizer agent via :meth:`FeedbackRepository.mark_as_processed`.
"""

from __future__ import annotations

import asyncio
import uuid
from datetime import timedelta
from typing import Any

import structlog

from smartgov.db.query import Filter, Operator, OrderBy, escape_like
from smartgov.models.feedback import (
    CategoryStats,
    Feedback,
    FeedbackCategory,
    FeedbackCreate,
    FeedbackPage,
    SentimentStats,
)
from smartgov.repositories.base import BaseRepository
from smartgov.utils.errors import QueryError, RepositoryError
from smartgov.utils.timestamps import utcnow

logger = structlog.get_logger(logger_name=__name__)

# Sentiment band edges for get_sentiment_stats().
_POSITIVE_ABOVE = 0.1
_NEGATIVE_BELOW = -0.1

_SENTIMENT_STATS_SQL = """\
SELECT
    COALESCE(SUM(CASE WHEN sentiment > ? THEN 1 ELSE 0 END), 0) AS positive,
    COALESCE(SUM(CASE WHEN sentiment >= ? AND sentiment <= ? THEN 1 ELSE 0 END), 0) AS neutral,
    COALESCE(SUM(CASE WHEN sentiment < ? THEN 1 ELSE 0 END), 0) AS negative
FROM feedback
WHERE processed = 1;
"""

_CATEGORY_STATS_SQL = """\
SELECT category, COUNT(*) AS count
FROM feedback
WHERE processed = 1
GROUP BY category;
"""

_NEWEST_FIRST = (OrderBy("timestamp", descending=True),)


class FeedbackRepository(BaseRepository[Feedback]):
    """CRUD and reporting queries for the ``feedback`` table."""

    table = "feedback"
    columns = (
        "id",
        "text",
        "category",
        "sentiment",
        "confidence",
        "timestamp",
        "processed",
        "vector_embedding",
        "created_at",
        "updated_at",
    )
    model = Feedback
    json_columns = frozenset({"vector_embedding"})

    # ── Create / read ─────────────────────────────────────────────────

    async def create(self, data: FeedbackCreate, feedback_id: str | None = None) -> Feedback:
        """Insert a feedback row and return it as stored.

        *feedback_id* is used when given; otherwise a UUID4 is generated.
        """
        now = utcnow()
        record_id = feedback_id or str(uuid.uuid4())
        await self.insert(
            {
                "id": record_id,
                "text": data.text,
                "category": data.category,
                "sentiment": data.sentiment,
                "confidence": data.confidence,
                "timestamp": data.timestamp or now,
                "processed": data.processed,
                "vector_embedding": data.vector_embedding,
                "created_at": now,
                "updated_at": now,
            }
        )
        created = await self.find_by_id(record_id)
        if created is None:
            raise RepositoryError("Failed to create feedback", self.table)
        logger.info("feedback_created", id=record_id, category=created.category.value)
        return created

    async def get_by_id(self, feedback_id: str) -> Feedback | None:
        return await self.find_by_id(feedback_id)

    async def list_feedback(
        self,
        *,
        category: FeedbackCategory | str | None = None,
        processed: bool | None = None,
        page: int = 1,
        limit: int = 50,
    ) -> FeedbackPage:
        """Return one page of feedback, newest first, plus the filtered total.

        ``category="all"`` is the same as no category filter.
        """
        if page < 1 or limit < 1:
            raise QueryError(f"page and limit must be >= 1, got page={page} limit={limit}", self.table)

        where = Filter()
        if category is not None and category != "all":
            where = where.eq("category", FeedbackCategory(category))
        if processed is not None:
            where = where.eq("processed", processed)

        items, total = await asyncio.gather(
            self.find_many(where, _NEWEST_FIRST, limit=limit, offset=(page - 1) * limit),
            self.count(where),
        )
        return FeedbackPage(items=items, total=total, page=page, limit=limit)

    # ── Agent pipeline updates ────────────────────────────────────────

    async def mark_as_processed(
        self,
        feedback_id: str,
        category: FeedbackCategory | str | None = None,
        sentiment: float | None = None,
        confidence: float | None = None,
    ) -> bool:
        """Flag a row processed, recording whichever scores were supplied."""
        fields: dict[str, Any] = {"processed": True}
        if category is not None:
            fields["category"] = FeedbackCategory(category)
        if sentiment is not None:
            fields["sentiment"] = sentiment
        if confidence is not None:
            fields["confidence"] = confidence
        return await self.update_by_id(feedback_id, fields)

    # ── Lookups ───────────────────────────────────────────────────────

    async def get_unprocessed(self, limit: int = 100) -> list[Feedback]:
        """Oldest unprocessed rows first, so the agent drains the backlog in order."""
        return await self.find_many(
            Filter().eq("processed", False),
            (OrderBy("created_at"),),
            limit=limit,
        )

    async def get_by_category(
        self,
        category: FeedbackCategory | str,
        limit: int | None = None,
    ) -> list[Feedback]:
        return await self.find_many(
            Filter().eq("category", FeedbackCategory(category)),
            _NEWEST_FIRST,
            limit=limit,
        )

    async def get_recent(self, limit: int = 100) -> list[Feedback]:
        """Most recent processed rows, the summarizer's input."""
        return await self.find_many(Filter().eq("processed", True), _NEWEST_FIRST, limit=limit)

    async def search_by_text(self, term: str, limit: int = 50) -> list[Feedback]:
        """Substring match on the feedback body (``%`` and ``_`` match literally)."""
        return await self.find_many(
            Filter().where("text", Operator.LIKE, f"%{escape_like(term)}%"),
            _NEWEST_FIRST,
            limit=limit,
        )

    # ── Aggregates ────────────────────────────────────────────────────

    async def get_sentiment_stats(self) -> SentimentStats:
        row = await self._executor.fetch_one(
            _SENTIMENT_STATS_SQL,
            (_POSITIVE_ABOVE, _NEGATIVE_BELOW, _POSITIVE_ABOVE, _NEGATIVE_BELOW),
        )
        return SentimentStats(**(row or {}))

    async def get_category_stats(self) -> CategoryStats:
        rows = await self._executor.fetch_all(_CATEGORY_STATS_SQL)
        return CategoryStats(**{row["category"]: row["count"] for row in rows})

    # ── Maintenance ───────────────────────────────────────────────────

    async def delete_older_than(self, days: int) -> int:
        """Delete rows created more than *days* days ago.  Not used by intake."""
        cutoff = utcnow() - timedelta(days=days)
        removed = await self.delete_where(Filter().where("created_at", Operator.LT, cutoff))
        logger.info("feedback_pruned", removed=removed, older_than_days=days)
        return removed
