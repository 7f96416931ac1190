"""Agent processing audit log.

One row per agent invocation, created ``pending`` and updated in place as
the agent advances.  Rows are never deleted here; the foreign key to
``feedback`` cascades if the referenced feedback is removed.

Status/field pairing is enforced on every write (see
:func:`~smartgov.models.agent_log.check_status_fields`).  Transition
legality (e.g. refusing ``completed -> processing``) is left to the caller;
:func:`~smartgov.models.agent_log.is_legal_transition` is there for that.
"""

from __future__ import annotations

import asyncio
import uuid
from typing import Any

import structlog

from smartgov.db.query import Filter, OrderBy
from smartgov.models.agent_log import (
    AgentLog,
    AgentStatus,
    AgentType,
    ProcessingStats,
    ProcessingTimeStats,
    check_status_fields,
)
from smartgov.repositories.base import BaseRepository
from smartgov.utils.errors import QueryError, RepositoryError
from smartgov.utils.timestamps import utcnow

logger = structlog.get_logger(logger_name=__name__)

_STATUS_COUNTS_SQL = """\
SELECT status, COUNT(*) AS count
FROM agent_log
WHERE (? IS NULL OR agent_type = ?)
GROUP BY status;
"""

_TIME_STATS_SQL = """\
SELECT MIN(processing_time_ms) AS min,
       MAX(processing_time_ms) AS max,
       AVG(processing_time_ms) AS avg,
       COUNT(*)                AS count
FROM agent_log
WHERE processing_time_ms IS NOT NULL
  AND (? IS NULL OR agent_type = ?);
"""

_NEWEST_FIRST = (OrderBy("created_at", descending=True),)


def _agent_type_params(agent_type: AgentType | str | None) -> tuple[str | None, str | None]:
    value = AgentType(agent_type).value if agent_type is not None else None
    return value, value


class AgentLogRepository(BaseRepository[AgentLog]):
    """Create, advance and report on agent log rows."""

    table = "agent_log"
    columns = (
        "id",
        "agent_type",
        "feedback_id",
        "status",
        "error_message",
        "processing_time_ms",
        "created_at",
        "updated_at",
    )
    model = AgentLog

    async def create(
        self,
        agent_type: AgentType | str,
        feedback_id: str | None = None,
        status: AgentStatus | str = AgentStatus.PENDING,
        error_message: str | None = None,
        processing_time_ms: int | None = None,
    ) -> AgentLog:
        status = AgentStatus(status)
        self._check(status, error_message, processing_time_ms)
        now = utcnow()
        log_id = str(uuid.uuid4())
        await self.insert(
            {
                "id": log_id,
                "agent_type": AgentType(agent_type),
                "feedback_id": feedback_id,
                "status": status,
                "error_message": error_message,
                "processing_time_ms": processing_time_ms,
                "created_at": now,
                "updated_at": now,
            }
        )
        created = await self.find_by_id(log_id)
        if created is None:
            raise RepositoryError("Failed to create agent log", self.table)
        logger.info(
            "agent_log_created",
            id=log_id,
            agent_type=created.agent_type.value,
            feedback_id=feedback_id,
            status=status.value,
        )
        return created

    async def get_by_id(self, log_id: str) -> AgentLog | None:
        return await self.find_by_id(log_id)

    async def update_status(
        self,
        log_id: str,
        status: AgentStatus | str,
        error_message: str | None = None,
        processing_time_ms: int | None = None,
    ) -> bool:
        """Move a log to *status*; ``False`` if *log_id* does not exist.

        Raises ValueError when the message/duration do not fit *status*:
        a message only with ``failed`` (and required there), a duration only
        with ``completed``/``failed`` (and required for ``completed``).
        """
        status = AgentStatus(status)
        self._check(status, error_message, processing_time_ms)
        updated = await self.update_by_id(
            log_id,
            {
                "status": status,
                "error_message": error_message,
                "processing_time_ms": processing_time_ms,
            },
        )
        logger.info("agent_log_status_updated", id=log_id, status=status.value, found=updated)
        return updated

    async def start(self, log_id: str) -> bool:
        return await self.update_status(log_id, AgentStatus.PROCESSING)

    async def complete(self, log_id: str, processing_time_ms: int) -> bool:
        return await self.update_status(
            log_id, AgentStatus.COMPLETED, processing_time_ms=processing_time_ms
        )

    async def fail(
        self,
        log_id: str,
        error_message: str,
        processing_time_ms: int | None = None,
    ) -> bool:
        return await self.update_status(
            log_id,
            AgentStatus.FAILED,
            error_message=error_message,
            processing_time_ms=processing_time_ms,
        )

    # ── Lookups ───────────────────────────────────────────────────────

    async def get_by_agent_type(
        self,
        agent_type: AgentType | str,
        limit: int = 100,
        status: AgentStatus | str | None = None,
    ) -> list[AgentLog]:
        where = Filter().eq("agent_type", AgentType(agent_type))
        if status is not None:
            where = where.eq("status", AgentStatus(status))
        return await self.find_many(where, _NEWEST_FIRST, limit=limit)

    async def get_by_feedback_id(self, feedback_id: str) -> list[AgentLog]:
        return await self.find_many(Filter().eq("feedback_id", feedback_id), _NEWEST_FIRST)

    async def get_by_status(
        self,
        status: AgentStatus | str,
        limit: int | None = None,
    ) -> list[AgentLog]:
        return await self.find_many(
            Filter().eq("status", AgentStatus(status)), _NEWEST_FIRST, limit=limit
        )

    async def get_failed_logs(
        self,
        agent_type: AgentType | str | None = None,
        limit: int = 50,
    ) -> list[AgentLog]:
        """Failed runs, oldest first, for retry."""
        where = Filter().eq("status", AgentStatus.FAILED)
        if agent_type is not None:
            where = where.eq("agent_type", AgentType(agent_type))
        return await self.find_many(where, (OrderBy("created_at"),), limit=limit)

    async def get_paginated(
        self,
        page: int = 1,
        limit: int = 50,
        agent_type: AgentType | str | None = None,
        status: AgentStatus | str | None = None,
    ) -> dict[str, Any]:
        """Return ``{logs, total, page, limit}``, newest first."""
        if page < 1 or limit < 1:
            raise QueryError(f"page and limit must be >= 1, got page={page} limit={limit}", self.table)
        where = Filter()
        if agent_type is not None:
            where = where.eq("agent_type", AgentType(agent_type))
        if status is not None:
            where = where.eq("status", AgentStatus(status))
        logs, total = await asyncio.gather(
            self.find_many(where, _NEWEST_FIRST, limit=limit, offset=(page - 1) * limit),
            self.count(where),
        )
        return {"logs": logs, "total": total, "page": page, "limit": limit}

    # ── Aggregates ────────────────────────────────────────────────────

    async def get_processing_stats(
        self,
        agent_type: AgentType | str | None = None,
    ) -> ProcessingStats:
        params = _agent_type_params(agent_type)
        status_rows, time_stats = await asyncio.gather(
            self._executor.fetch_all(_STATUS_COUNTS_SQL, params),
            self.get_processing_time_stats(agent_type),
        )
        counts = {row["status"]: row["count"] for row in status_rows}
        return ProcessingStats(
            total=sum(counts.values()),
            average_processing_time=time_stats.avg,
            **counts,
        )

    async def get_processing_time_stats(
        self,
        agent_type: AgentType | str | None = None,
    ) -> ProcessingTimeStats:
        row = await self._executor.fetch_one(_TIME_STATS_SQL, _agent_type_params(agent_type))
        row = row or {}
        return ProcessingTimeStats(
            min=row.get("min") or 0,
            max=row.get("max") or 0,
            avg=row.get("avg") or 0.0,
            count=row.get("count") or 0,
        )

    # ── Internal helpers ──────────────────────────────────────────────

    def _check(
        self,
        status: AgentStatus,
        error_message: str | None,
        processing_time_ms: int | None,
    ) -> None:
        problems = check_status_fields(status, error_message, processing_time_ms)
        if problems:
            raise ValueError(f"[{self.table}] " + "; ".join(problems))
