"""TTL-based summary cache backed by the ``summary_cache`` table.

# ─── EXPIRY SEMANTICS ────────────────────────────────────────────────
#
# An entry is live while ``now < expires_at``.  Reads treat expired rows as
# misses but never delete them; physical removal happens only through
# :meth:`purge_expired` (or :meth:`cleanup`), which an external scheduler
# calls.  There is no background timer here.
#
# "now" comes from an injectable clock so expiry can be tested without
# sleeping.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
import json
import uuid
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any

import structlog
from pydantic import BaseModel

from smartgov.db.executor import QueryExecutor
from smartgov.db.query import Filter, Operator, OrderBy
from smartgov.models.summary import CacheStats, SummaryCacheEntry
from smartgov.repositories.base import BaseRepository
from smartgov.utils.errors import QueryError, RepositoryError
from smartgov.utils.timestamps import to_db_timestamp, utcnow

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_TTL = timedelta(hours=24)

_UPSERT_SQL = """\
INSERT INTO summary_cache (id, cache_key, category, summary_data, created_at, updated_at, expires_at)
VALUES (?, ?, ?, ?, ?, ?, ?)
ON CONFLICT(cache_key)
DO UPDATE SET category     = excluded.category,
              summary_data = excluded.summary_data,
              updated_at   = excluded.updated_at,
              expires_at   = excluded.expires_at;
"""

_STATS_SQL = """\
SELECT COUNT(*) AS total,
       COALESCE(SUM(CASE WHEN expires_at > ? THEN 1 ELSE 0 END), 0) AS valid,
       COALESCE(SUM(CASE WHEN expires_at <= ? THEN 1 ELSE 0 END), 0) AS expired
FROM summary_cache;
"""

_CATEGORY_COUNTS_SQL = """\
SELECT category, COUNT(*) AS count
FROM summary_cache
WHERE category IS NOT NULL
GROUP BY category;
"""


def _as_ttl(ttl: timedelta | float | int) -> timedelta:
    # timedelta resolves to whole microseconds, the storage precision, so any
    # TTL that survives the check below yields expires_at > created_at.
    if not isinstance(ttl, timedelta):
        ttl = timedelta(seconds=ttl)
    if ttl <= timedelta(0):
        msg = f"ttl must be positive, got {ttl}"
        raise ValueError(msg)
    return ttl


class SummaryCacheRepository(BaseRepository[SummaryCacheEntry]):
    """Cache of summarizer output, keyed by ``cache_key``.

    Parameters
    ----------
    executor:
        Query executor to run statements on.
    default_ttl:
        TTL applied by :meth:`set` when none is given.
    clock:
        Returns the current time; defaults to :func:`utcnow`.
    """

    table = "summary_cache"
    columns = (
        "id",
        "cache_key",
        "category",
        "summary_data",
        "created_at",
        "updated_at",
        "expires_at",
    )
    model = SummaryCacheEntry
    json_columns = frozenset({"summary_data"})

    def __init__(
        self,
        executor: QueryExecutor,
        default_ttl: timedelta = _DEFAULT_TTL,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        super().__init__(executor)
        self._default_ttl = _as_ttl(default_ttl)
        self._clock = clock

    def _live(self, where: Filter) -> Filter:
        return where.where("expires_at", Operator.GT, self._clock())

    # ── Core cache API ────────────────────────────────────────────────

    async def get(self, cache_key: str) -> Any | None:
        """Return the cached payload, or ``None`` if missing or expired."""
        entry = await self.find_one(self._live(Filter().eq("cache_key", cache_key)))
        if entry is None:
            logger.debug("cache_miss", cache_key=cache_key)
            return None
        logger.debug("cache_hit", cache_key=cache_key)
        return entry.summary_data

    async def set(
        self,
        cache_key: str,
        category: str | None,
        payload: Any,
        ttl: timedelta | float | int | None = None,
    ) -> SummaryCacheEntry:
        """Insert or replace the entry for *cache_key*.

        An existing row keeps its id and ``created_at``; its payload,
        category, ``updated_at`` and ``expires_at`` are replaced.
        ``expires_at = now + ttl``.
        """
        lifetime = self._default_ttl if ttl is None else _as_ttl(ttl)
        now = self._clock()
        if isinstance(payload, BaseModel):
            payload = payload.model_dump(mode="json", by_alias=True)
        await self._executor.execute(
            _UPSERT_SQL,
            (
                str(uuid.uuid4()),
                cache_key,
                category,
                json.dumps(payload),
                to_db_timestamp(now),
                to_db_timestamp(now),
                to_db_timestamp(now + lifetime),
            ),
        )
        entry = await self.get_entry(cache_key)
        if entry is None:
            raise RepositoryError(f"Cache entry {cache_key!r} vanished after upsert", self.table)
        logger.info(
            "cache_set",
            cache_key=cache_key,
            category=category,
            expires_at=to_db_timestamp(entry.expires_at),
        )
        return entry

    async def invalidate(self, category: str) -> int:
        """Delete every entry for *category*; returns the number removed."""
        removed = await self.delete_where(Filter().eq("category", category))
        logger.info("cache_invalidated", category=category, removed=removed)
        return removed

    async def purge_expired(self) -> int:
        """Delete entries whose ``expires_at`` is not after now."""
        removed = await self.delete_where(
            Filter().where("expires_at", Operator.LE, self._clock())
        )
        logger.info("cache_purged", removed=removed)
        return removed

    # ── Inspection ────────────────────────────────────────────────────

    async def get_entry(self, cache_key: str) -> SummaryCacheEntry | None:
        """Return the row for *cache_key* regardless of expiry."""
        return await self.find_one(Filter().eq("cache_key", cache_key))

    async def is_valid(self, cache_key: str) -> bool:
        return await self.count(self._live(Filter().eq("cache_key", cache_key))) > 0

    async def get_by_category(
        self,
        category: str,
        include_expired: bool = False,
    ) -> list[SummaryCacheEntry]:
        where = Filter().eq("category", category)
        if not include_expired:
            where = self._live(where)
        return await self.find_many(where, (OrderBy("created_at", descending=True),))

    async def get_paginated(
        self,
        page: int = 1,
        limit: int = 50,
        include_expired: bool = False,
    ) -> dict[str, Any]:
        """Return ``{entries, total, page, limit}``, newest first."""
        if page < 1 or limit < 1:
            raise QueryError(f"page and limit must be >= 1, got page={page} limit={limit}", self.table)
        where = Filter() if include_expired else self._live(Filter())
        entries, total = await asyncio.gather(
            self.find_many(
                where,
                (OrderBy("created_at", descending=True),),
                limit=limit,
                offset=(page - 1) * limit,
            ),
            self.count(where),
        )
        return {"entries": entries, "total": total, "page": page, "limit": limit}

    async def get_stats(self) -> CacheStats:
        now = to_db_timestamp(self._clock())
        totals, category_rows = await asyncio.gather(
            self._executor.fetch_one(_STATS_SQL, (now, now)),
            self._executor.fetch_all(_CATEGORY_COUNTS_SQL),
        )
        return CacheStats(
            **(totals or {}),
            by_category={row["category"]: row["count"] for row in category_rows},
        )

    # ── Removal ───────────────────────────────────────────────────────

    async def delete_by_cache_key(self, cache_key: str) -> bool:
        return await self.delete_where(Filter().eq("cache_key", cache_key)) > 0

    async def cleanup(self, older_than_days: int = 30) -> int:
        """Delete entries created more than *older_than_days* days ago."""
        cutoff = self._clock() - timedelta(days=older_than_days)
        removed = await self.delete_where(Filter().where("created_at", Operator.LT, cutoff))
        logger.info("cache_cleanup", removed=removed, older_than_days=older_than_days)
        return removed
