"""SQLite connection pool built on ``aiosqlite``.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: Connection Source (concrete adapter implementing IConnectionSource).
#
# A fixed number of ``aiosqlite`` connections is opened up front and parked
# in an ``asyncio.Queue``.  ``acquire()`` takes one off the queue (waiting
# at most ``acquire_timeout`` seconds) and always puts it back on exit.
#
# Every connection is opened with ``isolation_level=None`` so the driver
# never issues implicit BEGINs: single statements autocommit and the query
# executor controls transactions with explicit BEGIN / COMMIT / ROLLBACK.
#
# ``PRAGMA journal_mode=WAL`` lets readers proceed while a writer holds a
# transaction; ``PRAGMA foreign_keys=ON`` enables the agent_log -> feedback
# cascade.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite
import structlog

from smartgov.interfaces.connection_source import IConnectionSource
from smartgov.utils.errors import ConnectionUnavailableError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/smartgov.db")


class SQLiteConnectionPool(IConnectionSource):
    """Bounded pool of autocommit ``aiosqlite`` connections.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file.  Each pooled connection opens the
        same file, so ``":memory:"`` is not supported (every connection
        would see its own private database).
    size:
        Number of connections to open.
    acquire_timeout:
        Seconds to wait for a free connection before giving up.
    """

    def __init__(
        self,
        db_path: str | Path = _DEFAULT_DB_PATH,
        size: int = 5,
        acquire_timeout: float = 10.0,
    ) -> None:
        if size < 1:
            msg = f"Pool size must be at least 1, got {size}"
            raise ValueError(msg)
        self._db_path = Path(db_path)
        self._size = size
        self._acquire_timeout = acquire_timeout
        self._idle: asyncio.Queue[aiosqlite.Connection] = asyncio.Queue()
        self._connections: list[aiosqlite.Connection] = []
        self._opened = False
        self._closed = False

    @property
    def size(self) -> int:
        return self._size

    @property
    def available(self) -> int:
        """Number of connections currently idle in the pool."""
        return self._idle.qsize()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def open(self) -> None:
        """Open ``size`` connections.  Calling it again is a no-op."""
        if self._opened:
            return
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        for _ in range(self._size):
            conn = await aiosqlite.connect(str(self._db_path), isolation_level=None)
            conn.row_factory = aiosqlite.Row
            await conn.execute("PRAGMA journal_mode=WAL;")
            await conn.execute("PRAGMA foreign_keys=ON;")
            self._connections.append(conn)
            self._idle.put_nowait(conn)
        self._opened = True
        self._closed = False
        logger.info("connection_pool_opened", path=str(self._db_path), size=self._size)

    async def close(self) -> None:
        if not self._opened or self._closed:
            return
        self._closed = True
        while not self._idle.empty():
            conn = self._idle.get_nowait()
            await conn.close()
            self._connections.remove(conn)
        logger.info(
            "connection_pool_closed",
            path=str(self._db_path),
            still_checked_out=len(self._connections),
        )

    # ------------------------------------------------------------------
    # Checkout
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[aiosqlite.Connection]:
        if not self._opened or self._closed:
            raise ConnectionUnavailableError("Connection pool is not open")
        try:
            conn = await asyncio.wait_for(self._idle.get(), timeout=self._acquire_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "connection_acquire_timeout",
                timeout=self._acquire_timeout,
                size=self._size,
            )
            raise ConnectionUnavailableError(
                f"No connection became free within {self._acquire_timeout}s"
            ) from None
        try:
            yield conn
        finally:
            await self._release(conn)

    async def _release(self, conn: aiosqlite.Connection) -> None:
        if self._closed:
            # Pool shut down while this connection was checked out.
            await conn.close()
            self._connections.remove(conn)
            return
        self._idle.put_nowait(conn)

    async def ping(self) -> bool:
        try:
            async with self.acquire() as conn:
                async with conn.execute("SELECT 1") as cursor:
                    row = await cursor.fetchone()
        except (ConnectionUnavailableError, aiosqlite.Error) as exc:
            logger.error("database_ping_failed", error=str(exc))
            return False
        return row is not None and row[0] == 1

    def get_provider_name(self) -> str:
        return f"sqlite_pool:{self._db_path}"
