"""Abstract base class for database connection sources.

Defines the contract the query layer relies on: hand out a pooled
connection for the duration of an ``async with`` block and take it back
afterwards.  The concrete SQLite pool lives in
``smartgov/db/pool.py``; tests substitute fakes that count releases.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager

import aiosqlite


class IConnectionSource(ABC):
    """Contract for pooled database connection providers.

    Connections handed out by :meth:`acquire` run in autocommit mode: a
    statement outside an explicit ``BEGIN`` commits on its own.
    """

    @abstractmethod
    async def open(self) -> None:
        """Create the underlying connections.  Called once at startup."""

    @abstractmethod
    def acquire(self) -> AbstractAsyncContextManager[aiosqlite.Connection]:
        """Check out one connection for exclusive use.

        The returned context manager yields the connection and puts it back
        into the pool on exit, whether the block succeeded or raised.

        Raises
        ------
        ConnectionUnavailableError
            If the source is not open, or no connection became free before
            the acquire deadline.
        """

    @abstractmethod
    async def close(self) -> None:
        """Close every connection.  Connections still checked out are
        closed when they are returned."""

    @abstractmethod
    async def ping(self) -> bool:
        """Return ``True`` if a trivial statement round-trips successfully."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this source."""
