"""
Database connection factory utilities for linkweave.

Provides centralized management of the async PostgreSQL connection pool used
by the PostgreSQL adapter. The PoolManager singleton hands out one pool per
process and closes it on demand.

Includes retry logic for transient connection failures using tenacity.
"""

from __future__ import annotations

import threading
from typing import Optional

import psycopg
from psycopg import AsyncConnection
from psycopg_pool import AsyncConnectionPool
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from linkweave.config import build_dsn, get_settings
from linkweave.utils.logging import get_logger

log = get_logger(__name__)


class PoolManager:
    """
    Thread-safe singleton for managing the async database connection pool.
    """

    _instance: Optional["PoolManager"] = None
    _lock = threading.Lock()

    def __new__(cls) -> "PoolManager":
        """Create or return the singleton instance."""
        with cls._lock:
            if cls._instance is None:
                cls._instance = super().__new__(cls)
                cls._instance._async_pool: Optional[AsyncConnectionPool] = None
            return cls._instance

    def _build_pool(self, min_size: int, max_size: int) -> AsyncConnectionPool:
        with self._lock:
            if self._async_pool is None:
                self._async_pool = AsyncConnectionPool(
                    conninfo=build_dsn(), min_size=min_size, max_size=max_size, open=False
                )
            return self._async_pool

    async def get_async_pool(
        self, min_size: Optional[int] = None, max_size: Optional[int] = None
    ) -> AsyncConnectionPool:
        """
        Get or create the asynchronous connection pool, opening it on first use.

        Parameters
        ----------
        min_size : int | None
            Minimum number of idle connections to keep. Defaults to settings.
        max_size : int | None
            Maximum total connections in the pool. Defaults to settings.

        Returns
        -------
        AsyncConnectionPool
            The managed async pool instance.
        """
        settings = get_settings()
        pool = self._build_pool(
            min_size or settings.pool_min_size, max_size or settings.pool_max_size
        )
        await pool.open()
        return pool

    async def close_all(self) -> None:
        """
        Close the managed pool and release its connections.
        """
        with self._lock:
            pool, self._async_pool = self._async_pool, None
        if pool is not None:
            await pool.close()
            log.info("Connection pool closed")


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((OSError, ConnectionError, psycopg.OperationalError)),
    reraise=True,
)
async def get_async_connection(dsn: Optional[str] = None) -> AsyncConnection:
    """
    Acquire a dedicated asynchronous connection with automatic retry.

    Retries up to 3 times with exponential backoff for transient connection errors.
    Use this for one-off operations such as schema setup. Prefer the pool for
    request traffic.

    Returns
    -------
    AsyncConnection
        A new psycopg async connection instance.

    Raises
    ------
    psycopg.OperationalError
        If connection fails after all retry attempts.
    """
    return await AsyncConnection.connect(dsn or build_dsn())


async def get_async_pool(
    min_size: Optional[int] = None, max_size: Optional[int] = None
) -> AsyncConnectionPool:
    """
    Get or create the shared asynchronous connection pool via PoolManager.
    """
    manager = PoolManager()
    return await manager.get_async_pool(min_size=min_size, max_size=max_size)


__all__ = [
    "PoolManager",
    "get_async_connection",
    "get_async_pool",
]
