"""
Infrastructure package for linkweave.

Centralizes database connectivity concerns (async connections and pooling).
Keep this layer focused on I/O and resource management, decoupled from the
dispatch engine.
"""

from linkweave.infrastructure.db_factory import (
    PoolManager,
    get_async_connection,
    get_async_pool,
)

__all__ = [
    "PoolManager",
    "get_async_connection",
    "get_async_pool",
]
