"""
PostgreSQL adapter.

Every record type shares a single JSONB table keyed by (type, id). Ids are
stored as text in the key column; the record body keeps the original value.
A transaction holds one pooled connection from `begin_transaction` until
`end_transaction` commits or rolls it back.
"""

from __future__ import annotations

import json
import uuid
from functools import partial
from typing import Any, Dict, List, Optional, Sequence

from psycopg import AsyncConnection, sql
from psycopg.types.json import Jsonb
from psycopg_pool import AsyncConnectionPool

from linkweave.adapters.abstract import AbstractAdapter, apply_update
from linkweave.config import get_settings
from linkweave.domain.errors import DuplicateIdError, StorageContractError
from linkweave.domain.models import Record, Update
from linkweave.domain.schema import PRIMARY_KEY
from linkweave.infrastructure.db_factory import (
    PoolManager,
    get_async_connection,
    get_async_pool,
)
from linkweave.utils.logging import get_logger

log = get_logger(__name__)

_dumps = partial(json.dumps, default=str)

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS {table} (
    type TEXT NOT NULL,
    id TEXT NOT NULL,
    data JSONB NOT NULL,
    PRIMARY KEY (type, id)
)
"""


def _key(record_id: Any) -> str:
    return str(record_id)


class PostgresTransaction:
    """Transaction bound to one pooled connection."""

    def __init__(
        self, pool: AsyncConnectionPool, conn: AsyncConnection, table: sql.Identifier
    ) -> None:
        self._pool = pool
        self._conn = conn
        self._table = table
        self._closed = False

    def _ensure_open(self) -> None:
        if self._closed:
            raise StorageContractError("Transaction has already ended.")

    async def create(
        self, type_name: str, records: Sequence[Record], options: Optional[Dict[str, Any]] = None
    ) -> List[Record]:
        self._ensure_open()
        query = sql.SQL(
            "INSERT INTO {} (type, id, data) VALUES (%s, %s, %s) "
            "ON CONFLICT (type, id) DO NOTHING RETURNING data"
        ).format(self._table)
        created: List[Record] = []
        async with self._conn.cursor() as cur:
            for record in records:
                stored = dict(record)
                if stored.get(PRIMARY_KEY) is None:
                    stored[PRIMARY_KEY] = uuid.uuid4().hex
                await cur.execute(
                    query, (type_name, _key(stored[PRIMARY_KEY]), Jsonb(stored, dumps=_dumps))
                )
                row = await cur.fetchone()
                if row is None:
                    raise DuplicateIdError(
                        f"A '{type_name}' record with id '{stored[PRIMARY_KEY]}' exists."
                    )
                created.append(row[0])
        return created

    async def update(
        self, type_name: str, updates: Sequence[Update], options: Optional[Dict[str, Any]] = None
    ) -> List[Record]:
        self._ensure_open()
        by_key = {_key(update.id): update for update in updates}
        select = sql.SQL(
            "SELECT id, data FROM {} WHERE type = %s AND id = ANY(%s) FOR UPDATE"
        ).format(self._table)
        write = sql.SQL("UPDATE {} SET data = %s WHERE type = %s AND id = %s").format(self._table)
        updated: List[Record] = []
        async with self._conn.cursor() as cur:
            await cur.execute(select, (type_name, list(by_key)))
            rows = await cur.fetchall()
            for key, data in rows:
                record = apply_update(data, by_key[key])
                await cur.execute(write, (Jsonb(record, dumps=_dumps), type_name, key))
                updated.append(record)
        return updated

    async def delete(
        self, type_name: str, ids: Sequence[Any], options: Optional[Dict[str, Any]] = None
    ) -> None:
        self._ensure_open()
        query = sql.SQL("DELETE FROM {} WHERE type = %s AND id = ANY(%s)").format(self._table)
        async with self._conn.cursor() as cur:
            await cur.execute(query, (type_name, [_key(record_id) for record_id in ids]))

    async def end_transaction(self, error: Optional[BaseException] = None) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            if error is None:
                await self._conn.commit()
            else:
                await self._conn.rollback()
        finally:
            await self._pool.putconn(self._conn)


class PostgresAdapter(AbstractAdapter):
    """
    Adapter persisting records as JSONB documents.

    Parameters
    ----------
    pool : AsyncConnectionPool | None
        Pool to draw connections from. Defaults to the shared pool from
        `linkweave.infrastructure`, opened on `connect()`.
    table : str | None
        Table name. Defaults to settings.db_table.
    """

    def __init__(
        self, pool: Optional[AsyncConnectionPool] = None, table: Optional[str] = None
    ) -> None:
        self._pool = pool
        self._owns_pool = pool is None
        self.table_name = table or get_settings().db_table
        self._table = sql.Identifier(self.table_name)

    async def connect(self) -> None:
        if self._pool is None:
            self._pool = await get_async_pool()

    async def close(self) -> None:
        """Release the shared pool if this adapter opened it; injected pools stay open."""
        if self._pool is not None and self._owns_pool:
            await PoolManager().close_all()
        if self._owns_pool:
            self._pool = None

    def _require_pool(self) -> AsyncConnectionPool:
        if self._pool is None:
            raise RuntimeError("PostgresAdapter is not connected; call connect() first.")
        return self._pool

    async def ensure_table(self, dsn: Optional[str] = None) -> None:
        """Create the records table if it does not exist."""
        conn = await get_async_connection(dsn)
        try:
            await conn.execute(sql.SQL(_CREATE_TABLE).format(table=self._table))
            await conn.commit()
        finally:
            await conn.close()
        log.info("Records table ready", extra={"table": self.table_name})

    async def find(
        self, type_name: str, ids: Sequence[Any], options: Optional[Dict[str, Any]] = None
    ) -> List[Record]:
        keys = list(dict.fromkeys(_key(record_id) for record_id in ids))
        query = sql.SQL("SELECT id, data FROM {} WHERE type = %s AND id = ANY(%s)").format(
            self._table
        )
        async with self._require_pool().connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(query, (type_name, keys))
                rows = dict(await cur.fetchall())
        return [rows[key] for key in keys if key in rows]

    async def begin_transaction(self) -> PostgresTransaction:
        pool = self._require_pool()
        conn = await pool.getconn()
        return PostgresTransaction(pool, conn, self._table)


__all__ = ["PostgresAdapter", "PostgresTransaction"]
