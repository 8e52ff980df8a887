"""
In-memory adapter.

Stores records in nested dicts keyed by type and id. Each transaction works
on a deep copy of the committed store and swaps it in on commit, so an
aborted transaction leaves no trace. Transactions are serialized by an
`asyncio.Lock` held from `begin_transaction` until `end_transaction`.
"""

from __future__ import annotations

import asyncio
import copy
import uuid
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from linkweave.adapters.abstract import AbstractAdapter, apply_update
from linkweave.domain.errors import DuplicateIdError, StorageContractError
from linkweave.domain.models import Record, Update
from linkweave.domain.schema import PRIMARY_KEY
from linkweave.utils.logging import get_logger

log = get_logger(__name__)

Store = Dict[str, Dict[Any, Record]]


def _default_id_factory(type_name: str) -> str:
    del type_name
    return uuid.uuid4().hex


class MemoryTransaction:
    """Snapshot-isolated transaction over a `MemoryAdapter` store."""

    def __init__(self, adapter: "MemoryAdapter") -> None:
        self._adapter = adapter
        self._store: Store = copy.deepcopy(adapter._store)
        self._closed = False

    def _ensure_open(self) -> None:
        if self._closed:
            raise StorageContractError("Transaction has already ended.")

    def _bucket(self, type_name: str) -> Dict[Any, Record]:
        return self._store.setdefault(type_name, {})

    async def create(
        self, type_name: str, records: Sequence[Record], options: Optional[Dict[str, Any]] = None
    ) -> List[Record]:
        self._ensure_open()
        bucket = self._bucket(type_name)
        created: List[Record] = []
        for record in records:
            stored = copy.deepcopy(dict(record))
            if stored.get(PRIMARY_KEY) is None:
                stored[PRIMARY_KEY] = self._adapter.id_factory(type_name)
            record_id = stored[PRIMARY_KEY]
            if record_id in bucket:
                raise DuplicateIdError(f"A '{type_name}' record with id '{record_id}' exists.")
            bucket[record_id] = stored
            created.append(copy.deepcopy(stored))
        return created

    async def update(
        self, type_name: str, updates: Sequence[Update], options: Optional[Dict[str, Any]] = None
    ) -> List[Record]:
        self._ensure_open()
        bucket = self._bucket(type_name)
        updated: List[Record] = []
        for update in updates:
            stored = bucket.get(update.id)
            if stored is None:
                continue
            updated.append(copy.deepcopy(apply_update(stored, update)))
        return updated

    async def delete(
        self, type_name: str, ids: Sequence[Any], options: Optional[Dict[str, Any]] = None
    ) -> None:
        self._ensure_open()
        bucket = self._bucket(type_name)
        for record_id in ids:
            bucket.pop(record_id, None)

    async def end_transaction(self, error: Optional[BaseException] = None) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            if error is None:
                self._adapter._store = self._store
            else:
                log.debug("Discarding aborted transaction", extra={"error": str(error)})
        finally:
            self._adapter._lock.release()


class MemoryAdapter(AbstractAdapter):
    """
    Dict-backed adapter, mainly for tests and the CLI.

    Parameters
    ----------
    seed : Mapping[str, Iterable[Record]] | None
        Initial records per type; each must carry an id.
    id_factory : Callable[[str], Any] | None
        Produces an id for a created record that has none. Receives the type name.
    """

    transaction_class = MemoryTransaction

    def __init__(
        self,
        seed: Optional[Mapping[str, Iterable[Record]]] = None,
        id_factory: Optional[Callable[[str], Any]] = None,
    ) -> None:
        self.id_factory = id_factory or _default_id_factory
        self._store: Store = {}
        self._lock = asyncio.Lock()
        for type_name, records in (seed or {}).items():
            bucket = self._store.setdefault(type_name, {})
            for record in records:
                bucket[record[PRIMARY_KEY]] = copy.deepcopy(dict(record))

    async def find(
        self, type_name: str, ids: Sequence[Any], options: Optional[Dict[str, Any]] = None
    ) -> List[Record]:
        bucket = self._store.get(type_name, {})
        seen = set()
        found: List[Record] = []
        for record_id in ids:
            if record_id in seen or record_id not in bucket:
                continue
            seen.add(record_id)
            found.append(copy.deepcopy(bucket[record_id]))
        return found

    async def begin_transaction(self) -> MemoryTransaction:
        await self._lock.acquire()
        return self.transaction_class(self)

    def get(self, type_name: str, record_id: Any) -> Optional[Record]:
        """Committed copy of one record, or None."""
        record = self._store.get(type_name, {}).get(record_id)
        return copy.deepcopy(record) if record is not None else None

    def dump(self) -> Store:
        """Deep copy of the committed store."""
        return copy.deepcopy(self._store)


__all__ = ["MemoryAdapter", "MemoryTransaction"]
