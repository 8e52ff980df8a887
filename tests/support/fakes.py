"""Adapter doubles for counting calls and injecting faults."""

from __future__ import annotations

from collections import Counter
from typing import Any, Dict, List, Optional, Sequence

from linkweave.adapters.memory import MemoryAdapter, MemoryTransaction
from linkweave.domain.models import Record, Update


class CountingTransaction(MemoryTransaction):
    async def create(
        self, type_name: str, records: Sequence[Record], options: Optional[Dict[str, Any]] = None
    ) -> List[Record]:
        self._adapter.calls["create"] += 1
        return await super().create(type_name, records, options)

    async def update(
        self, type_name: str, updates: Sequence[Update], options: Optional[Dict[str, Any]] = None
    ) -> List[Record]:
        self._adapter.calls["update"] += 1
        self._adapter.update_batches.append((type_name, [update.id for update in updates]))
        return await super().update(type_name, updates, options)

    async def delete(
        self, type_name: str, ids: Sequence[Any], options: Optional[Dict[str, Any]] = None
    ) -> None:
        self._adapter.calls["delete"] += 1
        await super().delete(type_name, ids, options)

    async def end_transaction(self, error: Optional[BaseException] = None) -> None:
        self._adapter.calls["abort" if error is not None else "commit"] += 1
        self._adapter.end_errors.append(error)
        await super().end_transaction(error)


class CountingAdapter(MemoryAdapter):
    """Memory adapter that counts every call made through it."""

    transaction_class = CountingTransaction

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.calls: Counter = Counter()
        self.update_batches: List[tuple] = []
        self.end_errors: List[Optional[BaseException]] = []

    async def find(
        self, type_name: str, ids: Sequence[Any], options: Optional[Dict[str, Any]] = None
    ) -> List[Record]:
        self.calls["find"] += 1
        return await super().find(type_name, ids, options)

    async def begin_transaction(self) -> MemoryTransaction:
        self.calls["begin"] += 1
        return await super().begin_transaction()

    @property
    def writes(self) -> int:
        return self.calls["create"] + self.calls["update"] + self.calls["delete"]


class FailingUpdateTransaction(CountingTransaction):
    async def update(
        self, type_name: str, updates: Sequence[Update], options: Optional[Dict[str, Any]] = None
    ) -> List[Record]:
        await super().update(type_name, updates, options)
        raise RuntimeError(f"update of '{type_name}' failed")


class FailingUpdateAdapter(CountingAdapter):
    """Fails every derived update after the primary operation succeeded."""

    transaction_class = FailingUpdateTransaction


class IdlessCreateTransaction(CountingTransaction):
    async def create(
        self, type_name: str, records: Sequence[Record], options: Optional[Dict[str, Any]] = None
    ) -> List[Record]:
        created = await super().create(type_name, records, options)
        return [{key: value for key, value in record.items() if key != "id"} for record in created]


class IdlessCreateAdapter(CountingAdapter):
    """Returns created records stripped of their ids."""

    transaction_class = IdlessCreateTransaction


class EmptyCreateTransaction(CountingTransaction):
    async def create(
        self, type_name: str, records: Sequence[Record], options: Optional[Dict[str, Any]] = None
    ) -> List[Record]:
        await super().create(type_name, records, options)
        return []


class EmptyCreateAdapter(CountingAdapter):
    transaction_class = EmptyCreateTransaction
