"""
Adapter interfaces for linkweave.

The dispatch engine never talks to a storage engine directly. Concrete
backends (in-memory, PostgreSQL) implement the `Adapter` protocol, and every
write happens through the `Transaction` handle it returns.
"""

from __future__ import annotations

import abc
from typing import Any, Dict, List, Optional, Protocol, Sequence, runtime_checkable

from linkweave.domain.models import Record, Update


@runtime_checkable
class Transaction(Protocol):
    """
    Scoped handle bounding the primary and derived writes of one request.

    The handle is owned by a single dispatch flow until `end_transaction`
    is called; it must not be shared with unrelated operations.
    """

    async def create(
        self, type_name: str, records: Sequence[Record], options: Optional[Dict[str, Any]] = None
    ) -> List[Record]:
        """
        Persist new records and return them with their primary ids assigned.
        """
        ...

    async def update(
        self, type_name: str, updates: Sequence[Update], options: Optional[Dict[str, Any]] = None
    ) -> List[Record]:
        """
        Apply one patch per id and return the updated records.
        """
        ...

    async def delete(
        self, type_name: str, ids: Sequence[Any], options: Optional[Dict[str, Any]] = None
    ) -> None:
        ...

    async def end_transaction(self, error: Optional[BaseException] = None) -> None:
        """
        Commit when `error` is None, otherwise abort and discard all writes.
        """
        ...


@runtime_checkable
class Adapter(Protocol):
    """
    Storage backend abstraction providing transactional CRUD primitives.
    """

    async def find(
        self, type_name: str, ids: Sequence[Any], options: Optional[Dict[str, Any]] = None
    ) -> List[Record]:
        """
        Return the committed records of `type_name` whose ids are in `ids`.

        Missing ids are silently skipped; order follows `ids`.
        """
        ...

    async def begin_transaction(self) -> Transaction:
        ...


class AbstractAdapter(abc.ABC):
    """
    Optional ABC helper for class-based implementations.

    Subclasses implement `find` and `begin_transaction`; `connect` and
    `close` default to no-ops for backends without resources to manage.
    """

    async def connect(self) -> None:
        """Acquire backend resources."""

    async def close(self) -> None:
        """Release backend resources."""

    @abc.abstractmethod
    async def find(
        self, type_name: str, ids: Sequence[Any], options: Optional[Dict[str, Any]] = None
    ) -> List[Record]:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    async def begin_transaction(self) -> Transaction:  # pragma: no cover - interface only
        raise NotImplementedError


def apply_update(record: Record, update: Update) -> Record:
    """
    Apply an `Update` to a stored record in place and return it.

    Push is a set union, pull filters ids out, and unset only clears a
    singular field that still holds one of the given ids.
    """
    for field, ids in update.push.items():
        current = list(record.get(field) or [])
        for value in ids:
            if value not in current:
                current.append(value)
        record[field] = current
    for field, ids in update.pull.items():
        current = record.get(field) or []
        record[field] = [value for value in current if value not in ids]
    for field, value in update.replace.items():
        record[field] = value
    for field, ids in update.unset.items():
        if record.get(field) in ids:
            record[field] = None
    return record


__all__ = [
    "AbstractAdapter",
    "Adapter",
    "Transaction",
    "apply_update",
]
