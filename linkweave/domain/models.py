"""
Domain models for linkweave.

Records are plain mappings keyed by field name; everything that flows through
the dispatch engine around them (pending inverse updates, request context,
change events) is defined here.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, TypedDict

Record = Dict[str, Any]


class Method(str, enum.Enum):
    """Operation kinds, also used as the top-level keys of a change event."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class Direction(str, enum.Enum):
    """Whether inverse fields gain or lose the source record's id."""

    ADD = "add"
    REMOVE = "remove"


@dataclass
class Update:
    """
    Pending patch to one existing record.

    `push` and `pull` hold ids to add to or remove from array fields.
    `replace` assigns singular fields. `unset` clears a singular field only
    when its stored value is still one of the given ids.
    """

    id: Any
    push: Dict[str, List[Any]] = field(default_factory=dict)
    pull: Dict[str, List[Any]] = field(default_factory=dict)
    replace: Dict[str, Any] = field(default_factory=dict)
    unset: Dict[str, List[Any]] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not (self.push or self.pull or self.replace or self.unset)


class ChangeEvent(TypedDict, total=False):
    """
    Consolidated summary of the ids affected by one request.

    Keys mirror `Method` values; each maps a record type to its affected ids.
    """

    create: Dict[str, List[Any]]
    update: Dict[str, List[Any]]
    delete: Dict[str, List[Any]]


@dataclass
class Request:
    type: str
    method: Method = Method.CREATE
    ids: List[Any] = field(default_factory=list)
    payload: Any = None
    options: Dict[str, Any] = field(default_factory=dict)
    meta: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Response:
    records: List[Record] = field(default_factory=list)
    event: Optional[ChangeEvent] = None


@dataclass
class Context:
    """Request-scoped state shared with serializers and transforms."""

    request: Request
    response: Response = field(default_factory=Response)


__all__ = [
    "ChangeEvent",
    "Context",
    "Direction",
    "Method",
    "Record",
    "Request",
    "Response",
    "Update",
]
