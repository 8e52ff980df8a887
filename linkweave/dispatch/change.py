"""
Change aggregation.

Summarizes the ids touched by one request, the primary operation plus every
derived inverse update, into a single `ChangeEvent`.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from linkweave.domain.models import ChangeEvent, Method, Update
from linkweave.events import ChangeSink
from linkweave.utils.logging import get_logger

log = get_logger(__name__)


def build_change_event(
    method: Method,
    type_name: str,
    ids: Sequence[Any],
    updates: Mapping[str, Sequence[Update]],
) -> ChangeEvent:
    """
    Build the change payload for a committed request.

    Update buckets that ended up empty are left out, and the `update` key is
    present only when at least one type was patched.
    """
    event: ChangeEvent = {method.value: {type_name: list(ids)}}  # type: ignore[misc]
    for linked_type, batch in updates.items():
        if not batch:
            continue
        event.setdefault(Method.UPDATE.value, {})[linked_type] = [  # type: ignore[misc]
            update.id for update in batch
        ]
    return event


def publish_change(sink: Optional[ChangeSink], event: ChangeEvent) -> None:
    """
    Hand a committed event to `sink`.

    The request has already committed, so a failing sink is logged and never
    turns the request into a failure.
    """
    if sink is None:
        return
    log.debug("[CHANGE PUBLISH]", extra={"event": event})
    try:
        sink.publish(event)
    except Exception:
        log.exception("[CHANGE PUBLISH FAILED]", extra={"event": event})


__all__ = ["build_change_event", "publish_change"]
