"""
Change notification.

The dispatcher hands one `ChangeEvent` per successful request to a
`ChangeSink`. `ChangeBus` is the in-process sink: it fans events out to
subscribed listeners and isolates the request from listener failures.
"""

from __future__ import annotations

from typing import Callable, List, Protocol, runtime_checkable

from linkweave.domain.models import ChangeEvent
from linkweave.utils.logging import get_logger

log = get_logger(__name__)

Listener = Callable[[ChangeEvent], None]


@runtime_checkable
class ChangeSink(Protocol):
    def publish(self, event: ChangeEvent) -> None: ...


class ChangeBus:
    """Fire-and-forget publish/subscribe for change events."""

    def __init__(self) -> None:
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, event: ChangeEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:  # noqa: BLE001 - listeners must not fail a committed request
                log.exception("[CHANGE LISTENER FAILED]", extra={"listener": repr(listener)})


__all__ = ["ChangeBus", "ChangeSink", "Listener"]
