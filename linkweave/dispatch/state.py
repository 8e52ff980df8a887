"""
Dispatch lifecycle state machine.

Every create or delete request walks the same states. `DispatchFlow` records
the path taken and refuses transitions the lifecycle does not allow, which
keeps the create and delete flows honest about when a transaction is open.
"""

from __future__ import annotations

import enum
from typing import Dict, FrozenSet, List

from linkweave.utils.logging import get_logger

log = get_logger(__name__)


class DispatchState(str, enum.Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    AWAITING_PRIMARY = "awaiting_primary"
    TRANSACTING = "transacting"
    APPLYING_LINK_UPDATES = "applying_link_updates"
    COMMITTING = "committing"
    COMMITTED = "committed"
    ABORTING = "aborting"
    ABORTED = "aborted"
    FAILED = "failed"


_S = DispatchState

TRANSITIONS: Dict[DispatchState, FrozenSet[DispatchState]] = {
    _S.IDLE: frozenset({_S.VALIDATING}),
    _S.VALIDATING: frozenset({_S.AWAITING_PRIMARY, _S.FAILED}),
    _S.AWAITING_PRIMARY: frozenset({_S.TRANSACTING, _S.FAILED}),
    _S.TRANSACTING: frozenset({_S.APPLYING_LINK_UPDATES, _S.ABORTING}),
    _S.APPLYING_LINK_UPDATES: frozenset({_S.COMMITTING, _S.ABORTING}),
    _S.COMMITTING: frozenset({_S.COMMITTED, _S.ABORTING}),
    _S.ABORTING: frozenset({_S.ABORTED}),
    _S.COMMITTED: frozenset(),
    _S.ABORTED: frozenset(),
    _S.FAILED: frozenset(),
}

TERMINAL_STATES = frozenset({_S.COMMITTED, _S.ABORTED, _S.FAILED})


class InvalidTransitionError(RuntimeError):
    """Raised when a flow attempts a transition the lifecycle forbids."""


class DispatchFlow:
    """Tracks the lifecycle of one dispatch request."""

    def __init__(self, method: str, type_name: str) -> None:
        self.method = method
        self.type_name = type_name
        self.state = DispatchState.IDLE
        self.history: List[DispatchState] = [self.state]

    @property
    def done(self) -> bool:
        return self.state in TERMINAL_STATES

    def advance(self, target: DispatchState) -> None:
        if target not in TRANSITIONS[self.state]:
            raise InvalidTransitionError(
                f"Cannot move from '{self.state.value}' to '{target.value}'."
            )
        log.debug(
            f"[STATE] {self.state.value} -> {target.value}",
            extra={"method": self.method, "type": self.type_name, "state": target.value},
        )
        self.state = target
        self.history.append(target)

    def fail(self) -> None:
        """Mark a failure that happened before any transaction was opened."""
        if not self.done:
            self.advance(DispatchState.FAILED)


__all__ = [
    "DispatchFlow",
    "DispatchState",
    "InvalidTransitionError",
    "TERMINAL_STATES",
    "TRANSITIONS",
]
