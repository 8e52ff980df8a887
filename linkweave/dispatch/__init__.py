"""
Dispatch package for linkweave.

Holds the link-consistency engine: field enforcement, referential integrity,
inverse update batching, the transactional create/delete flows, and change
aggregation.
"""

from linkweave.dispatch.batcher import add_id, batch_updates, get_update, remove_id
from linkweave.dispatch.change import build_change_event, publish_change
from linkweave.dispatch.check_links import check_links
from linkweave.dispatch.create import create
from linkweave.dispatch.delete import delete
from linkweave.dispatch.enforce import enforce
from linkweave.dispatch.state import DispatchFlow, DispatchState, InvalidTransitionError
from linkweave.dispatch.transaction import apply_updates, open_transaction

__all__ = [
    "DispatchFlow",
    "DispatchState",
    "InvalidTransitionError",
    "add_id",
    "apply_updates",
    "batch_updates",
    "build_change_event",
    "check_links",
    "create",
    "delete",
    "enforce",
    "get_update",
    "open_transaction",
    "publish_change",
    "remove_id",
]
