"""
Transaction scope for a dispatch flow.

Opens a transaction handle from the adapter, and guarantees that it ends
exactly once: committed when the body completes, aborted with the causing
error otherwise. The causing error always reaches the caller unchanged.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Mapping, Optional, Sequence

from linkweave.adapters.abstract import Adapter, Transaction
from linkweave.dispatch.state import DispatchFlow, DispatchState
from linkweave.domain.models import Record, Update
from linkweave.utils.logging import get_logger

log = get_logger(__name__)


@asynccontextmanager
async def open_transaction(adapter: Adapter, flow: DispatchFlow) -> AsyncIterator[Transaction]:
    """
    Yield a transaction for the primary operation and its derived updates.

    The flow must be in AWAITING_PRIMARY. On entry it moves to TRANSACTING;
    the body is expected to advance it to APPLYING_LINK_UPDATES.
    """
    extra = {"method": flow.method, "type": flow.type_name}
    try:
        transaction = await adapter.begin_transaction()
    except Exception:
        flow.fail()
        raise
    flow.advance(DispatchState.TRANSACTING)
    log.debug("[TRANSACTION BEGIN]", extra=extra)

    try:
        yield transaction
        flow.advance(DispatchState.COMMITTING)
        await transaction.end_transaction()
    except BaseException as error:
        flow.advance(DispatchState.ABORTING)
        log.warning(
            "[TRANSACTION ABORT]",
            extra={**extra, "error": str(error), "error_type": type(error).__name__},
        )
        try:
            await transaction.end_transaction(error)
        except Exception:  # noqa: BLE001 - the causing error takes precedence
            log.exception("[TRANSACTION ABORT FAILED]", extra=extra)
        flow.advance(DispatchState.ABORTED)
        raise

    flow.advance(DispatchState.COMMITTED)
    log.debug("[TRANSACTION COMMIT]", extra=extra)


async def apply_updates(
    transaction: Transaction,
    updates: Mapping[str, Sequence[Update]],
    options: Optional[Dict[str, Any]] = None,
    concurrent: bool = True,
) -> Dict[str, List[Record]]:
    """
    Issue one bulk update per non-empty type inside `transaction`.

    Types are disjoint, so their calls may run concurrently; all of them are
    joined before returning.
    """
    batches = [(type_name, list(batch)) for type_name, batch in updates.items() if batch]
    if concurrent:
        results = await asyncio.gather(
            *(transaction.update(type_name, batch, options) for type_name, batch in batches)
        )
    else:
        results = [
            await transaction.update(type_name, batch, options) for type_name, batch in batches
        ]
    return {type_name: result for (type_name, _), result in zip(batches, results)}


__all__ = ["apply_updates", "open_transaction"]
