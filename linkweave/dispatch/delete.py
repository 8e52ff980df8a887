"""
Delete dispatch.

Looks up the records to delete, deletes them inside a transaction together
with the updates that take their ids out of every inverse field, and
publishes one change event after commit.
"""

from __future__ import annotations

import asyncio
import copy
from typing import TYPE_CHECKING, Optional

from linkweave.dispatch.batcher import batch_updates
from linkweave.dispatch.change import build_change_event, publish_change
from linkweave.dispatch.state import DispatchFlow, DispatchState
from linkweave.dispatch.transaction import apply_updates, open_transaction
from linkweave.domain.errors import BadRequestError, NotFoundError
from linkweave.domain.models import Context, Direction, Method
from linkweave.domain.schema import PRIMARY_KEY
from linkweave.transforms import input_hook, run_input

if TYPE_CHECKING:
    from linkweave.dispatcher import Dispatcher


async def delete(
    dispatcher: "Dispatcher", context: Context, flow: Optional[DispatchFlow] = None
) -> Context:
    """
    Delete the records named by `context.request.ids`.

    The records are fetched before deletion; their link values drive the
    inverse updates. Input transforms see deep copies and may only reject.

    Raises
    ------
    BadRequestError
        No ids given, or unknown type.
    NotFoundError
        None of the ids exist.
    """
    request = context.request
    type_name = request.type
    adapter = dispatcher.adapter
    flow = flow or DispatchFlow(Method.DELETE.value, type_name)

    flow.advance(DispatchState.VALIDATING)
    try:
        dispatcher.fields_for(type_name)
        if not request.ids:
            raise BadRequestError("No IDs were specified to be deleted.")
        flow.advance(DispatchState.AWAITING_PRIMARY)

        records = await adapter.find(type_name, request.ids, request.options)
        if not records:
            raise NotFoundError("There are no records to be deleted.")
        context.response.records = records

        hook = input_hook(dispatcher.transforms, type_name)
        if hook is not None:
            await asyncio.gather(
                *(
                    run_input(hook, context, copy.deepcopy(record), require_record=False)
                    for record in records
                )
            )
    except Exception:
        flow.fail()
        raise

    ids = [record[PRIMARY_KEY] for record in records]
    async with open_transaction(adapter, flow) as transaction:
        await transaction.delete(type_name, ids, request.options)

        flow.advance(DispatchState.APPLYING_LINK_UPDATES)
        updates = batch_updates(records, type_name, dispatcher.schema, Direction.REMOVE)
        await apply_updates(
            transaction, updates, request.options, dispatcher.settings.concurrent_link_updates
        )

    event = build_change_event(Method.DELETE, type_name, ids, updates)
    context.response.event = event
    publish_change(dispatcher.sink, event)
    return context


__all__ = ["delete"]
