"""
Create dispatch.

Parses the records to create, validates them, creates them inside a
transaction together with the inverse-side updates their links imply, and
publishes one change event after commit.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Optional

from linkweave.dispatch.batcher import batch_updates
from linkweave.dispatch.change import build_change_event, publish_change
from linkweave.dispatch.check_links import check_links
from linkweave.dispatch.enforce import enforce
from linkweave.dispatch.state import DispatchFlow, DispatchState
from linkweave.dispatch.transaction import apply_updates, open_transaction
from linkweave.domain.errors import BadRequestError, StorageContractError
from linkweave.domain.models import Context, Direction, Method
from linkweave.domain.schema import PRIMARY_KEY
from linkweave.transforms import input_hook, run_input

if TYPE_CHECKING:
    from linkweave.dispatcher import Dispatcher


async def create(
    dispatcher: "Dispatcher", context: Context, flow: Optional[DispatchFlow] = None
) -> Context:
    """
    Create the records parsed from `context` and keep their inverses consistent.

    Sets `context.response.records` to the created records and
    `context.response.event` to the published change event.

    Raises
    ------
    BadRequestError
        No records parsed, unknown type, or the adapter created nothing.
    ValidationError, ReferentialIntegrityError
        A record failed enforcement or links to a missing id.
    StorageContractError
        The adapter returned created records without ids.
    """
    request = context.request
    type_name = request.type
    schema = dispatcher.schema
    adapter = dispatcher.adapter
    flow = flow or DispatchFlow(Method.CREATE.value, type_name)

    flow.advance(DispatchState.VALIDATING)
    try:
        fields = dispatcher.fields_for(type_name)
        records = dispatcher.serializer.parse_create(context)
        if not records:
            raise BadRequestError("There are no valid records in the request.")

        for field in schema.denormalized_fields(type_name):
            for record in records:
                record.pop(field, None)

        hook = input_hook(dispatcher.transforms, type_name)
        if hook is not None:
            records = list(
                await asyncio.gather(*(run_input(hook, context, record) for record in records))
            )

        for record in records:
            enforce(type_name, record, fields)

        links = schema.links(type_name)
        semaphore = asyncio.Semaphore(dispatcher.settings.link_check_concurrency)
        await asyncio.gather(
            *(check_links(record, fields, links, adapter, semaphore) for record in records)
        )
        flow.advance(DispatchState.AWAITING_PRIMARY)
    except Exception:
        flow.fail()
        raise

    async with open_transaction(adapter, flow) as transaction:
        created = await transaction.create(type_name, records, request.options)
        context.response.records = created

        if not created:
            raise BadRequestError("Records could not be created.")
        if any(record.get(PRIMARY_KEY) is None for record in created):
            raise StorageContractError("An ID on a created record is missing.")
        if len(created) != len(records):
            raise StorageContractError(
                f"Adapter created {len(created)} of {len(records)} '{type_name}' records."
            )

        flow.advance(DispatchState.APPLYING_LINK_UPDATES)
        updates = batch_updates(created, type_name, schema, Direction.ADD)
        await apply_updates(
            transaction, updates, request.options, dispatcher.settings.concurrent_link_updates
        )

    event = build_change_event(
        Method.CREATE, type_name, [record[PRIMARY_KEY] for record in created], updates
    )
    context.response.event = event
    publish_change(dispatcher.sink, event)
    return context


__all__ = ["create"]
