"""
Inverse link batching.

Given the records a request creates or deletes, compute the patches that keep
every declared inverse field consistent. Patches are grouped by target type,
with at most one `Update` per target id, so each type receives a single bulk
update call. Nothing here performs I/O.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List

from linkweave.dispatch.check_links import linked_ids
from linkweave.domain.models import Direction, Record, Update
from linkweave.domain.schema import PRIMARY_KEY, RecordTypes

Updates = Dict[str, List[Update]]
UpdateIndex = Dict[str, Dict[Any, Update]]


def get_update(type_name: str, record_id: Any, updates: Updates, index: UpdateIndex) -> Update:
    """Return the pending update for (type, id), creating it on first reference."""
    by_id = index.setdefault(type_name, {})
    update = by_id.get(record_id)
    if update is None:
        update = Update(id=record_id)
        by_id[record_id] = update
        updates.setdefault(type_name, []).append(update)
    return update


def add_id(source_id: Any, update: Update, field: str, is_array: bool) -> None:
    if is_array:
        ids = update.push.setdefault(field, [])
        if source_id not in ids:
            ids.append(source_id)
    else:
        # Last writer in batch order wins.
        update.replace[field] = source_id


def remove_id(source_id: Any, update: Update, field: str, is_array: bool) -> None:
    ids = (update.pull if is_array else update.unset).setdefault(field, [])
    if source_id not in ids:
        ids.append(source_id)


def batch_updates(
    records: Iterable[Record],
    type_name: str,
    schema: RecordTypes,
    direction: Direction,
) -> Updates:
    """
    Compute inverse-side patches for `records` of `type_name`.

    Parameters
    ----------
    records : Iterable[Record]
        Source records; each must carry its primary id.
    type_name : str
        Record type of the source records.
    schema : RecordTypes
        Registry used to resolve link targets and inverse cardinality.
    direction : Direction
        ADD to insert the source ids into inverse fields, REMOVE to take them out.

    Returns
    -------
    Dict[str, List[Update]]
        Target type to its patches, in first-reference order. Types with no
        patches are absent.
    """
    apply = add_id if direction is Direction.ADD else remove_id
    fields = schema.fields(type_name)
    inverse_links = [
        (
            field,
            fields[field].link,
            fields[field].inverse,
            schema.inverse_is_array(type_name, field),
        )
        for field in schema.links(type_name)
        if fields[field].inverse
    ]

    updates: Updates = {}
    index: UpdateIndex = {}
    for record in records:
        source_id = record[PRIMARY_KEY]
        for field, linked_type, inverse_field, inverse_is_array in inverse_links:
            if field not in record:
                continue
            for linked_id in linked_ids(record[field]):
                update = get_update(linked_type, linked_id, updates, index)
                apply(source_id, update, inverse_field, inverse_is_array)
    return updates


__all__ = ["Updates", "add_id", "batch_updates", "get_update", "remove_id"]
