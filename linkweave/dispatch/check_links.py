"""
Referential integrity.

Before a transaction opens, every id referenced through a link field must
exist in the linked type. Lookups only read, so they run outside the
transaction and concurrently across records.
"""

from __future__ import annotations

import asyncio
from typing import Any, List, Optional, Sequence

from linkweave.adapters.abstract import Adapter
from linkweave.domain.errors import ReferentialIntegrityError
from linkweave.domain.models import Record
from linkweave.domain.schema import PRIMARY_KEY, Fields
from linkweave.utils.logging import get_logger

log = get_logger(__name__)


def linked_ids(value: Any) -> List[Any]:
    """Normalize a link value to a list of non-null ids."""
    values = value if isinstance(value, list) else [value]
    return [item for item in values if item is not None]


async def check_links(
    record: Record,
    fields: Fields,
    links: Sequence[str],
    adapter: Adapter,
    semaphore: Optional[asyncio.Semaphore] = None,
) -> None:
    """
    Verify that every id `record` links to exists.

    Raises
    ------
    ReferentialIntegrityError
        Naming the first field with dangling ids.
    """
    for field in links:
        if field not in record:
            continue
        ids = list(dict.fromkeys(linked_ids(record[field])))
        if not ids:
            continue

        linked_type = fields[field].link
        if semaphore is not None:
            async with semaphore:
                found = await adapter.find(linked_type, ids)
        else:
            found = await adapter.find(linked_type, ids)

        # Adapters may match ids across int/str; compare on the text form.
        found_ids = {str(item[PRIMARY_KEY]) for item in found}
        missing = tuple(record_id for record_id in ids if str(record_id) not in found_ids)
        if missing:
            log.debug(
                "Dangling link",
                extra={"field": field, "linked_type": linked_type, "missing": list(missing)},
            )
            raise ReferentialIntegrityError(
                f"A related record for the field '{field}' was not found: "
                f"{', '.join(map(str, missing))}.",
                field=field,
                missing_ids=missing,
            )


__all__ = ["check_links", "linked_ids"]
