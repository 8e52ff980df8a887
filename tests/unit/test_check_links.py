from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional, Sequence

import pytest

from linkweave.adapters.memory import MemoryAdapter
from linkweave.dispatch.check_links import check_links, linked_ids
from linkweave.domain.errors import ReferentialIntegrityError
from linkweave.domain.schema import RecordTypes


class _FindRecorder(MemoryAdapter):
    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.find_calls: List[tuple] = []

    async def find(
        self, type_name: str, ids: Sequence[Any], options: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        self.find_calls.append((type_name, list(ids)))
        return await super().find(type_name, ids, options)


def test_linked_ids_normalizes_scalars_and_drops_nulls():
    assert linked_ids("u1") == ["u1"]
    assert linked_ids(["t1", None, "t2"]) == ["t1", "t2"]
    assert linked_ids(None) == []


@pytest.mark.asyncio
async def test_existing_links_pass(adapter: MemoryAdapter, schema: RecordTypes):
    record = {"title": "Hi", "author": "u1", "tags": ["t1", "t2"]}
    await check_links(record, schema.fields("post"), schema.links("post"), adapter)


@pytest.mark.asyncio
async def test_dangling_link_raises_with_missing_ids(adapter: MemoryAdapter, schema: RecordTypes):
    record = {"title": "Hi", "tags": ["t1", "t404", "t405"]}

    with pytest.raises(ReferentialIntegrityError) as excinfo:
        await check_links(record, schema.fields("post"), schema.links("post"), adapter)

    assert excinfo.value.field == "tags"
    assert excinfo.value.missing_ids == ("t404", "t405")
    assert excinfo.value.status == 400


@pytest.mark.asyncio
async def test_duplicate_ids_are_looked_up_once(schema: RecordTypes):
    adapter = _FindRecorder(seed={"tag": [{"id": "t1"}]})
    record = {"title": "Hi", "tags": ["t1", "t1", None]}

    await check_links(record, schema.fields("post"), schema.links("post"), adapter)

    assert adapter.find_calls == [("tag", ["t1"])]


@pytest.mark.asyncio
async def test_absent_and_null_links_are_skipped(schema: RecordTypes):
    adapter = _FindRecorder()
    record = {"title": "Hi", "author": None}

    await check_links(record, schema.fields("post"), schema.links("post"), adapter)

    assert adapter.find_calls == []


@pytest.mark.asyncio
async def test_semaphore_bounds_lookups(adapter: MemoryAdapter, schema: RecordTypes):
    semaphore = asyncio.Semaphore(1)
    records = [{"title": str(n), "author": "u1", "tags": ["t1"]} for n in range(5)]

    await asyncio.gather(
        *(
            check_links(record, schema.fields("post"), schema.links("post"), adapter, semaphore)
            for record in records
        )
    )

    assert not semaphore.locked()


class _TextKeyAdapter(MemoryAdapter):
    """Matches ids on their text form, the way the PostgreSQL key column does."""

    async def find(
        self, type_name: str, ids: Sequence[Any], options: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        wanted = {str(record_id) for record_id in ids}
        return [
            dict(record)
            for record_id, record in self._store.get(type_name, {}).items()
            if str(record_id) in wanted
        ]


@pytest.mark.asyncio
async def test_ids_matched_across_int_and_str_are_not_dangling(schema: RecordTypes):
    adapter = _TextKeyAdapter(seed={"user": [{"id": 1, "name": "Ada"}]})
    record = {"title": "Hi", "author": "1"}

    await check_links(record, schema.fields("post"), schema.links("post"), adapter)
