from __future__ import annotations

import pytest

from linkweave.dispatch.batcher import add_id, batch_updates, get_update, remove_id
from linkweave.domain.models import Direction, Update
from linkweave.domain.schema import RecordTypes


def test_get_update_folds_repeat_references_into_one_entry():
    updates: dict = {}
    index: dict = {}

    first = get_update("user", "u1", updates, index)
    second = get_update("user", "u1", updates, index)

    assert first is second
    assert updates == {"user": [first]}


def test_add_id_to_array_is_a_set_union():
    update = Update(id="u1")
    add_id("p1", update, "posts", True)
    add_id("p1", update, "posts", True)
    add_id("p2", update, "posts", True)
    assert update.push == {"posts": ["p1", "p2"]}


def test_add_id_to_singular_assigns():
    update = Update(id="u1")
    add_id("p1", update, "featured", False)
    add_id("p2", update, "featured", False)
    assert update.replace == {"featured": "p2"}


def test_remove_id_uses_pull_for_arrays_and_unset_for_singulars():
    update = Update(id="u1")
    remove_id("p1", update, "posts", True)
    remove_id("p1", update, "posts", True)
    remove_id("p1", update, "featured", False)
    assert update.pull == {"posts": ["p1"]}
    assert update.unset == {"featured": ["p1"]}


def test_created_post_adds_itself_to_author_posts(schema: RecordTypes):
    updates = batch_updates([{"id": "p1", "author": "u1"}], "post", schema, Direction.ADD)

    assert list(updates) == ["user"]
    [update] = updates["user"]
    assert update.id == "u1"
    assert update.push == {"posts": ["p1"]}


def test_references_to_the_same_target_share_one_update(schema: RecordTypes):
    records = [
        {"id": "p1", "author": "u1", "tags": ["t1", "t2"]},
        {"id": "p2", "author": "u1", "tags": ["t1"]},
    ]

    updates = batch_updates(records, "post", schema, Direction.ADD)

    assert [u.id for u in updates["user"]] == ["u1"]
    assert updates["user"][0].push == {"posts": ["p1", "p2"]}
    assert [u.id for u in updates["tag"]] == ["t1", "t2"]
    assert updates["tag"][0].push == {"posts": ["p1", "p2"]}
    assert updates["tag"][1].push == {"posts": ["p1"]}


def test_each_type_has_at_most_one_update_per_id(schema: RecordTypes):
    records = [{"id": f"p{n}", "author": "u1", "featuredBy": "u1", "tags": ["t1"]} for n in range(4)]

    updates = batch_updates(records, "post", schema, Direction.ADD)

    for batch in updates.values():
        ids = [update.id for update in batch]
        assert len(ids) == len(set(ids))


def test_singular_inverse_last_writer_in_batch_order_wins(schema: RecordTypes):
    records = [
        {"id": "p1", "featuredBy": "u1"},
        {"id": "p2", "featuredBy": "u1"},
        {"id": "p3", "featuredBy": "u1"},
    ]

    forward = batch_updates(records, "post", schema, Direction.ADD)
    backward = batch_updates(list(reversed(records)), "post", schema, Direction.ADD)

    assert forward["user"][0].replace == {"featured": "p3"}
    assert backward["user"][0].replace == {"featured": "p1"}


def test_remove_direction_builds_pull_and_unset(schema: RecordTypes):
    records = [{"id": "p1", "author": "u1", "featuredBy": "u1", "tags": ["t1"]}]

    updates = batch_updates(records, "post", schema, Direction.REMOVE)

    [user_update] = updates["user"]
    assert user_update.pull == {"posts": ["p1"]}
    assert user_update.unset == {"featured": ["p1"]}
    assert user_update.push == {} and user_update.replace == {}
    assert updates["tag"][0].pull == {"posts": ["p1"]}


def test_null_absent_and_unidirectional_links_produce_nothing(schema: RecordTypes):
    records = [
        {"id": "p1", "author": None, "tags": [None]},
        {"id": "p2"},
    ]
    assert batch_updates(records, "post", schema, Direction.ADD) == {}

    user = [{"id": "u9", "bookmarks": ["p1", "p2"]}]
    assert batch_updates(user, "user", schema, Direction.ADD) == {}


@pytest.mark.parametrize("direction", [Direction.ADD, Direction.REMOVE])
def test_batching_is_idempotent(schema: RecordTypes, direction: Direction):
    records = [
        {"id": "p1", "author": "u1", "tags": ["t1", "t2", "t1"]},
        {"id": "p2", "author": "u2", "featuredBy": "u1", "tags": ["t2"]},
    ]

    first = batch_updates(records, "post", schema, direction)
    second = batch_updates(records, "post", schema, direction)

    assert first == second
    for batch in first.values():
        for update in batch:
            for ids in list(update.push.values()) + list(update.pull.values()):
                assert len(ids) == len(set(ids))


def test_batching_does_not_mutate_source_records(schema: RecordTypes):
    records = [{"id": "p1", "author": "u1", "tags": ["t1"]}]
    snapshot = [dict(record) for record in records]

    batch_updates(records, "post", schema, Direction.ADD)

    assert records == snapshot


def test_self_referential_links_patch_the_same_type():
    schema = RecordTypes({"user": {"friends": {"link": "user", "inverse": "friends", "isArray": True}}})

    updates = batch_updates([{"id": "u3", "friends": ["u1", "u2"]}], "user", schema, Direction.ADD)

    assert [(u.id, u.push) for u in updates["user"]] == [
        ("u1", {"friends": ["u3"]}),
        ("u2", {"friends": ["u3"]}),
    ]
