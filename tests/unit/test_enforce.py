from __future__ import annotations

from datetime import datetime, timezone

import pytest

from linkweave.dispatch.enforce import enforce
from linkweave.domain.errors import ValidationError
from linkweave.domain.schema import RecordTypes


def test_valid_record_passes(schema: RecordTypes):
    enforce(
        "post",
        {
            "title": "Hello",
            "publishedAt": "2024-05-01T10:00:00",
            "author": "u1",
            "tags": ["t1", "t2"],
        },
        schema.fields("post"),
    )


def test_primary_key_is_always_allowed(schema: RecordTypes):
    enforce("tag", {"id": "t9", "label": "x"}, schema.fields("tag"))


def test_undeclared_field_is_rejected(schema: RecordTypes):
    with pytest.raises(ValidationError, match="'body' is not defined"):
        enforce("post", {"title": "Hi", "body": "..."}, schema.fields("post"))


@pytest.mark.parametrize("record", [{}, {"title": None}])
def test_required_field_must_be_present(schema: RecordTypes, record):
    with pytest.raises(ValidationError, match="required"):
        enforce("post", record, schema.fields("post"))


def test_array_field_rejects_scalar(schema: RecordTypes):
    with pytest.raises(ValidationError, match="must be an array"):
        enforce("post", {"title": "Hi", "tags": "t1"}, schema.fields("post"))


def test_singular_field_rejects_list(schema: RecordTypes):
    with pytest.raises(ValidationError, match="must not be an array"):
        enforce("post", {"title": "Hi", "author": ["u1"]}, schema.fields("post"))


@pytest.mark.parametrize("value", [42, True, b"bytes"])
def test_wrong_primitive_kind_is_rejected(schema: RecordTypes, value):
    with pytest.raises(ValidationError, match="type 'string'"):
        enforce("post", {"title": value}, schema.fields("post"))


def test_boolean_is_not_an_integer():
    schema = RecordTypes({"counter": {"value": {"type": "integer"}}})
    with pytest.raises(ValidationError):
        enforce("counter", {"value": True}, schema.fields("counter"))


def test_number_accepts_int_and_float():
    schema = RecordTypes({"reading": {"value": {"type": "number"}}})
    enforce("reading", {"value": 3}, schema.fields("reading"))
    enforce("reading", {"value": 3.5}, schema.fields("reading"))


def test_date_accepts_datetime_and_iso_strings(schema: RecordTypes):
    fields = schema.fields("post")
    enforce("post", {"title": "a", "publishedAt": datetime.now(timezone.utc)}, fields)
    enforce("post", {"title": "a", "publishedAt": "2024-01-31"}, fields)
    with pytest.raises(ValidationError, match="type 'date'"):
        enforce("post", {"title": "a", "publishedAt": "yesterday"}, fields)


def test_object_and_buffer_kinds():
    schema = RecordTypes({"blob": {"meta": {"type": "object"}, "data": {"type": "buffer"}}})
    fields = schema.fields("blob")
    enforce("blob", {"meta": {"a": 1}, "data": b"\x00"}, fields)
    with pytest.raises(ValidationError):
        enforce("blob", {"data": "not bytes"}, fields)


def test_link_values_must_be_ids(schema: RecordTypes):
    with pytest.raises(ValidationError, match="must reference ids"):
        enforce("post", {"title": "Hi", "author": {"id": "u1"}}, schema.fields("post"))


def test_null_entries_inside_link_arrays_are_ignored(schema: RecordTypes):
    enforce("post", {"title": "Hi", "tags": ["t1", None]}, schema.fields("post"))


def test_optional_fields_may_be_null(schema: RecordTypes):
    enforce("post", {"title": "Hi", "author": None, "tags": None}, schema.fields("post"))
