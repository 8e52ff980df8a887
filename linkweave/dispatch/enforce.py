"""
Field enforcement.

Checks a record against its type's declared fields before anything is
persisted. The first violation raises `ValidationError`.
"""

from __future__ import annotations

from datetime import date, datetime
from numbers import Real
from typing import Any, Callable, Dict

from linkweave.domain.errors import ValidationError
from linkweave.domain.models import Record
from linkweave.domain.schema import PRIMARY_KEY, FieldDescriptor, Fields


def _is_date(value: Any) -> bool:
    if isinstance(value, (datetime, date)):
        return True
    if isinstance(value, str):
        try:
            datetime.fromisoformat(value)
        except ValueError:
            return False
        return True
    return False


_KIND_CHECKS: Dict[str, Callable[[Any], bool]] = {
    "string": lambda value: isinstance(value, str),
    "number": lambda value: isinstance(value, Real) and not isinstance(value, bool),
    "integer": lambda value: isinstance(value, int) and not isinstance(value, bool),
    "boolean": lambda value: isinstance(value, bool),
    "date": _is_date,
    "object": lambda value: isinstance(value, dict),
    "buffer": lambda value: isinstance(value, (bytes, bytearray)),
}


def _is_link_id(value: Any) -> bool:
    return isinstance(value, (str, int)) and not isinstance(value, bool)


def _check_value(type_name: str, field: str, descriptor: FieldDescriptor, value: Any) -> None:
    if descriptor.link:
        if not _is_link_id(value):
            raise ValidationError(
                f"Link '{type_name}.{field}' must reference ids, got {type(value).__name__}."
            )
        return
    if descriptor.type and not _KIND_CHECKS[descriptor.type](value):
        raise ValidationError(
            f"Field '{type_name}.{field}' must be of type '{descriptor.type}', "
            f"got {type(value).__name__}."
        )


def enforce(type_name: str, record: Record, fields: Fields) -> None:
    """
    Validate `record` against `fields`.

    Raises
    ------
    ValidationError
        On an undeclared field, a missing required field, wrong arity, or a
        value of the wrong primitive kind.
    """
    for field in record:
        if field != PRIMARY_KEY and field not in fields:
            raise ValidationError(f"Field '{field}' is not defined on type '{type_name}'.")

    for field, descriptor in fields.items():
        value = record.get(field)
        if value is None:
            if descriptor.required:
                raise ValidationError(f"Field '{type_name}.{field}' is required.")
            continue

        if descriptor.is_array:
            if not isinstance(value, list):
                raise ValidationError(f"Field '{type_name}.{field}' must be an array.")
            for item in value:
                if item is not None:
                    _check_value(type_name, field, descriptor, item)
            continue

        if isinstance(value, (list, tuple, set)):
            raise ValidationError(f"Field '{type_name}.{field}' must not be an array.")
        _check_value(type_name, field, descriptor, value)


__all__ = ["enforce"]
