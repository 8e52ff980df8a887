"""
Plain JSON serializer.

Accepts a payload that is a record mapping, a list of record mappings, or the
JSON text/bytes of either, and returns fresh record dicts.
"""

from __future__ import annotations

from typing import Any, Dict, List, Union

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from linkweave.domain.errors import BadRequestError
from linkweave.domain.models import Context, Record

_RECORDS = TypeAdapter(Union[List[Dict[str, Any]], Dict[str, Any]])


class PlainSerializer:
    """Records in, records out; no envelope."""

    def parse_create(self, context: Context) -> List[Record]:
        payload = context.request.payload
        if payload is None:
            return []
        try:
            if isinstance(payload, (str, bytes, bytearray)):
                parsed = _RECORDS.validate_json(payload)
            else:
                parsed = _RECORDS.validate_python(payload)
        except PydanticValidationError as exc:
            raise BadRequestError(
                f"Malformed record payload: {exc.error_count()} error(s)."
            ) from exc

        if isinstance(parsed, dict):
            parsed = [parsed]
        return [dict(record) for record in parsed]


__all__ = ["PlainSerializer"]
