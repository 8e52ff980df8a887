"""
Per-type transform hooks.

A transform is any object with an `input(context, record)` method, sync or
async, returning the record to persist. Raising from it rejects the request.
"""

from __future__ import annotations

import inspect
from typing import Any, Mapping, Optional, Protocol, runtime_checkable

from linkweave.domain.errors import BadRequestError
from linkweave.domain.models import Context, Record


@runtime_checkable
class Transform(Protocol):
    def input(self, context: Context, record: Record) -> Any: ...


Transforms = Mapping[str, Transform]


def input_hook(transforms: Optional[Transforms], type_name: str) -> Optional[Any]:
    """The `input` callable registered for a type, or None."""
    transform = (transforms or {}).get(type_name)
    return getattr(transform, "input", None) if transform is not None else None


async def run_input(
    hook: Any, context: Context, record: Record, require_record: bool = True
) -> Record:
    """
    Call `hook` and return the record it produced.

    With `require_record=False` the result is not inspected; delete flows only
    use the hook to reject.

    Raises
    ------
    BadRequestError
        If the hook returns something other than a record mapping.
    """
    result = hook(context, record)
    if inspect.isawaitable(result):
        result = await result
    if not require_record:
        return result
    if not isinstance(result, Mapping):
        raise BadRequestError(
            f"The input transform for type '{context.request.type}' must return a record, "
            f"got {type(result).__name__}."
        )
    return dict(result)


__all__ = ["Transform", "Transforms", "input_hook", "run_input"]
