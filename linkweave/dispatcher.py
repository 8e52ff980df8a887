"""
Dispatcher binding the dispatch engine to its collaborators.

Usage:
    from linkweave.adapters import MemoryAdapter
    from linkweave.dispatcher import Dispatcher
    from linkweave.domain import Context, Method, RecordTypes, Request

    dispatcher = Dispatcher(adapter=MemoryAdapter(), schema=RecordTypes({...}))
    context = await dispatcher.dispatch(
        Context(Request(type="post", method=Method.CREATE, payload=[{"title": "Hi"}]))
    )
    print(context.response.event)
"""

from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable, Dict, Optional

from linkweave.adapters.abstract import Adapter
from linkweave.config import Settings, get_settings
from linkweave.dispatch.create import create as dispatch_create
from linkweave.dispatch.delete import delete as dispatch_delete
from linkweave.domain.errors import BadRequestError, MethodNotAllowedError
from linkweave.domain.models import Context, Method
from linkweave.domain.schema import Fields, RecordTypes
from linkweave.events import ChangeSink
from linkweave.serializers.abstract import Serializer
from linkweave.serializers.plain import PlainSerializer
from linkweave.transforms import Transforms
from linkweave.utils.logging import get_logger

log = get_logger(__name__)

Handler = Callable[["Dispatcher", Context], Awaitable[Context]]


class Dispatcher:
    """
    Entry point for create and delete requests.

    Parameters
    ----------
    adapter : Adapter
        Storage backend.
    schema : RecordTypes
        Record type registry; only read.
    serializer : Serializer | None
        Parses create payloads. Defaults to `PlainSerializer`.
    transforms : Mapping[str, Transform] | None
        Per-type input hooks.
    sink : ChangeSink | None
        Receives one change event per successful request.
    settings : Settings | None
        Dispatch tuning. Defaults to the cached environment settings.
    """

    def __init__(
        self,
        adapter: Adapter,
        schema: RecordTypes,
        serializer: Optional[Serializer] = None,
        transforms: Optional[Transforms] = None,
        sink: Optional[ChangeSink] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.adapter = adapter
        self.schema = schema
        self.serializer = serializer or PlainSerializer()
        self.transforms: Transforms = dict(transforms or {})
        self.sink = sink
        self.settings = settings or get_settings()
        self._handlers: Dict[Method, Handler] = {
            Method.CREATE: dispatch_create,
            Method.DELETE: dispatch_delete,
        }

    def fields_for(self, type_name: str) -> Fields:
        try:
            return self.schema.fields(type_name)
        except KeyError:
            raise BadRequestError(f"The type '{type_name}' is not a valid record type.") from None

    async def create(self, context: Context) -> Context:
        return await self._run(Method.CREATE, context)

    async def delete(self, context: Context) -> Context:
        return await self._run(Method.DELETE, context)

    async def dispatch(self, context: Context) -> Context:
        """Route `context` on `request.method`."""
        try:
            method = Method(context.request.method)
        except ValueError:
            raise MethodNotAllowedError(
                f"The method '{context.request.method}' is not supported."
            ) from None
        return await self._run(method, context)

    def run(self, context: Context) -> Context:
        """
        Synchronous wrapper around `dispatch` for code without an event loop.

        Raises
        ------
        RuntimeError
            If called from inside a running event loop; await `dispatch` there.
        """
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return asyncio.run(self.dispatch(context))
        raise RuntimeError(
            "Dispatcher.run() cannot be used from an async context; await dispatch() instead."
        )

    async def _run(self, method: Method, context: Context) -> Context:
        handler = self._handlers.get(method)
        if handler is None:
            raise MethodNotAllowedError(f"The method '{method.value}' is not supported.")

        request = context.request
        extra = {"method": method.value, "type": request.type}
        log.info(f"[DISPATCH START] {method.value} {request.type}", extra=extra)
        start = time.perf_counter()
        try:
            result = await handler(self, context)
        except Exception as exc:
            log.info(
                f"[DISPATCH FAILED] {method.value} {request.type}: {exc}",
                extra={**extra, "error_type": type(exc).__name__},
            )
            raise
        log.info(
            f"[DISPATCH COMPLETE] {method.value} {request.type}",
            extra={
                **extra,
                "records": len(result.response.records),
                "duration_seconds": round(time.perf_counter() - start, 4),
            },
        )
        return result


__all__ = ["Dispatcher"]
