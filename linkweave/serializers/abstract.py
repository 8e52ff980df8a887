"""Serializer interface: turns an inbound payload into records to create."""

from __future__ import annotations

from typing import List, Protocol, runtime_checkable

from linkweave.domain.models import Context, Record


@runtime_checkable
class Serializer(Protocol):
    def parse_create(self, context: Context) -> List[Record]:
        """
        Parse the records to be created from `context.request.payload`.

        May return an empty list; the dispatcher treats that as a bad request.
        """
        ...


__all__ = ["Serializer"]
