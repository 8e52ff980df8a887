"""
linkweave - link-consistency maintenance and transactional dispatch.

Mediates create and delete requests against schema-described record types:

- Field enforcement and referential integrity checks before any write
- Inverse link updates batched per record type, one patch per id
- Primary and derived writes applied in a single adapter transaction
- One consolidated change event published per successful request

Storage, payload parsing, and change delivery are pluggable collaborators;
in-memory and PostgreSQL adapters ship with the package.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from linkweave.adapters import AbstractAdapter, Adapter, MemoryAdapter, Transaction
from linkweave.config import Settings, get_settings
from linkweave.dispatcher import Dispatcher
from linkweave.domain import (
    ChangeEvent,
    Context,
    Direction,
    FieldDescriptor,
    Method,
    RecordTypes,
    Request,
    Response,
    Update,
)
from linkweave.domain.errors import (
    BadRequestError,
    DispatchError,
    NotFoundError,
    ReferentialIntegrityError,
    StorageContractError,
    ValidationError,
)
from linkweave.events import ChangeBus, ChangeSink
from linkweave.serializers import PlainSerializer, Serializer
from linkweave.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Dispatch
    "Dispatcher",
    # Domain
    "ChangeEvent",
    "Context",
    "Direction",
    "FieldDescriptor",
    "Method",
    "RecordTypes",
    "Request",
    "Response",
    "Update",
    # Errors
    "BadRequestError",
    "DispatchError",
    "NotFoundError",
    "ReferentialIntegrityError",
    "StorageContractError",
    "ValidationError",
    # Collaborators
    "AbstractAdapter",
    "Adapter",
    "ChangeBus",
    "ChangeSink",
    "MemoryAdapter",
    "PlainSerializer",
    "Serializer",
    "Transaction",
    # Logging
    "configure_logging",
    "get_logger",
]
