"""
Domain package for linkweave.

Exports the schema, request/record models, and error taxonomy used across the
dispatch engine and the adapters. Keep this package focused on data
definitions and validation concerns.
"""

from linkweave.domain.errors import (
    BadRequestError,
    DispatchError,
    DuplicateIdError,
    MethodNotAllowedError,
    NotFoundError,
    ReferentialIntegrityError,
    SchemaError,
    StorageContractError,
    ValidationError,
)
from linkweave.domain.models import (
    ChangeEvent,
    Context,
    Direction,
    Method,
    Record,
    Request,
    Response,
    Update,
)
from linkweave.domain.schema import PRIMARY_KEY, FieldDescriptor, Fields, RecordTypes

__all__ = [
    "BadRequestError",
    "ChangeEvent",
    "Context",
    "Direction",
    "DispatchError",
    "DuplicateIdError",
    "FieldDescriptor",
    "Fields",
    "Method",
    "MethodNotAllowedError",
    "NotFoundError",
    "PRIMARY_KEY",
    "Record",
    "RecordTypes",
    "ReferentialIntegrityError",
    "Request",
    "Response",
    "SchemaError",
    "StorageContractError",
    "Update",
    "ValidationError",
]
