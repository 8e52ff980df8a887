"""
Error taxonomy for linkweave.

Every request-scoped failure raised by the dispatch engine derives from
`DispatchError`. Each class carries an HTTP-like `status` so callers that
map failures to responses do not need their own lookup table.
"""

from __future__ import annotations


class DispatchError(Exception):
    """Base class for failures raised while dispatching a request."""

    status: int = 500


class BadRequestError(DispatchError):
    """The request cannot be processed as given."""

    status = 400


class ValidationError(BadRequestError):
    """A record's field values do not match its type's declared constraints."""


class ReferentialIntegrityError(BadRequestError):
    """A record links to an id that does not exist in the target type."""

    def __init__(self, message: str, field: str = "", missing_ids: tuple = ()) -> None:
        super().__init__(message)
        self.field = field
        self.missing_ids = missing_ids


class NotFoundError(DispatchError):
    """The records targeted by the request do not exist."""

    status = 404


class MethodNotAllowedError(DispatchError):
    """The dispatcher does not handle the requested method."""

    status = 405


class StorageContractError(DispatchError):
    """The adapter returned data that violates its contract."""


class DuplicateIdError(DispatchError):
    """A record with the same id already exists in its type."""

    status = 409


class SchemaError(ValueError):
    """Raised when record type definitions are inconsistent."""


__all__ = [
    "BadRequestError",
    "DispatchError",
    "DuplicateIdError",
    "MethodNotAllowedError",
    "NotFoundError",
    "ReferentialIntegrityError",
    "SchemaError",
    "StorageContractError",
    "ValidationError",
]
