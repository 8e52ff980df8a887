"""
Adapters package for linkweave.

Re-exports the adapter protocols and the in-memory backend. The PostgreSQL
backend lives in `linkweave.adapters.postgres` and is imported on demand so
that psycopg is only loaded when it is used.
"""

from linkweave.adapters.abstract import AbstractAdapter, Adapter, Transaction, apply_update
from linkweave.adapters.memory import MemoryAdapter, MemoryTransaction

__all__ = [
    "AbstractAdapter",
    "Adapter",
    "MemoryAdapter",
    "MemoryTransaction",
    "Transaction",
    "apply_update",
]
