"""
Storage Services Package

Provides the abstract record store interface the core depends on,
and an in-memory implementation of it.
"""

from finance_brain.services.storage.interface import (
    NotFoundError,
    RecordStoreInterface,
    StorageError,
    StoredRecord,
)
from finance_brain.services.storage.memory import InMemoryRecordStore

__all__ = [
    # Interface
    "RecordStoreInterface",
    "StoredRecord",
    # Exceptions
    "NotFoundError",
    "StorageError",
    # In-memory implementation
    "InMemoryRecordStore",
]
