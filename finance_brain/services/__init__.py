"""Services package - external collaborators behind abstract interfaces."""

from finance_brain.services.storage import (
    InMemoryRecordStore,
    NotFoundError,
    RecordStoreInterface,
    StorageError,
    StoredRecord,
)

__all__ = [
    "InMemoryRecordStore",
    "NotFoundError",
    "RecordStoreInterface",
    "StorageError",
    "StoredRecord",
]
