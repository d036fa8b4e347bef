"""
In-Memory Record Store

A complete RecordStoreInterface backed by dicts. Used by the test suite
and for running Finance Brain without a host (scripts, notebooks).

Records are copied on the way out so callers can never mutate the
store's state behind its back.
"""

from itertools import count
from typing import Any, Optional

from finance_brain.services.storage.interface import (
    NotFoundError,
    RecordStoreInterface,
    StorageError,
    StoredRecord,
)


class InMemoryRecordStore(RecordStoreInterface):
    """
    Dictionary-backed record store.

    Set `fail_queries` to make query_by_property raise StorageError,
    which is how tests exercise the scanner's degradation path.
    """

    def __init__(self):
        self._records: dict[str, StoredRecord] = {}
        self._pages: dict[str, str] = {}
        self._children: dict[str, list[str]] = {}
        self._ids = count(1)
        self.fail_queries = False
        self.query_count = 0

    def _next_id(self) -> str:
        return f"rec-{next(self._ids)}"

    def _copy(self, record: StoredRecord) -> StoredRecord:
        return record.model_copy(deep=True)

    async def query_by_property(self, key: str, value: Any) -> list[StoredRecord]:
        self.query_count += 1
        if self.fail_queries:
            raise StorageError(f"Query failed: {key}={value}")

        return [
            self._copy(record)
            for record in self._records.values()
            if key in record.properties and record.properties[key] == value
        ]

    async def create_record(self, collection_key: str) -> Optional[StoredRecord]:
        if collection_key in self._pages:
            return None

        record = StoredRecord(id=self._next_id(), collection_key=collection_key)
        self._records[record.id] = record
        self._pages[collection_key] = record.id
        self._children[record.id] = []
        return self._copy(record)

    async def create_child(
        self,
        parent_id: str,
        content: str = "",
    ) -> Optional[StoredRecord]:
        if parent_id not in self._records:
            return None

        record = StoredRecord(id=self._next_id(), content=content)
        self._records[record.id] = record
        self._children[record.id] = []
        self._children[parent_id].append(record.id)
        return self._copy(record)

    async def set_property(self, record_id: str, key: str, value: Any) -> None:
        record = self._records.get(record_id)
        if record is None:
            raise NotFoundError(f"Record not found: {record_id}")
        record.properties[key] = value

    async def get_record(self, collection_key: str) -> Optional[StoredRecord]:
        record_id = self._pages.get(collection_key)
        if record_id is None:
            return None
        return self._copy(self._records[record_id])

    async def get_children(self, record_id: str) -> list[StoredRecord]:
        return [
            self._copy(self._records[child_id])
            for child_id in self._children.get(record_id, [])
        ]

    # Convenience for seeding data outside the async API

    def add_record(
        self,
        properties: dict[str, Any],
        parent_id: Optional[str] = None,
        content: str = "",
    ) -> StoredRecord:
        """Insert a block with properties synchronously (test seeding)."""
        if parent_id is not None and parent_id not in self._records:
            raise NotFoundError(f"Record not found: {parent_id}")

        record = StoredRecord(
            id=self._next_id(),
            content=content,
            properties=dict(properties),
        )
        self._records[record.id] = record
        self._children[record.id] = []
        if parent_id is not None:
            self._children[parent_id].append(record.id)
        return self._copy(record)

    def add_page(self, collection_key: str) -> StoredRecord:
        """Insert a page synchronously (test seeding)."""
        if collection_key in self._pages:
            raise StorageError(f"Page already exists: {collection_key}")
        record = StoredRecord(id=self._next_id(), collection_key=collection_key)
        self._records[record.id] = record
        self._pages[collection_key] = record.id
        self._children[record.id] = []
        return self._copy(record)
