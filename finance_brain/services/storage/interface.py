"""
Abstract Record Store Interface

DESIGN DECISION: The host document store is reached only through this
interface, and an instance is injected wherever it is needed. Nothing
in Finance Brain talks to the host globally. This allows us to:
1. Run every scan and aggregate against an in-memory store in tests
2. Swap the host (an outliner, a notes app, a database) without
   changing codec or aggregation logic

The store is a tree of records. Top-level records are pages, addressed
by a collection key (the page name). Pages contain child blocks, and
each block carries a flat, schema-less property map.

The interface is intentionally narrow - only what the core needs.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from pydantic import BaseModel, Field


class StoredRecord(BaseModel):
    """A record as returned by the store: identity plus flat properties."""

    id: str = Field(
        ...,
        description="Identity assigned by the store"
    )
    collection_key: Optional[str] = Field(
        default=None,
        description="Page name for top-level records, None for blocks"
    )
    content: str = Field(
        default="",
        description="Text content of the block"
    )
    properties: dict[str, Any] = Field(
        default_factory=dict,
        description="Flat property map"
    )


class RecordStoreInterface(ABC):
    """
    Abstract interface for the host document store.

    Any host integration must implement these methods.
    """

    @abstractmethod
    async def query_by_property(self, key: str, value: Any) -> list[StoredRecord]:
        """
        Find every record whose property `key` equals `value`.

        Args:
            key: Property name to filter on
            value: Value the property must equal

        Returns:
            Matching records, in no particular order

        Raises:
            StorageError: If the query fails
        """
        pass

    @abstractmethod
    async def create_record(self, collection_key: str) -> Optional[StoredRecord]:
        """
        Create a top-level record (page).

        Args:
            collection_key: Name of the page

        Returns:
            The created record, or None if the store refused
        """
        pass

    @abstractmethod
    async def create_child(
        self,
        parent_id: str,
        content: str = "",
    ) -> Optional[StoredRecord]:
        """
        Create a block under an existing record.

        Args:
            parent_id: ID of the page or block to insert under
            content: Text content of the new block

        Returns:
            The created block, or None if the store refused
        """
        pass

    @abstractmethod
    async def set_property(self, record_id: str, key: str, value: Any) -> None:
        """
        Set (insert or replace) one property on a record.

        Raises:
            NotFoundError: If the record doesn't exist
        """
        pass

    @abstractmethod
    async def get_record(self, collection_key: str) -> Optional[StoredRecord]:
        """
        Get a top-level record by collection key.

        Returns:
            The record if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_children(self, record_id: str) -> list[StoredRecord]:
        """
        Get the direct children of a record, in insertion order.

        Returns:
            Child records (empty for leaves and unknown IDs)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Record not found in storage."""
    pass
