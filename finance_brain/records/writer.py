"""
Record Writer

The write path for encoded entities: one set_property call per key.
The store has no multi-property update and no transactions, so a
failure part-way through leaves a partially written block.
"""

from typing import Any, Optional

from finance_brain.codec import FinanceEntity, encode
from finance_brain.log import get_logger
from finance_brain.services.storage import RecordStoreInterface, StoredRecord


logger = get_logger(__name__)


class RecordWriter:
    """Writes property maps to the injected store."""

    def __init__(self, store: RecordStoreInterface):
        self._store = store

    async def write_properties(self, record_id: str, properties: dict[str, Any]) -> None:
        """Set each property on the record, in map order."""
        for key, value in properties.items():
            await self._store.set_property(record_id, key, value)

    async def create_with_properties(
        self,
        parent_id: str,
        content: str,
        properties: dict[str, Any],
    ) -> Optional[StoredRecord]:
        """
        Create a block under `parent_id` and write its properties.

        Returns the new record with its properties, or None when the
        store refused to create the block.
        """
        record = await self._store.create_child(parent_id, content)
        if record is None:
            logger.warning("create_block_refused", parent_id=parent_id)
            return None

        await self.write_properties(record.id, properties)
        logger.info(
            "record_written",
            record_id=record.id,
            type_tag=properties.get("type"),
        )
        return record.model_copy(update={"properties": dict(properties)})

    async def write_entity(
        self,
        parent_id: str,
        entity: FinanceEntity,
        content: str = "",
    ) -> Optional[StoredRecord]:
        """Encode an entity and write it as a new block under `parent_id`."""
        return await self.create_with_properties(parent_id, content, encode(entity))
