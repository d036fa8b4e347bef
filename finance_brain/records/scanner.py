"""
Record Scanner

Retrieves finance records from the host store as raw property maps.

GUARANTEES:
- Never raises. A failing store query is retried, then logged and
  treated as "no records". From the aggregator's point of view a broken
  store contributes zero, it does not crash the summary.
- No caching. Every call re-issues the query, so results always reflect
  the store's current state.
- No ordering. Records come back in whatever order the store yields.
"""

from typing import Any, Awaitable, Callable, Optional, TypeVar

from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential

from finance_brain.codec import FinanceEntity, decode_record
from finance_brain.config import FinanceSettings, get_settings
from finance_brain.log import get_logger
from finance_brain.services.storage import RecordStoreInterface, StoredRecord


T = TypeVar("T")

logger = get_logger(__name__)


class RecordScanner:
    """
    Scans the store for records tagged with a given `type`.

    The store is injected, which keeps the host boundary testable.
    """

    def __init__(
        self,
        store: RecordStoreInterface,
        settings: Optional[FinanceSettings] = None,
    ):
        self._store = store
        self._settings = settings or get_settings()

    async def _with_retry(self, call: Callable[..., Awaitable[T]], *args: Any) -> T:
        """Run a store call, retrying with exponential backoff."""
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._settings.query_retry_attempts),
            wait=wait_exponential(
                multiplier=self._settings.query_retry_wait_seconds,
                max=self._settings.query_retry_max_wait_seconds,
            ),
            reraise=True,
        ):
            with attempt:
                return await call(*args)

    async def scan_records(self, type_tag: str) -> list[StoredRecord]:
        """
        Get every stored record whose `type` property equals `type_tag`.

        Returns an empty list if the query keeps failing.
        """
        try:
            records = await self._with_retry(
                self._store.query_by_property, "type", type_tag
            )
        except Exception as e:
            logger.error("scan_failed", type_tag=type_tag, error=str(e))
            return []

        if not records:
            logger.debug("scan_empty", type_tag=type_tag)
            return []

        return [record for record in records if record is not None]

    async def scan_by_type(self, type_tag: str) -> list[dict[str, Any]]:
        """Get the property maps of every record tagged `type_tag`."""
        records = await self.scan_records(type_tag)
        return [record.properties for record in records if record.properties]

    async def scan_entities(self, type_tag: str) -> list[FinanceEntity]:
        """Scan and decode, dropping records that don't decode."""
        entities = []
        for properties in await self.scan_by_type(type_tag):
            entity = decode_record(properties)
            if entity is not None:
                entities.append(entity)
        return entities

    async def scan_page(self, collection_key: str, type_tag: str) -> list[dict[str, Any]]:
        """
        Walk a page's block tree and collect blocks tagged `type_tag`.

        Blocks are visited depth-first in page order. A missing page or
        a failing store call yields an empty list.
        """
        try:
            page = await self._with_retry(self._store.get_record, collection_key)
            if page is None:
                logger.info("scan_page_missing", page=collection_key)
                return []
            return await self._collect(page.id, type_tag)
        except Exception as e:
            logger.error(
                "scan_page_failed",
                page=collection_key,
                type_tag=type_tag,
                error=str(e),
            )
            return []

    async def _collect(self, record_id: str, type_tag: str) -> list[dict[str, Any]]:
        results = []
        for child in await self._with_retry(self._store.get_children, record_id):
            if child.properties.get("type") == type_tag:
                results.append(child.properties)
            results.extend(await self._collect(child.id, type_tag))
        return results
