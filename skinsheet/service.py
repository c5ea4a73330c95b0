"""
SkinSheet — Items Service

Builds the ``{"header": [...], "items": [...]}`` payload served to the
browser table. Two variants, chosen at startup:

- persistent (DATABASE_URL set): sheet → upsert → read cached rows →
  queue refresh intents for the most recent items → respond. Steam is never
  awaited on this path.
- in-memory: sheet → normalize → enrich through the TTL caches → respond.

Sheet or store failures propagate; the route turns them into one error
payload with no partial data.
"""

from __future__ import annotations

from typing import Any

import structlog

from skinsheet.config import settings
from skinsheet.pipeline.enrich import Enricher
from skinsheet.pipeline.normalize import ItemRecord, SheetColumns, normalize_rows
from skinsheet.pipeline.refresher import RefreshIntent, RefreshQueue
from skinsheet.pipeline.sheet import SheetReader, split_header
from skinsheet.store import ItemStore

logger = structlog.get_logger(__name__)


class ItemsService:
    """
    Args:
        sheet_reader: Source of raw sheet rows.
        enricher: Required for the in-memory variant.
        store: Required for the persistent variant.
        refresh_queue: Persistent variant only; receives refresh intents.
    """

    def __init__(
        self,
        sheet_reader: SheetReader,
        enricher: Enricher | None = None,
        store: ItemStore | None = None,
        refresh_queue: RefreshQueue | None = None,
        columns: SheetColumns | None = None,
    ):
        if enricher is None and store is None:
            raise ValueError("ItemsService needs an enricher or a store")
        self.sheet_reader = sheet_reader
        self.enricher = enricher
        self.store = store
        self.refresh_queue = refresh_queue
        self.columns = columns or SheetColumns.from_settings()

    @property
    def persistent(self) -> bool:
        return self.store is not None

    async def get_items(self, include_price: bool = False) -> dict[str, Any]:
        rows = await self.sheet_reader.read_rows()
        header, body = split_header(rows)
        records = normalize_rows(body, self.columns)

        if self.persistent:
            items = await self._items_from_store(records, include_price)
        else:
            assert self.enricher is not None
            enriched = await self.enricher.enrich(records, include_price=include_price)
            items = [item.model_dump() for item in enriched]

        logger.info(
            "items_served",
            persistent=self.persistent,
            include_price=include_price,
            records=len(records),
            items=len(items),
        )
        return {"header": header, "items": items}

    async def _items_from_store(
        self,
        records: list[ItemRecord],
        include_price: bool,
    ) -> list[dict[str, Any]]:
        assert self.store is not None
        await self.store.upsert_records(records)
        stored = await self.store.find_recent(settings.ITEMS_RESPONSE_LIMIT)

        if self.refresh_queue is not None:
            intents = [
                RefreshIntent(
                    market_name=item.market_name,
                    refresh_image=True,
                    refresh_price=include_price,
                )
                for item in stored[: settings.REQUEST_REFRESH_COUNT]
            ]
            queued = self.refresh_queue.submit_many(intents)
            logger.debug("refresh_intents_queued", queued=queued, offered=len(intents))

        return [item.to_dict() for item in stored]
