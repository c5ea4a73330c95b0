"""
SkinSheet — Item Store

Key-value access to the ``items`` table, keyed by market name:

- upsert_records(records)       insert-or-update sheet fields, bump last_seen_at
- find_recent(limit)            most recently seen first
- find_one(market_name)
- update_fields(market_name, fields)   field-scoped partial update

Partial updates only touch the columns they name, so an image refresh and
a price refresh for the same item never overwrite each other.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Sequence

import structlog
from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from skinsheet.models.item import ENRICHMENT_FIELDS, SHEET_FIELDS, Item
from skinsheet.pipeline.normalize import ItemRecord

logger = structlog.get_logger(__name__)

# Keeps bound parameters under SQLite's per-statement limit
UPSERT_BATCH_SIZE = 200


def _insert_for(dialect_name: str) -> Any:
    if dialect_name == "postgresql":
        return pg_insert
    if dialect_name == "sqlite":
        return sqlite_insert
    raise NotImplementedError(f"Upsert not supported for dialect {dialect_name!r}")


class ItemStore:
    """
    Async repository over the items table.

    Usage:
        store = ItemStore(session_factory)
        await store.upsert_records(records)
        recent = await store.find_recent(200)
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def upsert_records(self, records: Sequence[ItemRecord]) -> int:
        """
        Insert-or-update sheet fields by market name.

        Enrichment columns are left untouched on conflict and start as NULL
        on insert.

        Returns:
            Number of records written.
        """
        if not records:
            return 0

        now = datetime.now(timezone.utc)
        rows: dict[str, dict[str, Any]] = {}
        for record in records:
            # Later rows for the same market name win
            rows[record.market_name] = {
                "market_name": record.market_name,
                "name": record.name,
                "wear": record.wear,
                "sheet_price": record.sheet_price,
                "float_value": record.float_value,
                "paint_seed": record.paint_seed,
                "sheet_timestamp": record.sheet_timestamp,
                "raw_row": record.raw_row,
                "last_seen_at": now,
            }

        values = list(rows.values())
        async with self.session_factory() as session:
            insert = _insert_for(session.get_bind().dialect.name)
            for start in range(0, len(values), UPSERT_BATCH_SIZE):
                stmt = insert(Item).values(values[start:start + UPSERT_BATCH_SIZE])
                stmt = stmt.on_conflict_do_update(
                    index_elements=[Item.market_name],
                    set_={field: stmt.excluded[field] for field in SHEET_FIELDS},
                )
                await session.execute(stmt)
            await session.commit()

        logger.info("store_upsert_complete", rowcount=len(rows))
        return len(rows)

    async def find_recent(self, limit: int) -> list[Item]:
        """Up to ``limit`` items, most recently seen first."""
        async with self.session_factory() as session:
            result = await session.execute(
                select(Item).order_by(Item.last_seen_at.desc(), Item.market_name).limit(limit)
            )
            return list(result.scalars().all())

    async def find_one(self, market_name: str) -> Item | None:
        async with self.session_factory() as session:
            return await session.get(Item, market_name)

    async def update_fields(self, market_name: str, fields: dict[str, Any]) -> None:
        """
        Partial update of enrichment columns for one item.

        Raises:
            ValueError: If ``fields`` names a column the refresher does not own.
        """
        unknown = set(fields) - set(ENRICHMENT_FIELDS)
        if unknown:
            raise ValueError(f"Not enrichment fields: {sorted(unknown)}")
        if not fields:
            return

        async with self.session_factory() as session:
            await session.execute(
                update(Item).where(Item.market_name == market_name).values(**fields)
            )
            await session.commit()
