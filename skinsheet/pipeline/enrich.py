"""
SkinSheet — In-Memory Enrichment (request path)

Overlays Steam image/price lookups on normalized sheet records, using two
TTL caches to avoid repeat calls and a bounded fan-out to respect Steam's
rate limit. Used when no DATABASE_URL is configured.

A failed lookup never fails the batch: the record gets None fields and an
``image_error`` / ``steam_error`` string, and the failure is not cached so
the next request retries it.
"""

from __future__ import annotations

from decimal import Decimal

import structlog

from skinsheet.config import settings
from skinsheet.pipeline.normalize import ItemRecord
from skinsheet.pipeline.steam import SteamMarketClient, SteamPrice
from skinsheet.utils.fanout import map_bounded
from skinsheet.utils.ttl_cache import MISSING, TTLCache

logger = structlog.get_logger(__name__)


class EnrichedItem(ItemRecord):
    """Sheet record merged with Steam enrichment fields."""

    image_url: str | None = None
    steam_lowest: Decimal | None = None
    steam_median: Decimal | None = None
    steam_volume: Decimal | None = None
    image_error: str | None = None
    steam_error: str | None = None


def build_caches() -> tuple[TTLCache[str, str | None], TTLCache[str, SteamPrice]]:
    """Fresh (image, price) caches with the configured TTLs."""
    return (
        TTLCache(settings.IMAGE_CACHE_TTL_SECONDS, name="image"),
        TTLCache(settings.PRICE_CACHE_TTL_SECONDS, name="price"),
    )


class Enricher:
    """
    Resolves images and prices through caches owned by this instance.

    Args:
        client: An opened SteamMarketClient.
        image_cache: Cache of market_name → image URL (None = no image).
        price_cache: Cache of market_name → SteamPrice.
        concurrency: Max in-flight Steam calls per batch.
    """

    def __init__(
        self,
        client: SteamMarketClient,
        image_cache: TTLCache[str, str | None] | None = None,
        price_cache: TTLCache[str, SteamPrice] | None = None,
        concurrency: int | None = None,
    ):
        default_image, default_price = build_caches()
        self.client = client
        self.image_cache = image_cache if image_cache is not None else default_image
        self.price_cache = price_cache if price_cache is not None else default_price
        self.concurrency = concurrency if concurrency is not None else settings.ENRICH_CONCURRENCY

    async def resolve_image(self, market_name: str) -> tuple[str | None, str | None]:
        """
        Returns:
            (image_url, error). A confirmed miss is (None, None) and is cached.
        """
        cached = self.image_cache.get(market_name)
        if cached is not MISSING:
            return cached, None  # type: ignore[return-value]

        try:
            image_url = await self.client.fetch_image_url(market_name)
        except Exception as e:
            logger.warning("enrich_image_failed", market_name=market_name, error=str(e))
            return None, str(e)

        self.image_cache.set(market_name, image_url)
        return image_url, None

    async def resolve_price(self, market_name: str) -> tuple[SteamPrice, str | None]:
        cached = self.price_cache.get(market_name)
        if cached is not MISSING:
            return cached, None  # type: ignore[return-value]

        try:
            price = await self.client.fetch_price(market_name)
        except Exception as e:
            logger.warning("enrich_price_failed", market_name=market_name, error=str(e))
            return SteamPrice(), str(e)

        self.price_cache.set(market_name, price)
        return price, None

    async def enrich_one(self, record: ItemRecord, include_price: bool = False) -> EnrichedItem:
        image_url, image_error = await self.resolve_image(record.market_name)
        item = EnrichedItem(
            **record.model_dump(),
            image_url=image_url,
            image_error=image_error,
        )

        if include_price:
            price, steam_error = await self.resolve_price(record.market_name)
            item.steam_lowest = price.lowest
            item.steam_median = price.median
            item.steam_volume = price.volume
            item.steam_error = steam_error

        return item

    async def enrich(
        self,
        records: list[ItemRecord],
        include_price: bool = False,
    ) -> list[EnrichedItem]:
        """
        Enrich a batch in input order with bounded concurrency.

        Args:
            records: Normalized sheet records.
            include_price: Also resolve priceoverview fields.

        Returns:
            One EnrichedItem per record, same order.
        """
        async def transform(record: ItemRecord) -> EnrichedItem:
            return await self.enrich_one(record, include_price=include_price)

        items = await map_bounded(records, transform, self.concurrency)

        logger.info(
            "enrich_batch_complete",
            records=len(records),
            with_image=sum(1 for i in items if i.image_url),
            errors=sum(1 for i in items if i.image_error or i.steam_error),
            include_price=include_price,
        )
        return items
