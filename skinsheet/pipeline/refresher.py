"""
SkinSheet — Background Steam Refresh (persistent variant)

Keeps the Steam columns of the items table warm without blocking requests.

- Refresher.refresh_one: re-resolves the stale kinds (image / price) of one
  item, guarded by an in-flight registry so the request path and the loop
  never call Steam twice for the same name at once.
- RefreshLoop: every REFRESH_INTERVAL_SECONDS, scans the most recently seen
  items, picks stale ones (capped per cycle) and refreshes them with a low
  concurrency ceiling. Errors are logged and the loop keeps going.
- RefreshQueue: the request path submits intents here and returns at once;
  a single worker drains the queue. A full queue drops the intent.

Each kind is persisted on its own. A failure writes only the ``*_error``
column and leaves the previous value in place.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone

import structlog

from skinsheet.config import settings
from skinsheet.models.item import Item
from skinsheet.pipeline.steam import SteamMarketClient
from skinsheet.store import ItemStore
from skinsheet.utils.fanout import map_bounded

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Freshness
# ---------------------------------------------------------------------------


def is_stale(updated_at: datetime | None, ttl_seconds: float, now: datetime | None = None) -> bool:
    """
    True when ``updated_at`` is missing or older than ``ttl_seconds``.

    Naive timestamps (SQLite drops tzinfo) are read as UTC.
    """
    if updated_at is None:
        return True
    if updated_at.tzinfo is None:
        updated_at = updated_at.replace(tzinfo=timezone.utc)
    current = now or datetime.now(timezone.utc)
    return (current - updated_at).total_seconds() > ttl_seconds


# ---------------------------------------------------------------------------
# In-flight guard
# ---------------------------------------------------------------------------


class InFlightRegistry:
    """Market names with a refresh currently running."""

    def __init__(self) -> None:
        self._names: set[str] = set()

    def try_acquire(self, market_name: str) -> bool:
        """Claim ``market_name``. False if someone already holds it."""
        if market_name in self._names:
            return False
        self._names.add(market_name)
        return True

    def release(self, market_name: str) -> None:
        self._names.discard(market_name)

    def __contains__(self, market_name: object) -> bool:
        return market_name in self._names

    def __len__(self) -> int:
        return len(self._names)


# ---------------------------------------------------------------------------
# Single-item refresh
# ---------------------------------------------------------------------------


class Refresher:
    """
    Resolves and persists Steam data for one item at a time.

    Args:
        store: Item store the results are written to.
        client: An opened SteamMarketClient.
        in_flight: Shared registry; pass the same instance to every caller
            that may refresh concurrently.
    """

    def __init__(
        self,
        store: ItemStore,
        client: SteamMarketClient,
        in_flight: InFlightRegistry | None = None,
        image_ttl_seconds: float | None = None,
        price_ttl_seconds: float | None = None,
    ):
        self.store = store
        self.client = client
        self.in_flight = in_flight if in_flight is not None else InFlightRegistry()
        self.image_ttl_seconds = (
            image_ttl_seconds if image_ttl_seconds is not None else settings.IMAGE_TTL_SECONDS
        )
        self.price_ttl_seconds = (
            price_ttl_seconds if price_ttl_seconds is not None else settings.PRICE_TTL_SECONDS
        )

    def image_stale(self, item: Item, now: datetime | None = None) -> bool:
        return is_stale(item.image_updated_at, self.image_ttl_seconds, now)

    def price_stale(self, item: Item, now: datetime | None = None) -> bool:
        return is_stale(item.steam_updated_at, self.price_ttl_seconds, now)

    async def refresh_one(
        self,
        market_name: str,
        refresh_image: bool = True,
        refresh_price: bool = True,
    ) -> bool:
        """
        Refresh the stale kinds of one item.

        Returns:
            False if skipped (already in flight, or unknown item), else True.
        """
        if not self.in_flight.try_acquire(market_name):
            logger.debug("refresh_skipped_in_flight", market_name=market_name)
            return False

        try:
            item = await self.store.find_one(market_name)
            if item is None:
                return False

            now = datetime.now(timezone.utc)
            if refresh_image and self.image_stale(item, now):
                await self._refresh_image(market_name)
            if refresh_price and self.price_stale(item, now):
                await self._refresh_price(market_name)
            return True
        finally:
            self.in_flight.release(market_name)

    async def _refresh_image(self, market_name: str) -> None:
        try:
            image_url = await self.client.fetch_image_url(market_name)
        except Exception as e:
            logger.warning("refresh_image_failed", market_name=market_name, error=str(e))
            await self.store.update_fields(market_name, {"image_error": str(e)})
            return

        await self.store.update_fields(
            market_name,
            {
                "image_url": image_url,
                "image_updated_at": datetime.now(timezone.utc),
                "image_error": None,
            },
        )
        logger.info("refresh_image_stored", market_name=market_name, found=image_url is not None)

    async def _refresh_price(self, market_name: str) -> None:
        try:
            price = await self.client.fetch_price(market_name)
        except Exception as e:
            logger.warning("refresh_price_failed", market_name=market_name, error=str(e))
            await self.store.update_fields(market_name, {"steam_error": str(e)})
            return

        await self.store.update_fields(
            market_name,
            {
                "steam_lowest": price.lowest,
                "steam_median": price.median,
                "steam_volume": price.volume,
                "steam_updated_at": datetime.now(timezone.utc),
                "steam_error": None,
            },
        )
        logger.info("refresh_price_stored", market_name=market_name, lowest=str(price.lowest))


# ---------------------------------------------------------------------------
# Periodic loop
# ---------------------------------------------------------------------------


class RefreshLoop:
    """
    Periodic scan → select → refresh cycle.

    Cycles never overlap: the next one is scheduled ``interval_seconds``
    after the previous one finishes.
    """

    def __init__(
        self,
        refresher: Refresher,
        interval_seconds: float | None = None,
        scan_limit: int | None = None,
        candidate_limit: int | None = None,
        concurrency: int | None = None,
    ):
        self.refresher = refresher
        self.interval_seconds = (
            interval_seconds if interval_seconds is not None else settings.REFRESH_INTERVAL_SECONDS
        )
        self.scan_limit = scan_limit if scan_limit is not None else settings.REFRESH_SCAN_LIMIT
        self.candidate_limit = (
            candidate_limit if candidate_limit is not None else settings.REFRESH_CANDIDATE_LIMIT
        )
        self.concurrency = concurrency if concurrency is not None else settings.REFRESH_CONCURRENCY
        self._shutdown_event = asyncio.Event()

    async def shutdown(self) -> None:
        """Signal graceful shutdown to the loop."""
        logger.info("refresh_loop_shutdown_requested")
        self._shutdown_event.set()

    def select_candidates(self, items: list[Item], now: datetime | None = None) -> list[Item]:
        """Items whose image or price is stale, capped at candidate_limit."""
        current = now or datetime.now(timezone.utc)
        candidates = [
            item
            for item in items
            if self.refresher.image_stale(item, current) or self.refresher.price_stale(item, current)
        ]
        return candidates[: self.candidate_limit]

    async def run_cycle(self) -> int:
        """
        One scan/select/refresh pass.

        Returns:
            Number of items actually refreshed (skips excluded).
        """
        items = await self.refresher.store.find_recent(self.scan_limit)
        candidates = self.select_candidates(items)

        async def transform(item: Item) -> bool:
            try:
                return await self.refresher.refresh_one(item.market_name)
            except Exception as e:
                logger.error(
                    "refresh_item_error",
                    market_name=item.market_name,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                return False

        results = await map_bounded(candidates, transform, self.concurrency)
        refreshed = sum(1 for r in results if r)

        logger.info(
            "refresh_cycle_complete",
            scanned=len(items),
            candidates=len(candidates),
            refreshed=refreshed,
        )
        return refreshed

    async def run(self) -> None:
        """Run cycles until shutdown. Never exits on a failed cycle."""
        logger.info(
            "refresh_loop_started",
            interval_seconds=self.interval_seconds,
            scan_limit=self.scan_limit,
            candidate_limit=self.candidate_limit,
            concurrency=self.concurrency,
        )

        try:
            while not self._shutdown_event.is_set():
                try:
                    await self.run_cycle()
                except Exception as e:
                    logger.error(
                        "refresh_loop_error",
                        error=str(e),
                        error_type=type(e).__name__,
                    )

                try:
                    await asyncio.wait_for(
                        self._shutdown_event.wait(),
                        timeout=self.interval_seconds,
                    )
                except asyncio.TimeoutError:
                    # No shutdown signal, next cycle
                    continue

        except asyncio.CancelledError:
            logger.info("refresh_loop_cancelled")
            raise
        finally:
            logger.info("refresh_loop_stopped")


# ---------------------------------------------------------------------------
# Request-path handoff
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RefreshIntent:
    market_name: str
    refresh_image: bool = True
    refresh_price: bool = True


class RefreshQueue:
    """
    Bounded handoff from request handlers to a single refresh worker.

    Usage:
        queue = RefreshQueue(refresher)
        worker = asyncio.create_task(queue.run_worker())
        queue.submit(RefreshIntent("AK-47 | Redline (Field-Tested)"))
    """

    def __init__(self, refresher: Refresher, maxsize: int | None = None):
        self.refresher = refresher
        self._queue: asyncio.Queue[RefreshIntent] = asyncio.Queue(
            maxsize=maxsize if maxsize is not None else settings.REFRESH_QUEUE_SIZE
        )

    def submit(self, intent: RefreshIntent) -> bool:
        """Enqueue without waiting. False if the queue is full."""
        try:
            self._queue.put_nowait(intent)
        except asyncio.QueueFull:
            logger.debug("refresh_intent_dropped", market_name=intent.market_name)
            return False
        return True

    def submit_many(self, intents: list[RefreshIntent]) -> int:
        return sum(1 for intent in intents if self.submit(intent))

    def qsize(self) -> int:
        return self._queue.qsize()

    async def join(self) -> None:
        """Wait until every submitted intent has been processed."""
        await self._queue.join()

    async def run_worker(self) -> None:
        """Drain intents forever. Stop by cancelling the task."""
        logger.info("refresh_worker_started")
        try:
            while True:
                intent = await self._queue.get()
                try:
                    await self.refresher.refresh_one(
                        intent.market_name,
                        refresh_image=intent.refresh_image,
                        refresh_price=intent.refresh_price,
                    )
                except Exception as e:
                    logger.error(
                        "refresh_worker_error",
                        market_name=intent.market_name,
                        error=str(e),
                        error_type=type(e).__name__,
                    )
                finally:
                    self._queue.task_done()
        except asyncio.CancelledError:
            logger.info("refresh_worker_cancelled")
            raise
