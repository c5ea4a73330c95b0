"""
SkinSheet — FastAPI Application

The lifespan wires the service for the configured variant:

- persistent: engine + ItemStore + Refresher, with the RefreshLoop and the
  RefreshQueue worker running as background tasks until shutdown.
- in-memory: Enricher with fresh TTL caches.

A missing SHEET_CSV_URL raises ConfigError before the app starts serving.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog
from fastapi import FastAPI

from skinsheet.api.routes import router
from skinsheet.config import settings
from skinsheet.db import create_db_engine
from skinsheet.pipeline.enrich import Enricher
from skinsheet.pipeline.refresher import InFlightRegistry, RefreshLoop, RefreshQueue, Refresher
from skinsheet.pipeline.sheet import SheetReader
from skinsheet.pipeline.steam import SteamMarketClient
from skinsheet.service import ItemsService
from skinsheet.store import ItemStore

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    sheet_url = settings.require_sheet_url()
    sheet_reader = SheetReader(url=sheet_url)

    async with SteamMarketClient() as client:
        if not settings.persistence_enabled:
            app.state.service = ItemsService(sheet_reader, enricher=Enricher(client))
            logger.info("skinsheet_started", persistent=False)
            yield
            return

        engine, session_factory = await create_db_engine()
        store = ItemStore(session_factory)
        refresher = Refresher(store, client, in_flight=InFlightRegistry())
        refresh_loop = RefreshLoop(refresher)
        refresh_queue = RefreshQueue(refresher)
        app.state.service = ItemsService(sheet_reader, store=store, refresh_queue=refresh_queue)

        loop_task = asyncio.create_task(refresh_loop.run())
        worker_task = asyncio.create_task(refresh_queue.run_worker())
        logger.info("skinsheet_started", persistent=True)

        try:
            yield
        finally:
            await refresh_loop.shutdown()
            worker_task.cancel()
            await asyncio.gather(loop_task, worker_task, return_exceptions=True)
            await engine.dispose()
            logger.info("skinsheet_shutdown_complete")


def create_app() -> FastAPI:
    app = FastAPI(title="SkinSheet", lifespan=lifespan)
    app.include_router(router)
    return app
