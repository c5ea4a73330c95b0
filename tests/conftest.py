"""
SkinSheet — Shared pytest Fixtures & Configuration

Provides common fixtures for all test modules:
- File-backed aiosqlite database + ItemStore
- Steam client pointed at a respx-mocked base URL
- Canned Steam responses
"""

from __future__ import annotations

from pathlib import Path
from typing import AsyncGenerator

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from skinsheet.db import create_db_engine
from skinsheet.pipeline.steam import SteamMarketClient
from skinsheet.store import ItemStore


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

pytest_plugins = ("pytest_asyncio",)

STEAM_TEST_URL = "https://steam.test"


# ---------------------------------------------------------------------------
# Database Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
async def session_factory(tmp_path: Path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """
    Fresh SQLite database per test with the items table created.

    File-backed so every session sees the same data.
    """
    engine, factory = await create_db_engine(f"sqlite+aiosqlite:///{tmp_path / 'skinsheet.db'}")
    yield factory
    await engine.dispose()


@pytest.fixture
async def store(session_factory: async_sessionmaker[AsyncSession]) -> ItemStore:
    return ItemStore(session_factory)


# ---------------------------------------------------------------------------
# Steam Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
async def steam_client() -> AsyncGenerator[SteamMarketClient, None]:
    """Opened client with retries off so failures surface immediately."""
    async with SteamMarketClient(base_url=STEAM_TEST_URL, max_retries=0, base_backoff=0) as client:
        yield client


@pytest.fixture
def search_response() -> dict:
    """search/render body with a nested assets tree holding a relative icon_url."""
    return {
        "success": True,
        "total_count": 1,
        "results_html": "",
        "assets": {
            "730": {
                "2": {
                    "31234567890": {
                        "classid": "310777185",
                        "icon_url": "i0CoZ81Ui0m-9KwlBY1L_18myuGuq1wfhWSaZgMttyVfPaERSR0Wqmu7LAocGIGz3UqlXOLrxM-vMGmW8VNxu5Dx60noTyL6kJ_m-B1Q7uCvZaZkNM-SA1iSzvp8j-1gSCGn20tztm_UyIn_JHKUbgYlWMcmQ-ZcskSwldS0MOnntAfd3YlMzH35jntXrnE8SOGRGG4/62fx62f",
                    }
                }
            }
        },
    }


@pytest.fixture
def price_response() -> dict:
    return {
        "success": True,
        "lowest_price": "$12.50",
        "volume": "1,234",
        "median_price": "$12.10",
    }
