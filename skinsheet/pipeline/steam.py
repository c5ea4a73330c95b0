"""
SkinSheet — Steam Community Market Client

Two unauthenticated endpoints:
- /market/search/render/   → item image (via image_extract)
- /market/priceoverview/   → lowest / median price and 24h volume

Steam rate-limits aggressively (429), so requests retry with exponential
backoff. Anything that still fails surfaces as UpstreamError.
"""

from __future__ import annotations

import asyncio
from decimal import Decimal
from typing import Any

import httpx
import structlog
from pydantic import BaseModel

from skinsheet.config import settings
from skinsheet.errors import UpstreamError
from skinsheet.pipeline.image_extract import extract_image_url
from skinsheet.pipeline.normalize import parse_number

logger = structlog.get_logger(__name__)

SEARCH_PATH = "/market/search/render/"
PRICE_PATH = "/market/priceoverview/"


class SteamPrice(BaseModel):
    """Normalized priceoverview result. Missing fields stay None."""

    lowest: Decimal | None = None
    median: Decimal | None = None
    volume: Decimal | None = None


class SteamMarketClient:
    """
    Async client for the Steam Community Market.

    Usage:
        async with SteamMarketClient() as client:
            image_url = await client.fetch_image_url("AK-47 | Redline (Field-Tested)")
            price = await client.fetch_price("AK-47 | Redline (Field-Tested)")
    """

    def __init__(
        self,
        base_url: str | None = None,
        appid: str | None = None,
        currency: int | None = None,
        max_retries: int | None = None,
        base_backoff: float | None = None,
        timeout: float | None = None,
    ):
        self._base_url = base_url or settings.STEAM_BASE_URL
        self._appid = appid or settings.STEAM_APPID
        self._currency = currency if currency is not None else settings.STEAM_CURRENCY
        self._max_retries = max_retries if max_retries is not None else settings.STEAM_MAX_RETRIES
        self._base_backoff = (
            base_backoff if base_backoff is not None else settings.STEAM_BACKOFF_SECONDS
        )
        self._timeout = timeout or settings.HTTP_TIMEOUT_SECONDS
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> SteamMarketClient:
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={
                "User-Agent": settings.HTTP_USER_AGENT,
                "Accept": "application/json,text/plain,*/*",
            },
            timeout=self._timeout,
        )
        return self

    async def __aexit__(self, *args: Any) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _get_json(self, path: str, params: dict[str, Any]) -> Any:
        """GET with retry on 429 / 5xx / transport errors."""
        assert self._client is not None, "Client not initialized. Use 'async with'."

        last_error: Exception | None = None

        for attempt in range(self._max_retries + 1):
            wait_time = self._base_backoff * (2 ** attempt)
            try:
                response = await self._client.get(path, params=params)

                if response.status_code == 429:
                    last_error = UpstreamError(
                        "Steam rate limited (429)", status_code=429
                    )
                    logger.warning(
                        "steam_rate_limited",
                        attempt=attempt + 1,
                        wait_seconds=wait_time,
                        path=path,
                    )
                    await asyncio.sleep(wait_time)
                    continue

                response.raise_for_status()

            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                last_error = e
                logger.error(
                    "steam_http_error",
                    status_code=status,
                    attempt=attempt + 1,
                    path=path,
                )
                if status >= 500:
                    await asyncio.sleep(wait_time)
                    continue
                raise UpstreamError(
                    f"Steam request failed: {status} {e.response.reason_phrase}",
                    status_code=status,
                ) from e

            except httpx.RequestError as e:
                last_error = e
                logger.error(
                    "steam_request_error",
                    error=str(e),
                    attempt=attempt + 1,
                    path=path,
                )
                await asyncio.sleep(wait_time)
                continue

            try:
                return response.json()
            except ValueError as e:
                raise UpstreamError(f"Steam returned non-JSON body for {path}") from e

        raise UpstreamError(
            f"Steam request failed after {self._max_retries + 1} attempts: {last_error}"
        ) from last_error

    # -----------------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------------

    async def fetch_image_url(self, market_name: str) -> str | None:
        """
        Resolve the item image for a market name.

        Returns:
            Absolute 360px image URL, or None if the search found no image.

        Raises:
            UpstreamError: transport/HTTP failure or non-JSON body.
        """
        params = {
            "query": market_name,
            "appid": self._appid,
            "count": 1,
            "start": 0,
        }
        data = await self._get_json(SEARCH_PATH, params)
        image_url = extract_image_url(data)

        if image_url is None:
            logger.info("steam_image_not_found", market_name=market_name)
        else:
            logger.debug("steam_image_resolved", market_name=market_name, image_url=image_url)
        return image_url

    async def fetch_price(self, market_name: str) -> SteamPrice:
        """
        Fetch lowest / median / volume from priceoverview.

        Formatted strings like "$1,234.56" are reduced to Decimal; anything
        unparsable is None. ``success: false`` (unknown item, no listings)
        yields an empty SteamPrice.

        Raises:
            UpstreamError: transport/HTTP failure or a non-object body.
        """
        params = {
            "appid": self._appid,
            "currency": self._currency,
            "market_hash_name": market_name,
        }
        data = await self._get_json(PRICE_PATH, params)

        if not isinstance(data, dict):
            raise UpstreamError(f"Unexpected priceoverview body for {market_name!r}")

        if not data.get("success", False):
            logger.info("steam_price_unavailable", market_name=market_name)
            return SteamPrice()

        price = SteamPrice(
            lowest=parse_number(data.get("lowest_price")),
            median=parse_number(data.get("median_price")),
            volume=parse_number(data.get("volume")),
        )
        logger.debug(
            "steam_price_resolved",
            market_name=market_name,
            lowest=str(price.lowest),
            median=str(price.median),
            volume=str(price.volume),
        )
        return price
