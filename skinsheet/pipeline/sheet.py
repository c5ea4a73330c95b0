"""
SkinSheet — Sheet CSV Reader

Fetches the published spreadsheet as CSV text and splits it into rows of
trimmed cells. Quoted cells may contain commas and doubled quotes ("" → ").
"""

from __future__ import annotations

import csv
import io

import httpx
import structlog

from skinsheet.config import settings
from skinsheet.errors import ConfigError, FetchError

logger = structlog.get_logger(__name__)


def parse_csv(text: str) -> list[list[str]]:
    """
    Parse CSV text into rows of trimmed string cells.

    Blank lines are skipped, so empty input yields no rows.

    Args:
        text: Raw CSV text.

    Returns:
        Rows in file order.
    """
    reader = csv.reader(io.StringIO(text.strip()))
    return [[cell.strip() for cell in row] for row in reader if row]


class SheetReader:
    """
    Reads rows from the published sheet URL.

    Usage:
        rows = await SheetReader().read_rows()
    """

    def __init__(
        self,
        url: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ):
        self._url = url if url is not None else settings.SHEET_CSV_URL
        self._client = client
        self._timeout = timeout or settings.HTTP_TIMEOUT_SECONDS

    async def fetch_text(self) -> str:
        """Download the sheet as text. Raises ConfigError / FetchError."""
        if not self._url:
            raise ConfigError("Missing SHEET_CSV_URL env var")

        headers = {"User-Agent": settings.HTTP_USER_AGENT}
        try:
            if self._client is not None:
                response = await self._client.get(self._url, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self._timeout, follow_redirects=True) as client:
                    response = await client.get(self._url, headers=headers)
        except httpx.RequestError as e:
            logger.error("sheet_fetch_unreachable", url=self._url, error=str(e))
            raise FetchError(f"Sheet CSV fetch failed: {e}") from e

        if not response.is_success:
            logger.error("sheet_fetch_failed", url=self._url, status_code=response.status_code)
            raise FetchError(
                f"Sheet CSV fetch failed: {response.status_code}",
                status_code=response.status_code,
            )
        return response.text

    async def read_rows(self) -> list[list[str]]:
        """Fetch and parse the sheet. The first row is the header."""
        text = await self.fetch_text()
        rows = parse_csv(text)
        logger.info("sheet_rows_read", row_count=len(rows))
        return rows


def split_header(rows: list[list[str]]) -> tuple[list[str], list[list[str]]]:
    """Split parsed rows into (header, body)."""
    if not rows:
        return [], []
    return rows[0], rows[1:]

