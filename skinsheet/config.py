"""
SkinSheet — Configuration & Constants

Every URL, TTL, concurrency ceiling and column index lives here.
No hardcoded values in business logic.

Usage:
    from skinsheet.config import settings
"""

from __future__ import annotations

from pydantic_settings import BaseSettings

from skinsheet.errors import ConfigError


class Settings(BaseSettings):
    """
    Central configuration for SkinSheet.

    Loads from environment variables with fallback defaults.
    """

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    # -----------------------------------------------------------------------
    # Sources
    # -----------------------------------------------------------------------
    SHEET_CSV_URL: str = ""                 # Published Google Sheet CSV link
    DATABASE_URL: str = ""                  # Empty → in-memory variant (no persistence)

    # -----------------------------------------------------------------------
    # Steam Community Market
    # -----------------------------------------------------------------------
    STEAM_BASE_URL: str = "https://steamcommunity.com"
    STEAM_IMAGE_BASE_URL: str = "https://community.fastly.steamstatic.com/economy/image/"
    STEAM_APPID: str = "730"                # CS2
    STEAM_CURRENCY: int = 1                 # 1 = USD
    STEAM_IMAGE_SIZE: str = "360fx360f"
    STEAM_MAX_RETRIES: int = 2
    STEAM_BACKOFF_SECONDS: float = 1.0

    HTTP_USER_AGENT: str = "Mozilla/5.0 (SkinSheet; httpx)"
    HTTP_TIMEOUT_SECONDS: float = 30.0

    # -----------------------------------------------------------------------
    # In-memory cache windows (request path)
    # -----------------------------------------------------------------------
    IMAGE_CACHE_TTL_SECONDS: int = 12 * 60 * 60     # 12 hours
    PRICE_CACHE_TTL_SECONDS: int = 30 * 60          # 30 minutes
    ENRICH_CONCURRENCY: int = 4

    # -----------------------------------------------------------------------
    # Persisted freshness windows (background refresh)
    # -----------------------------------------------------------------------
    IMAGE_TTL_SECONDS: int = 7 * 24 * 60 * 60       # 7 days
    PRICE_TTL_SECONDS: int = 30 * 60                # 30 minutes

    # -----------------------------------------------------------------------
    # Background refresh loop
    # -----------------------------------------------------------------------
    REFRESH_INTERVAL_SECONDS: float = 30.0
    REFRESH_SCAN_LIMIT: int = 200
    REFRESH_CANDIDATE_LIMIT: int = 60
    REFRESH_CONCURRENCY: int = 1            # Shares the rate limit with requests
    REFRESH_QUEUE_SIZE: int = 100
    REQUEST_REFRESH_COUNT: int = 20         # Intents queued per /api/items call
    ITEMS_RESPONSE_LIMIT: int = 500

    # -----------------------------------------------------------------------
    # Sheet column layout (0-based)
    # -----------------------------------------------------------------------
    COL_NAME: int = 0
    COL_WEAR: int = 1
    COL_FLOAT: int = 2
    COL_SEED: int = 3
    COL_PRICE: int = 4
    COL_TIMESTAMP: int = 7

    # -----------------------------------------------------------------------
    # Server
    # -----------------------------------------------------------------------
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    LOG_LEVEL: str = "INFO"

    @property
    def persistence_enabled(self) -> bool:
        return bool(self.DATABASE_URL)

    def require_sheet_url(self) -> str:
        """Return SHEET_CSV_URL or raise ConfigError when it is unset."""
        url = self.SHEET_CSV_URL.strip()
        if not url:
            raise ConfigError("Missing SHEET_CSV_URL env var")
        return url


# Singleton instance
settings = Settings()
