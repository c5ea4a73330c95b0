"""
SkinSheet — Application Entrypoint

Configures structlog and serves the FastAPI app with uvicorn.

Run via:
    python -m skinsheet.main
"""

from __future__ import annotations

import logging
import sys

import structlog
import uvicorn

from skinsheet import __version__
from skinsheet.api.app import create_app
from skinsheet.config import settings
from skinsheet.errors import ConfigError


# ---------------------------------------------------------------------------
# Structlog Configuration
# ---------------------------------------------------------------------------


def _configure_logging(log_level: str = "INFO") -> None:
    """
    Set up structured logging with JSON output.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
    """
    # Configure stdlib logging first (for third-party libraries)
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# Application Startup
# ---------------------------------------------------------------------------


def main() -> None:
    """
    Application entrypoint.

    Execution order:
    1. Configure logging (structlog JSON)
    2. Validate critical config (SHEET_CSV_URL)
    3. Serve the API; the lifespan starts background refresh if persistent
    """
    _configure_logging(log_level=settings.LOG_LEVEL)
    logger = structlog.get_logger(__name__)

    logger.info(
        "skinsheet_startup_begin",
        version=__version__,
        persistent=settings.persistence_enabled,
    )

    try:
        settings.require_sheet_url()
    except ConfigError as e:
        logger.error("config_invalid", error=e.message)
        raise

    uvicorn.run(create_app(), host=settings.HOST, port=settings.PORT, log_level=settings.LOG_LEVEL.lower())


# ---------------------------------------------------------------------------
# CLI Entry
# ---------------------------------------------------------------------------


if __name__ == "__main__":
    main()
