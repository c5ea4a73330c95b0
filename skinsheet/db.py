"""
SkinSheet — Database Setup

Async SQLAlchemy engine and session factory for the persistent variant.
"""

from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from skinsheet.config import settings
from skinsheet.models import Base

logger = structlog.get_logger(__name__)


def normalize_database_url(url: str) -> str:
    # SQLAlchemy 2.x doesn't accept 'postgres://'
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


async def create_db_engine(
    database_url: str | None = None,
    create_tables: bool = True,
) -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    """
    Create the async engine and session factory.

    Args:
        database_url: Overrides settings.DATABASE_URL.
        create_tables: Run ``create_all`` so a fresh database works without
            migrations.

    Returns:
        (engine, session_factory) tuple.
    """
    url = normalize_database_url(database_url or settings.DATABASE_URL)
    engine_kwargs: dict[str, Any] = {"echo": False}
    if url.startswith("postgresql"):
        engine_kwargs.update(pool_size=5, max_overflow=10, pool_pre_ping=True)

    logger.info("database_engine_initializing", dialect=url.split(":", 1)[0])
    engine = create_async_engine(url, **engine_kwargs)

    if create_tables:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    logger.info("database_engine_ready")
    return engine, session_factory
