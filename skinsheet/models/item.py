"""
SkinSheet — Item Model

One row per Steam market name. Sheet columns are overwritten on every
ingest; Steam enrichment columns are written only by the refresher.
Rows are never deleted.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DECIMAL, INTEGER, JSON, TIMESTAMP, Float, Index, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from skinsheet.models.base import Base

# Columns owned by the sheet ingest
SHEET_FIELDS = (
    "name",
    "wear",
    "sheet_price",
    "float_value",
    "paint_seed",
    "sheet_timestamp",
    "raw_row",
    "last_seen_at",
)

# Columns owned by the Steam refresher
ENRICHMENT_FIELDS = (
    "image_url",
    "steam_lowest",
    "steam_median",
    "steam_volume",
    "image_updated_at",
    "steam_updated_at",
    "image_error",
    "steam_error",
)


class Item(Base):
    """
    A sheet listing plus its cached Steam Market data.

    ``image_url`` NULL with ``image_updated_at`` set means Steam was asked
    and has no image; both NULL means it was never asked.
    """

    __tablename__ = "items"

    market_name: Mapped[str] = mapped_column(
        String, primary_key=True, comment="'{name} ({wear})' or name"
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    wear: Mapped[str | None] = mapped_column(String, nullable=True)

    # Sheet snapshot
    sheet_price: Mapped[Decimal | None] = mapped_column(DECIMAL(12, 2), nullable=True)
    float_value: Mapped[float | None] = mapped_column(Float, nullable=True)
    paint_seed: Mapped[int | None] = mapped_column(INTEGER, nullable=True)
    sheet_timestamp: Mapped[datetime | None] = mapped_column(
        TIMESTAMP(timezone=False), nullable=True, comment="Local midnight from M/D/YYYY"
    )
    raw_row: Mapped[list | None] = mapped_column(JSON, nullable=True)
    last_seen_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )

    # Cached Steam fields
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    steam_lowest: Mapped[Decimal | None] = mapped_column(DECIMAL(12, 2), nullable=True)
    steam_median: Mapped[Decimal | None] = mapped_column(DECIMAL(12, 2), nullable=True)
    steam_volume: Mapped[Decimal | None] = mapped_column(DECIMAL(14, 0), nullable=True)

    # Refresh bookkeeping
    image_updated_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    steam_updated_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    image_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    steam_error: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("ix_items_last_seen_at", "last_seen_at"),
    )

    def to_dict(self) -> dict:
        """Plain dict of every column, for API responses."""
        return {c.key: getattr(self, c.key) for c in self.__table__.columns}

    def __repr__(self) -> str:
        return f"<Item market_name={self.market_name!r} image={'y' if self.image_url else 'n'}>"
