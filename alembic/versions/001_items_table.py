"""Initial schema — items

Revision ID: 001_items_table
Revises: None
Create Date: 2026-10-18
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001_items_table"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "items",
        sa.Column("market_name", sa.String(), nullable=False, comment="'{name} ({wear})' or name"),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("wear", sa.String(), nullable=True),
        # Sheet snapshot
        sa.Column("sheet_price", sa.DECIMAL(12, 2), nullable=True),
        sa.Column("float_value", sa.Float(), nullable=True),
        sa.Column("paint_seed", sa.INTEGER(), nullable=True),
        sa.Column("sheet_timestamp", sa.TIMESTAMP(timezone=False), nullable=True),
        sa.Column("raw_row", sa.JSON(), nullable=True),
        sa.Column(
            "last_seen_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        # Cached Steam fields
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("steam_lowest", sa.DECIMAL(12, 2), nullable=True),
        sa.Column("steam_median", sa.DECIMAL(12, 2), nullable=True),
        sa.Column("steam_volume", sa.DECIMAL(14, 0), nullable=True),
        # Refresh bookkeeping
        sa.Column("image_updated_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("steam_updated_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("image_error", sa.Text(), nullable=True),
        sa.Column("steam_error", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("market_name"),
    )
    op.create_index("ix_items_last_seen_at", "items", ["last_seen_at"])


def downgrade() -> None:
    op.drop_index("ix_items_last_seen_at", table_name="items")
    op.drop_table("items")
