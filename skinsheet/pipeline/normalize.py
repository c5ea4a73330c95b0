"""
SkinSheet — Record Normalizer

Maps a raw sheet row to a typed ItemRecord and derives the Steam market
name ("AK-47 | Slate (Well-Worn)") used as the cache/store key.

Unparsable numbers and dates become None, never zero: a 0 price or a
0.00 float is a real value on the sheet.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable

import structlog
from pydantic import BaseModel, Field

from skinsheet.config import settings
from skinsheet.errors import ParseError

logger = structlog.get_logger(__name__)

_NON_NUMERIC_RE = re.compile(r"[^0-9.\-]")
_MDY_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")

# Largest values the items table can hold (INTEGER seed, DECIMAL(12,2) price)
SEED_MAX = 2**31 - 1
PRICE_LIMIT = Decimal(10) ** 10


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class ItemRecord(BaseModel):
    """One normalized sheet row."""

    market_name: str = Field(..., description="Steam market hash name, unique key")
    name: str
    wear: str = ""
    float_value: float | None = None
    paint_seed: int | None = None
    sheet_price: Decimal | None = None
    sheet_timestamp: datetime | None = None
    raw_row: list[str] = Field(default_factory=list)


@dataclass(frozen=True)
class SheetColumns:
    """0-based column positions in the published sheet."""

    name: int = 0
    wear: int = 1
    float_value: int = 2
    paint_seed: int = 3
    price: int = 4
    timestamp: int = 7

    @classmethod
    def from_settings(cls) -> SheetColumns:
        return cls(
            name=settings.COL_NAME,
            wear=settings.COL_WEAR,
            float_value=settings.COL_FLOAT,
            paint_seed=settings.COL_SEED,
            price=settings.COL_PRICE,
            timestamp=settings.COL_TIMESTAMP,
        )


# ---------------------------------------------------------------------------
# Field parsers
# ---------------------------------------------------------------------------


def market_name(name: Any, wear: Any) -> str:
    """
    Build the Steam market name for an item.

    Examples:
        >>> market_name("AK-47 | Slate", "Well-Worn")
        'AK-47 | Slate (Well-Worn)'
        >>> market_name("Glock", "")
        'Glock'
    """
    n = str(name or "").strip()
    w = str(wear or "").strip()
    if not w:
        return n
    return f"{n} ({w})"


def _to_decimal(value: Any) -> Decimal:
    """Strict numeric parse. Raises ParseError when nothing numeric is left."""
    raw = str(value if value is not None else "").strip()
    cleaned = _NON_NUMERIC_RE.sub("", raw)
    if not cleaned or cleaned in ("-", ".", "-."):
        raise ParseError(f"not a number: {raw!r}")
    try:
        number = Decimal(cleaned)
    except InvalidOperation as e:
        raise ParseError(f"not a number: {raw!r}") from e
    if not number.is_finite():
        raise ParseError(f"not a finite number: {raw!r}")
    return number


def parse_number(value: Any) -> Decimal | None:
    """
    Parse a formatted number ("$12.50", "1,234", "0.21") to Decimal.

    Everything except digits, '.' and '-' is stripped first.

    Returns:
        The Decimal, or None for empty / sign-only / unparsable input.
    """
    try:
        return _to_decimal(value)
    except ParseError:
        return None


def parse_int(value: Any) -> int | None:
    """Like parse_number, truncated toward zero."""
    number = parse_number(value)
    return None if number is None else int(number)


def parse_float(value: Any) -> float | None:
    number = parse_number(value)
    if number is None:
        return None
    result = float(number)
    # Digit strings past float range come back as inf
    return result if math.isfinite(result) else None


def parse_seed(value: Any) -> int | None:
    """Paint seed, or None when it is negative or too large for the column."""
    seed = parse_int(value)
    if seed is None or not 0 <= seed <= SEED_MAX:
        return None
    return seed


def parse_price(value: Any) -> Decimal | None:
    """Sheet price, or None when it does not fit DECIMAL(12,2)."""
    price = parse_number(value)
    if price is None or abs(price) >= PRICE_LIMIT:
        return None
    return price


def parse_mdy_date(value: Any) -> datetime | None:
    """
    Parse a strict M/D/YYYY sheet date to local midnight.

    Examples:
        >>> parse_mdy_date("11/2/2025")
        datetime.datetime(2025, 11, 2, 0, 0)
        >>> parse_mdy_date("2025-11-02") is None
        True
    """
    if not value:
        return None
    match = _MDY_RE.match(str(value).strip())
    if not match:
        return None
    month, day, year = (int(g) for g in match.groups())
    try:
        return datetime(year, month, day)
    except ValueError:
        # 0/0/2025, 2/30/2025 and the like
        return None


# ---------------------------------------------------------------------------
# Row normalization
# ---------------------------------------------------------------------------


def _cell(row: list[str], index: int) -> str:
    return row[index].strip() if 0 <= index < len(row) else ""


def normalize_row(row: list[str], columns: SheetColumns | None = None) -> ItemRecord | None:
    """
    Convert one raw sheet row into an ItemRecord.

    Args:
        row: Trimmed cells of a single CSV line.
        columns: Column layout. Defaults to the configured layout.

    Returns:
        ItemRecord, or None when the name cell is empty (row skipped).
    """
    cols = columns or SheetColumns.from_settings()
    name = _cell(row, cols.name)
    if not name:
        return None

    wear = _cell(row, cols.wear)
    return ItemRecord(
        market_name=market_name(name, wear),
        name=name,
        wear=wear,
        float_value=parse_float(_cell(row, cols.float_value)),
        paint_seed=parse_seed(_cell(row, cols.paint_seed)),
        sheet_price=parse_price(_cell(row, cols.price)),
        sheet_timestamp=parse_mdy_date(_cell(row, cols.timestamp)),
        raw_row=list(row),
    )


def normalize_rows(
    rows: Iterable[list[str]],
    columns: SheetColumns | None = None,
) -> list[ItemRecord]:
    """Normalize sheet body rows, dropping rows without a name."""
    cols = columns or SheetColumns.from_settings()
    records: list[ItemRecord] = []
    skipped = 0
    for row in rows:
        record = normalize_row(row, cols)
        if record is None:
            skipped += 1
            continue
        records.append(record)

    logger.debug("sheet_rows_normalized", records=len(records), skipped=skipped)
    return records
