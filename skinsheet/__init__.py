"""SkinSheet — spreadsheet-driven CS2 skin listing with Steam Market enrichment."""

__version__ = "0.1.0"
