"""
Models package — export all SQLAlchemy models.
"""

from skinsheet.models.base import Base
from skinsheet.models.item import Item

__all__ = ["Base", "Item"]
