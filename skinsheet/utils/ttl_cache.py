"""
SkinSheet — In-Memory TTL Cache

Fixed-TTL key/value cache for enrichment results. Expired entries are
evicted lazily on read; there is no background sweep.

A cached ``None`` is a real value ("Steam has no image for this item") and
is distinct from ``MISSING`` (never cached, or expired).
"""

from __future__ import annotations

import time
from typing import Callable, Generic, Hashable, TypeVar

import structlog

logger = structlog.get_logger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class _Missing:
    """Sentinel type for an absent cache entry."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()


class TTLCache(Generic[K, V]):
    """
    Per-instance fixed-TTL cache.

    Args:
        ttl_seconds: Lifetime of each entry, measured from ``set``.
        name: Label used in log events.
        clock: Monotonic time source, injectable for tests.
    """

    def __init__(
        self,
        ttl_seconds: float,
        name: str = "cache",
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        self.ttl_seconds = ttl_seconds
        self.name = name
        self._clock = clock
        self._entries: dict[K, tuple[float, V]] = {}

    def get(self, key: K, default: V | _Missing = MISSING) -> V | _Missing:
        """Return the cached value, or ``default`` if absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return default

        stored_at, value = entry
        if self._clock() - stored_at > self.ttl_seconds:
            del self._entries[key]
            logger.debug("ttl_cache_expired", cache=self.name, key=str(key))
            return default
        return value

    def set(self, key: K, value: V) -> None:
        self._entries[key] = (self._clock(), value)

    def __contains__(self, key: object) -> bool:
        return self.get(key) is not MISSING  # type: ignore[arg-type]

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()
