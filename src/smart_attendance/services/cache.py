"""In-process cache for descriptor snapshots."""

import threading
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol


class Cache(Protocol):
    """Cache interface for simple key-value data."""

    def get(self, key: str) -> object | None:
        """Return a cached value if present and not expired."""

    def set(self, key: str, value: object, ttl_seconds: int) -> None:
        """Store a cached value with a TTL in seconds."""

    def delete(self, key: str) -> None:
        """Drop a cached value if present."""


@dataclass
class _CacheEntry:
    value: object
    expires_at: datetime


@dataclass
class InMemoryCache(Cache):
    """Thread-safe in-memory cache; entries are replaced, never mutated."""

    _entries: dict[str, _CacheEntry]

    def __init__(self) -> None:
        self._entries = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> object | None:
        """Return a cached value if it hasn't expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if datetime.now(tz=UTC) >= entry.expires_at:
                self._entries.pop(key, None)
                return None
            return entry.value

    def set(self, key: str, value: object, ttl_seconds: int) -> None:
        """Store a cached value with a TTL."""
        expires_at = datetime.now(tz=UTC) + timedelta(seconds=ttl_seconds)
        with self._lock:
            self._entries[key] = _CacheEntry(value=value, expires_at=expires_at)

    def delete(self, key: str) -> None:
        """Remove a cached value."""
        with self._lock:
            self._entries.pop(key, None)
