# app/services/cache.py
"""
Thread-safe bounded LRU cache with per-entry expiry.

Used by the data acquisition layer (price histories, quotes, FX rates).
Instances are created by the owner and injected, never shared through
module-level state, so tests can supply a fresh or pre-seeded cache.

Entries that have expired are not returned by ``get`` but are kept until
evicted, so ``get_stale`` can serve a last-known value when the upstream
source is failing.
"""

import logging
import threading
import time
from collections import OrderedDict
from typing import Any, Callable

from app.services.constants import CACHE_MAX_SIZE

logger = logging.getLogger(__name__)

_MISSING = object()


class TTLCache:
    """
    Bounded key -> (value, expiry) store.

    Memory Safety:
        Holds at most ``max_size`` entries; the least recently used entry is
        evicted to make room for a new one.

    Thread Safety:
        All operations hold a threading.Lock, so concurrent fetch workers
        can read and write the same cache.

    Example:
        cache = TTLCache(ttl_seconds=300)
        cache.set("AAPL:2024-01-01:2024-02-01", prices)
        prices = cache.get("AAPL:2024-01-01:2024-02-01")
    """

    def __init__(
            self,
            ttl_seconds: float,
            max_size: int = CACHE_MAX_SIZE,
            clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Args:
            ttl_seconds: Lifetime of an entry after it is set
            max_size: Maximum number of entries before LRU eviction
            clock: Monotonic time source, injectable for tests
        """
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self._entries: OrderedDict[str, tuple[float, Any]] = OrderedDict()
        self._ttl = ttl_seconds
        self._max_size = max_size
        self._clock = clock
        self._lock = threading.Lock()

    def get(self, key: str, default: Any = None) -> Any:
        """Return the fresh value for ``key``, or ``default`` if missing or expired."""
        with self._lock:
            entry = self._entries.get(key, _MISSING)
            if entry is _MISSING:
                return default
            expires_at, value = entry
            if self._clock() >= expires_at:
                logger.debug(f"Cache expired for {key}")
                return default
            self._entries.move_to_end(key)
            logger.debug(f"Cache hit for {key}")
            return value

    def get_stale(self, key: str, default: Any = None) -> Any:
        """Return the last value stored for ``key`` regardless of expiry."""
        with self._lock:
            entry = self._entries.get(key, _MISSING)
            if entry is _MISSING:
                return default
            return entry[1]

    def set(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``, evicting the least recently used entry if full."""
        with self._lock:
            if key in self._entries:
                del self._entries[key]
            while len(self._entries) >= self._max_size:
                oldest_key = next(iter(self._entries))
                del self._entries[oldest_key]
                logger.debug(f"Cache evicted {oldest_key} (LRU)")
            self._entries[key] = (self._clock() + self._ttl, value)

    def invalidate(self, key: str) -> bool:
        """Drop ``key``. Returns True if it was present."""
        with self._lock:
            return self._entries.pop(key, _MISSING) is not _MISSING

    def purge_expired(self) -> int:
        """Remove expired entries, returning how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [k for k, (expires_at, _) in self._entries.items() if now >= expires_at]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.debug(f"Purged {len(expired)} expired cache entries")
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.debug(f"Cleared {count} cache entries")

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
