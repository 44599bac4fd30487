"""
In-process TTL cache for list queries

Storefront lists (products, testimonials) are read far more often than they
change, so each process keeps the last result for CACHE_TTL seconds. Admin
writes call invalidate() so changes show up immediately on this process.

Author: TM3
Date: 2026-03-06
"""
import time
import logging
import threading
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

logger = logging.getLogger(__name__)


class TTLCache:
    """Key -> (value, timestamp) with a fixed time-to-live"""

    def __init__(self, name: str, ttl_seconds: int = 300):
        self.name = name
        self.ttl_seconds = ttl_seconds
        self._entries: Dict[Hashable, Tuple[Any, float]] = {}
        self._lock = threading.Lock()

    def _is_valid(self, timestamp: float) -> bool:
        return (time.time() - timestamp) < self.ttl_seconds

    def get(self, key: Hashable) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, timestamp = entry
            if not self._is_valid(timestamp):
                del self._entries[key]
                return None
            return value

    def set(self, key: Hashable, value: Any) -> None:
        with self._lock:
            self._entries[key] = (value, time.time())

    def get_or_load(self, key: Hashable, loader: Callable[[], Any]) -> Any:
        """Return the cached value or load, store and return a fresh one"""
        value = self.get(key)
        if value is not None:
            return value

        logger.debug(f"{self.name} cache miss for {key!r}")
        value = loader()
        self.set(key, value)
        return value

    def invalidate(self, key: Optional[Hashable] = None) -> None:
        """Drop one key, or everything when key is None"""
        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)
        logger.debug(f"{self.name} cache invalidated ({'all' if key is None else key!r})")

    def stats(self) -> dict:
        with self._lock:
            valid = sum(1 for _, ts in self._entries.values() if self._is_valid(ts))
            return {
                'name': self.name,
                'ttl_seconds': self.ttl_seconds,
                'entries': len(self._entries),
                'valid_entries': valid,
            }
