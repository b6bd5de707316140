import asyncio
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CacheEntry:
    value: Any
    created_at: float
    last_access: float
    absolute_ttl: float
    sliding_ttl: Optional[float] = None

    def expired(self, now: float) -> bool:
        if now - self.created_at >= self.absolute_ttl:
            return True
        return self.sliding_ttl is not None and now - self.last_access >= self.sliding_ttl


class MemoryCache:
    """Process-local TTL cache with absolute and optional sliding expiration.

    A hit refreshes the sliding window, but an entry never outlives its
    absolute TTL. Safe to share between concurrent requests.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self.clock = clock
        self.entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._cleanup_task = None

    def get(self, key: str) -> Optional[Any]:
        """Get cached value if not expired"""
        with self._lock:
            entry = self.entries.get(key)
            if entry is None:
                return None

            now = self.clock()
            if entry.expired(now):
                del self.entries[key]
                return None

            entry.last_access = now
            return entry.value

    def set(self, key: str, value: Any, absolute_ttl: float, sliding_ttl: Optional[float] = None):
        now = self.clock()
        with self._lock:
            self.entries[key] = CacheEntry(value, now, now, absolute_ttl, sliding_ttl)

    def remove(self, key: str) -> bool:
        with self._lock:
            return self.entries.pop(key, None) is not None

    def clear(self):
        with self._lock:
            self.entries.clear()

    def clear_expired(self) -> int:
        """Remove expired entries, returning how many were dropped"""
        now = self.clock()
        with self._lock:
            expired_keys = [key for key, entry in self.entries.items() if entry.expired(now)]
            for key in expired_keys:
                del self.entries[key]
        return len(expired_keys)

    def __len__(self) -> int:
        with self._lock:
            return len(self.entries)

    async def start_cleanup(self, interval: float):
        """Start background cache cleanup task"""
        if self._cleanup_task is None:
            self._cleanup_task = asyncio.create_task(self._periodic_cleanup(interval))

    async def _periodic_cleanup(self, interval: float):
        while True:
            await asyncio.sleep(interval)
            dropped = self.clear_expired()
            if dropped:
                logger.debug(f"Dropped {dropped} expired cache entries")

    async def stop_cleanup(self):
        """Stop background cache cleanup task"""
        task, self._cleanup_task = self._cleanup_task, None
        if task and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
