# watchdesk/cache.py
"""
watchdesk/cache.py
------------------------------------------------------------
TTL response cache for provider calls.

- get_or_compute(key, ttl, producer): live entry -> returned as-is,
  otherwise `await producer()` and store with expires_at = clock() + ttl.
- Per-entry TTL (quote vs profile vs news windows differ), backed by
  cachetools.TLRUCache so expiry is checked on every read.
- Injectable clock (any zero-arg callable returning seconds).
- Relaxed memoization: concurrent misses for one key are NOT coalesced;
  each may call upstream once. Producer errors are never cached.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Generic, Hashable, Optional, TypeVar

from cachetools import TLRUCache

logger = logging.getLogger("watchdesk.cache")

T = TypeVar("T")

Clock = Callable[[], float]


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    key: Hashable
    value: T
    expires_at: float


def _entry_expiry(_key: Hashable, entry: CacheEntry, _now: float) -> float:
    return entry.expires_at


class ResponseCache:
    def __init__(self, *, maxsize: int = 5000, clock: Optional[Clock] = None) -> None:
        self._clock: Clock = clock or time.monotonic
        self._store: TLRUCache = TLRUCache(maxsize=maxsize, ttu=_entry_expiry, timer=self._clock)
        self.metrics: Dict[str, int] = {"hits": 0, "misses": 0, "updates": 0}

    def __len__(self) -> int:
        return len(self._store)

    def get(self, key: Hashable) -> Optional[Any]:
        entry = self._store.get(key)
        if entry is None:
            return None
        # TLRUCache already hides expired items; double-check against our own clock
        if self._clock() >= entry.expires_at:
            self._store.pop(key, None)
            return None
        return entry.value

    def set(self, key: Hashable, value: Any, ttl: float) -> None:
        if ttl <= 0:
            return
        entry = CacheEntry(key=key, value=value, expires_at=self._clock() + float(ttl))
        self._store[key] = entry
        self.metrics["updates"] += 1

    async def get_or_compute(self, key: Hashable, ttl: float, producer: Callable[[], Awaitable[T]]) -> T:
        if ttl > 0:
            entry = self._store.get(key)
            if entry is not None and self._clock() < entry.expires_at:
                self.metrics["hits"] += 1
                logger.debug("cache hit %s", key)
                return entry.value

        self.metrics["misses"] += 1
        value = await producer()
        self.set(key, value, ttl)
        return value

    def clear(self) -> None:
        self._store.clear()

    def get_stats(self) -> Dict[str, Any]:
        total = self.metrics["hits"] + self.metrics["misses"]
        hit_rate = (self.metrics["hits"] / total * 100) if total > 0 else 0
        return {
            "items": len(self._store),
            "max_size": self._store.maxsize,
            "hits": self.metrics["hits"],
            "misses": self.metrics["misses"],
            "hit_rate": round(hit_rate, 2),
            "updates": self.metrics["updates"],
        }


__all__ = ["CacheEntry", "Clock", "ResponseCache"]
