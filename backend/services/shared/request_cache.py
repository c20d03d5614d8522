"""RequestCache — small in-process TTL cache for expensive request results.

Used to avoid re-running the specialist fan-out for an identical generation
request within a short window.
"""
from __future__ import annotations

import hashlib
import json
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass
class CacheEntry(Generic[T]):
    data: T
    timestamp: float
    ttl_sec: float
    hits: int = 0


class RequestCache(Generic[T]):
    """TTL cache with a size cap.

    When full, the oldest entry (by insertion time) is evicted. Expired
    entries are dropped lazily on lookup.

    Usage::

        cache = RequestCache(max_size=256, default_ttl_sec=300)
        key = RequestCache.make_key("prompt text", {"budget": "low"})
        plan = cache.get(key)
        if plan is None:
            plan = build_plan()
            cache.set(key, plan)
    """

    def __init__(
        self,
        max_size: int = 1000,
        default_ttl_sec: float = 300.0,
        clock: Callable[[], float] = time.time,
    ):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self.default_ttl_sec = default_ttl_sec
        self._clock = clock
        self._entries: Dict[str, CacheEntry[T]] = {}
        self._lock = threading.Lock()

    @staticmethod
    def make_key(*parts: Any) -> str:
        """Stable key from JSON-serialisable parts."""
        raw = json.dumps(parts, sort_keys=True, default=str)
        return hashlib.sha256(raw.encode("utf-8")).hexdigest()

    def set(self, key: str, data: T, ttl_sec: Optional[float] = None) -> None:
        with self._lock:
            if key not in self._entries and len(self._entries) >= self.max_size:
                self._evict_oldest()
            self._entries[key] = CacheEntry(
                data=data,
                timestamp=self._clock(),
                ttl_sec=self.default_ttl_sec if ttl_sec is None else ttl_sec,
            )

    def get(self, key: str) -> Optional[T]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() - entry.timestamp > entry.ttl_sec:
                del self._entries[key]
                return None
            entry.hits += 1
            return entry.data

    def has(self, key: str) -> bool:
        return self.get(key) is not None

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "size": len(self._entries),
                "max_size": self.max_size,
                "total_hits": sum(e.hits for e in self._entries.values()),
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _evict_oldest(self) -> None:
        oldest_key = min(self._entries, key=lambda k: self._entries[k].timestamp)
        del self._entries[oldest_key]
