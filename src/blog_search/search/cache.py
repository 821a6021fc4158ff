"""
Query Cache

Process-local memo of recent query responses with TTL expiry and a bounded,
insertion-ordered capacity (the oldest insert is evicted first, not the least
recently used).
"""

import json
import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from blog_search.search.models import QueryResponse

DEFAULT_TTL_SEC = 300
DEFAULT_MAX_SIZE = 50


def normalize_query(query: str) -> str:
    return " ".join((query or "").strip().lower().split())


def make_cache_key(query: str, options: dict[str, Any] | None = None) -> str:
    """Normalized query text + deterministic JSON of the non-text options."""
    options_str = json.dumps(options, sort_keys=True, default=str) if options else ""
    return f"{normalize_query(query)}:{options_str}"


@dataclass
class CacheEntry:
    response: QueryResponse
    created_at: float
    expires_at: float


class QueryCache:
    """Thread-safe TTL cache for QueryResponse objects."""

    def __init__(
        self,
        ttl: float = DEFAULT_TTL_SEC,
        max_size: int = DEFAULT_MAX_SIZE,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_size <= 0:
            raise ValueError("max_size must be positive")
        self.ttl = ttl
        self.max_size = max_size
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get(
        self, query: str, options: dict[str, Any] | None = None
    ) -> QueryResponse | None:
        """Return the cached response, or None if absent or expired."""
        key = make_cache_key(query, options)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None
            if self._clock() >= entry.expires_at:
                del self._entries[key]
                self._misses += 1
                return None
            self._hits += 1
            return entry.response

    def set(
        self,
        query: str,
        response: QueryResponse,
        options: dict[str, Any] | None = None,
        ttl: float | None = None,
    ) -> None:
        key = make_cache_key(query, options)
        now = self._clock()
        entry = CacheEntry(
            response=response,
            created_at=now,
            expires_at=now + (ttl if ttl is not None else self.ttl),
        )
        with self._lock:
            # Re-setting a key counts as a fresh insert
            self._entries.pop(key, None)
            while len(self._entries) >= self.max_size:
                self._entries.popitem(last=False)
            self._entries[key] = entry

    def cleanup(self) -> int:
        """Purge every expired entry; returns how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [k for k, e in self._entries.items() if now >= e.expires_at]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def stats(self) -> dict[str, Any]:
        now = self._clock()
        with self._lock:
            lookups = self._hits + self._misses
            return {
                "size": len(self._entries),
                "maxSize": self.max_size,
                "hits": self._hits,
                "misses": self._misses,
                "hitRate": self._hits / lookups if lookups else 0.0,
                "entries": [
                    {
                        "key": key,
                        "age": round(now - entry.created_at, 3),
                        "expiresIn": round(entry.expires_at - now, 3),
                    }
                    for key, entry in self._entries.items()
                ],
            }
