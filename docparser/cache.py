"""
In-memory cache for fetched documentation HTML.

Entries expire lazily after their TTL and the least recently used entry is
evicted when the cache is full. Keys are a 32-bit djb2 hash of the URL: rare
collisions are tolerated because TTL and LRU churn mask them.
"""
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Optional

from docparser.config import config
from docparser.utils.logger import LayerLogger
from docparser.utils.text import hash_url

DEFAULT_TTL_MS = 3_600_000


def _now_ms() -> float:
    return time.monotonic() * 1000


@dataclass(frozen=True)
class CacheEntry:
    """Cached HTML plus its bookkeeping."""
    html: str
    cached_at: float
    ttl: int


class DocumentationCache:
    """
    Bounded, TTL-aware, URL-keyed store of raw HTML.

    Every get/evict/set sequence holds a lock so the cache can be shared by
    concurrent request handlers.
    """

    def __init__(
        self,
        max_entries: int = 100,
        clock: Optional[Callable[[], float]] = None,
    ):
        """
        Args:
            max_entries: Capacity before LRU eviction kicks in
            clock: Millisecond clock, injectable for tests
        """
        self.max_entries = max_entries
        self._clock = clock or _now_ms
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = threading.Lock()
        self.logger = LayerLogger("cache")

    def get(self, url: str) -> Optional[str]:
        """Return cached HTML, or None when missing or expired."""
        key = hash_url(url)

        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None

            if self._clock() - entry.cached_at > entry.ttl:
                del self._entries[key]
                self.logger.log_action("cache_lookup", "expired", url=url, key=key)
                return None

            self._entries.move_to_end(key)
            return entry.html

    def set(self, url: str, html: str, ttl: int = DEFAULT_TTL_MS) -> None:
        """Cache HTML for a URL, evicting the least recently used entry if full."""
        key = hash_url(url)

        with self._lock:
            if len(self._entries) >= self.max_entries and key not in self._entries:
                evicted_key, _ = self._entries.popitem(last=False)
                self.logger.log_action("cache_evict", "completed", key=evicted_key)

            self._entries[key] = CacheEntry(html=html, cached_at=self._clock(), ttl=ttl)
            self._entries.move_to_end(key)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def size(self) -> int:
        """Number of stored entries, including expired ones not yet looked up."""
        with self._lock:
            return len(self._entries)

    def has(self, url: str) -> bool:
        """Check if a live entry exists (refreshes its LRU position)."""
        return self.get(url) is not None


# Default cache for callers that do not own one. Services built at startup
# should create their own DocumentationCache and pass it in.
_default_cache: Optional[DocumentationCache] = None
_default_cache_lock = threading.Lock()


def get_default_cache() -> DocumentationCache:
    """Get or create the default cache instance."""
    global _default_cache
    with _default_cache_lock:
        if _default_cache is None:
            _default_cache = DocumentationCache(max_entries=config.CACHE_MAX_ENTRIES)
        return _default_cache


def get_cached(url: str) -> Optional[str]:
    """Get cached HTML for a URL, or None if not cached/expired."""
    return get_default_cache().get(url)


def set_cached(url: str, html: str, ttl: int = DEFAULT_TTL_MS) -> None:
    """Cache HTML for a URL in the default cache."""
    get_default_cache().set(url, html, ttl)


def clear_cache() -> None:
    get_default_cache().clear()


def get_cache_size() -> int:
    return get_default_cache().size()


def is_cached(url: str) -> bool:
    return get_default_cache().has(url)
