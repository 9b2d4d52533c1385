import time
from collections.abc import Awaitable, Callable, Hashable
from dataclasses import dataclass
from typing import Generic, TypeVar

import structlog

_logger = structlog.get_logger()

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

DEFAULT_TTL_SECONDS = 300.0
DEFAULT_MAX_ENTRIES = 100


@dataclass
class CacheEntry(Generic[V]):
    value: V
    expires_at: float


class TTLCache(Generic[K, V]):
    """In-memory map with a fixed time-to-live and a fixed capacity.

    Expired entries are removed lazily, by the lookup that observes them.
    When a new key would exceed ``max_entries`` the oldest *inserted* key is
    evicted (insertion order, not access order). Not safe for concurrent use
    outside a single event loop.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
        name: str = "cache",
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._clock = clock
        self._name = name
        self._entries: dict[K, CacheEntry[V]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def get(self, key: K) -> V | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() > entry.expires_at:
            del self._entries[key]
            return None
        return entry.value

    def set(self, key: K, value: V) -> None:
        if key in self._entries:
            # re-insertion counts as newest
            del self._entries[key]
        elif len(self._entries) >= self._max_entries:
            oldest = next(iter(self._entries))
            del self._entries[oldest]
            _logger.debug("cache_evicted", cache=self._name, size=len(self._entries))
        self._entries[key] = CacheEntry(value=value, expires_at=self._clock() + self._ttl)

    async def get_or_compute(self, key: K, compute: Callable[[], Awaitable[V]]) -> V:
        cached = self.get(key)
        if cached is not None:
            _logger.debug("cache_hit", cache=self._name)
            return cached

        value = await compute()
        self.set(key, value)
        return value

    def clear(self) -> None:
        self._entries.clear()
