"""
Recent-duplicate cache.

Bounded key -> expiry map with lazy expiry on lookup and LRU eviction on
insert. Best-effort: keys that expire or get evicted are accepted again.
"""

import time
from collections import OrderedDict
from typing import Any, Callable, Dict

import structlog

logger = structlog.get_logger(__name__)


class RecentKeyCache:
    """
    Remembers keys seen within the last ``ttl_seconds``.

    Lookups do not refresh expiry or recency, so a key stays "recently seen"
    for exactly one TTL from the moment it was marked.
    """

    def __init__(
        self,
        max_entries: int = 50_000,
        ttl_seconds: float = 24 * 60 * 60,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._store: "OrderedDict[str, float]" = OrderedDict()
        self.evictions = 0

    def seen_recently(self, key: str) -> bool:
        """Return True if ``key`` was marked and has not yet expired."""
        expires_at = self._store.get(key)
        if expires_at is None:
            return False
        if expires_at <= self._clock():
            del self._store[key]
            return False
        return True

    def mark_seen(self, key: str) -> None:
        """Record ``key`` as most recently seen with a fresh expiry."""
        self._store[key] = self._clock() + self.ttl_seconds
        self._store.move_to_end(key)

        while len(self._store) > self.max_entries:
            evicted, _ = self._store.popitem(last=False)
            self.evictions += 1
            logger.debug("Dedup cache full, evicted oldest key", key=evicted[:64])

    def __len__(self) -> int:
        return len(self._store)

    def stats(self) -> Dict[str, Any]:
        return {
            "size": len(self._store),
            "max_entries": self.max_entries,
            "ttl_seconds": self.ttl_seconds,
            "evictions": self.evictions,
        }
