"""
List view cache

Keeps recently rendered list pages in memory, keyed by entity kind and the
raw query parameters that produced them. Mutations call invalidate() after
they commit so the next read of an affected list goes back to the database.

Each kind carries a generation number that invalidate() bumps. A reader takes
the generation before it queries and hands it back to set(); a page read
under an older generation is never stored.
"""

import logging
import threading
import time
from typing import Any, Dict, Hashable, Optional, Tuple

logger = logging.getLogger(__name__)

CacheKey = Tuple[str, Hashable]


class ListViewCache:
    def __init__(self, ttl_seconds: int = 60, max_entries: int = 1000):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        # insertion order is age order, set() re-inserts
        self._entries: Dict[CacheKey, Tuple[float, Any]] = {}
        self._generations: Dict[str, int] = {}
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return self.ttl_seconds > 0

    def __len__(self) -> int:
        return len(self._entries)

    def generation(self, kind: str) -> int:
        with self._lock:
            return self._generations.get(kind, 0)

    def get(self, kind: str, key: Hashable) -> Optional[Any]:
        if not self.enabled:
            return None

        with self._lock:
            entry = self._entries.get((kind, key))
            if entry is None:
                return None
            stored_at, value = entry
            if time.monotonic() - stored_at > self.ttl_seconds:
                del self._entries[(kind, key)]
                logger.debug(f"List cache expired for {kind}")
                return None

        logger.debug(f"List cache hit for {kind}")
        return value

    def set(self, kind: str, key: Hashable, value: Any, generation: Optional[int] = None) -> bool:
        """
        Store a page; returns False when it was not stored.

        Pass the generation() taken before the page was queried so a page
        that raced with an invalidation is dropped.
        """
        if not self.enabled:
            return False

        now = time.monotonic()
        with self._lock:
            if generation is not None and generation != self._generations.get(kind, 0):
                logger.debug(f"Dropped {kind} page read before the last invalidation")
                return False

            self._entries.pop((kind, key), None)
            self._sweep(now)
            while self.max_entries > 0 and len(self._entries) >= self.max_entries:
                oldest = next(iter(self._entries))
                del self._entries[oldest]
            self._entries[(kind, key)] = (now, value)
        return True

    def invalidate(self, *kinds: str) -> int:
        """Mark every cached page of the given entity kinds as stale."""
        with self._lock:
            for kind in kinds:
                self._generations[kind] = self._generations.get(kind, 0) + 1
            stale = [k for k in self._entries if k[0] in kinds]
            for k in stale:
                del self._entries[k]
        if stale:
            logger.debug(f"Invalidated {len(stale)} cached list page(s) for {', '.join(kinds)}")
        return len(stale)

    def _sweep(self, now: float) -> None:
        # caller holds the lock
        expired = [k for k, (stored_at, _) in self._entries.items() if now - stored_at > self.ttl_seconds]
        for k in expired:
            del self._entries[k]
