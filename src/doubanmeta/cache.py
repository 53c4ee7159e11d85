"""In-process result cache with a size cap and per-entry TTL.

Entries are kept in an OrderedDict in recency order: reads move an entry
to the end and inserts past ``max_entries`` evict from the front. An entry
older than ``ttl`` seconds reads as a miss and is dropped on that read.

There is no single-flight: two concurrent misses for the same key both
fetch, and the later insert wins.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable, Hashable
from typing import Any

logger = logging.getLogger(__name__)

CacheKey = tuple[str, str, str]


def cache_key(kind: str, ident: str, variant: str = "") -> CacheKey:
    """Key for a record: its kind, its identifier and the result variant (image size)."""
    return (kind, ident, variant)


class ResultCache:
    def __init__(
        self,
        max_entries: int = 100,
        ttl: float = 600,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._entries: OrderedDict[Hashable, tuple[Any, float]] = OrderedDict()
        self._max_entries = max_entries
        self._ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()

    def get(self, key: Hashable) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                logger.debug("Cache miss: %s", key)
                return None
            value, inserted_at = entry
            if self._clock() - inserted_at >= self._ttl:
                del self._entries[key]
                logger.debug("Cache expired: %s", key)
                return None
            self._entries.move_to_end(key)
            logger.debug("Cache hit: %s", key)
            return value

    def insert(self, key: Hashable, value: Any) -> None:
        with self._lock:
            self._entries[key] = (value, self._clock())
            self._entries.move_to_end(key)
            while len(self._entries) > self._max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Cache evicted: %s", evicted)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
