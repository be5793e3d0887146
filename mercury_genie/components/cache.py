"""Bounded LRU cache with optional time-to-live.

Used for generated SQL (keyed by normalized question) and for chart
configs (keyed by question plus a row sample).  Instances are created by
the caller and injected, so each pipeline owns its cache lifecycle.
"""
import logging
import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Hashable, Optional, Tuple

logger = logging.getLogger(__name__)


class TTLCache:
    """Least-recently-used cache; entries older than ``ttl_seconds`` expire.

    A ``ttl_seconds`` of 0 (or None) disables expiry.
    """

    def __init__(
        self,
        max_size: int = 256,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        name: str = "cache",
    ):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self.ttl_seconds = ttl_seconds or None
        self.name = name
        self._clock = clock
        self._entries: "OrderedDict[Hashable, Tuple[float, Any]]" = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: Hashable) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return None
            stored_at, value = entry
            if self._expired(stored_at):
                del self._entries[key]
                self.misses += 1
                return None
            self._entries.move_to_end(key)
            self.hits += 1
            return value

    def set(self, key: Hashable, value: Any) -> None:
        with self._lock:
            self._entries[key] = (self._clock(), value)
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_size:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("%s evicted key=%r", self.name, evicted)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and not self._expired(entry[0])

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _expired(self, stored_at: float) -> bool:
        return self.ttl_seconds is not None and self._clock() - stored_at >= self.ttl_seconds
