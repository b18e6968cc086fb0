"""
LOTTO645 Result Cache
=====================

Small in-memory TTL cache for expensive engine results (scores,
back-tests, analysis reports). Instances are created by the caller and
injected; nothing is cached at module level.

Keys are content hashes of the history, so a new draw invalidates every
entry computed from the old history automatically.
"""

import hashlib
import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple

from loguru import logger

from .draws import History, to_history_frame

DEFAULT_TTL_SECONDS = 600  # 10 minutes


class _Miss:
    def __repr__(self):
        return 'MISS'


MISS = _Miss()


class TTLCache:
    """
    Time-based cache.

    Args:
        default_ttl: Lifetime in seconds for entries stored without a ttl
        clock: Monotonic time source (injectable for tests)
        max_entries: Oldest entries are evicted beyond this size
    """

    def __init__(self, default_ttl: float = DEFAULT_TTL_SECONDS,
                 clock: Callable[[], float] = time.monotonic,
                 max_entries: int = 256):
        self.default_ttl = default_ttl
        self.clock = clock
        self.max_entries = max_entries
        self._entries: Dict[str, Tuple[float, Any]] = {}
        self._lock = threading.Lock()
        logger.info(f"TTLCache initialized (ttl={default_ttl}s, max_entries={max_entries})")

    def get(self, key: str) -> Any:
        """Cached value, or MISS when absent or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return MISS
            expires_at, value = entry
            if self.clock() >= expires_at:
                self._entries.pop(key, None)
                return MISS
            return value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        ttl = self.default_ttl if ttl is None else ttl
        if ttl <= 0:
            return
        with self._lock:
            self._entries.pop(key, None)
            self._entries[key] = (self.clock() + ttl, value)
            while len(self._entries) > self.max_entries:
                # dicts keep insertion order, so the first key is the oldest
                oldest = next(iter(self._entries))
                del self._entries[oldest]

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def history_cache_key(history: History, *parts: Any) -> str:
    """
    SHA-256 of the normalized history plus any extra key parts.

    Args:
        history: Draw history in any order
        *parts: Operation name and parameters distinguishing results

    Returns:
        Hex digest string
    """
    frame = to_history_frame(history)
    digest = hashlib.sha256()
    digest.update(frame.to_numpy().tobytes())
    digest.update(repr(parts).encode('utf-8'))
    return digest.hexdigest()
