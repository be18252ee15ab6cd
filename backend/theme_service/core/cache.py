"""In-process TTL cache for resolved themes and rendered stylesheets.

The cache is a pure accelerator over the database: entries are never
persisted and losing them (process restart, eviction) only costs a reload.
Each identity owns two entries, the resolved record and its rendered CSS,
which are always invalidated together.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL_MS = 300000  # 5 minutes


def theme_cache_key(scope: str, key: str) -> str:
    """Cache key for a resolved theme record."""
    return f"theme:{scope}:{key}"


def css_cache_key(scope: str, key: str) -> str:
    """Cache key for a rendered stylesheet."""
    return f"theme_css:{scope}:{key}"


@dataclass
class CacheEntry:
    """A cached payload and the clock reading at which it was stored (ms)."""

    payload: Any
    timestamp: float


class TTLCache:
    """Keyed store with a single time-to-live applied to every entry.

    When disabled, every ``get`` misses and ``set``/``invalidate`` do
    nothing, so callers never need to special-case the disabled state.
    """

    def __init__(
        self,
        ttl_ms: int = DEFAULT_CACHE_TTL_MS,
        enabled: bool = True,
        clock: Optional[Callable[[], float]] = None,
    ):
        """Initialize the cache.

        Args:
            ttl_ms: Maximum entry age in milliseconds
            enabled: Whether caching is active at all
            clock: Callable returning the current time in seconds
                (defaults to time.monotonic)
        """
        if ttl_ms < 0:
            raise ValueError("ttl_ms must be non-negative")
        self.ttl_ms = ttl_ms
        self.enabled = enabled
        self._clock = clock or time.monotonic
        self._entries: dict[str, CacheEntry] = {}
        # key -> (epoch of its last invalidation, when it happened in ms)
        self._invalidations: dict[str, tuple[int, float]] = {}
        self._epoch = 0
        # Newest epoch whose invalidation marker has been pruned
        self._horizon = 0
        self._last_sweep = self._now_ms()
        self._lock = threading.Lock()

    def _now_ms(self) -> float:
        return self._clock() * 1000

    def _sweep(self, now: float) -> None:
        """Drop expired entries and invalidation markers older than the TTL.

        Runs at most once per TTL period. Caller must hold the lock.
        """
        if now - self._last_sweep <= self.ttl_ms:
            return
        self._last_sweep = now
        expired = [k for k, e in self._entries.items() if now - e.timestamp > self.ttl_ms]
        for key in expired:
            del self._entries[key]
        stale = [k for k, (_, ts) in self._invalidations.items() if now - ts > self.ttl_ms]
        for key in stale:
            epoch, _ = self._invalidations.pop(key)
            self._horizon = max(self._horizon, epoch)
        if expired or stale:
            logger.debug(
                f"Cache sweep dropped {len(expired)} entries, {len(stale)} markers"
            )

    def get(self, key: str) -> Optional[Any]:
        """Return the cached payload, or None on a miss or expired entry."""
        if not self.enabled:
            return None
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._now_ms() - entry.timestamp > self.ttl_ms:
                del self._entries[key]
                logger.debug(f"Cache entry expired: {key}")
                return None
            return entry.payload

    def generation(self, key: str) -> int:
        """Invalidation counter to read before loading ``key``.

        Pass it back to ``set``: if the key was invalidated in between, the
        (now stale) payload is not stored.
        """
        with self._lock:
            return self._epoch

    def _is_stale(self, key: str, generation: int) -> bool:
        # A snapshot older than a pruned marker cannot be checked, so it loses
        if generation < self._horizon:
            return True
        marker = self._invalidations.get(key)
        return marker is not None and marker[0] > generation

    def set(self, key: str, payload: Any, generation: Optional[int] = None) -> bool:
        """Store a payload stamped with the current time.

        Returns:
            True if the payload was stored
        """
        if not self.enabled:
            return False
        with self._lock:
            now = self._now_ms()
            self._sweep(now)
            if generation is not None and self._is_stale(key, generation):
                logger.debug(f"Skipping stale cache write: {key}")
                return False
            self._entries[key] = CacheEntry(payload=payload, timestamp=now)
            return True

    def invalidate(self, *keys: str) -> None:
        """Drop the given keys (missing keys are ignored)."""
        if not self.enabled:
            return
        with self._lock:
            now = self._now_ms()
            self._epoch += 1
            for key in keys:
                self._entries.pop(key, None)
                self._invalidations[key] = (self._epoch, now)
            self._sweep(now)

    def clear(self) -> None:
        """Drop every entry."""
        with self._lock:
            self._entries.clear()
            self._invalidations.clear()
            self._horizon = self._epoch

    @property
    def ttl_seconds(self) -> int:
        """TTL rounded down to whole seconds (for Cache-Control headers)."""
        return self.ttl_ms // 1000

    @property
    def tracked_invalidations(self) -> int:
        """Number of keys still carrying an invalidation marker."""
        with self._lock:
            return len(self._invalidations)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
