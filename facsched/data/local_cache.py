"""Thread-safe on-disk cache for resource collections."""

from __future__ import annotations

import json
import logging
import threading
import time
from pathlib import Path
from typing import Any, Callable, Protocol

from facsched.data.resources import COLLECTION_KEYS, CacheKey
from facsched.utils.file_utils import atomic_json_write, read_json

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 15 * 60


class LocalCache:
    """Key-value store holding one JSON file per cache key.

    The cache lives in *cache_dir* (``<key>.json`` per entry) and is shared
    by every data-access service of a process. Reads and writes never
    raise: a missing or unreadable entry is a miss, and a failed write is
    logged and dropped.

    Freshness is tracked by a single ``cache_last_updated`` timestamp
    (epoch milliseconds) covering all collections together.

    All public methods are thread-safe.
    """

    def __init__(
        self,
        cache_dir: Path,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.cache_dir = Path(cache_dir)
        self._clock = clock
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _path(self, key: CacheKey | str) -> Path:
        return self.cache_dir / f"{CacheKey(key).value}.json"

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get(self, key: CacheKey | str) -> Any | None:
        """Return the stored value for *key*, or None on miss or failure."""
        path = self._path(key)
        with self._lock:
            if not path.exists():
                return None
            try:
                return read_json(path)
            except (json.JSONDecodeError, OSError, UnicodeDecodeError) as exc:
                logger.warning(
                    "Failed to read cache entry, treating as miss: %s",
                    exc,
                    extra={"cache_key": CacheKey(key).value},
                )
                return None

    def set(self, key: CacheKey | str, value: Any) -> None:
        """Store *value* under *key*. Storage failures are logged only."""
        with self._lock:
            try:
                atomic_json_write(self._path(key), value)
            except (OSError, TypeError, ValueError) as exc:
                logger.error(
                    "Failed to store cache entry: %s",
                    exc,
                    extra={"cache_key": CacheKey(key).value},
                )

    def patch(self, key: CacheKey | str, fn: Callable[[Any | None], Any]) -> Any:
        """Apply *fn* to the current value of *key* and store the result.

        The read and the write happen under the cache lock. *fn* receives
        None when the key is absent. Returns the new value.
        """
        with self._lock:
            value = fn(self.get(key))
            self.set(key, value)
            return value

    def last_updated(self) -> int | None:
        """Return the freshness timestamp (epoch ms), or None if unset."""
        value = self.get(CacheKey.LAST_UPDATED)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        return int(value)

    def is_expired(self, ttl_seconds: float = DEFAULT_TTL_SECONDS) -> bool:
        """True when no timestamp exists or it is older than *ttl_seconds*."""
        last = self.last_updated()
        if not last:
            return True
        return self._now_ms() - last > ttl_seconds * 1000

    def touch_last_updated(self) -> None:
        """Record now as the freshness anchor for every collection."""
        self.set(CacheKey.LAST_UPDATED, self._now_ms())

    def clear(self) -> None:
        """Remove every known cache entry."""
        with self._lock:
            for key in CacheKey:
                try:
                    self._path(key).unlink(missing_ok=True)
                except OSError as exc:
                    logger.warning(
                        "Failed to remove cache entry: %s",
                        exc,
                        extra={"cache_key": key.value},
                    )
        logger.info("Cache cleared", extra={"cache_dir": str(self.cache_dir)})

    def snapshot(self) -> dict[str, int | None]:
        """Return the number of cached rows per collection key.

        Absent or non-list entries map to None.
        """
        summary: dict[str, int | None] = {}
        for key in COLLECTION_KEYS:
            value = self.get(key)
            summary[key.value] = len(value) if isinstance(value, list) else None
        return summary


class FreshnessPolicy(Protocol):
    """Decides whether cached data for a key is stale."""

    def is_expired(self, key: CacheKey) -> bool: ...

    def touch(self, key: CacheKey) -> None: ...


class GlobalFreshnessClock:
    """One freshness timestamp shared by all collections.

    *key* is accepted for interface compatibility and ignored: refreshing
    any collection makes every collection look fresh.
    """

    def __init__(self, cache: LocalCache, ttl_seconds: float = DEFAULT_TTL_SECONDS) -> None:
        self.cache = cache
        self.ttl_seconds = ttl_seconds

    def is_expired(self, key: CacheKey | None = None) -> bool:
        return self.cache.is_expired(self.ttl_seconds)

    def touch(self, key: CacheKey | None = None) -> None:
        self.cache.touch_last_updated()
