"""TTL and memory-bounded in-process cache."""

from __future__ import annotations

import fnmatch
import gzip
import logging
import pickle
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class CacheEntry:
    key: str
    payload: bytes
    compressed: bool
    size_bytes: int
    expires_at: float
    created_at: float


class CacheStore:
    """Key/value cache with per-entry TTL and an aggregate memory budget.

    Values are pickled and gzip-compressed above ``compression_threshold``
    bytes. Expired entries are invisible to readers straight away and are
    purged on access, on write pressure, and by an optional sweep thread.
    When the budget is exceeded, entries closest to expiry are evicted first.
    """

    def __init__(
        self,
        *,
        max_memory: int = 50 * 1024 * 1024,
        default_ttl_ms: int = 30 * 60 * 1000,
        cleanup_interval: float = 300.0,
        compression: bool = True,
        compression_threshold: int = 1024,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_memory <= 0:
            raise ValueError("max_memory must be positive")
        self.max_memory = max_memory
        self.default_ttl_ms = default_ttl_ms
        self.cleanup_interval = cleanup_interval
        self.compression = compression
        self.compression_threshold = compression_threshold
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[str, CacheEntry] = {}
        self._memory = 0
        self._counters = dict.fromkeys(
            ("hits", "misses", "sets", "deletes", "evictions", "rejected"), 0
        )
        self._stop = threading.Event()
        self._sweeper: Optional[threading.Thread] = None

    # Lifecycle -----------------------------------------------------------

    def start(self) -> None:
        """Start the background sweep thread (idempotent)."""
        if self._sweeper is not None and self._sweeper.is_alive():
            return
        self._stop.clear()
        self._sweeper = threading.Thread(
            target=self._sweep_loop, name="dsfrdocs-cache-sweep", daemon=True
        )
        self._sweeper.start()

    def close(self) -> None:
        self._stop.set()
        if self._sweeper is not None:
            self._sweeper.join(timeout=max(self.cleanup_interval, 1.0))
            self._sweeper = None

    def __enter__(self) -> "CacheStore":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _sweep_loop(self) -> None:
        while not self._stop.wait(self.cleanup_interval):
            purged = self.cleanup()
            if purged:
                LOGGER.debug("Cache sweep purged %d expired entries", purged)

    # Serialisation -------------------------------------------------------

    def _encode(self, value: Any) -> tuple[bytes, bool]:
        data = pickle.dumps(value, protocol=pickle.HIGHEST_PROTOCOL)
        if self.compression and len(data) > self.compression_threshold:
            return gzip.compress(data), True
        return data, False

    @staticmethod
    def _decode(payload: bytes, compressed: bool) -> Any:
        if compressed:
            payload = gzip.decompress(payload)
        return pickle.loads(payload)

    # Internal helpers (caller holds the lock) ----------------------------

    def _remove(self, key: str) -> Optional[CacheEntry]:
        entry = self._entries.pop(key, None)
        if entry is not None:
            self._memory -= entry.size_bytes
        return entry

    def _purge_expired(self, now: float) -> int:
        expired = [key for key, entry in self._entries.items() if entry.expires_at <= now]
        for key in expired:
            self._remove(key)
        self._counters["evictions"] += len(expired)
        return len(expired)

    def _evict_for(self, size: int) -> None:
        while self._entries and self._memory + size > self.max_memory:
            victim = min(
                self._entries.values(), key=lambda entry: (entry.expires_at, entry.created_at)
            )
            self._remove(victim.key)
            self._counters["evictions"] += 1
            LOGGER.debug("Evicted cache entry %s to free memory", victim.key)

    # Public API ----------------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and entry.expires_at <= now:
                self._remove(key)
                self._counters["evictions"] += 1
                entry = None
            if entry is None:
                self._counters["misses"] += 1
                return default
            payload, compressed = entry.payload, entry.compressed

        try:
            value = self._decode(payload, compressed)
        except (pickle.UnpicklingError, OSError, EOFError, ValueError) as exc:
            LOGGER.warning("Dropping unreadable cache entry %s: %s", key, exc)
            with self._lock:
                if self._entries.get(key) is entry:
                    self._remove(key)
                self._counters["misses"] += 1
            return default

        with self._lock:
            self._counters["hits"] += 1
        return value

    def set(self, key: str, value: Any, ttl_ms: int | None = None) -> bool:
        """Store ``value``; returns False when it cannot be cached."""
        try:
            payload, compressed = self._encode(value)
        except (pickle.PicklingError, TypeError, AttributeError, RecursionError) as exc:
            LOGGER.error("Cannot cache value for %s: %s", key, exc)
            return False

        size = len(payload) + len(key.encode("utf-8"))
        if size > self.max_memory:
            with self._lock:
                self._counters["rejected"] += 1
            LOGGER.warning(
                "Cache entry %s (%d bytes) exceeds the %d byte budget", key, size, self.max_memory
            )
            return False

        ttl = self.default_ttl_ms if ttl_ms is None else ttl_ms
        now = self._clock()
        entry = CacheEntry(
            key=key,
            payload=payload,
            compressed=compressed,
            size_bytes=size,
            expires_at=now + ttl / 1000.0,
            created_at=now,
        )
        with self._lock:
            self._remove(key)
            self._purge_expired(now)
            self._evict_for(size)
            self._entries[key] = entry
            self._memory += size
            self._counters["sets"] += 1
        return True

    def has(self, key: str) -> bool:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and entry.expires_at > now

    def delete(self, key: str) -> bool:
        with self._lock:
            if self._remove(key) is None:
                return False
            self._counters["deletes"] += 1
            return True

    def clear(self, pattern: str | None = None) -> int:
        """Remove every entry, or only keys matching the glob ``pattern``."""
        with self._lock:
            if pattern is None:
                removed = len(self._entries)
                self._entries.clear()
                self._memory = 0
                return removed
            keys = [key for key in self._entries if fnmatch.fnmatchcase(key, pattern)]
            for key in keys:
                self._remove(key)
            return len(keys)

    def cleanup(self) -> int:
        """Purge expired entries now; returns how many were removed."""
        now = self._clock()
        with self._lock:
            return self._purge_expired(now)

    def stats(self) -> Dict[str, Any]:
        now = self._clock()
        with self._lock:
            self._purge_expired(now)
            counters = dict(self._counters)
            lookups = counters["hits"] + counters["misses"]
            counters.update(
                entries=len(self._entries),
                memoryUsage=self._memory,
                maxMemory=self.max_memory,
                hitRate=counters["hits"] / lookups if lookups else 0.0,
            )
        return counters
