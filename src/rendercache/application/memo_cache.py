# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Yakov Shkolnikov and contributors
"""Bounded LRU memoization cache for rendered output.

Concurrency policy:
- One global RLock guards the ordered entry map, the counters and the
  per-key lock table. It is only held for bookkeeping, never while
  rendering.
- Each missing key gets its own compute lock, so at most one render per
  key runs at a time. Callers waiting on the same key receive the stored
  result once the first render finishes. Renders for different keys run
  concurrently.
- ``clear()`` bumps a generation counter; a render that started before
  the clear returns its output to its caller but does not store it.

Architecture layer: application service.
Outputs are stored as opaque objects.
"""

import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from typing import Any, TypeVar

from rendercache.domain.entities import CacheEntry
from rendercache.domain.errors import CapacityViolationError
from rendercache.domain.value_objects import CacheKey, CacheStats
from rendercache.ports.inbound import CacheObserver

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 256

T = TypeVar("T")


def validate_capacity(capacity: Any) -> int:
    """Return capacity if it is a non-negative int.

    Raises:
        CapacityViolationError: For negative, bool or non-integer values.
    """
    if isinstance(capacity, bool) or not isinstance(capacity, int):
        raise CapacityViolationError(
            f"capacity must be a non-negative integer, got {type(capacity).__name__}"
        )
    if capacity < 0:
        raise CapacityViolationError(f"capacity must be >= 0, got {capacity}")
    return capacity


class _KeyLock:
    """Per-key compute lock with a count of threads holding a reference."""

    __slots__ = ("lock", "refs")

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.refs = 0


class MemoizationCache:
    """Thread-safe key -> output store with LRU eviction.

    Invariants:
    - At most one stored entry per key.
    - Entry count never exceeds ``capacity`` (0 disables storage).
    - A failed compute stores nothing.

    Example:
        >>> cache = MemoizationCache(capacity=2, name="greeters")
        >>> cache.get_or_compute(key, lambda: "<h1>Hi</h1>")
        '<h1>Hi</h1>'
        >>> cache.size()
        1
    """

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        name: str = "default",
        observer: CacheObserver | None = None,
    ) -> None:
        self._capacity = validate_capacity(capacity)
        self._name = name
        self._observer = observer

        self._lock = threading.RLock()
        # LRU order: first item is least recently used
        self._entries: OrderedDict[CacheKey, CacheEntry] = OrderedDict()
        self._key_locks: dict[CacheKey, _KeyLock] = {}
        self._generation = 0

        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._computes = 0
        self._failures = 0

    def __repr__(self) -> str:
        return f"MemoizationCache(name={self._name!r}, capacity={self._capacity}, size={len(self)})"

    @property
    def name(self) -> str:
        return self._name

    @property
    def capacity(self) -> int:
        with self._lock:
            return self._capacity

    @capacity.setter
    def capacity(self, value: int) -> None:
        self.resize(value)

    def size(self) -> int:
        """Current entry count."""
        with self._lock:
            return len(self._entries)

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, key: object) -> bool:
        """Membership test. Does not refresh recency."""
        with self._lock:
            return key in self._entries

    def keys(self) -> list[CacheKey]:
        """Keys from least to most recently used."""
        with self._lock:
            return list(self._entries)

    def entries(self) -> list[CacheEntry]:
        """Entries from least to most recently used."""
        with self._lock:
            return list(self._entries.values())

    def get_or_compute(self, key: CacheKey, compute_fn: Callable[[], T]) -> T:
        """Return the stored output for key, computing it on a miss.

        Args:
            key: Cache key.
            compute_fn: Zero-argument callable producing the output. Called
                at most once per call, and only if the key is absent.

        Returns:
            Stored or freshly computed output.

        Raises:
            Whatever compute_fn raises, unchanged. Nothing is stored.
        """
        with self._lock:
            entry = self._touch(key)
            if entry is not None:
                self._hits += 1
            else:
                key_lock = self._key_locks.get(key)
                if key_lock is None:
                    key_lock = self._key_locks[key] = _KeyLock()
                key_lock.refs += 1
        if entry is not None:
            self._notify_hit(key)
            return entry.output

        try:
            with key_lock.lock:
                # Another thread may have stored the key while we waited
                with self._lock:
                    entry = self._touch(key)
                    if entry is not None:
                        self._hits += 1
                    else:
                        self._misses += 1
                        generation = self._generation
                if entry is not None:
                    self._notify_hit(key)
                    return entry.output

                logger.debug(f"[RENDER CACHE MISS] cache={self._name}, key={key.short}")
                if self._observer is not None:
                    self._observer.on_miss(self._name)

                start = time.perf_counter()
                try:
                    output = compute_fn()
                except BaseException:
                    elapsed = time.perf_counter() - start
                    with self._lock:
                        self._failures += 1
                    logger.debug(
                        f"[RENDER CACHE COMPUTE FAILED] cache={self._name}, key={key.short}, "
                        f"elapsed={elapsed:.4f}s"
                    )
                    if self._observer is not None:
                        self._observer.on_compute(self._name, elapsed, True)
                    raise
                elapsed = time.perf_counter() - start

                with self._lock:
                    self._computes += 1
                    if generation == self._generation:
                        evicted = self._store(key, output)
                    else:
                        evicted = 0
                        logger.debug(
                            f"[RENDER CACHE STALE] cache={self._name}, key={key.short}, "
                            "cleared during compute; result not stored"
                        )
                    size = len(self._entries)

                if self._observer is not None:
                    self._observer.on_compute(self._name, elapsed, False)
                    if evicted:
                        self._observer.on_evict(self._name, evicted)
                    self._observer.on_size(self._name, size)
                return output
        finally:
            with self._lock:
                key_lock.refs -= 1
                if key_lock.refs == 0 and self._key_locks.get(key) is key_lock:
                    del self._key_locks[key]

    def get(self, key: CacheKey) -> CacheEntry | None:
        """Look up an entry, refreshing its recency. Returns None on a miss."""
        with self._lock:
            entry = self._touch(key)
            if entry is not None:
                self._hits += 1
            else:
                self._misses += 1
        if entry is not None:
            self._notify_hit(key)
        elif self._observer is not None:
            self._observer.on_miss(self._name)
        return entry

    def put(self, key: CacheKey, output: Any) -> None:
        """Store output under key, replacing any existing entry."""
        with self._lock:
            evicted = self._store(key, output)
            size = len(self._entries)
        if self._observer is not None:
            if evicted:
                self._observer.on_evict(self._name, evicted)
            self._observer.on_size(self._name, size)

    def evict(self, key: CacheKey) -> bool:
        """Remove a single entry. No-op if the key is absent."""
        with self._lock:
            removed = self._entries.pop(key, None) is not None
            size = len(self._entries)
        if removed:
            logger.debug(f"[RENDER CACHE EVICT] cache={self._name}, key={key.short}")
            if self._observer is not None:
                self._observer.on_size(self._name, size)
        return removed

    def evict_digest(self, digest: str) -> bool:
        """Remove the entry whose key has the given digest."""
        with self._lock:
            match = next((key for key in self._entries if key.digest == digest), None)
        if match is None:
            return False
        # evict() notifies the observer, so it must run outside the lock
        return self.evict(match)

    def clear(self) -> int:
        """Remove all entries. Renders in flight will not store their result."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            self._generation += 1
        if count:
            logger.info(f"[RENDER CACHE CLEAR] cache={self._name}, cleared {count} entries")
        if self._observer is not None:
            self._observer.on_size(self._name, 0)
        return count

    def resize(self, new_capacity: int) -> int:
        """Change the capacity bound, evicting LRU entries above it.

        Returns:
            Number of entries evicted.

        Raises:
            CapacityViolationError: If new_capacity is invalid; state is unchanged.
        """
        new_capacity = validate_capacity(new_capacity)
        with self._lock:
            old_capacity = self._capacity
            self._capacity = new_capacity
            evicted = self._evict_over_capacity()
            size = len(self._entries)
        logger.info(
            f"[RENDER CACHE RESIZE] cache={self._name}, capacity {old_capacity} -> "
            f"{new_capacity}, evicted={evicted}"
        )
        if self._observer is not None:
            if evicted:
                self._observer.on_evict(self._name, evicted)
            self._observer.on_size(self._name, size)
        return evicted

    def stats(self) -> CacheStats:
        """Snapshot of size, capacity and counters."""
        with self._lock:
            return CacheStats(
                name=self._name,
                size=len(self._entries),
                capacity=self._capacity,
                hits=self._hits,
                misses=self._misses,
                evictions=self._evictions,
                computes=self._computes,
                failures=self._failures,
            )

    def _touch(self, key: CacheKey) -> CacheEntry | None:
        """Return entry and mark it most recently used. Caller holds the lock."""
        entry = self._entries.get(key)
        if entry is not None:
            self._entries.move_to_end(key)
        return entry

    def _store(self, key: CacheKey, output: Any) -> int:
        """Insert at MRU position and enforce capacity. Caller holds the lock."""
        if self._capacity == 0:
            return 0
        self._entries[key] = CacheEntry(key=key, output=output)
        self._entries.move_to_end(key)
        logger.debug(
            f"[RENDER CACHE STORE] cache={self._name}, key={key.short}, "
            f"entries={len(self._entries)}"
        )
        return self._evict_over_capacity()

    def _evict_over_capacity(self) -> int:
        """Drop least recently used entries above capacity. Caller holds the lock."""
        evicted = 0
        while len(self._entries) > self._capacity:
            lru_key, _ = self._entries.popitem(last=False)
            evicted += 1
            logger.debug(f"[RENDER CACHE EVICT] cache={self._name}, key={lru_key.short}, reason=lru")
        self._evictions += evicted
        return evicted

    def _notify_hit(self, key: CacheKey) -> None:
        logger.debug(f"[RENDER CACHE HIT] cache={self._name}, key={key.short}")
        if self._observer is not None:
            self._observer.on_hit(self._name)
