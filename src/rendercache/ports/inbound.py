# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Yakov Shkolnikov and contributors
"""Inbound port interfaces (driving adapters).

These ports define the contracts for callers (host adapters, CLI, tests)
to invoke components and manage caches.

All interfaces use Protocol (PEP 544) for structural typing, allowing
implicit implementation without inheritance.
"""

from collections.abc import Callable, Mapping
from typing import Any, Protocol, runtime_checkable

from rendercache.domain.value_objects import CacheKey, CacheStats

NestedContentProducer = Callable[[], Any]


@runtime_checkable
class RenderPort(Protocol):
    """Contract every component variant satisfies.

    Rendering is synchronous. Output is a deterministic function of the
    bundle (canonically text). Exceptions raised by render logic propagate
    to the caller unchanged.
    """

    def render(
        self,
        bundle: Mapping[str, Any] | None = None,
        content: NestedContentProducer | None = None,
    ) -> Any:
        """Render output for a bundle.

        Args:
            bundle: Named inputs (plain mappings are coerced to InputBundle).
            content: Optional zero-argument producer of nested output. It is
                only evaluated if the component calls it.

        Returns:
            Rendered output.
        """
        ...


@runtime_checkable
class MemoizedRenderPort(RenderPort, Protocol):
    """Render port with a memoizing entry point."""

    def memoized_call(self, bundle: Mapping[str, Any] | None = None) -> Any:
        """Return cached output for an equivalent bundle, rendering on a miss.

        Raises:
            UnkeyableInputError: If the bundle cannot be keyed.
        """
        ...


class CacheManagementPort(Protocol):
    """Operator/test interface for a memoization cache.

    Thread safety: Implementations must serialize these operations with
    concurrent lookups.
    """

    @property
    def name(self) -> str: ...

    @property
    def capacity(self) -> int: ...

    def size(self) -> int:
        """Current entry count."""
        ...

    def resize(self, new_capacity: int) -> int:
        """Change the capacity bound, evicting LRU entries if needed.

        Returns:
            Number of entries evicted.

        Raises:
            CapacityViolationError: If new_capacity is invalid.
        """
        ...

    def evict(self, key: CacheKey) -> bool:
        """Remove one entry. Returns False if the key was absent."""
        ...

    def evict_digest(self, digest: str) -> bool:
        """Remove the entry whose key has this digest."""
        ...

    def clear(self) -> int:
        """Remove all entries. Returns number removed."""
        ...

    def stats(self) -> CacheStats:
        """Snapshot of counters."""
        ...


class CacheObserver(Protocol):
    """Receives cache events (used by the Prometheus adapter)."""

    def on_hit(self, cache_name: str) -> None: ...

    def on_miss(self, cache_name: str) -> None: ...

    def on_evict(self, cache_name: str, count: int) -> None: ...

    def on_size(self, cache_name: str, size: int) -> None: ...

    def on_compute(self, cache_name: str, seconds: float, failed: bool) -> None: ...
