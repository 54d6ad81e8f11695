# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Yakov Shkolnikov and contributors
"""Domain entities for the memoization cache."""

import time
from dataclasses import dataclass, field
from typing import Any

from rendercache.domain.value_objects import CacheKey


@dataclass(frozen=True)
class CacheEntry:
    """Previously computed output stored under a cache key.

    Entries are never patched. A re-render of the same key replaces the
    entry. Recency is tracked by the cache's ordering structure, not here.

    Attributes:
        key: Cache key the output was computed for
        output: Rendered output
        created_at: Monotonic timestamp of insertion
    """

    key: CacheKey
    output: Any
    created_at: float = field(default_factory=time.monotonic)

    def age(self) -> float:
        """Seconds since the entry was stored."""
        return time.monotonic() - self.created_at
