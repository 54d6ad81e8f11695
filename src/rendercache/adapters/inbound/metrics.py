# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Yakov Shkolnikov and contributors
"""Prometheus metrics for render caches.

Defines:
- Cache lookups by result (hit/miss)
- LRU evictions
- Entries currently stored
- Render duration on the memoized path
"""

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram

# Create registry (separate from default to avoid conflicts)
registry = CollectorRegistry()

cache_lookup_total = Counter(
    "rendercache_cache_lookup_total",
    "Total number of memoized lookups",
    ["cache", "result"],  # result: "hit" or "miss"
    registry=registry,
)

cache_evictions_total = Counter(
    "rendercache_evictions_total",
    "Entries evicted to respect cache capacity",
    ["cache"],
    registry=registry,
)

cache_entries = Gauge(
    "rendercache_cache_entries",
    "Entries currently stored",
    ["cache"],
    registry=registry,
)

render_duration_seconds = Histogram(
    "rendercache_render_duration_seconds",
    "Render time on cache misses",
    ["cache", "outcome"],  # outcome: "ok" or "error"
    registry=registry,
)


class PrometheusCacheObserver:
    """CacheObserver that records cache events as Prometheus metrics."""

    def on_hit(self, cache_name: str) -> None:
        cache_lookup_total.labels(cache=cache_name, result="hit").inc()

    def on_miss(self, cache_name: str) -> None:
        cache_lookup_total.labels(cache=cache_name, result="miss").inc()

    def on_evict(self, cache_name: str, count: int) -> None:
        cache_evictions_total.labels(cache=cache_name).inc(count)

    def on_size(self, cache_name: str, size: int) -> None:
        cache_entries.labels(cache=cache_name).set(size)

    def on_compute(self, cache_name: str, seconds: float, failed: bool) -> None:
        outcome = "error" if failed else "ok"
        render_duration_seconds.labels(cache=cache_name, outcome=outcome).observe(seconds)
