# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Yakov Shkolnikov and contributors
"""Pytest configuration and shared fixtures.

This module defines:
- Test markers (unit, integration)
- Shared components with observable render counters
"""

import threading
from collections.abc import Mapping
from typing import Any

import pytest

from rendercache.application.component import Component
from rendercache.application.memo_cache import MemoizationCache
from rendercache.domain.value_objects import CacheKey


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "unit: Fast unit tests (no network, no server)",
    )
    config.addinivalue_line(
        "markers",
        "integration: Tests exercising the HTTP app end to end",
    )


class RenderCounter:
    """Thread-safe count of render invocations."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.count = 0
        self.seen: list[dict[str, Any]] = []

    def record(self, bundle: Mapping[str, Any]) -> None:
        with self._lock:
            self.count += 1
            self.seen.append(dict(bundle))


@pytest.fixture
def counter() -> RenderCounter:
    return RenderCounter()


@pytest.fixture
def counting_greeter(counter: RenderCounter) -> type[Component]:
    """FormalGreeter variant that records every render."""

    class CountingGreeter(Component):
        defaults = {"title": "President"}

        def build(self) -> str:
            counter.record(self.bundle)
            return f"<h1>Hi, {self.param('title')} {self.param('name')}.</h1>"

    return CountingGreeter


@pytest.fixture
def cache() -> MemoizationCache:
    return MemoizationCache(capacity=3, name="test")


def _key(label: str) -> CacheKey:
    return CacheKey.from_canonical(("str", label))


@pytest.fixture
def make_key():
    """Factory for cache keys in tests that exercise the cache directly."""
    return _key
