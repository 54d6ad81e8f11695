# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Yakov Shkolnikov and contributors
"""rendercache: Composable render components with a bounded memoization cache.

Components turn an immutable input bundle into rendered output (usually
markup). They nest through explicit content producers and can be invoked
through a memoizing entry point backed by a thread-safe LRU cache.

Architecture: Hexagonal (Ports & Adapters)
- Domain core: Input bundles, cache keys, key derivation, errors (stdlib only)
- Ports: Protocol-based interfaces for rendering and cache management
- Application: Components, composition, memoization cache, invoker
- Adapters: Infrastructure bindings (pydantic-settings, structlog, FastAPI, Prometheus)
"""

from rendercache.application.component import (
    EMPTY_CONTENT,
    Component,
    FunctionComponent,
    component,
    nest,
)
from rendercache.application.memo_cache import MemoizationCache
from rendercache.application.memoized_invoker import MemoizedInvoker, memoized
from rendercache.application.registry import ComponentRegistry
from rendercache.domain.errors import (
    CapacityViolationError,
    MissingInputError,
    RenderCacheError,
    UnkeyableInputError,
)
from rendercache.domain.services import KeyDeriver, derive_key
from rendercache.domain.value_objects import CacheKey, InputBundle

__version__ = "1.0.0"

__all__ = [
    "EMPTY_CONTENT",
    "CacheKey",
    "CapacityViolationError",
    "Component",
    "ComponentRegistry",
    "FunctionComponent",
    "InputBundle",
    "KeyDeriver",
    "MemoizationCache",
    "MemoizedInvoker",
    "MissingInputError",
    "RenderCacheError",
    "UnkeyableInputError",
    "__version__",
    "component",
    "derive_key",
    "memoized",
    "nest",
]
