# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Yakov Shkolnikov and contributors
"""Registry of named components for host adapters.

Host adapters (HTTP, CLI) look components up by name and invoke them
either directly or through their memoizing entry point, depending on
how they were registered.
"""

import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from rendercache.application.component import as_component
from rendercache.application.memo_cache import MemoizationCache
from rendercache.application.memoized_invoker import MemoizedInvoker
from rendercache.domain.errors import ComponentNotFoundError, InvalidComponentError
from rendercache.domain.services import KeyDeriver
from rendercache.ports.inbound import CacheObserver, RenderPort

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Registration:
    """A registered component and its optional memoizing invoker."""

    name: str
    component: RenderPort
    invoker: MemoizedInvoker | None = None

    @property
    def memoized(self) -> bool:
        return self.invoker is not None

    def invoke(self, bundle: Mapping[str, Any] | None = None) -> Any:
        if self.invoker is not None:
            return self.invoker.memoized_call(bundle)
        return self.component.render(bundle)


class ComponentRegistry:
    """Thread-safe name -> component map.

    Example:
        >>> registry = ComponentRegistry(default_capacity=128)
        >>> registry.register("greeter", FormalGreeter, memoize=True)
        >>> registry.invoke("greeter", {"name": "Macron"})
        '<h1>Hi, President Macron.</h1>'
    """

    def __init__(
        self,
        default_capacity: int = 256,
        key_deriver: KeyDeriver | None = None,
        observer: CacheObserver | None = None,
    ) -> None:
        self.default_capacity = default_capacity
        self.key_deriver = key_deriver
        self.observer = observer
        self._lock = threading.Lock()
        self._registrations: dict[str, Registration] = {}

    def register(
        self,
        name: str,
        component: Any,
        memoize: bool = False,
        capacity: int | None = None,
        cache: MemoizationCache | None = None,
    ) -> Registration:
        """Register a component under a unique name.

        Args:
            name: Lookup name (URL segment for the HTTP adapter).
            component: Component class, FunctionComponent or plain function.
            memoize: Route invocations through a memoization cache.
            capacity: Capacity of the cache created for this component.
            cache: Existing cache to share instead of creating one.

        Raises:
            InvalidComponentError: If name is empty/taken or component invalid.
        """
        if not name:
            raise InvalidComponentError("component name cannot be empty")
        target = as_component(component)

        invoker = None
        if memoize or cache is not None:
            if cache is None:
                cache = MemoizationCache(
                    capacity=self.default_capacity if capacity is None else capacity,
                    name=name,
                    observer=self.observer,
                )
            invoker = MemoizedInvoker.for_component(
                component, cache=cache, key_deriver=self.key_deriver
            )

        registration = Registration(name=name, component=target, invoker=invoker)
        with self._lock:
            if name in self._registrations:
                raise InvalidComponentError(f"component {name!r} is already registered")
            self._registrations[name] = registration

        logger.info(f"Registered component {name} (memoized={registration.memoized})")
        return registration

    def unregister(self, name: str) -> None:
        with self._lock:
            if self._registrations.pop(name, None) is None:
                raise ComponentNotFoundError(f"component {name!r} is not registered")

    def get(self, name: str) -> Registration:
        with self._lock:
            registration = self._registrations.get(name)
        if registration is None:
            raise ComponentNotFoundError(f"component {name!r} is not registered")
        return registration

    def invoke(self, name: str, bundle: Mapping[str, Any] | None = None) -> Any:
        """Invoke a component by name (memoized if registered that way)."""
        return self.get(name).invoke(bundle)

    def names(self) -> list[str]:
        with self._lock:
            return sorted(self._registrations)

    def registrations(self) -> list[Registration]:
        """Snapshot of all registrations, sorted by name."""
        with self._lock:
            return [self._registrations[name] for name in sorted(self._registrations)]

    def caches(self) -> dict[str, MemoizationCache]:
        """Distinct caches by cache name (shared caches appear once)."""
        with self._lock:
            registrations = list(self._registrations.values())
        caches: dict[str, MemoizationCache] = {}
        for registration in registrations:
            if registration.invoker is not None:
                caches.setdefault(registration.invoker.cache.name, registration.invoker.cache)
        return caches

    def cache(self, cache_name: str) -> MemoizationCache:
        """Look up a cache by name.

        Raises:
            ComponentNotFoundError: If no registered component uses that cache.
        """
        cache = self.caches().get(cache_name)
        if cache is None:
            raise ComponentNotFoundError(f"no cache named {cache_name!r}")
        return cache

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._registrations

    def __len__(self) -> int:
        with self._lock:
            return len(self._registrations)
