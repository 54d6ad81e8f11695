# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Yakov Shkolnikov and contributors
"""Memoizing entry point in front of a component.

``memoized_call(bundle)`` derives the cache key for the bundle and
delegates to ``MemoizationCache.get_or_compute`` with a closure that
renders the component directly. Key derivation errors and render
failures propagate unchanged.
"""

import logging
from collections.abc import Mapping
from typing import Any

from rendercache.application.memo_cache import DEFAULT_CAPACITY, MemoizationCache
from rendercache.domain.services import KeyDeriver, default_key_deriver
from rendercache.domain.value_objects import CacheKey, InputBundle
from rendercache.ports.inbound import NestedContentProducer, RenderPort

logger = logging.getLogger(__name__)


class MemoizedInvoker:
    """Pairs a component with a memoization cache and a key deriver.

    The invoker itself satisfies the render protocol: ``render()`` is the
    direct (uncached) path, ``memoized_call()`` the cached one. Nested
    content is only accepted on the direct path, since a producer cannot
    be part of a cache key.

    Example:
        >>> greeter = MemoizedInvoker(FormalGreeter, MemoizationCache(capacity=64))
        >>> greeter.memoized_call({"name": "Macron"})
        '<h1>Hi, President Macron.</h1>'
    """

    def __init__(
        self,
        component: RenderPort,
        cache: MemoizationCache,
        key_deriver: KeyDeriver | None = None,
    ) -> None:
        self.component = component
        self.cache = cache
        self.key_deriver = key_deriver or default_key_deriver

    @classmethod
    def for_component(
        cls,
        component: Any,
        cache: MemoizationCache | None = None,
        capacity: int | None = None,
        key_deriver: KeyDeriver | None = None,
    ) -> "MemoizedInvoker":
        """Build an invoker whose keys are namespaced by the component's name.

        A new cache is created when none is given. Passing both ``cache``
        and ``capacity`` resizes the given cache.
        """
        from rendercache.application.component import as_component, component_name

        target = as_component(component)
        name = component_name(component)
        if cache is None:
            cache = MemoizationCache(
                capacity=DEFAULT_CAPACITY if capacity is None else capacity,
                name=name,
            )
        elif capacity is not None:
            cache.resize(capacity)
        deriver = (key_deriver or default_key_deriver).with_namespace(name)
        return cls(target, cache, deriver)

    def __repr__(self) -> str:
        return f"MemoizedInvoker(component={self.component!r}, cache={self.cache!r})"

    def key_for(self, bundle: Mapping[str, Any] | None) -> CacheKey:
        """Cache key this invoker uses for a bundle."""
        return self.key_deriver.derive(bundle)

    def memoized_call(self, bundle: Mapping[str, Any] | None = None) -> Any:
        """Return cached output for an equivalent bundle, rendering on a miss.

        Raises:
            UnkeyableInputError: If the bundle cannot be keyed.
        """
        frozen = InputBundle.coerce(bundle)
        key = self.key_deriver.derive(frozen)
        return self.cache.get_or_compute(key, lambda: self.component.render(frozen))

    __call__ = memoized_call

    def render(
        self,
        bundle: Mapping[str, Any] | None = None,
        content: NestedContentProducer | None = None,
    ) -> Any:
        """Direct path: render without consulting the cache."""
        return self.component.render(bundle, content)

    def invalidate(self, bundle: Mapping[str, Any] | None = None) -> bool:
        """Evict the cached output for a bundle, if any."""
        return self.cache.evict(self.key_for(bundle))


def memoized(
    fn: Any = None,
    *,
    cache: MemoizationCache | None = None,
    capacity: int | None = None,
    key_deriver: KeyDeriver | None = None,
) -> Any:
    """Decorator attaching a memoizing entry point to a component.

    Accepts a Component subclass, a FunctionComponent, or a plain function
    (which is wrapped as a FunctionComponent).

    Example:
        >>> @memoized(capacity=128)
        ... def profile_card(bundle):
        ...     return fetch_and_render(bundle["user_id"])
        >>> profile_card.memoized_call({"user_id": 7})
    """

    def wrap(target: Any) -> MemoizedInvoker:
        return MemoizedInvoker.for_component(
            target, cache=cache, capacity=capacity, key_deriver=key_deriver
        )

    if fn is not None:
        return wrap(fn)
    return wrap


def shared_cache_invokers(
    components: Mapping[str, Any],
    cache: MemoizationCache,
    key_deriver: KeyDeriver | None = None,
) -> dict[str, MemoizedInvoker]:
    """Invokers for several components sharing one cache.

    Keys are namespaced per component, so equal bundles rendered by
    different components never collide.
    """
    invokers = {
        name: MemoizedInvoker.for_component(comp, cache=cache, key_deriver=key_deriver)
        for name, comp in components.items()
    }
    logger.debug(f"Attached {len(invokers)} components to shared cache {cache.name}")
    return invokers
