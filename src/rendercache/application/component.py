# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Yakov Shkolnikov and contributors
"""Render protocol variants and the composition mechanism.

Two component variants satisfy the same contract,
``render(bundle, content=None) -> output``:

- FunctionComponent wraps a plain function (stateless).
- Component subclasses build output from an instance that reads its
  inputs through ``param()`` and auxiliary methods. A fresh instance is
  created per render, so instances are never shared between threads.

Nesting is explicit: a parent receives a zero-argument ``content``
producer and decides whether (and how often) to call it. ``nest()`` builds
such a producer around a child component without rendering it.
"""

import functools
import inspect
from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, ClassVar

from rendercache.domain.errors import InvalidComponentError
from rendercache.domain.value_objects import InputBundle
from rendercache.ports.inbound import NestedContentProducer, RenderPort

if TYPE_CHECKING:
    from rendercache.application.memo_cache import MemoizationCache
    from rendercache.application.memoized_invoker import MemoizedInvoker
    from rendercache.domain.services import KeyDeriver


def _empty_content() -> str:
    return ""


EMPTY_CONTENT: NestedContentProducer = _empty_content


class Component:
    """Stateful-instance component variant.

    Subclasses override ``build()`` and may declare ``defaults`` for
    optional inputs. Defaults are resolved explicitly when the instance is
    created; a missing input without a default raises MissingInputError
    when read with ``param()``.

    Example:
        >>> class FormalGreeter(Component):
        ...     defaults = {"title": "President"}
        ...
        ...     def build(self) -> str:
        ...         return f"<h1>Hi, {self.param('title')} {self.param('name')}.</h1>"
        >>> FormalGreeter.render({"name": "Macron"})
        '<h1>Hi, President Macron.</h1>'
    """

    defaults: ClassVar[Mapping[str, Any]] = MappingProxyType({})

    def __init__(
        self,
        bundle: Mapping[str, Any] | None = None,
        content: NestedContentProducer | None = None,
    ) -> None:
        self.bundle = InputBundle.coerce(bundle).with_defaults(self.defaults)
        self.content = content if content is not None else EMPTY_CONTENT

    @classmethod
    def render(
        cls,
        bundle: Mapping[str, Any] | None = None,
        content: NestedContentProducer | None = None,
    ) -> Any:
        """Render a fresh instance for this bundle."""
        return cls(bundle, content).build()

    @classmethod
    def memoized(
        cls,
        cache: "MemoizationCache | None" = None,
        capacity: int | None = None,
        key_deriver: "KeyDeriver | None" = None,
    ) -> "MemoizedInvoker":
        """Attach a memoizing entry point to this component class."""
        from rendercache.application.memoized_invoker import MemoizedInvoker

        return MemoizedInvoker.for_component(cls, cache=cache, capacity=capacity, key_deriver=key_deriver)

    def build(self) -> Any:
        """Produce output for ``self.bundle``. Override in subclasses."""
        raise NotImplementedError(f"{type(self).__qualname__} must implement build()")

    def param(self, name: str) -> Any:
        """Read an input, falling back to ``defaults``."""
        return self.bundle.require(name)

    def has_param(self, name: str) -> bool:
        return name in self.bundle

    def nested(self) -> Any:
        """Evaluate the nested content producer once."""
        return self.content()


class FunctionComponent:
    """Pure-function component variant.

    The wrapped function receives the bundle (with defaults applied) and,
    if it accepts a second positional argument, the content producer.
    """

    def __init__(
        self,
        fn: Callable[..., Any],
        name: str | None = None,
        defaults: Mapping[str, Any] | None = None,
    ) -> None:
        if not callable(fn):
            raise InvalidComponentError(f"{fn!r} is not callable")
        merged_defaults: dict[str, Any] = {}
        if isinstance(fn, FunctionComponent):
            # Re-wrapping: inherit the inner defaults, wrap the plain function
            merged_defaults.update(fn.defaults)
            name = name or fn.name
            fn = fn.fn
        merged_defaults.update(defaults or {})

        # Copy metadata first so it cannot overwrite the attributes below
        functools.update_wrapper(self, fn, updated=())
        self.fn = fn
        self.name = name or f"{fn.__module__}.{fn.__qualname__}"
        self.defaults = MappingProxyType(merged_defaults)
        self._takes_content = _accepts_two_positional(fn)

    def __repr__(self) -> str:
        return f"FunctionComponent({self.name})"

    def render(
        self,
        bundle: Mapping[str, Any] | None = None,
        content: NestedContentProducer | None = None,
    ) -> Any:
        bundle = InputBundle.coerce(bundle).with_defaults(self.defaults)
        if self._takes_content:
            return self.fn(bundle, content if content is not None else EMPTY_CONTENT)
        return self.fn(bundle)

    __call__ = render

    def memoized(
        self,
        cache: "MemoizationCache | None" = None,
        capacity: int | None = None,
        key_deriver: "KeyDeriver | None" = None,
    ) -> "MemoizedInvoker":
        """Attach a memoizing entry point to this component."""
        from rendercache.application.memoized_invoker import MemoizedInvoker

        return MemoizedInvoker.for_component(self, cache=cache, capacity=capacity, key_deriver=key_deriver)


def _accepts_two_positional(fn: Callable[..., Any]) -> bool:
    try:
        sig = inspect.signature(fn)
    except (TypeError, ValueError):
        return True
    positional = 0
    for param in sig.parameters.values():
        if param.kind == param.VAR_POSITIONAL:
            return True
        if param.kind in (param.POSITIONAL_ONLY, param.POSITIONAL_OR_KEYWORD):
            positional += 1
    return positional >= 2


def component(
    fn: Callable[..., Any] | None = None,
    *,
    name: str | None = None,
    defaults: Mapping[str, Any] | None = None,
) -> Any:
    """Decorator turning a function into a FunctionComponent.

    Usable bare (``@component``) or with options
    (``@component(defaults={"title": "President"})``).
    """

    def wrap(func: Callable[..., Any]) -> FunctionComponent:
        return FunctionComponent(func, name=name, defaults=defaults)

    if fn is not None:
        return wrap(fn)
    return wrap


def as_component(obj: Any) -> RenderPort:
    """Return obj as something with a ``render`` method.

    Raises:
        InvalidComponentError: If obj is neither a component nor callable.
    """
    if callable(getattr(obj, "render", None)):
        return obj
    if callable(obj):
        return FunctionComponent(obj)
    raise InvalidComponentError(f"{obj!r} does not implement render(bundle, content)")


def component_name(obj: Any) -> str:
    """Qualified display name for a component."""
    name = getattr(obj, "name", None)
    if isinstance(name, str) and name:
        return name
    # Classes and plain functions carry their own qualname; instances use their type's
    target = obj if hasattr(obj, "__qualname__") else type(obj)
    return f"{target.__module__}.{target.__qualname__}"


def nest(
    child: Any,
    bundle: Mapping[str, Any] | None = None,
    content: NestedContentProducer | None = None,
) -> NestedContentProducer:
    """Build a deferred producer that renders ``child`` when called.

    Nothing is rendered until the producer is invoked; each invocation
    renders again, synchronously.

    Example:
        >>> page = Layout.render({"title": "Home"}, nest(Greeter, {"name": "Ada"}))
    """
    target = as_component(child)
    frozen = InputBundle.coerce(bundle)

    def produce() -> Any:
        return target.render(frozen, content)

    return produce
