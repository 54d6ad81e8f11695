# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Yakov Shkolnikov and contributors
"""Domain exception hierarchy.

All domain-level errors inherit from RenderCacheError.
This allows clean exception handling at adapter boundaries.

Failures raised by a component's own render logic are NOT wrapped in
this hierarchy; they propagate unchanged through both the direct and the
memoized path.
"""


class RenderCacheError(Exception):
    """Base exception for all domain errors."""


class UnkeyableInputError(RenderCacheError, TypeError):
    """Input bundle holds a value that cannot be turned into a cache key."""

    def __init__(self, message: str, path: str = "") -> None:
        super().__init__(message)
        self.path = path


class CapacityViolationError(RenderCacheError, ValueError):
    """Cache capacity is negative or not an integer."""


class MissingInputError(RenderCacheError, KeyError):
    """Required input is absent from the bundle and has no default."""

    def __init__(self, key: str) -> None:
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"missing required input: {self.key!r}"


class ComponentNotFoundError(RenderCacheError):
    """Requested component is not registered."""


class InvalidComponentError(RenderCacheError):
    """Object does not satisfy the render protocol (or name already taken)."""


class RenderError(RenderCacheError):
    """Convenience error for component authors.

    The cache and composition layers treat it like any other exception
    raised by render logic: propagated unchanged, never cached.
    """
