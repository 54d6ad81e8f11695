# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Yakov Shkolnikov and contributors
"""Domain value objects (immutable data structures).

Value objects have no identity: two instances with the same values are
considered equal. InputBundle equality ignores insertion order.
"""

import hashlib
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

from rendercache.domain.errors import MissingInputError


class InputBundle(Mapping[str, Any]):
    """Immutable mapping of named inputs passed to a render invocation.

    The source mapping is copied on construction, so later changes to the
    caller's dict are not visible through the bundle.

    Example:
        >>> bundle = InputBundle({"name": "Macron"})
        >>> bundle.with_defaults(title="President")["title"]
        'President'
        >>> InputBundle(a=1, b=2) == InputBundle(b=2, a=1)
        True
    """

    __slots__ = ("_data",)

    def __init__(self, mapping: Mapping[str, Any] | None = None, /, **values: Any) -> None:
        data: dict[str, Any] = dict(mapping) if mapping is not None else {}
        data.update(values)
        for key in data:
            if not isinstance(key, str):
                raise TypeError(f"input names must be str, got {type(key).__name__}")
        self._data = data

    @classmethod
    def coerce(cls, value: "Mapping[str, Any] | None") -> "InputBundle":
        """Return value as an InputBundle, copying plain mappings."""
        if isinstance(value, InputBundle):
            return value
        return cls(value)

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"InputBundle({self._data!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, InputBundle):
            return self._data == other._data
        if isinstance(other, Mapping):
            return self._data == dict(other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def require(self, key: str) -> Any:
        """Return the value for key, raising MissingInputError if absent."""
        try:
            return self._data[key]
        except KeyError:
            raise MissingInputError(key) from None

    def with_defaults(self, defaults: Mapping[str, Any] | None = None, /, **more: Any) -> "InputBundle":
        """New bundle where absent inputs are filled from defaults."""
        merged: dict[str, Any] = dict(defaults) if defaults is not None else {}
        merged.update(more)
        merged.update(self._data)
        return InputBundle(merged)

    def merge(self, other: Mapping[str, Any]) -> "InputBundle":
        """New bundle with other's values taking precedence."""
        merged = dict(self._data)
        merged.update(other)
        return InputBundle(merged)

    def to_dict(self) -> dict[str, Any]:
        """Shallow copy of the inputs as a plain dict."""
        return dict(self._data)


@dataclass(frozen=True)
class CacheKey:
    """Canonical, comparable key derived from an InputBundle.

    Attributes:
        canonical: Nested tuple structure built from a canonical ordering of
            the bundle's entries. Equality and hashing use this field only.
        digest: SHA-256 hex digest of the canonical form. Stable across
            processes; used in logs and by the admin API to address entries.
    """

    canonical: tuple[Any, ...]
    digest: str = field(compare=False)

    @classmethod
    def from_canonical(cls, canonical: tuple[Any, ...]) -> "CacheKey":
        """Build a key, computing the digest from the canonical form."""
        digest = hashlib.sha256(repr(canonical).encode("utf-8")).hexdigest()
        return cls(canonical=canonical, digest=digest)

    @property
    def short(self) -> str:
        return self.digest[:12]

    def __str__(self) -> str:
        return self.digest


EMPTY_KEY = CacheKey.from_canonical(("map", ()))


@dataclass(frozen=True)
class CacheStats:
    """Point-in-time snapshot of a memoization cache's counters."""

    name: str
    size: int
    capacity: int
    hits: int = 0
    misses: int = 0
    evictions: int = 0
    computes: int = 0
    failures: int = 0

    @property
    def hit_rate(self) -> float:
        lookups = self.hits + self.misses
        return self.hits / lookups if lookups else 0.0
