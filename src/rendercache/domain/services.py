# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Yakov Shkolnikov and contributors
"""Domain services: cache key derivation.

KeyDeriver turns an InputBundle into a CacheKey. The canonical form is a
nested tuple of type-tagged primitives, so it is independent of entry
insertion order, of the process (no use of ``hash()``), and of Python's
numeric equality quirks (``1 == 1.0 == True`` would otherwise collide).

Values that carry no value semantics (callables, components, content
producers, plain objects compared by identity) are rejected with
UnkeyableInputError rather than silently excluded. Cyclic structures are
rejected as well.
"""

import dataclasses
import datetime as dt
import math
import uuid
from collections.abc import Mapping
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any

from rendercache.domain.errors import UnkeyableInputError
from rendercache.domain.value_objects import EMPTY_KEY, CacheKey, InputBundle

DEFAULT_MAX_DEPTH = 32

# Exact types keyed by their built-in form alone; other instances of these
# bases are tagged with their class
_PLAIN_TYPES = frozenset(
    {
        bool,
        int,
        float,
        str,
        bytes,
        bytearray,
        memoryview,
        Decimal,
        dt.datetime,
        dt.date,
        dt.time,
        uuid.UUID,
        dict,
        list,
        tuple,
        set,
        frozenset,
        InputBundle,
        MappingProxyType,
    }
)


def _qualname(tp: type) -> str:
    return f"{tp.__module__}.{tp.__qualname__}"


class KeyDeriver:
    """Derives stable cache keys from input bundles.

    Args:
        max_depth: Maximum nesting depth of bundle values. Deeper values
            raise UnkeyableInputError.
        namespace: Folded into every non-empty key so that components
            sharing one cache never collide. Empty string means no namespace.

    Example:
        >>> deriver = KeyDeriver()
        >>> deriver.derive({"a": 1, "b": 2}) == deriver.derive({"b": 2, "a": 1})
        True
        >>> deriver.derive({"n": 1}) == deriver.derive({"n": 1.0})
        False
    """

    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH, namespace: str = "") -> None:
        if max_depth < 1:
            raise ValueError(f"max_depth must be >= 1, got {max_depth}")
        self.max_depth = max_depth
        self.namespace = namespace

    def __repr__(self) -> str:
        return f"KeyDeriver(max_depth={self.max_depth}, namespace={self.namespace!r})"

    def with_namespace(self, namespace: str) -> "KeyDeriver":
        """Copy of this deriver bound to another namespace."""
        return KeyDeriver(max_depth=self.max_depth, namespace=namespace)

    def derive(self, bundle: Mapping[str, Any] | None) -> CacheKey:
        """Derive the cache key for a bundle.

        Raises:
            UnkeyableInputError: If any value cannot be canonicalized.
        """
        bundle = InputBundle.coerce(bundle)
        if not bundle and not self.namespace:
            return EMPTY_KEY

        form = self.canonicalize(bundle, "bundle", 0, set())
        if self.namespace:
            form = ("ns", self.namespace, form)
        return CacheKey.from_canonical(form)

    def canonicalize(self, value: Any, path: str, depth: int, active: set[int]) -> tuple[Any, ...]:
        """Return the type-tagged canonical form of a single value.

        Subclasses of supported built-in types are keyed by their qualified
        class name plus the built-in projection of the value, so
        ``Markup("<b>")`` and ``"<b>"``, or a namedtuple and a plain tuple,
        never share a key.
        """
        if depth > self.max_depth:
            raise UnkeyableInputError(
                f"value at {path} is nested deeper than {self.max_depth} levels", path
            )

        if value is None:
            return ("none",)
        # Enums and custom keys first: they may also subclass str or int
        if isinstance(value, Enum):
            return ("enum", _qualname(type(value)), value.name)

        custom = getattr(type(value), "__cache_key__", None)
        if callable(custom):
            return (
                "custom",
                _qualname(type(value)),
                self.canonicalize(value.__cache_key__(), f"{path}.__cache_key__()", depth + 1, active),
            )

        form = self._builtin_form(value, path, depth, active)
        if form is not None:
            if type(value) in _PLAIN_TYPES:
                return form
            return ("subclass", _qualname(type(value)), form)

        if dataclasses.is_dataclass(value) and not isinstance(value, type):
            if not value.__dataclass_params__.frozen:  # type: ignore[attr-defined]
                raise UnkeyableInputError(
                    f"mutable dataclass {_qualname(type(value))} at {path} cannot be keyed; "
                    "declare it frozen=True or define __cache_key__",
                    path,
                )
            with _visiting(value, path, active):
                fields = tuple(
                    (f.name, self.canonicalize(getattr(value, f.name), f"{path}.{f.name}", depth + 1, active))
                    for f in dataclasses.fields(value)
                    if f.compare
                )
            return ("dataclass", _qualname(type(value)), fields)

        raise UnkeyableInputError(
            f"cannot derive a cache key from {_qualname(type(value))} at {path}; "
            "only plain data values or objects defining __cache_key__ are supported",
            path,
        )

    def _builtin_form(
        self, value: Any, path: str, depth: int, active: set[int]
    ) -> tuple[Any, ...] | None:
        """Canonical form of the built-in projection of value, or None.

        Scalars are projected through the base type's own methods so the
        form only ever holds exact built-in objects; subclass overrides of
        ``__eq__``, ``__str__`` or ``__repr__`` cannot leak into the key.
        """
        # bool before int: bool is an int subclass
        if isinstance(value, bool):
            return ("bool", bool(value))
        if isinstance(value, int):
            return ("int", int.__int__(value))
        if isinstance(value, float):
            if math.isnan(value):
                return ("float", "nan")
            return ("float", float.__repr__(value))
        if isinstance(value, str):
            return ("str", str.__str__(value))
        if isinstance(value, (bytes, bytearray, memoryview)):
            return ("bytes", bytes(value).hex())
        if isinstance(value, Decimal):
            return ("decimal", Decimal.__str__(value))
        # datetime before date: datetime is a date subclass
        if isinstance(value, dt.datetime):
            return ("datetime", dt.datetime.isoformat(value))
        if isinstance(value, dt.date):
            return ("date", dt.date.isoformat(value))
        if isinstance(value, dt.time):
            return ("time", dt.time.isoformat(value))
        if isinstance(value, uuid.UUID):
            return ("uuid", uuid.UUID.__str__(value))

        if isinstance(value, Mapping):
            with _visiting(value, path, active):
                items = [
                    (
                        self.canonicalize(k, f"{path}<key>", depth + 1, active),
                        self.canonicalize(v, f"{path}[{k!r}]", depth + 1, active),
                    )
                    for k, v in value.items()
                ]
            items.sort(key=lambda kv: repr(kv[0]))
            return ("map", tuple(items))

        if isinstance(value, (list, tuple)):
            tag = "list" if isinstance(value, list) else "tuple"
            with _visiting(value, path, active):
                return (
                    tag,
                    tuple(
                        self.canonicalize(item, f"{path}[{i}]", depth + 1, active)
                        for i, item in enumerate(value)
                    ),
                )

        if isinstance(value, (set, frozenset)):
            with _visiting(value, path, active):
                members = [self.canonicalize(item, f"{path}{{}}", depth + 1, active) for item in value]
            members.sort(key=repr)
            return ("set", tuple(members))

        return None


class _visiting:
    """Tracks containers on the current path to detect cycles."""

    def __init__(self, value: Any, path: str, active: set[int]) -> None:
        self._id = id(value)
        self._path = path
        self._active = active

    def __enter__(self) -> None:
        if self._id in self._active:
            raise UnkeyableInputError(f"cyclic reference at {self._path}", self._path)
        self._active.add(self._id)

    def __exit__(self, *exc: object) -> None:
        self._active.discard(self._id)


default_key_deriver = KeyDeriver()


def derive_key(bundle: Mapping[str, Any] | None) -> CacheKey:
    """Derive a cache key with the default (unnamespaced) deriver."""
    return default_key_deriver.derive(bundle)
