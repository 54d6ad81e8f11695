# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Yakov Shkolnikov and contributors
"""Unit tests for KeyDeriver (cache key derivation)."""

import datetime as dt
import uuid
from collections import OrderedDict, namedtuple
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum, IntEnum

import pytest
from hypothesis import given
from hypothesis import strategies as st

from rendercache.application.component import Component, component, nest
from rendercache.domain.errors import UnkeyableInputError
from rendercache.domain.services import KeyDeriver, derive_key
from rendercache.domain.value_objects import EMPTY_KEY, InputBundle

pytestmark = pytest.mark.unit


class Color(Enum):
    RED = "red"
    BLUE = "blue"


@dataclass(frozen=True)
class Point:
    x: int
    y: int


@dataclass
class MutablePoint:
    x: int
    y: int


class Money:
    def __init__(self, amount: str, currency: str) -> None:
        self.amount = amount
        self.currency = currency

    def __cache_key__(self) -> tuple[str, str]:
        return (self.amount, self.currency)


class Opaque:
    pass


class Shade(str, Enum):
    RED = "red"


class Level(IntEnum):
    LOW = 1


class SafeText(str):
    """Text already escaped for HTML."""

    def __repr__(self) -> str:
        return f"SafeText({str.__repr__(self)})"


class Count(int):
    pass


Pair = namedtuple("Pair", ["x", "y"])


json_scalars = st.one_of(
    st.none(),
    st.booleans(),
    st.integers(),
    st.floats(allow_nan=False),
    st.text(max_size=10),
)
json_values = st.recursive(
    json_scalars,
    lambda children: st.lists(children, max_size=4)
    | st.dictionaries(st.text(max_size=5), children, max_size=4),
    max_leaves=20,
)
bundles = st.dictionaries(st.text(max_size=8), json_values, max_size=6)


class TestKeyDeterminism:
    def test_empty_bundle_maps_to_constant(self) -> None:
        assert derive_key({}) == EMPTY_KEY
        assert derive_key(None) == EMPTY_KEY
        assert derive_key(InputBundle()) is EMPTY_KEY

    def test_same_content_same_key(self) -> None:
        assert derive_key({"name": "Macron"}) == derive_key({"name": "Macron"})

    def test_different_content_different_key(self) -> None:
        assert derive_key({"name": "Macron"}) != derive_key({"name": "Merkel"})

    def test_insertion_order_ignored(self) -> None:
        k1 = derive_key({"name": "Merkel", "title": "Chancellor"})
        k2 = derive_key({"title": "Chancellor", "name": "Merkel"})
        assert k1 == k2
        assert k1.digest == k2.digest

    def test_nested_mapping_order_ignored(self) -> None:
        k1 = derive_key({"user": {"a": 1, "b": [1, 2]}})
        k2 = derive_key({"user": {"b": [1, 2], "a": 1}})
        assert k1 == k2

    def test_sequence_order_matters(self) -> None:
        assert derive_key({"items": [1, 2]}) != derive_key({"items": [2, 1]})

    def test_set_order_ignored(self) -> None:
        assert derive_key({"tags": {"b", "a", "c"}}) == derive_key({"tags": {"c", "a", "b"}})
        assert derive_key({"tags": {1, 2}}) == derive_key({"tags": frozenset({2, 1})})

    def test_digest_is_stable_value(self) -> None:
        # Digest depends only on content, never on id()/hash() of objects
        assert derive_key({"a": 1}).digest == derive_key(InputBundle(a=1)).digest

    @given(bundles)
    def test_key_is_deterministic(self, bundle: dict) -> None:
        assert derive_key(bundle) == derive_key(dict(bundle))

    @given(bundles)
    def test_reordered_bundle_has_equal_key(self, bundle: dict) -> None:
        reordered = dict(reversed(list(bundle.items())))
        assert derive_key(reordered) == derive_key(bundle)
        assert derive_key(reordered).digest == derive_key(bundle).digest


class TestTypeTagging:
    def test_numeric_types_do_not_collide(self) -> None:
        keys = {derive_key({"n": 1}), derive_key({"n": 1.0}), derive_key({"n": True})}
        assert len(keys) == 3

    def test_negative_zero_distinct(self) -> None:
        assert derive_key({"n": 0.0}) != derive_key({"n": -0.0})

    def test_nan_normalized(self) -> None:
        assert derive_key({"n": float("nan")}) == derive_key({"n": float("nan")})

    def test_list_and_tuple_distinct(self) -> None:
        assert derive_key({"v": [1, 2]}) != derive_key({"v": (1, 2)})

    def test_str_and_bytes_distinct(self) -> None:
        assert derive_key({"v": "ab"}) != derive_key({"v": b"ab"})

    def test_decimal_keeps_scale(self) -> None:
        assert derive_key({"v": Decimal("1.0")}) != derive_key({"v": Decimal("1")})

    def test_temporal_and_uuid_values(self) -> None:
        uid = uuid.UUID("12345678-1234-5678-1234-567812345678")
        bundle = {
            "when": dt.datetime(2024, 1, 1, 12, 0),
            "day": dt.date(2024, 1, 1),
            "at": dt.time(12, 30),
            "id": uid,
        }
        assert derive_key(bundle) == derive_key(dict(bundle))
        assert derive_key({"v": dt.date(2024, 1, 1)}) != derive_key(
            {"v": dt.datetime(2024, 1, 1)}
        )

    def test_enum_values(self) -> None:
        assert derive_key({"c": Color.RED}) == derive_key({"c": Color.RED})
        assert derive_key({"c": Color.RED}) != derive_key({"c": Color.BLUE})
        assert derive_key({"c": Color.RED}) != derive_key({"c": "red"})

    def test_frozen_dataclass(self) -> None:
        assert derive_key({"p": Point(1, 2)}) == derive_key({"p": Point(1, 2)})
        assert derive_key({"p": Point(1, 2)}) != derive_key({"p": Point(2, 1)})

    def test_cache_key_protocol(self) -> None:
        k1 = derive_key({"price": Money("9.99", "EUR")})
        k2 = derive_key({"price": Money("9.99", "EUR")})
        assert k1 == k2
        assert k1 != derive_key({"price": Money("9.99", "USD")})

    def test_nested_bundle(self) -> None:
        inner = InputBundle(a=1)
        assert derive_key({"inner": inner}) == derive_key({"inner": {"a": 1}})


class TestUnkeyableInput:
    def test_rejects_callable(self) -> None:
        with pytest.raises(UnkeyableInputError) as exc_info:
            derive_key({"fn": lambda: 1})
        assert exc_info.value.path == "bundle['fn']"

    def test_rejects_identity_only_object(self) -> None:
        with pytest.raises(UnkeyableInputError):
            derive_key({"obj": Opaque()})

    def test_rejects_component_class(self) -> None:
        class Child(Component):
            def build(self) -> str:
                return "child"

        with pytest.raises(UnkeyableInputError):
            derive_key({"child": Child})

    def test_rejects_content_producer(self) -> None:
        with pytest.raises(UnkeyableInputError):
            derive_key({"content": nest(lambda bundle: "x")})

    def test_rejects_mutable_dataclass(self) -> None:
        with pytest.raises(UnkeyableInputError, match="frozen"):
            derive_key({"p": MutablePoint(1, 2)})

    def test_rejects_nested_unkeyable_with_path(self) -> None:
        with pytest.raises(UnkeyableInputError) as exc_info:
            derive_key({"items": [1, {"cb": print}]})
        assert exc_info.value.path == "bundle['items'][1]['cb']"

    def test_rejects_cycles(self) -> None:
        items: list = [1]
        items.append(items)

        with pytest.raises(UnkeyableInputError, match="cyclic"):
            derive_key({"items": items})

    def test_shared_non_cyclic_reference_is_fine(self) -> None:
        shared = [1, 2]
        assert derive_key({"a": shared, "b": shared}) == derive_key({"a": [1, 2], "b": [1, 2]})

    def test_rejects_excessive_depth(self) -> None:
        deriver = KeyDeriver(max_depth=3)
        deep = {"a": [[[[1]]]]}

        with pytest.raises(UnkeyableInputError, match="deeper"):
            deriver.derive(deep)

    def test_invalid_max_depth(self) -> None:
        with pytest.raises(ValueError):
            KeyDeriver(max_depth=0)


class TestNamespace:
    def test_namespace_separates_keys(self) -> None:
        a = KeyDeriver(namespace="a").derive({"x": 1})
        b = KeyDeriver(namespace="b").derive({"x": 1})
        assert a != b

    def test_namespaced_empty_bundle_is_constant_per_namespace(self) -> None:
        deriver = KeyDeriver(namespace="greeter")
        assert deriver.derive({}) == deriver.derive(None)
        assert deriver.derive({}) != EMPTY_KEY

    def test_with_namespace_keeps_depth(self) -> None:
        deriver = KeyDeriver(max_depth=5).with_namespace("x")
        assert deriver.max_depth == 5
        assert deriver.namespace == "x"


class TestSubclassValues:
    def test_str_enum_distinct_from_plain_string(self) -> None:
        k_enum = derive_key({"v": Shade.RED})
        k_str = derive_key({"v": "red"})

        assert k_enum != k_str
        assert k_enum.digest != k_str.digest

    def test_int_enum_distinct_from_plain_int(self) -> None:
        assert derive_key({"v": Level.LOW}) != derive_key({"v": 1})

    def test_str_subclass_distinct_from_plain_string(self) -> None:
        assert derive_key({"v": SafeText("<b>")}) != derive_key({"v": "<b>"})
        assert derive_key({"v": SafeText("<b>")}) == derive_key({"v": SafeText("<b>")})

    def test_int_subclass_distinct_from_plain_int(self) -> None:
        assert derive_key({"v": Count(3)}) != derive_key({"v": 3})

    def test_namedtuple_distinct_from_plain_tuple(self) -> None:
        assert derive_key({"v": Pair(1, 2)}) != derive_key({"v": (1, 2)})
        assert derive_key({"v": Pair(1, 2)}) == derive_key({"v": Pair(1, 2)})

    def test_ordered_dict_distinct_from_dict(self) -> None:
        assert derive_key({"v": OrderedDict(a=1)}) != derive_key({"v": {"a": 1}})

    def test_canonical_form_holds_only_builtin_scalars(self) -> None:
        key = derive_key({"v": SafeText("<b>")})
        assert "SafeText(" not in repr(key.canonical)

    @given(st.sampled_from([Shade.RED, SafeText("red"), Pair("r", "ed"), Count(1), "red", 1]))
    def test_equal_keys_have_equal_digests(self, value: object) -> None:
        for other in (Shade.RED, SafeText("red"), Pair("r", "ed"), Count(1), "red", 1, True):
            k1 = derive_key({"v": value})
            k2 = derive_key({"v": other})
            assert (k1 == k2) == (k1.digest == k2.digest)

    def test_memoized_path_keeps_value_types_apart(self) -> None:
        @component
        def kind(bundle):
            return type(bundle["v"]).__name__

        invoker = kind.memoized(capacity=8)

        assert invoker.memoized_call({"v": "red"}) == "str"
        assert invoker.memoized_call({"v": Shade.RED}) == kind.render({"v": Shade.RED})
        assert invoker.memoized_call({"v": SafeText("red")}) == "SafeText"
        assert invoker.memoized_call({"v": Pair(1, 2)}) == "Pair"
        assert invoker.memoized_call({"v": (1, 2)}) == "tuple"
