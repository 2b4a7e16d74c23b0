"""Tests for trace identity creation, inheritance and baggage."""

import pytest

from tracewire.errors import InvalidBaggageKey, UnsupportedValue, ValidationError
from tracewire.propagation.binary import BinaryCarrier, BinaryPropagator
from tracewire.tracer.span_context import (
    SpanContext,
    new_child_context,
    new_root_context,
    normalize_baggage_key,
)
from tracewire.utils.helpers import MAX_ID, format_id, generate_id, parse_id


class TestRootAndChild:
    """Root and child context creation."""

    def test_root_context_has_fresh_ids(self):
        ctx = new_root_context(sampled=True)
        assert 0 < ctx.trace_id <= MAX_ID
        assert 0 < ctx.span_id <= MAX_ID
        assert ctx.parent_id is None
        assert ctx.sampled is True
        assert dict(ctx.baggage) == {}

    def test_root_context_keeps_given_trace_id(self):
        ctx = new_root_context(sampled=False, trace_id=42)
        assert ctx.trace_id == 42
        assert ctx.sampled is False

    def test_child_inherits_trace_and_sampling(self):
        parent = new_root_context(sampled=False)
        child = new_child_context(parent)
        assert child.trace_id == parent.trace_id
        assert child.parent_id == parent.span_id
        assert child.span_id != parent.span_id
        assert child.sampled is False

    def test_grandchild_chain(self):
        root = new_root_context(sampled=True)
        child = new_child_context(root)
        grandchild = new_child_context(child)
        assert grandchild.trace_id == root.trace_id
        assert grandchild.parent_id == child.span_id
        assert grandchild.sampled is True

    def test_roots_get_distinct_trace_ids(self):
        ids = {new_root_context(sampled=True).trace_id for _ in range(1000)}
        assert len(ids) == 1000


class TestBaggage:
    """Baggage validation, copying and lookup."""

    def test_baggage_is_copied_to_child(self):
        parent = SpanContext(trace_id=1, span_id=2).with_baggage_item("a", "1")
        child = new_child_context(parent)
        assert dict(child.baggage) == {"a": "1"}

        child = child.with_baggage_item("b", "2")
        assert dict(parent.baggage) == {"a": "1"}
        assert dict(child.baggage) == {"a": "1", "b": "2"}

    def test_with_baggage_item_returns_new_context(self):
        ctx = SpanContext(trace_id=1, span_id=2)
        updated = ctx.with_baggage_item("k", "v")
        assert ctx.get_baggage_item("k") is None
        assert updated.get_baggage_item("k") == "v"

    def test_keys_are_lowercased_and_lookup_ignores_case(self):
        ctx = SpanContext(trace_id=1, span_id=2).with_baggage_item("User-ID", "u1")
        assert dict(ctx.baggage) == {"user-id": "u1"}
        assert ctx.get_baggage_item("USER-ID") == "u1"
        assert ctx.get_baggage_item("user-id") == "u1"

    def test_unknown_key_returns_none(self):
        ctx = SpanContext(trace_id=1, span_id=2)
        assert ctx.get_baggage_item("missing") is None
        assert ctx.get_baggage_item(None) is None

    @pytest.mark.parametrize("key", ["", "-lead", "has space", "under_score", "dot.ted", "ünï", 7])
    def test_invalid_keys_rejected(self, key):
        ctx = SpanContext(trace_id=1, span_id=2).with_baggage_item("keep", "me")
        with pytest.raises(InvalidBaggageKey):
            ctx.with_baggage_item(key, "value")
        assert dict(ctx.baggage) == {"keep": "me"}

    @pytest.mark.parametrize("key", ["a", "0", "a-b", "9lives", "x--y"])
    def test_valid_keys_accepted(self, key):
        assert normalize_baggage_key(key) == key

    def test_non_string_value_rejected(self):
        ctx = SpanContext(trace_id=1, span_id=2)
        with pytest.raises(UnsupportedValue):
            ctx.with_baggage_item("count", 3)

    def test_baggage_cannot_be_mutated_in_place(self):
        source = {"a": "1"}
        ctx = SpanContext(trace_id=1, span_id=2, baggage=source)
        source["b"] = "2"
        assert dict(ctx.baggage) == {"a": "1"}
        with pytest.raises(TypeError):
            ctx.baggage["c"] = "3"


class TestDirectConstruction:
    """Contexts built by callers obey the same rules as generated ones."""

    def test_baggage_keys_are_normalized(self):
        ctx = SpanContext(trace_id=1, span_id=2, baggage={"User": "x"})
        assert dict(ctx.baggage) == {"user": "x"}
        assert ctx.get_baggage_item("user") == "x"
        assert ctx.get_baggage_item("USER") == "x"

    def test_binary_round_trip_preserves_constructed_context(self):
        ctx = SpanContext(trace_id=1, span_id=2, baggage={"User": "x"})
        carrier = BinaryCarrier()
        BinaryPropagator().inject(ctx, carrier)
        assert BinaryPropagator().extract(carrier) == ctx

    def test_invalid_baggage_key_rejected(self):
        with pytest.raises(InvalidBaggageKey):
            SpanContext(trace_id=1, span_id=2, baggage={"bad key": "x"})

    def test_non_string_baggage_value_rejected(self):
        with pytest.raises(UnsupportedValue):
            SpanContext(trace_id=1, span_id=2, baggage={"count": 3})

    @pytest.mark.parametrize(
        "fields",
        [
            {"trace_id": 0, "span_id": 1},
            {"trace_id": 1, "span_id": 0},
            {"trace_id": 1, "span_id": 2, "parent_id": 0},
            {"trace_id": MAX_ID + 1, "span_id": 1},
            {"trace_id": -1, "span_id": 1},
            {"trace_id": "1", "span_id": 1},
            {"trace_id": True, "span_id": 1},
        ],
    )
    def test_out_of_range_ids_rejected(self, fields):
        with pytest.raises(ValidationError):
            SpanContext(**fields)

    def test_largest_id_accepted(self):
        ctx = SpanContext(trace_id=MAX_ID, span_id=MAX_ID, parent_id=MAX_ID)
        assert ctx.trace_id == MAX_ID


class TestIdHelpers:
    """Id generation and hex formatting."""

    def test_generate_id_is_nonzero_64_bit(self):
        ids = [generate_id() for _ in range(1000)]
        assert all(isinstance(value, int) and 0 < value <= MAX_ID for value in ids)
        assert len(set(ids)) == 1000

    def test_format_and_parse(self):
        assert format_id(1) == "0000000000000001"
        assert parse_id("ffffffffffffffff") == MAX_ID
        assert parse_id(format_id(0xFFFFFFFFFFFFFFFE)) == 0xFFFFFFFFFFFFFFFE

    @pytest.mark.parametrize("value", ["", "0", "xyz", "1" * 17, "+1", " 1", "1_0", "-1"])
    def test_parse_rejects_invalid(self, value):
        with pytest.raises(ValueError):
            parse_id(value)
