"""Tests for fixed-layout binary propagation and its bounds checking."""

import struct

import pytest

from tracewire.errors import MalformedCarrier
from tracewire.propagation.binary import (
    BinaryCarrier,
    BinaryPropagator,
    decode_context,
    encode_context,
    encode_varint,
)
from tracewire.tracer.span_context import SpanContext

HEADER_SIZE = 26


@pytest.fixture
def propagator():
    return BinaryPropagator()


def _context(**overrides):
    fields = dict(
        trace_id=0x0102030405060708,
        span_id=0x1112131415161718,
        parent_id=0x2122232425262728,
        sampled=True,
        baggage={"user": "alice", "emoji": "🚀 ok"},
    )
    fields.update(overrides)
    return SpanContext(**fields)


@pytest.mark.parametrize("trace_id", [1, 0xFFFFFFFFFFFFFFFE, 0xFFFFFFFFFFFFFFFF])
@pytest.mark.parametrize("sampled", [True, False])
@pytest.mark.parametrize("parent_id", [None, 0xFFFFFFFFFFFFFFFF])
def test_round_trip(propagator, trace_id, sampled, parent_id):
    ctx = _context(trace_id=trace_id, sampled=sampled, parent_id=parent_id)
    carrier = BinaryCarrier()
    propagator.inject(ctx, carrier)
    assert propagator.extract(carrier) == ctx


def test_layout_is_fixed():
    ctx = SpanContext(trace_id=1, span_id=2, parent_id=None, sampled=True, baggage={"k": "vv"})
    data = encode_context(ctx)
    assert data[:8] == (1).to_bytes(8, "big")
    assert data[8:16] == (2).to_bytes(8, "big")
    assert data[16] == 0
    assert data[17:25] == bytes(8)
    assert data[25] == 1
    assert data[26:] == b"\x01" + b"\x01k" + b"\x02vv"


def test_inject_replaces_buffer(propagator):
    carrier = BinaryCarrier(buffer=b"stale bytes")
    propagator.inject(_context(baggage={}), carrier)
    assert len(carrier.buffer) == HEADER_SIZE + 1


def test_long_baggage_uses_multibyte_lengths(propagator):
    ctx = _context(baggage={"blob": "x" * 300})
    carrier = BinaryCarrier()
    propagator.inject(ctx, carrier)
    assert propagator.extract(carrier).get_baggage_item("blob") == "x" * 300


def test_accepts_bytearray_and_memoryview():
    data = encode_context(_context())
    assert decode_context(bytearray(data)) == _context()
    assert decode_context(memoryview(data)) == _context()


def test_varint_encoding():
    assert encode_varint(0) == b"\x00"
    assert encode_varint(127) == b"\x7f"
    assert encode_varint(128) == b"\x80\x01"
    assert encode_varint(300) == b"\xac\x02"
    with pytest.raises(ValueError):
        encode_varint(-1)


class TestMalformed:
    """Every truncation or bad length must raise MalformedCarrier."""

    def test_empty_buffer(self, propagator):
        with pytest.raises(MalformedCarrier):
            propagator.extract(BinaryCarrier(buffer=b""))

    def test_missing_buffer(self, propagator):
        with pytest.raises(MalformedCarrier):
            propagator.extract(BinaryCarrier(buffer=None))
        with pytest.raises(MalformedCarrier):
            propagator.extract(object())

    def test_not_bytes_like(self):
        with pytest.raises(MalformedCarrier):
            decode_context("not bytes")

    def test_every_truncation_rejected(self):
        data = encode_context(_context())
        for cut in range(len(data)):
            with pytest.raises(MalformedCarrier):
                decode_context(data[:cut])

    def test_trailing_bytes_rejected(self):
        with pytest.raises(MalformedCarrier):
            decode_context(encode_context(_context()) + b"\x00")

    def test_length_past_end(self):
        header = struct.pack(">QQBQB", 1, 2, 0, 0, 1)
        data = header + b"\x01" + b"\x7fk"
        with pytest.raises(MalformedCarrier) as excinfo:
            decode_context(data)
        assert excinfo.value.details["needed"] == 127

    def test_huge_declared_length(self):
        header = struct.pack(">QQBQB", 1, 2, 0, 0, 1)
        data = header + b"\x01" + encode_varint(2**63) + b"k"
        with pytest.raises(MalformedCarrier):
            decode_context(data)

    def test_huge_baggage_count(self):
        header = struct.pack(">QQBQB", 1, 2, 0, 0, 1)
        with pytest.raises(MalformedCarrier):
            decode_context(header + encode_varint(10**9) + b"\x01a\x01b")

    def test_varint_overflow(self):
        header = struct.pack(">QQBQB", 1, 2, 0, 0, 1)
        with pytest.raises(MalformedCarrier):
            decode_context(header + b"\xff" * 11)
        with pytest.raises(MalformedCarrier):
            decode_context(header + b"\xff" * 9 + b"\x7f")

    @pytest.mark.parametrize(
        "fields",
        [
            (0, 2, 0, 0, 1),
            (1, 0, 0, 0, 1),
            (1, 2, 2, 0, 1),
            (1, 2, 0, 0, 2),
            (1, 2, 1, 0, 1),
            (1, 2, 0, 5, 1),
        ],
    )
    def test_bad_header_fields(self, fields):
        with pytest.raises(MalformedCarrier):
            decode_context(struct.pack(">QQBQB", *fields) + b"\x00")

    def test_invalid_utf8(self):
        header = struct.pack(">QQBQB", 1, 2, 0, 0, 1)
        with pytest.raises(MalformedCarrier):
            decode_context(header + b"\x01" + b"\x01k" + b"\x02\xff\xfe")

    def test_invalid_baggage_key(self):
        header = struct.pack(">QQBQB", 1, 2, 0, 0, 1)
        with pytest.raises(MalformedCarrier):
            decode_context(header + b"\x01" + b"\x03a_b" + b"\x01v")
