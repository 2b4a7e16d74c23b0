"""Fixed-layout binary propagation.

Layout (all integers unsigned, ids big-endian)::

    trace_id        8 bytes
    span_id         8 bytes
    has_parent      1 byte   (0 or 1)
    parent_id       8 bytes  (zero when has_parent is 0)
    sampled         1 byte   (0 or 1)
    baggage_count   varint
    baggage_count times:
        key_length  varint
        key         key_length bytes, UTF-8
        value_length varint
        value       value_length bytes, UTF-8

Varints are unsigned LEB128, at most 10 bytes.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Any

from tracewire.errors import InvalidBaggageKey, MalformedCarrier
from tracewire.propagation.base import Propagator
from tracewire.tracer.span_context import SpanContext, normalize_baggage_key

_HEADER = struct.Struct(">QQBQB")
_MAX_VARINT_BYTES = 10
_MAX_VARINT = (1 << 64) - 1
# key length + value length, one byte each at minimum
_MIN_ITEM_SIZE = 2


@dataclass
class BinaryCarrier:
    buffer: bytes = b""


class BinaryPropagator(Propagator):
    """Carries a SpanContext in ``carrier.buffer``."""

    def inject(self, context: SpanContext, carrier: Any) -> None:
        carrier.buffer = encode_context(context)

    def extract(self, carrier: Any) -> SpanContext:
        buffer = getattr(carrier, "buffer", None)
        if buffer is None:
            raise MalformedCarrier("binary carrier has no buffer")
        return decode_context(buffer)


def encode_context(context: SpanContext) -> bytes:
    out = bytearray(
        _HEADER.pack(
            context.trace_id,
            context.span_id,
            1 if context.parent_id else 0,
            context.parent_id or 0,
            1 if context.sampled else 0,
        )
    )
    out += encode_varint(len(context.baggage))
    for key, value in context.baggage.items():
        for text in (key, value):
            data = text.encode("utf-8")
            out += encode_varint(len(data))
            out += data
    return bytes(out)


def decode_context(buffer: Any) -> SpanContext:
    """
    Decode a buffer produced by ``encode_context``.

    Raises:
        MalformedCarrier: If the buffer is truncated, declares lengths past
            its end, or holds invalid field values
    """
    try:
        data = memoryview(buffer).cast("B")
    except TypeError:
        raise MalformedCarrier(
            "binary carrier buffer is not bytes-like",
            {"type": type(buffer).__name__},
        ) from None
    reader = _Reader(data)

    trace_id, span_id, has_parent, parent_id, sampled = _HEADER.unpack(
        reader.read(_HEADER.size, "header")
    )
    if trace_id == 0 or span_id == 0:
        raise MalformedCarrier("binary carrier holds a zero id")
    if has_parent not in (0, 1) or sampled not in (0, 1):
        raise MalformedCarrier(
            "binary carrier flag byte out of range",
            {"has_parent": has_parent, "sampled": sampled},
        )
    if has_parent and parent_id == 0:
        raise MalformedCarrier("binary carrier flags a parent but holds a zero parent id")
    if not has_parent and parent_id != 0:
        raise MalformedCarrier("binary carrier holds a parent id without the parent flag")

    count = reader.read_varint("baggage count")
    if count * _MIN_ITEM_SIZE > reader.remaining:
        raise MalformedCarrier(
            "binary carrier baggage count exceeds buffer",
            {"count": count, "remaining": reader.remaining},
        )
    baggage = {}
    for _ in range(count):
        key = reader.read_text("baggage key")
        value = reader.read_text("baggage value")
        try:
            baggage[normalize_baggage_key(key)] = value
        except InvalidBaggageKey as exc:
            raise MalformedCarrier("binary carrier holds an invalid baggage key", exc.details) from exc

    if reader.remaining:
        raise MalformedCarrier(
            "binary carrier has trailing bytes",
            {"trailing": reader.remaining},
        )
    return SpanContext(
        trace_id=trace_id,
        span_id=span_id,
        parent_id=parent_id if has_parent else None,
        sampled=bool(sampled),
        baggage=baggage,
    )


def encode_varint(value: int) -> bytes:
    if value < 0 or value > _MAX_VARINT:
        raise ValueError(f"varint out of range: {value}")
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


class _Reader:
    """Cursor over a byte buffer; every read is bounds-checked first."""

    def __init__(self, data: memoryview) -> None:
        self._data = data
        self._pos = 0

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos

    def read(self, size: int, field: str) -> bytes:
        if size > self.remaining:
            raise MalformedCarrier(
                "binary carrier truncated",
                {"field": field, "needed": size, "remaining": self.remaining},
            )
        chunk = self._data[self._pos:self._pos + size].tobytes()
        self._pos += size
        return chunk

    def read_varint(self, field: str) -> int:
        value = 0
        for shift in range(0, _MAX_VARINT_BYTES * 7, 7):
            if not self.remaining:
                raise MalformedCarrier("binary carrier truncated", {"field": field})
            byte = self._data[self._pos]
            self._pos += 1
            value |= (byte & 0x7F) << shift
            if not byte & 0x80:
                if value > _MAX_VARINT:
                    break
                return value
        raise MalformedCarrier("binary carrier varint overflow", {"field": field})

    def read_text(self, field: str) -> str:
        length = self.read_varint(field + " length")
        raw = self.read(length, field)
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError:
            raise MalformedCarrier("binary carrier holds invalid UTF-8", {"field": field}) from None

