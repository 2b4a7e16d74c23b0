"""Carrier formats and the codecs that implement them."""

from tracewire.propagation.base import Propagator
from tracewire.propagation.binary import BinaryCarrier, BinaryPropagator, decode_context, encode_context
from tracewire.propagation.formats import FORMAT_BINARY, FORMAT_TEXT_MAP, Format
from tracewire.propagation.text_map import BAGGAGE_PREFIX, CONTEXT_KEY, TextMapPropagator

__all__ = [
    "Format",
    "FORMAT_TEXT_MAP",
    "FORMAT_BINARY",
    "Propagator",
    "TextMapPropagator",
    "BinaryPropagator",
    "BinaryCarrier",
    "encode_context",
    "decode_context",
    "CONTEXT_KEY",
    "BAGGAGE_PREFIX",
]
