"""Helpers for generating and formatting 64-bit trace identifiers."""

from __future__ import annotations

import re

from opentelemetry.sdk.trace.id_generator import RandomIdGenerator

MAX_ID = (1 << 64) - 1

_HEX_ID_RE = re.compile(r"[0-9a-fA-F]{1,16}")

_id_generator = RandomIdGenerator()


def generate_id() -> int:
    """
    Generate a random, non-zero 64-bit identifier.

    Both trace ids and span ids are 64 bits wide, so both are drawn from
    the OpenTelemetry span id generator.

    Returns:
        Integer in the range [1, 2**64 - 1]
    """
    return _id_generator.generate_span_id()


def format_id(value: int) -> str:
    """
    Format a 64-bit id as a hex string.

    Args:
        value: Identifier as an unsigned 64-bit int

    Returns:
        16-character lower-case hex string
    """
    return format(value, "016x")


def parse_id(hex_string: str) -> int:
    """
    Parse a hex string back into a 64-bit id.

    Args:
        hex_string: Hex string of at most 16 characters

    Returns:
        Identifier as int

    Raises:
        ValueError: If the string is empty, not hex, too long or zero
    """
    if not hex_string or not _HEX_ID_RE.fullmatch(hex_string):
        raise ValueError(f"invalid id: {hex_string!r}")
    value = int(hex_string, 16)
    if value == 0:
        raise ValueError("id must not be zero")
    return value
