"""Immutable trace identity and baggage."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Mapping, Optional

from tracewire.errors import InvalidBaggageKey, UnsupportedValue, ValidationError
from tracewire.utils.helpers import MAX_ID, generate_id

BAGGAGE_KEY_RE = re.compile(r"[a-z0-9][-a-z0-9]*")


def normalize_baggage_key(key: str) -> str:
    """
    Lower-case and validate a baggage key.

    Raises:
        InvalidBaggageKey: If the key is not a string matching ``[a-z0-9][-a-z0-9]*``
    """
    if not isinstance(key, str):
        raise InvalidBaggageKey("baggage key must be a string", {"key": repr(key)})
    lowered = key.lower()
    if not BAGGAGE_KEY_RE.fullmatch(lowered):
        raise InvalidBaggageKey("invalid baggage key", {"key": key})
    return lowered


def _check_id(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 < value <= MAX_ID:
        raise ValidationError(
            f"{name} must be an int in [1, 2**64 - 1]",
            {name: repr(value)},
        )


def _check_baggage_value(key: str, value: str) -> None:
    if not isinstance(value, str):
        raise UnsupportedValue(
            "baggage value must be a string",
            {"key": key, "type": type(value).__name__},
        )


@dataclass(frozen=True)
class SpanContext:
    trace_id: int
    span_id: int
    parent_id: Optional[int] = None
    sampled: bool = True
    baggage: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        _check_id("trace_id", self.trace_id)
        _check_id("span_id", self.span_id)
        if self.parent_id is not None:
            _check_id("parent_id", self.parent_id)
        baggage = {}
        for key, value in self.baggage.items():
            normalized = normalize_baggage_key(key)
            _check_baggage_value(normalized, value)
            baggage[normalized] = value
        # Baggage is a private read-only copy
        object.__setattr__(self, "baggage", MappingProxyType(baggage))

    def get_baggage_item(self, key: str) -> Optional[str]:
        """Case-insensitive baggage lookup; ``None`` when the key is absent."""
        if not isinstance(key, str):
            return None
        return self.baggage.get(key.lower())

    def with_baggage_item(self, key: str, value: str) -> "SpanContext":
        """
        Return a copy of this context carrying one more baggage item.

        Args:
            key: Baggage key, matched case-insensitively
            value: Baggage value

        Returns:
            New SpanContext; this one is left untouched

        Raises:
            InvalidBaggageKey: If the key is invalid
            UnsupportedValue: If the value is not a string
        """
        normalized = normalize_baggage_key(key)
        _check_baggage_value(normalized, value)
        baggage = dict(self.baggage)
        baggage[normalized] = value
        return replace(self, baggage=baggage)


def new_root_context(sampled: bool, trace_id: Optional[int] = None) -> SpanContext:
    """Create the context of a trace's first span."""
    return SpanContext(
        trace_id=trace_id or generate_id(),
        span_id=generate_id(),
        parent_id=None,
        sampled=bool(sampled),
    )


def new_child_context(parent: SpanContext) -> SpanContext:
    """
    Create the context of a span whose parent is ``parent``.

    The trace id and sampling decision are inherited; baggage is copied so
    later changes on either side stay local.
    """
    span_id = generate_id()
    while span_id == parent.span_id:
        span_id = generate_id()
    return SpanContext(
        trace_id=parent.trace_id,
        span_id=span_id,
        parent_id=parent.span_id,
        sampled=parent.sampled,
        baggage=dict(parent.baggage),
    )
