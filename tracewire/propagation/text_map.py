"""String-map propagation, suitable for HTTP headers and message metadata."""

from __future__ import annotations

import logging
from typing import Mapping, MutableMapping, Optional

from tracewire.errors import InvalidBaggageKey
from tracewire.propagation.base import Propagator
from tracewire.tracer.span_context import SpanContext, normalize_baggage_key
from tracewire.utils.helpers import format_id, parse_id

logger = logging.getLogger(__name__)

CONTEXT_KEY = "tracewire-context"
BAGGAGE_PREFIX = "tracewire-baggage-"

_NO_PARENT = "0"


class TextMapPropagator(Propagator):
    """
    Carries a SpanContext in a string-to-string mapping.

    Identity goes into a single entry::

        tracewire-context: <trace_id>:<span_id>:<parent_id|0>:<1|0>

    with ids as 16-digit hex. Each baggage item becomes its own
    ``tracewire-baggage-<key>`` entry. Key lookups on extract ignore case.
    Inject first removes any entries already in that namespace, whatever
    their case, and leaves every other key alone.
    """

    def inject(self, context: SpanContext, carrier: MutableMapping[str, str]) -> None:
        stale = [
            key for key in carrier
            if isinstance(key, str) and _owned_key(key.lower())
        ]
        for key in stale:
            del carrier[key]
        carrier[CONTEXT_KEY] = format_context_value(context)
        for key, value in context.baggage.items():
            carrier[BAGGAGE_PREFIX + key] = value

    def extract(self, carrier: Mapping[str, str]) -> Optional[SpanContext]:
        identity = None
        baggage = {}
        for raw_key, value in carrier.items():
            if not isinstance(raw_key, str):
                continue
            key = raw_key.lower()
            if key == CONTEXT_KEY:
                identity = value
            elif key.startswith(BAGGAGE_PREFIX):
                try:
                    baggage_key = normalize_baggage_key(key[len(BAGGAGE_PREFIX):])
                except InvalidBaggageKey:
                    logger.debug("Skipping invalid baggage entry %r", raw_key)
                    continue
                if isinstance(value, str):
                    baggage[baggage_key] = value

        if identity is None:
            return None
        parsed = parse_context_value(identity)
        if parsed is None:
            logger.debug("Ignoring malformed %s value %r", CONTEXT_KEY, identity)
            return None
        trace_id, span_id, parent_id, sampled = parsed
        return SpanContext(
            trace_id=trace_id,
            span_id=span_id,
            parent_id=parent_id,
            sampled=sampled,
            baggage=baggage,
        )


def format_context_value(context: SpanContext) -> str:
    parent = format_id(context.parent_id) if context.parent_id else _NO_PARENT
    return ":".join(
        [
            format_id(context.trace_id),
            format_id(context.span_id),
            parent,
            "1" if context.sampled else "0",
        ]
    )


def parse_context_value(value: str):
    """
    Parse the identity entry.

    Returns:
        ``(trace_id, span_id, parent_id, sampled)``, or None if malformed
    """
    if not isinstance(value, str):
        return None
    parts = value.strip().split(":")
    if len(parts) != 4:
        return None
    trace_part, span_part, parent_part, sampled_part = parts
    if sampled_part not in ("0", "1"):
        return None
    try:
        trace_id = parse_id(trace_part)
        span_id = parse_id(span_part)
        parent_id = None if parent_part == _NO_PARENT else parse_id(parent_part)
    except ValueError:
        return None
    return trace_id, span_id, parent_id, sampled_part == "1"


def _owned_key(key: str) -> bool:
    return key == CONTEXT_KEY or key.startswith(BAGGAGE_PREFIX)
