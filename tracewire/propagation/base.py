"""Propagator interface shared by the carrier codecs."""

from __future__ import annotations

from typing import Any, Optional

from tracewire.tracer.span_context import SpanContext


class Propagator:
    """Encodes a SpanContext into a carrier and decodes it back."""

    def inject(self, context: SpanContext, carrier: Any) -> None:
        raise NotImplementedError

    def extract(self, carrier: Any) -> Optional[SpanContext]:
        """
        Decode a SpanContext from the carrier.

        Returns ``None`` when the carrier holds no context. Propagators whose
        carriers have a strict layout raise ``MalformedCarrier`` instead.
        """
        raise NotImplementedError
