"""Tracer components: identity, spans and the tracer itself."""

from tracewire.tracer.span_context import SpanContext, new_child_context, new_root_context
from tracewire.tracer.span import FinishedSpan, LogRecord, Span, SpanState
from tracewire.tracer.tracer import Tracer, TracerOptions

__all__ = [
    "SpanContext",
    "new_root_context",
    "new_child_context",
    "Span",
    "SpanState",
    "FinishedSpan",
    "LogRecord",
    "Tracer",
    "TracerOptions",
]
