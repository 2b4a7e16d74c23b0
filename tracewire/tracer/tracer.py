"""Tracer: span creation, sampling, carrier dispatch and recorder handoff."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Union

from tracewire.errors import MalformedCarrier, UnsupportedFormat
from tracewire.processors.sampler import Sampler, SupportsSampling
from tracewire.propagation.base import Propagator
from tracewire.propagation.binary import BinaryPropagator
from tracewire.propagation.formats import Format
from tracewire.propagation.text_map import TextMapPropagator
from tracewire.recorder.base import NoopRecorder, Recorder
from tracewire.tracer.span import FinishedSpan, Span, TagValue
from tracewire.tracer.span_context import SpanContext, new_child_context, new_root_context
from tracewire.utils.helpers import generate_id

logger = logging.getLogger(__name__)

Parent = Union[Span, SpanContext]


@dataclass
class TracerOptions:
    """Collaborators a Tracer is built from; fixed for the tracer's lifetime."""

    sampler: SupportsSampling = field(default_factory=Sampler)
    recorder: Recorder = field(default_factory=NoopRecorder)


def resolve_parent(parent: Parent) -> SpanContext:
    """
    Resolve a ``Span | SpanContext`` parent to its SpanContext.

    Raises:
        TypeError: If ``parent`` is neither variant
    """
    if isinstance(parent, Span):
        return parent.context
    if isinstance(parent, SpanContext):
        return parent
    raise TypeError(
        f"parent must be a Span or SpanContext, not {type(parent).__name__}"
    )


class Tracer:
    """
    Creates spans, propagates their context across process boundaries and
    forwards finished, sampled spans to a recorder.

    There is no process-wide default tracer: construct one and pass it to
    the code that needs it.
    """

    def __init__(self, options: Optional[TracerOptions] = None) -> None:
        """
        Initialize tracer.

        Args:
            options: Sampler and recorder to use (defaults: sample everything,
                discard finished spans)
        """
        options = options or TracerOptions()
        self._sampler = options.sampler
        self._recorder = options.recorder
        self._propagators: Dict[str, Propagator] = {
            Format.TEXT_MAP: TextMapPropagator(),
            Format.BINARY: BinaryPropagator(),
        }

    @property
    def sampler(self) -> SupportsSampling:
        return self._sampler

    @property
    def recorder(self) -> Recorder:
        return self._recorder

    def start_span(
        self,
        operation_name: str,
        parent: Optional[Parent] = None,
        start_time_ns: Optional[int] = None,
        tags: Optional[Mapping[str, TagValue]] = None,
    ) -> Span:
        """
        Start a new span.

        Args:
            operation_name: Non-empty name of the operation
            parent: Optional parent Span or SpanContext; without one a new
                trace is started and the sampler decides whether it is kept
            start_time_ns: Optional start timestamp, defaults to now
            tags: Optional initial tags

        Returns:
            Open Span
        """
        if not isinstance(operation_name, str) or not operation_name:
            raise ValueError("operation_name must be a non-empty string")

        if parent is None:
            trace_id = generate_id()
            context = new_root_context(bool(self._sampler.is_sample(trace_id)), trace_id=trace_id)
        else:
            context = new_child_context(resolve_parent(parent))

        return Span(
            self,
            operation_name,
            context,
            start_time_ns=start_time_ns,
            tags=tags,
        )

    def register_propagator(self, format: str, propagator: Propagator) -> None:
        """
        Register a propagator for an additional carrier format.

        The built-in TEXT_MAP and BINARY propagators cannot be replaced.
        """
        if format in (Format.TEXT_MAP, Format.BINARY):
            raise ValueError(f"format {format!r} is built in and cannot be replaced")
        self._propagators[format] = propagator

    def _propagator(self, format: Any) -> Propagator:
        propagator = self._propagators.get(format) if isinstance(format, str) else None
        if propagator is None:
            raise UnsupportedFormat("unsupported carrier format", {"format": repr(format)})
        return propagator

    def inject(self, span: Parent, format: str, carrier: Any) -> None:
        """
        Inject the context of ``span`` into ``carrier``.

        Args:
            span: Span (or SpanContext) to propagate
            format: Carrier format token, e.g. ``Format.TEXT_MAP``
            carrier: Mapping for TEXT_MAP, object with ``buffer`` for BINARY

        Raises:
            UnsupportedFormat: If the format token is not recognized
        """
        propagator = self._propagator(format)
        propagator.inject(resolve_parent(span), carrier)

    def extract_context(self, format: str, carrier: Any) -> Optional[SpanContext]:
        """
        Decode the remote SpanContext held by ``carrier``.

        Returns ``None`` when a text carrier holds no context; raises
        ``MalformedCarrier`` when a binary carrier is corrupt.
        """
        return self._propagator(format).extract(carrier)

    def extract(
        self,
        operation_name: str,
        format: str,
        carrier: Any,
        start_time_ns: Optional[int] = None,
        tags: Optional[Mapping[str, TagValue]] = None,
    ) -> Span:
        """
        Start a span continuing the trace carried by ``carrier``.

        Missing or corrupt trace data is not an error: a new root span is
        started instead.

        Raises:
            UnsupportedFormat: If the format token is not recognized
        """
        propagator = self._propagator(format)
        try:
            remote = propagator.extract(carrier)
        except MalformedCarrier as exc:
            logger.warning("Discarding malformed %s carrier: %s", format, exc)
            remote = None
        if remote is None:
            logger.debug("No inbound context for %r, starting a new trace", operation_name)
        return self.start_span(
            operation_name,
            parent=remote,
            start_time_ns=start_time_ns,
            tags=tags,
        )

    def record(self, span: FinishedSpan) -> None:
        """
        Forward a finished span to the recorder if its trace is sampled.

        Recorder failures are logged and never raised to the caller.
        """
        if not span.context.sampled:
            return
        try:
            self._recorder.record(span)
        except Exception:
            logger.exception(
                "Recorder %s failed to record span %r",
                type(self._recorder).__name__,
                span.operation_name,
            )
