"""OTLP exporter using the OpenTelemetry OTLP HTTP exporter."""

from __future__ import annotations

import json
from typing import Any, Iterable, List, Optional

from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter as OTelOTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import Event, ReadableSpan
from opentelemetry.sdk.trace.export import SpanExporter as OTelSpanExporter, SpanExportResult
from opentelemetry.sdk.util.instrumentation import InstrumentationScope
from opentelemetry.trace import SpanContext as OTelSpanContext, SpanKind, Status, StatusCode, TraceFlags

from tracewire.tracer.span import FinishedSpan

INSTRUMENTATION_SCOPE = "tracewire"


class OTLPExporter:
    """
    Exports finished span snapshots in OTLP format.

    Snapshots are converted to OpenTelemetry ``ReadableSpan`` objects and
    handed to OpenTelemetry's OTLP/HTTP span exporter. Meant to sit behind a
    ``BatchRecorder``, which calls ``export()`` off the request path.
    """

    def __init__(
        self,
        endpoint: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        headers: Optional[dict] = None,
        service_name: str = "tracewire",
        span_exporter: Optional[OTelSpanExporter] = None,
    ) -> None:
        """
        Initialize OTLP exporter.

        Args:
            endpoint: OTLP endpoint URL (defaults to OTel default)
            api_key: Optional API key, sent as a bearer token
            timeout: Request timeout in seconds
            headers: Optional additional headers
            service_name: ``service.name`` resource attribute
            span_exporter: Pre-built OTel span exporter, replaces the HTTP one
        """
        if span_exporter is None:
            export_headers = dict(headers) if headers else {}
            if api_key:
                export_headers["Authorization"] = f"Bearer {api_key}"
            span_exporter = OTelOTLPSpanExporter(
                endpoint=endpoint,
                timeout=timeout,
                headers=export_headers if export_headers else None,
            )
        self._otel_exporter = span_exporter
        self._resource = Resource.create({"service.name": service_name})
        self._scope = InstrumentationScope(INSTRUMENTATION_SCOPE)

        self.endpoint = endpoint
        self.timeout = timeout

    def export(self, spans: Iterable[FinishedSpan]) -> bool:
        """
        Export spans using OTLP format.

        Returns:
            True if export succeeded, False otherwise
        """
        readable_spans = [self.to_readable_span(span) for span in spans]
        if not readable_spans:
            return True
        result = self._otel_exporter.export(readable_spans)
        return result == SpanExportResult.SUCCESS

    def to_readable_span(self, span: FinishedSpan) -> ReadableSpan:
        """Convert a tracewire snapshot into an OTel ReadableSpan."""
        ctx = span.context
        trace_flags = TraceFlags(TraceFlags.SAMPLED if ctx.sampled else TraceFlags.DEFAULT)
        otel_context = OTelSpanContext(
            trace_id=ctx.trace_id,
            span_id=ctx.span_id,
            is_remote=False,
            trace_flags=trace_flags,
        )
        parent = None
        if ctx.parent_id:
            parent = OTelSpanContext(
                trace_id=ctx.trace_id,
                span_id=ctx.parent_id,
                is_remote=False,
                trace_flags=trace_flags,
            )

        if span.tags.get("error") is True:
            status = Status(status_code=StatusCode.ERROR)
        else:
            status = Status(status_code=StatusCode.UNSET)

        return ReadableSpan(
            name=span.operation_name,
            context=otel_context,
            parent=parent,
            resource=self._resource,
            attributes=dict(span.tags),
            events=self._events(span),
            links=(),
            kind=SpanKind.INTERNAL,
            status=status,
            start_time=span.start_time_ns,
            end_time=span.finish_time_ns,
            instrumentation_scope=self._scope,
        )

    def _events(self, span: FinishedSpan) -> List[Event]:
        events = []
        for record in span.logs:
            attributes: dict = {}
            if record.payload is not None:
                attributes["payload"] = _payload_to_json(record.payload)
            events.append(Event(name=record.event, attributes=attributes, timestamp=record.timestamp_ns))
        return events

    def shutdown(self) -> None:
        """Shutdown the exporter."""
        self._otel_exporter.shutdown()

    def force_flush(self, timeout_millis: Optional[int] = None) -> None:
        """Force flush any pending spans."""
        self._otel_exporter.force_flush(timeout_millis=timeout_millis or 30000)


def _payload_to_json(payload: Any) -> str:
    # Recorded payload mappings are read-only proxies
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), default=dict)
