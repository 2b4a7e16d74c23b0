"""Console exporter for developer visibility."""

from __future__ import annotations

import sys
from typing import Iterable

from tracewire.recorder.base import Recorder
from tracewire.tracer.span import FinishedSpan
from tracewire.utils.helpers import format_id


class ConsoleExporter(Recorder):
    """
    Prints spans to stdout (or provided stream).

    Usable directly as a recorder or as the exporter behind a BatchRecorder.
    """

    def __init__(self, stream=None) -> None:
        self.stream = stream or sys.stdout

    def record(self, span: FinishedSpan) -> None:
        self.export([span])

    def export(self, spans: Iterable[FinishedSpan]) -> bool:
        for span in spans:
            ctx = span.context
            line = (
                f"[span] name={span.operation_name} trace_id={format_id(ctx.trace_id)} "
                f"span_id={format_id(ctx.span_id)} "
                f"parent_id={format_id(ctx.parent_id) if ctx.parent_id else '-'} "
                f"duration_ns={span.duration_ns}"
            )
            if span.tags:
                line += f" tags={dict(span.tags)}"
            if ctx.baggage:
                line += f" baggage={dict(ctx.baggage)}"
            print(line, file=self.stream)
        return True
