"""Recorder that logs a summary of each finished span."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from tracewire.recorder.base import Recorder
from tracewire.utils.helpers import format_id


class LoggingRecorder(Recorder):
    """
    Logs span summary using the standard logging module.

    Usable directly as a recorder or as the exporter behind a BatchRecorder.
    """

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger or logging.getLogger("tracewire.traces")

    def record(self, span) -> None:
        self.export([span])

    def export(self, spans: Iterable) -> bool:
        for span in spans:
            self._log(span)
        return True

    def _log(self, span) -> None:
        ctx = span.context
        parent = format_id(ctx.parent_id) if ctx.parent_id else "-"
        self.logger.info(
            "[trace] name=%s trace_id=%s span_id=%s parent_id=%s duration_ns=%d tags=%s logs=%d",
            span.operation_name,
            format_id(ctx.trace_id),
            format_id(ctx.span_id),
            parent,
            span.duration_ns,
            dict(span.tags),
            len(span.logs),
        )
