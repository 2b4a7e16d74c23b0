"""Recorder that keeps finished spans in memory."""

from __future__ import annotations

import threading
from typing import List, TYPE_CHECKING

from tracewire.recorder.base import Recorder

if TYPE_CHECKING:
    from tracewire.tracer.span import FinishedSpan


class InMemoryRecorder(Recorder):
    """Collects span snapshots in a list, mainly for tests."""

    def __init__(self) -> None:
        self._spans: List["FinishedSpan"] = []
        self._lock = threading.Lock()

    def record(self, span: "FinishedSpan") -> None:
        with self._lock:
            self._spans.append(span)

    def export(self, spans) -> bool:
        for span in spans:
            self.record(span)
        return True

    @property
    def spans(self) -> List["FinishedSpan"]:
        with self._lock:
            return list(self._spans)

    def clear(self) -> None:
        with self._lock:
            self._spans.clear()
