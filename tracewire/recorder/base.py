"""Recorder interface: the sink for finished, sampled spans."""

from __future__ import annotations

from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from tracewire.tracer.span import FinishedSpan


class Recorder:
    """
    Base recorder interface.

    ``Tracer.record`` calls ``record()`` once per finished span whose trace
    is sampled. The call must not block on I/O for long: recorders that talk
    to a backend should queue the span and return (see ``BatchRecorder``).
    Exceptions raised here are logged by the tracer and otherwise ignored.
    """

    def record(self, span: "FinishedSpan") -> None:
        raise NotImplementedError

    def shutdown(self) -> None:
        """Shutdown the recorder."""
        pass

    def force_flush(self, timeout: Optional[float] = None) -> None:
        """Force flush any pending spans."""
        pass


class NoopRecorder(Recorder):
    """Discards every span."""

    def record(self, span: "FinishedSpan") -> None:
        return None
