"""Recorders receiving finished, sampled spans."""

from tracewire.recorder.base import NoopRecorder, Recorder
from tracewire.recorder.batch_recorder import BatchRecorder
from tracewire.recorder.logging_recorder import LoggingRecorder
from tracewire.recorder.memory_recorder import InMemoryRecorder

__all__ = [
    "Recorder",
    "NoopRecorder",
    "InMemoryRecorder",
    "LoggingRecorder",
    "BatchRecorder",
]
