"""tracewire: trace identity, baggage and context propagation."""

from tracewire.tracer import (
    FinishedSpan,
    LogRecord,
    Span,
    SpanContext,
    SpanState,
    Tracer,
    TracerOptions,
)
from tracewire.processors import Sampler
from tracewire.propagation import (
    FORMAT_BINARY,
    FORMAT_TEXT_MAP,
    BinaryCarrier,
    Format,
)
from tracewire.recorder import (
    BatchRecorder,
    InMemoryRecorder,
    LoggingRecorder,
    NoopRecorder,
    Recorder,
)
from tracewire.errors import (
    ConfigError,
    InvalidBaggageKey,
    MalformedCarrier,
    TracewireError,
    UnsupportedFormat,
    UnsupportedValue,
    UseAfterFinish,
)
from tracewire.config import build_tracer, load_config

__version__ = "0.3.0"

__all__ = [
    "__version__",
    "Tracer",
    "TracerOptions",
    "Span",
    "SpanState",
    "SpanContext",
    "FinishedSpan",
    "LogRecord",
    "Sampler",
    "Format",
    "FORMAT_TEXT_MAP",
    "FORMAT_BINARY",
    "BinaryCarrier",
    "Recorder",
    "NoopRecorder",
    "InMemoryRecorder",
    "LoggingRecorder",
    "BatchRecorder",
    "TracewireError",
    "ConfigError",
    "InvalidBaggageKey",
    "MalformedCarrier",
    "UnsupportedFormat",
    "UnsupportedValue",
    "UseAfterFinish",
    "build_tracer",
    "load_config",
]
