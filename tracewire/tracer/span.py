"""Span implementation: the local, mutable record of one unit of work."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union, TYPE_CHECKING

from tracewire.errors import UnsupportedValue, UseAfterFinish
from tracewire.tracer.span_context import SpanContext

if TYPE_CHECKING:
    from tracewire.tracer.tracer import Tracer

TagValue = Union[str, int, float, bool]

_TAG_TYPES = (str, int, float, bool)
_PAYLOAD_SCALARS = (str, int, float, bool, type(None))


class SpanState(Enum):
    OPEN = 0
    FINISHED = 1


@dataclass(frozen=True)
class LogRecord:
    timestamp_ns: int
    event: str
    payload: Any = None


@dataclass(frozen=True)
class FinishedSpan:
    """Immutable snapshot of a finished span, as handed to recorders."""

    operation_name: str
    context: SpanContext
    start_time_ns: int
    finish_time_ns: int
    tags: Mapping[str, TagValue] = field(default_factory=dict)
    logs: Tuple[LogRecord, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "tags", MappingProxyType(dict(self.tags)))
        object.__setattr__(self, "logs", tuple(self.logs))

    @property
    def duration_ns(self) -> int:
        return self.finish_time_ns - self.start_time_ns


def validate_tag(key: str, value: Any) -> None:
    if not isinstance(key, str) or not key:
        raise UnsupportedValue("tag key must be a non-empty string", {"key": repr(key)})
    if not isinstance(value, _TAG_TYPES):
        raise UnsupportedValue(
            "tag value must be str, int, float or bool",
            {"key": key, "type": type(value).__name__},
        )


def copy_payload(payload: Any) -> Any:
    """
    Make a frozen deep copy of a log payload, rejecting anything that is
    not plain data.

    Accepted: dicts with string keys, lists, tuples, str, int, float, bool
    and None, nested arbitrarily. Dicts come back as read-only mappings and
    lists as tuples, so a recorded payload cannot be changed afterwards.

    Raises:
        UnsupportedValue: On cyclic structures or any other object type
    """
    return _copy_payload(payload, set())


def _copy_payload(value: Any, ancestors: set) -> Any:
    if isinstance(value, _PAYLOAD_SCALARS):
        return value
    if not isinstance(value, (dict, MappingProxyType, list, tuple)):
        raise UnsupportedValue(
            "log payload contains an unsupported value",
            {"type": type(value).__name__},
        )
    marker = id(value)
    if marker in ancestors:
        raise UnsupportedValue("log payload contains a cycle")
    ancestors.add(marker)
    try:
        if isinstance(value, (dict, MappingProxyType)):
            copied = {}
            for key, item in value.items():
                if not isinstance(key, str):
                    raise UnsupportedValue(
                        "log payload keys must be strings",
                        {"key": repr(key)},
                    )
                copied[key] = _copy_payload(item, ancestors)
            return MappingProxyType(copied)
        return tuple(_copy_payload(item, ancestors) for item in value)
    finally:
        ancestors.discard(marker)


class Span:
    """
    One unit of work within a trace.

    A span is owned by a single thread of execution and is not
    synchronized. It is open until ``finish()`` is called; after that every
    mutating method raises ``UseAfterFinish``.
    """

    def __init__(
        self,
        tracer: "Tracer",
        operation_name: str,
        context: SpanContext,
        start_time_ns: Optional[int] = None,
        tags: Optional[Mapping[str, TagValue]] = None,
    ) -> None:
        """
        Initialize an open span.

        Args:
            tracer: Tracer that created the span and receives it on finish
            operation_name: Name of the logical operation
            context: Identity of the span, owned by it from now on
            start_time_ns: Start timestamp, defaults to now
            tags: Initial tags
        """
        self._tracer = tracer
        self._operation_name = operation_name
        self._context = context
        self.start_time_ns = start_time_ns if start_time_ns is not None else time.time_ns()
        self.finish_time_ns: Optional[int] = None
        self._state = SpanState.OPEN
        self._tags: Dict[str, TagValue] = {}
        self._logs: List[LogRecord] = []
        if tags:
            self.add_tags(tags)

    @property
    def tracer(self) -> "Tracer":
        return self._tracer

    @property
    def context(self) -> SpanContext:
        return self._context

    @property
    def operation_name(self) -> str:
        return self._operation_name

    @property
    def state(self) -> SpanState:
        return self._state

    @property
    def is_finished(self) -> bool:
        return self._state is SpanState.FINISHED

    @property
    def tags(self) -> Mapping[str, TagValue]:
        """Read-only view of the current tags."""
        return MappingProxyType(self._tags)

    @property
    def logs(self) -> Tuple[LogRecord, ...]:
        return tuple(self._logs)

    @property
    def duration_ns(self) -> Optional[int]:
        if self.finish_time_ns is None:
            return None
        return self.finish_time_ns - self.start_time_ns

    def _check_open(self, operation: str) -> None:
        if self._state is SpanState.FINISHED:
            raise UseAfterFinish(
                "span is already finished",
                {"operation": operation, "span": self._operation_name},
            )

    def set_operation_name(self, name: str) -> "Span":
        self._check_open("set_operation_name")
        if not isinstance(name, str) or not name:
            raise ValueError("operation name must be a non-empty string")
        self._operation_name = name
        return self

    def set_tag(self, key: str, value: TagValue) -> "Span":
        """Set a single tag. Setting an existing key overwrites it."""
        self._check_open("set_tag")
        validate_tag(key, value)
        self._tags[key] = value
        return self

    def add_tags(self, tags: Mapping[str, TagValue]) -> "Span":
        """
        Set several tags at once.

        All pairs are validated before any is applied, so a rejected value
        leaves the span's tags unchanged.
        """
        self._check_open("add_tags")
        for key, value in tags.items():
            validate_tag(key, value)
        self._tags.update(tags)
        return self

    def set_baggage_item(self, key: str, value: str) -> "Span":
        """
        Attach a baggage item that every descendant span will inherit.

        The span's context is replaced; contexts already handed to children
        or codecs keep their old baggage.

        Raises:
            InvalidBaggageKey: If the key does not match ``[a-z0-9][-a-z0-9]*``
        """
        self._check_open("set_baggage_item")
        self._context = self._context.with_baggage_item(key, value)
        return self

    def get_baggage_item(self, key: str) -> Optional[str]:
        return self._context.get_baggage_item(key)

    def log(
        self,
        event: str,
        payload: Any = None,
        timestamp_ns: Optional[int] = None,
    ) -> "Span":
        """
        Append a log record to the span.

        Args:
            event: Event name
            payload: Optional structured payload (plain data only)
            timestamp_ns: Event time, defaults to now
        """
        self._check_open("log")
        if not isinstance(event, str) or not event:
            raise UnsupportedValue("log event must be a non-empty string", {"event": repr(event)})
        record = LogRecord(
            timestamp_ns=timestamp_ns if timestamp_ns is not None else time.time_ns(),
            event=event,
            payload=copy_payload(payload),
        )
        self._logs.append(record)
        return self

    def finish(self, finish_time_ns: Optional[int] = None) -> None:
        """
        Finish the span and hand a snapshot to the tracer.

        The span is finished locally whether or not it is sampled, and
        regardless of what the recorder does with the snapshot.
        """
        self._check_open("finish")
        self.finish_time_ns = finish_time_ns if finish_time_ns is not None else time.time_ns()
        self._state = SpanState.FINISHED
        self._tracer.record(self.snapshot())

    def snapshot(self) -> FinishedSpan:
        if self.finish_time_ns is None:
            raise ValueError("cannot snapshot an unfinished span")
        return FinishedSpan(
            operation_name=self._operation_name,
            context=self._context,
            start_time_ns=self.start_time_ns,
            finish_time_ns=self.finish_time_ns,
            tags=self._tags,
            logs=self._logs,
        )

    # Context manager support
    def __enter__(self) -> "Span":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if self.is_finished:
            return False
        if exc is not None:
            self.set_tag("error", True)
            self.log("error", {"error.kind": exc_type.__name__, "message": str(exc)})
        self.finish()
        return False

    def __repr__(self) -> str:
        return (
            f"Span(operation_name={self._operation_name!r}, "
            f"trace_id={self._context.trace_id:016x}, "
            f"span_id={self._context.span_id:016x}, state={self._state.name})"
        )
