"""Batching recorder with bounded queue and background flush."""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from typing import Deque, List, Optional, TYPE_CHECKING

from tracewire.processors.drop_policy import DropOldestPolicy, DropPolicy
from tracewire.recorder.base import Recorder

if TYPE_CHECKING:
    from tracewire.tracer.span import FinishedSpan

logger = logging.getLogger(__name__)


class BatchRecorder(Recorder):
    """
    Recorder that queues spans and exports them from a worker thread.

    ``record()`` only enqueues, so ``Span.finish()`` never waits on the
    exporter. The exporter is any object with ``export(spans) -> bool``
    (and optionally ``shutdown()``).
    """

    def __init__(
        self,
        exporter,
        *,
        max_queue_size: int = 5000,
        max_export_batch_size: int = 512,
        schedule_delay_millis: int = 5000,
        drop_policy: Optional[DropPolicy] = None,
    ) -> None:
        if max_queue_size <= 0 or max_export_batch_size <= 0:
            raise ValueError("queue and batch sizes must be positive")
        self.exporter = exporter
        self.max_queue_size = max_queue_size
        self.max_export_batch_size = max_export_batch_size
        self.schedule_delay = schedule_delay_millis / 1000.0
        self.drop_policy = drop_policy or DropOldestPolicy()

        self._queue: Deque[FinishedSpan] = deque()
        self._lock = threading.Lock()
        # Held for a whole drain-and-export so flushes never overlap
        self._export_lock = threading.Lock()
        self._event = threading.Event()
        self._shutdown = False
        self._worker = threading.Thread(
            target=self._worker_loop, name="tracewire-batch-recorder", daemon=True
        )
        self._worker.start()

    @property
    def dropped_spans(self) -> int:
        return self.drop_policy.dropped

    def record(self, span: FinishedSpan) -> None:
        with self._lock:
            if self._shutdown:
                logger.debug("Recorder shut down, dropping span %r", span.operation_name)
                return
            self.drop_policy.admit(self._queue, span, self.max_queue_size)
            if len(self._queue) >= self.max_export_batch_size:
                self._event.set()

    def force_flush(self, timeout: Optional[float] = None) -> None:
        """Export everything queued, or until ``timeout`` seconds elapse."""
        deadline = time.time() + timeout if timeout else None
        while True:
            flushed_any = self._flush_once()
            if not flushed_any:
                return
            if deadline and time.time() >= deadline:
                return

    def shutdown(self) -> None:
        with self._lock:
            if self._shutdown:
                return
            # record() refuses spans from here on
            self._shutdown = True
        self._event.set()
        self._worker.join(timeout=self.schedule_delay * 2)
        self.force_flush()
        shutdown = getattr(self.exporter, "shutdown", None)
        if shutdown is not None:
            try:
                shutdown()
            except Exception:
                logger.exception("Exporter shutdown failed")

    # Internal
    def _worker_loop(self) -> None:
        while not self._shutdown:
            self._event.wait(timeout=self.schedule_delay)
            self._event.clear()
            self._flush_once()

    def _flush_once(self) -> bool:
        with self._export_lock:
            spans = self._drain_queue(self.max_export_batch_size)
            if not spans:
                return False
            self._export(spans)
            return True

    def _drain_queue(self, limit: int) -> List[FinishedSpan]:
        items: List[FinishedSpan] = []
        with self._lock:
            while self._queue and len(items) < limit:
                items.append(self._queue.popleft())
        return items

    def _export(self, spans: List[FinishedSpan]) -> None:
        try:
            ok = self.exporter.export(spans)
        except Exception:
            logger.exception("Exporter %s raised", type(self.exporter).__name__)
            return
        if ok is False:
            logger.warning("Exporter %s failed to export %d spans", type(self.exporter).__name__, len(spans))
