"""What a full span queue gives up when another span arrives."""

from __future__ import annotations

import logging
from typing import Deque, Dict, Optional, Type, TYPE_CHECKING

if TYPE_CHECKING:
    from tracewire.tracer.span import FinishedSpan

logger = logging.getLogger(__name__)


class DropPolicy:
    """
    Overflow strategy for a bounded span queue.

    A policy instance belongs to one queue: it counts the spans it has
    discarded and reports each one.
    """

    name = ""

    def __init__(self) -> None:
        self.dropped = 0

    def admit(
        self,
        queue: Deque[FinishedSpan],
        span: FinishedSpan,
        capacity: int,
    ) -> Optional[FinishedSpan]:
        """
        Put ``span`` into ``queue`` without exceeding ``capacity``.

        Must be called with the queue's lock held.

        Returns:
            The span that was discarded to respect the capacity, or None
        """
        victim = None
        if len(queue) >= capacity:
            victim = self.choose_victim(queue, span)
        if victim is not span:
            queue.append(span)
        if victim is not None:
            self.dropped += 1
            logger.warning(
                "Span queue full (%d), %s policy dropped span %r (%d dropped so far)",
                capacity,
                self.name,
                victim.operation_name,
                self.dropped,
            )
        return victim

    def choose_victim(self, queue: Deque[FinishedSpan], span: FinishedSpan) -> FinishedSpan:
        """Remove and return the span to give up, possibly the incoming ``span``."""
        raise NotImplementedError


class DropOldestPolicy(DropPolicy):
    """Evict the longest-waiting span to make room for the new one."""

    name = "oldest"

    def choose_victim(self, queue: Deque[FinishedSpan], span: FinishedSpan) -> FinishedSpan:
        return queue.popleft()


class DropNewestPolicy(DropPolicy):
    """Keep what is queued and give up the incoming span."""

    name = "newest"

    def choose_victim(self, queue: Deque[FinishedSpan], span: FinishedSpan) -> FinishedSpan:
        return span


DROP_POLICIES: Dict[str, Type[DropPolicy]] = {
    DropOldestPolicy.name: DropOldestPolicy,
    DropNewestPolicy.name: DropNewestPolicy,
}


def drop_policy_for(name: str) -> DropPolicy:
    """
    Build a fresh policy from its configuration name.

    Raises:
        ValueError: If no policy has that name
    """
    try:
        return DROP_POLICIES[name]()
    except KeyError:
        raise ValueError(
            f"unknown drop policy {name!r}, expected one of {sorted(DROP_POLICIES)}"
        ) from None
