"""Event queue driving every simulated action."""

from __future__ import annotations

import heapq
import logging
import math
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any


logger = logging.getLogger(__name__)


class InvalidSchedule(ValueError):
    """Raised when an event is scheduled before the current simulated time."""


@dataclass(slots=True, eq=False)
class EventHandle:
    """Reference returned by :meth:`EventScheduler.schedule`."""

    time: float
    seq: int
    action: Callable[..., Any]
    args: tuple = ()
    label: str | None = None
    cancelled: bool = False
    fired: bool = False

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.fired)


@dataclass(order=True, slots=True)
class Event:
    time: float
    seq: int
    handle: EventHandle = field(compare=False)


class EventScheduler:
    """Time ordered queue of callbacks.

    Events sharing the same timestamp run in the order they were scheduled,
    so two runs fed with the same inputs replay the same trace.
    """

    def __init__(self, *, trace: bool = False) -> None:
        self.now = 0.0
        self.event_queue: list[Event] = []
        self._seq = 0
        self._live = 0
        self.running = False
        self.executed = 0
        self.trace: list[tuple[float, int, str | None]] | None = [] if trace else None

    # ------------------------------------------------------------------
    def schedule(
        self,
        delay: float,
        action: Callable[..., Any],
        *args: Any,
        label: str | None = None,
    ) -> EventHandle:
        """Run ``action(*args)`` ``delay`` seconds from now."""
        if math.isnan(delay) or delay < 0:
            raise InvalidSchedule(f"delay must be >= 0, got {delay!r}")
        return self._push(self.now + delay, action, args, label)

    def schedule_at(
        self,
        time: float,
        action: Callable[..., Any],
        *args: Any,
        label: str | None = None,
    ) -> EventHandle:
        """Run ``action(*args)`` at absolute time ``time``."""
        if math.isnan(time) or time < self.now:
            raise InvalidSchedule(
                f"cannot schedule at t={time!r}, clock is already at t={self.now}"
            )
        return self._push(float(time), action, args, label)

    def _push(self, time, action, args, label) -> EventHandle:
        handle = EventHandle(time, self._seq, action, args, label)
        heapq.heappush(self.event_queue, Event(time, self._seq, handle))
        self._seq += 1
        self._live += 1
        return handle

    def cancel(self, handle: EventHandle | None) -> None:
        """Cancel ``handle``; no-op if it already fired or was cancelled."""
        if handle is None or not handle.pending:
            return
        handle.cancelled = True
        self._live -= 1
        # Entries are discarded lazily when they reach the head of the queue.

    # ------------------------------------------------------------------
    def pending(self) -> int:
        return self._live

    def _discard_cancelled(self) -> None:
        while self.event_queue and self.event_queue[0].handle.cancelled:
            heapq.heappop(self.event_queue)

    def next_time(self) -> float | None:
        """Return the fire time of the next live event, if any."""
        self._discard_cancelled()
        if not self.event_queue:
            return None
        return self.event_queue[0].time

    def step(self) -> bool:
        """Execute the next live event. Return ``False`` if the queue is empty."""
        self._discard_cancelled()
        if not self.event_queue:
            return False
        event = heapq.heappop(self.event_queue)
        handle = event.handle
        self.now = event.time
        handle.fired = True
        self._live -= 1
        self.executed += 1
        if self.trace is not None:
            self.trace.append((event.time, event.seq, handle.label))
        handle.action(*handle.args)
        return True

    def run_until(self, stop_time: float) -> int:
        """Process every event with ``time <= stop_time``.

        Returns the number of executed events. The clock is left at the time
        of the last executed event.
        """
        count = 0
        self.running = True
        try:
            while self.running:
                next_time = self.next_time()
                if next_time is None or next_time > stop_time:
                    break
                self.step()
                count += 1
        finally:
            self.running = False
        logger.debug("run_until(%.6f) executed %d events, t=%.6f", stop_time, count, self.now)
        return count

    def run(self) -> int:
        """Drain the queue."""
        return self.run_until(math.inf)

    def stop(self) -> None:
        """Stop the current :meth:`run_until` after the running action."""
        self.running = False


__all__ = ["Event", "EventHandle", "EventScheduler", "InvalidSchedule"]
