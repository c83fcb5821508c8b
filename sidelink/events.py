"""Discrete-event scheduler driving the sidelink PHY timeline."""

import heapq
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Tuple


@dataclass
class Event:
    """Handle for a scheduled callback. Cancelling it is lazy."""

    time_us: float
    fn: Callable[..., Any]
    args: Tuple[Any, ...] = ()
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class EventScheduler:
    """Time-ordered event queue.

    Events are kept in a min-heap keyed by ``(time_us, seq)``; ``seq`` is a
    monotonically increasing insertion counter so events scheduled for the
    same instant run in the order they were scheduled. Cancelled events stay
    in the heap and are discarded when they reach the top.
    """

    def __init__(self) -> None:
        self._heap: List[Tuple[float, int, Event]] = []
        self._seq = 0
        self._now = 0.0
        self._stopped = False

    @property
    def now(self) -> float:
        """Current simulation time in microseconds."""
        return self._now

    def schedule(self, delay_us: float, fn: Callable[..., Any], *args: Any) -> Event:
        """Run ``fn(*args)`` ``delay_us`` microseconds from now."""

        if delay_us < 0:
            raise ValueError(f"cannot schedule an event in the past (delay {delay_us} us)")
        event = Event(self._now + delay_us, fn, args)
        heapq.heappush(self._heap, (event.time_us, self._seq, event))
        self._seq += 1
        return event

    def schedule_now(self, fn: Callable[..., Any], *args: Any) -> Event:
        return self.schedule(0.0, fn, *args)

    def cancel(self, event: Optional[Event]) -> None:
        if event is not None:
            event.cancel()

    def stop(self) -> None:
        """Stop :meth:`run` after the event currently executing."""
        self._stopped = True

    def run(self, until_us: Optional[float] = None) -> None:
        """Process events in time order.

        With ``until_us`` set, events strictly after that instant are left in
        the queue and the clock is advanced to ``until_us``.
        """

        self._stopped = False
        while self._heap and not self._stopped:
            time_us, _seq, event = self._heap[0]
            if until_us is not None and time_us > until_us:
                break
            heapq.heappop(self._heap)
            if event.cancelled:
                continue
            self._now = time_us
            event.fn(*event.args)
        if until_us is not None and not self._stopped and until_us > self._now:
            self._now = until_us

    def pending(self) -> int:
        """Number of live (non-cancelled) events still queued."""
        return sum(1 for _t, _s, ev in self._heap if not ev.cancelled)

    def __len__(self) -> int:  # pragma: no cover - trivial
        return self.pending()

    def clear(self) -> None:
        """Drop all scheduled events and reset the clock."""

        self._heap.clear()
        self._seq = 0
        self._now = 0.0
