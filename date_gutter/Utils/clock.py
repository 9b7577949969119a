# clock.py
# Description: Timer sources for the coalescing window (asyncio-backed and virtual)
#
# Imports
import asyncio
import heapq
import itertools
from typing import Callable, List, Optional, Tuple
#
########################################################################################################################
#
# Classes:

class TimerHandle:
    """Cancellable handle returned by `Clock.call_later`."""

    def __init__(self, cancel_callback: Optional[Callable[[], None]] = None):
        self._cancel_callback = cancel_callback
        self.cancelled = False

    def cancel(self) -> None:
        if self.cancelled:
            return
        self.cancelled = True
        if self._cancel_callback is not None:
            self._cancel_callback()


class Clock:
    """Schedules a callback after a delay in seconds."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        raise NotImplementedError


class AsyncioClock(Clock):
    """Clock backed by the running asyncio event loop."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        loop = asyncio.get_running_loop()
        handle = loop.call_later(delay, callback)
        return TimerHandle(handle.cancel)


class VirtualClock(Clock):
    """
    A manually advanced clock for deterministic tests.

    Callbacks run synchronously inside `advance()`, in due-time order, so a
    test decides exactly when a coalescing window elapses.
    """

    def __init__(self):
        self.now = 0.0
        self._counter = itertools.count()
        self._queue: List[Tuple[float, int, TimerHandle, Callable[[], None]]] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle()
        heapq.heappush(self._queue, (self.now + max(delay, 0.0), next(self._counter), handle, callback))
        return handle

    @property
    def pending_count(self) -> int:
        return sum(1 for _, _, handle, _ in self._queue if not handle.cancelled)

    def advance(self, seconds: float) -> int:
        """Move time forward, firing every due callback. Returns how many fired."""
        target = self.now + seconds
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, handle, callback = heapq.heappop(self._queue)
            self.now = due
            if handle.cancelled:
                continue
            handle.cancelled = True
            callback()
            fired += 1
        self.now = target
        return fired

#
# End of clock.py
########################################################################################################################
