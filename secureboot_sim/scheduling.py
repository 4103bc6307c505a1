"""
Cancelable one-shot timers for auto-advance.

The engine only needs "run this callback after N milliseconds" plus
cancel. Two schedulers are provided:
- AsyncioScheduler: real time, on the running asyncio event loop
- ManualScheduler: virtual clock advanced explicitly by the host
"""

import asyncio
import heapq
import itertools
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Tuple


class TimerHandle(ABC):
    """Handle for a scheduled callback."""

    @abstractmethod
    def cancel(self) -> None:
        """Prevent the callback from running. Idempotent."""
        pass

    @property
    @abstractmethod
    def cancelled(self) -> bool:
        pass


class Scheduler(ABC):
    """
    Abstract interface for one-shot timers.

    Implementations must never run a callback whose handle
    was cancelled.
    """

    @abstractmethod
    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        """Schedule `callback` to run once after `delay_ms` milliseconds."""
        pass


class _AsyncioTimerHandle(TimerHandle):

    def __init__(self, handle: asyncio.TimerHandle):
        self._handle = handle

    def cancel(self) -> None:
        self._handle.cancel()

    @property
    def cancelled(self) -> bool:
        return self._handle.cancelled()


class AsyncioScheduler(Scheduler):
    """
    Scheduler backed by an asyncio event loop.

    With no explicit loop, the running loop is used, so `call_later`
    must then be called from inside a coroutine or loop callback.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return _AsyncioTimerHandle(loop.call_later(max(delay_ms, 0) / 1000.0, callback))


class _ManualTimerHandle(TimerHandle):

    def __init__(self, due_ms: float, callback: Callable[[], None]):
        self.due_ms = due_ms
        self.callback = callback
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class ManualScheduler(Scheduler):
    """
    Deterministic scheduler driven by a virtual millisecond clock.

    Nothing fires until the host calls `advance()` or `run_next()`.
    Callbacks due at the same instant fire in scheduling order.
    """

    def __init__(self):
        self._now_ms = 0.0
        self._queue: List[Tuple[float, int, _ManualTimerHandle]] = []
        self._seq = itertools.count()

    @property
    def now_ms(self) -> float:
        return self._now_ms

    @property
    def pending(self) -> int:
        """Number of scheduled, non-cancelled callbacks."""
        return sum(1 for _, _, h in self._queue if not h.cancelled)

    def next_due_ms(self) -> Optional[float]:
        self._drop_cancelled()
        return self._queue[0][0] if self._queue else None

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        handle = _ManualTimerHandle(self._now_ms + max(delay_ms, 0), callback)
        heapq.heappush(self._queue, (handle.due_ms, next(self._seq), handle))
        return handle

    def advance(self, delay_ms: float) -> int:
        """
        Move the clock forward, firing every callback that becomes due.

        Callbacks scheduled by a firing callback also run if they fall
        inside the window.

        Returns:
            Number of callbacks fired
        """
        target = self._now_ms + delay_ms
        fired = 0
        while True:
            self._drop_cancelled()
            if not self._queue or self._queue[0][0] > target:
                break
            due_ms, _, handle = heapq.heappop(self._queue)
            self._now_ms = due_ms
            handle.callback()
            fired += 1
        self._now_ms = target
        return fired

    def run_next(self) -> bool:
        """Jump to the next due time and fire what is due. False if none pending."""
        due = self.next_due_ms()
        if due is None:
            return False
        self.advance(due - self._now_ms)
        return True

    def _drop_cancelled(self) -> None:
        while self._queue and self._queue[0][2].cancelled:
            heapq.heappop(self._queue)
