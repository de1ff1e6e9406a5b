"""
Scheduler - Cancellable one-shot timers.

Feedback effects (shake-then-separate, bounce-apart, flash auto-clear) and
the save debounce are the only timed behavior in the engine. They go
through a Scheduler so the host decides how time passes:

- AsyncioScheduler: real time, one task per timer
- ManualScheduler: virtual clock advanced explicitly (tests, replays, CLI)

Callbacks must re-validate whatever they touch; a token scheduled for a
bounce may be gone by the time the timer fires.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable
import asyncio
import heapq
import itertools
import logging

logger = logging.getLogger(__name__)


class TimerHandle(ABC):
    """Handle to a scheduled callback."""

    @abstractmethod
    def cancel(self):
        pass

    @property
    @abstractmethod
    def cancelled(self) -> bool:
        pass


class Scheduler(ABC):
    """Creates one-shot timers."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        pass


# =============================================================================
# asyncio
# =============================================================================

class _TaskHandle(TimerHandle):
    def __init__(self, task: asyncio.Task):
        self._task = task

    def cancel(self):
        if not self._task.done():
            self._task.cancel()

    @property
    def cancelled(self) -> bool:
        return self._task.cancelled()


class AsyncioScheduler(Scheduler):
    """Timers as sleeping tasks on the running event loop."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        async def delayed():
            await asyncio.sleep(delay)
            try:
                callback()
            except Exception:
                logger.exception("Timer callback failed")

        return _TaskHandle(asyncio.get_running_loop().create_task(delayed()))


# =============================================================================
# Virtual clock
# =============================================================================

@dataclass
class _ManualHandle(TimerHandle):
    due: float
    seq: int
    callback: Callable[[], None]
    _cancelled: bool = False

    def cancel(self):
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def __lt__(self, other: _ManualHandle) -> bool:
        return (self.due, self.seq) < (other.due, other.seq)


@dataclass
class ManualScheduler(Scheduler):
    """
    Deterministic scheduler driven by advance().

    Usage:
        scheduler = ManualScheduler()
        scheduler.call_later(0.4, separate)
        scheduler.advance(0.4)  # separate() runs here
    """
    now: float = 0.0
    _queue: list[_ManualHandle] = field(default_factory=list)
    _seq: itertools.count = field(default_factory=itertools.count)

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        handle = _ManualHandle(due=self.now + max(0.0, delay), seq=next(self._seq), callback=callback)
        heapq.heappush(self._queue, handle)
        return handle

    @property
    def pending(self) -> int:
        return sum(1 for h in self._queue if not h.cancelled)

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing due callbacks in order. Returns how many ran."""
        target = self.now + seconds
        fired = 0
        while self._queue and self._queue[0].due <= target:
            handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self.now = handle.due
            handle.callback()
            fired += 1
        self.now = target
        return fired

    def run_all(self) -> int:
        """Fire everything pending, however far in the future."""
        fired = 0
        while self.pending:
            last = max(h.due for h in self._queue if not h.cancelled)
            fired += self.advance(max(0.0, last - self.now))
        return fired
