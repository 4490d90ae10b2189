from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
import time
from abc import ABC, abstractmethod
from typing import Callable, List, Tuple

logger = logging.getLogger(__name__)

# Cancelled handles are purged once the heap holds at least this many entries
# and fewer than half of them are live.
COMPACT_MIN_QUEUE = 64


class TimerHandle(ABC):
    """A single pending callback that can be cancelled before it fires."""

    @abstractmethod
    def cancel(self) -> None:
        raise NotImplementedError

    @property
    @abstractmethod
    def cancelled(self) -> bool:
        raise NotImplementedError


class TimerScheduler(ABC):
    """Single-shot timer source used by the pacing controller."""

    @abstractmethod
    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        """Run ``callback`` once after ``delay_ms`` milliseconds."""
        raise NotImplementedError

    @abstractmethod
    def now(self) -> float:
        """Current time in seconds on this scheduler's clock."""
        raise NotImplementedError


class _AsyncioHandle(TimerHandle):
    def __init__(self, handle: asyncio.TimerHandle) -> None:
        self._handle = handle

    def cancel(self) -> None:
        self._handle.cancel()

    @property
    def cancelled(self) -> bool:
        return self._handle.cancelled()


class AsyncioScheduler(TimerScheduler):
    """Schedules callbacks on an asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        return _AsyncioHandle(self.loop.call_later(delay_ms / 1000.0, callback))

    def now(self) -> float:
        return time.time()


class ManualTimerHandle(TimerHandle):
    """Handle for a callback queued on a ManualScheduler."""

    def __init__(self, due: float, callback: Callable[[], None]) -> None:
        self.due = due
        self._callback = callback
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def _run(self) -> None:
        self._callback()


class ManualScheduler(TimerScheduler):
    """Virtual-clock scheduler that only runs callbacks when time is advanced.

    Useful for deterministic playback (timelines, tests): nothing fires on
    its own, ``advance`` and ``run_next`` move the clock and run due
    callbacks in due order.
    """

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self._queue: List[Tuple[float, int, ManualTimerHandle]] = []
        self._counter = itertools.count()

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> ManualTimerHandle:
        handle = ManualTimerHandle(self._now + delay_ms / 1000.0, callback)
        heapq.heappush(self._queue, (handle.due, next(self._counter), handle))
        self._compact()
        return handle

    def now(self) -> float:
        return self._now

    @property
    def pending(self) -> int:
        return sum(1 for _, _, handle in self._queue if not handle.cancelled)

    @property
    def queued(self) -> int:
        """Heap entries held, cancelled ones included."""
        return len(self._queue)

    def next_due(self) -> float | None:
        self._drop_cancelled()
        if not self._queue:
            return None
        return self._queue[0][0]

    def run_next(self) -> bool:
        """Jump to the next live callback and run it. Returns False if none is queued."""
        self._drop_cancelled()
        if not self._queue:
            return False
        due, _, handle = heapq.heappop(self._queue)
        self._now = max(self._now, due)
        handle._run()
        return True

    def advance(self, delay_ms: float) -> int:
        """Move the clock forward, running every callback that falls due. Returns the count run."""
        target = self._now + delay_ms / 1000.0
        ran = 0
        while True:
            due = self.next_due()
            if due is None or due > target:
                break
            self.run_next()
            ran += 1
        self._now = target
        return ran

    def run_all(self, limit: int = 1_000_000) -> int:
        """Run callbacks until the queue drains or ``limit`` is reached."""
        ran = 0
        while ran < limit and self.run_next():
            ran += 1
        if ran >= limit:
            logger.warning("ManualScheduler stopped after %s callbacks", limit)
        return ran

    def _drop_cancelled(self) -> None:
        while self._queue and self._queue[0][2].cancelled:
            heapq.heappop(self._queue)

    def _compact(self) -> None:
        if len(self._queue) < COMPACT_MIN_QUEUE:
            return
        live = [entry for entry in self._queue if not entry[2].cancelled]
        if len(live) * 2 < len(self._queue):
            heapq.heapify(live)
            self._queue = live
