###########EXTERNAL IMPORTS############

import asyncio
import heapq
import itertools
from abc import ABC, abstractmethod
from typing import Callable, List, Tuple, Optional

#######################################

#############LOCAL IMPORTS#############

#######################################


class TimerHandle(ABC):
    """
    Cancellable handle of a callback scheduled with a Scheduler.
    """

    @abstractmethod
    def cancel(self) -> None:
        pass

    @abstractmethod
    def cancelled(self) -> bool:
        pass


class Scheduler(ABC):
    """
    Clock and timer source driving sampling sessions.

    Sessions never touch the event loop timers directly; they receive a
    Scheduler so their lifecycle can be driven by a manual clock in tests.
    """

    @abstractmethod
    def now(self) -> float:
        """
        Returns a monotonic time in seconds.
        """

        pass

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """
        Schedules a callback to run once after `delay` seconds.

        Returns:
            The handle that cancels the callback.
        """

        pass


class AsyncioTimerHandle(TimerHandle):
    def __init__(self, handle: asyncio.TimerHandle):
        self.handle = handle

    def cancel(self) -> None:
        self.handle.cancel()

    def cancelled(self) -> bool:
        return self.handle.cancelled()


class AsyncioScheduler(Scheduler):
    """
    Scheduler backed by the running asyncio event loop.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self.loop = loop

    def get_loop(self) -> asyncio.AbstractEventLoop:
        return self.loop or asyncio.get_running_loop()

    def now(self) -> float:
        return self.get_loop().time()

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        return AsyncioTimerHandle(self.get_loop().call_later(delay, callback))


class ManualTimerHandle(TimerHandle):
    def __init__(self, when: float, callback: Callable[[], None]):
        self.when = when
        self.callback = callback
        self.is_cancelled = False

    def cancel(self) -> None:
        self.is_cancelled = True

    def cancelled(self) -> bool:
        return self.is_cancelled


class ManualScheduler(Scheduler):
    """
    Scheduler with a clock that only moves when `advance()` is called.

    Callbacks due at the same instant run in the order they were scheduled.
    """

    def __init__(self, start: float = 0.0):
        self.time = start
        self.timers: List[Tuple[float, int, ManualTimerHandle]] = []
        self.sequence = itertools.count()

    def now(self) -> float:
        return self.time

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        handle = ManualTimerHandle(self.time + max(0.0, delay), callback)
        heapq.heappush(self.timers, (handle.when, next(self.sequence), handle))
        return handle

    def pending(self) -> List[ManualTimerHandle]:
        """
        Returns the scheduled callbacks that are neither cancelled nor fired.
        """

        return [handle for _, _, handle in sorted(self.timers) if not handle.cancelled()]

    def advance(self, seconds: float) -> int:
        """
        Moves the clock forward, running every callback that becomes due.

        Returns:
            The number of callbacks that ran.
        """

        target = self.time + seconds
        fired = 0
        while self.timers and self.timers[0][0] <= target:
            when, _, handle = heapq.heappop(self.timers)
            self.time = when
            if handle.cancelled():
                continue
            handle.callback()
            fired += 1
        self.time = target
        return fired
