"""Timer scheduling used by the voice session

The session never touches the event loop directly. It asks a Scheduler for
delayed callbacks, which lets tests drive time by hand.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Callable, Optional, Protocol


class TimerHandle(Protocol):
    """Anything that can cancel a pending callback"""

    def cancel(self) -> None:
        ...


class Scheduler(ABC):
    """Delayed callback source"""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Run callback after delay seconds"""

    @abstractmethod
    def time(self) -> float:
        """Current time in seconds on the scheduler's clock"""


class AsyncioScheduler(Scheduler):
    """Schedules callbacks on a running asyncio event loop"""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self.loop.call_later(delay, callback)

    def time(self) -> float:
        return self.loop.time()
