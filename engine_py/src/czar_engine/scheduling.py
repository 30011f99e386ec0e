"""
Cancellable delayed callbacks for round timers and disconnect grace periods.
"""

import asyncio
from typing import Callable, Optional, Protocol


class Cancellable(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> Cancellable: ...


class AsyncioScheduler:
    """Schedules callbacks on an asyncio event loop.

    Callbacks run on the loop thread, so they interleave with websocket
    handlers only between awaits. Without an explicit loop the running
    loop of the caller is used.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)
