"""Timer scheduling for component auto-hide.

Timers are armed on the event loop that owns the session; the returned handle
is the cancellation token for that timer.
"""
import asyncio
from typing import Callable, Optional


class LoopScheduler:
    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now(self) -> float:
        """Monotonic time in seconds."""
        return self.loop.time()

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self.loop.call_later(delay, callback)
