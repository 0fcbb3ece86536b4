"""
Debounced task — cancel-and-reschedule.

Every trigger() restarts the quiet period; the callback runs once the
input has been still for `delay` seconds. `sleep` is injectable so tests
can drive time by hand.
"""
import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class Debouncer:
    def __init__(
        self,
        delay: float,
        callback: Callable[[], Any],
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.delay = delay
        self.callback = callback
        self._sleep = sleep
        self._task: Optional[asyncio.Task] = None

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def trigger(self):
        self.cancel()
        self._task = asyncio.get_running_loop().create_task(self._fire_later())

    def cancel(self):
        if self.pending:
            self._task.cancel()
        self._task = None

    async def _fire_later(self):
        await self._sleep(self.delay)
        self._task = None
        result = self.callback()
        if inspect.isawaitable(result):
            await result
