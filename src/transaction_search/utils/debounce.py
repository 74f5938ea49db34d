"""Debounced scheduling of coroutines on the running event loop."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Set

logger = logging.getLogger(__name__)


class Debouncer:
    """
    Runs a coroutine once input has been quiet for ``delay`` seconds.

    Each ``schedule`` call resets the timer; only the last callback
    scheduled before the quiet period runs. Callbacks that already started
    are never cancelled.
    """

    def __init__(self, delay: float):
        """
        Initialize debouncer.

        Args:
            delay: Quiet period in seconds
        """
        self.delay = delay
        self._handle: Optional[asyncio.TimerHandle] = None
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> bool:
        """Whether a callback is waiting for the quiet period to end."""
        return self._handle is not None

    def schedule(self, callback: Callable[[], Awaitable[None]]) -> None:
        """Reset the timer and run ``callback`` when it expires."""
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.delay, self._fire, callback)

    def cancel(self) -> None:
        """Drop the waiting callback, if any."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self, callback: Callable[[], Awaitable[None]]) -> None:
        self._handle = None
        task = asyncio.ensure_future(callback())
        self._tasks.add(task)
        task.add_done_callback(self._on_done)

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Debounced callback failed: {task.exception()}")

    async def wait(self) -> None:
        """Wait until nothing is scheduled and every started callback finished."""
        while self._handle is not None or self._tasks:
            if self._tasks:
                await asyncio.gather(*list(self._tasks), return_exceptions=True)
            else:
                await asyncio.sleep(self.delay / 2 if self.delay > 0 else 0)
