"""
Debounce utility.

Collapses a burst of calls into one trailing call on the running asyncio
loop. The wrapped function receives the arguments of the last call.
"""

import asyncio
import functools
import logging
from typing import Any, Callable, Optional, Set

logger = logging.getLogger("perfdash.dashboard")


class Debouncer:
    """Trailing-edge debounce for plain functions and coroutine functions."""

    def __init__(self, func: Callable, delay: float):
        self.func = func
        self.delay = delay
        self._handle: Optional[asyncio.TimerHandle] = None
        self._tasks: Set[asyncio.Task] = set()
        functools.update_wrapper(self, func)

    def __call__(self, *args, **kwargs) -> None:
        """Reset the timer; only the last call within ``delay`` runs."""
        loop = asyncio.get_running_loop()
        if self._handle is not None:
            self._handle.cancel()
        self._handle = loop.call_later(self.delay, self._fire, args, kwargs)

    @property
    def pending(self) -> bool:
        """True while a call is waiting for the quiet period to end."""
        return self._handle is not None

    @property
    def running(self) -> int:
        """Number of coroutine executions still in flight."""
        return len(self._tasks)

    def _fire(self, args: tuple, kwargs: dict) -> None:
        self._handle = None
        try:
            result = self.func(*args, **kwargs)
        except Exception:
            logger.exception("debounced call to %s failed", self.__name__)
            return
        if asyncio.iscoroutine(result):
            task = asyncio.ensure_future(result)
            self._tasks.add(task)
            task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("debounced call to %s failed: %s", self.__name__, exc, exc_info=exc)

    def cancel(self) -> None:
        """Drop the pending call, if any. In-flight executions are not aborted."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    async def drain(self) -> None:
        """Wait for all in-flight executions to finish."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


def debounce(delay: float) -> Callable[[Callable], Debouncer]:
    """Decorator form of :class:`Debouncer`."""
    def decorator(func: Callable) -> Debouncer:
        return Debouncer(func, delay)
    return decorator
