"""Asyncio debouncing for rapidly changing input."""
import asyncio
import contextlib
from collections.abc import Callable
from typing import Generic, TypeVar

T = TypeVar("T")


class Debouncer(Generic[T]):
    """
    Delivers only the settled value of a stream of triggers.

    Each `trigger()` restarts the quiet window; `callback` runs once the window
    elapses with no newer trigger, receiving the most recent value.
    """

    def __init__(self, delay: float, callback: Callable[[T], None]) -> None:
        self._delay = delay
        self._callback = callback
        self._task: asyncio.Task | None = None

    @property
    def pending(self) -> bool:
        """True while a value is waiting for the window to elapse."""
        return self._task is not None and not self._task.done()

    def trigger(self, value: T) -> None:
        """Record a new value and restart the quiet window."""
        self.cancel()
        self._task = asyncio.create_task(self._fire(value))

    def cancel(self) -> None:
        """Drop the pending value, if any."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def wait(self) -> None:
        """Wait until the pending value (if any) has been delivered or cancelled."""
        task = self._task
        if task is None:
            return
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _fire(self, value: T) -> None:
        await asyncio.sleep(self._delay)
        self._callback(value)
