"""Trailing-edge debounce on the asyncio event loop."""

import asyncio
from typing import Callable


class Debouncer:
    """
    Run a callback once activity stops.

    Each trigger() restarts the timer; the callback fires once, delay
    seconds after the last trigger. Must be used from a running loop.
    """

    def __init__(self, delay: float, callback: Callable[[], None]):
        self.delay = delay
        self.callback = callback
        self._handle: asyncio.TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def trigger(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.delay, self._fire)

    def _fire(self) -> None:
        self._handle = None
        self.callback()

    def flush(self) -> None:
        """Run a pending callback now."""
        if self._handle is not None:
            self._handle.cancel()
            self._fire()

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
