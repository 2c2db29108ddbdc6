"""Trailing-edge debouncer on top of the running asyncio loop."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional, Tuple

logger = logging.getLogger(__name__)


class Debouncer:
    """
    Calls *callback* once, *delay* seconds after the last ``call()``.

    Every ``call()`` cancels the armed timer and re-arms it with the new
    arguments, so a burst of calls produces exactly one callback carrying
    the arguments of the last call.
    """

    def __init__(self, delay: float, callback: Callable[..., Any]) -> None:
        self.delay = delay
        self.callback = callback
        self._handle: Optional[asyncio.TimerHandle] = None
        self._args: Tuple[Any, ...] = ()

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def call(self, *args: Any) -> None:
        if self._handle is not None:
            self._handle.cancel()
            logger.debug("debounce timer reset")
        self._args = args
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.delay, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._args = ()

    def flush(self) -> bool:
        """Fire immediately if armed. Returns whether anything fired."""
        if self._handle is None:
            return False
        self._handle.cancel()
        self._fire()
        return True

    def _fire(self) -> None:
        self._handle = None
        args, self._args = self._args, ()
        self.callback(*args)
