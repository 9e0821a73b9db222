# contentref/scheduling.py
from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Optional, Protocol


class Scheduler(Protocol):
    """
    The single-threaded event loop the editor runs on.

      * call_later(delay, cb): run cb after `delay` seconds, return a handle
      * cancel(handle):        drop a pending call_later or an in-flight run
      * call_soon(cb):         run cb on the loop thread as soon as possible
      * run(coro):             start a coroutine, return a cancellable handle
    """

    def call_later(self, delay: float, callback: Callable[[], None]) -> Any: ...
    def cancel(self, handle: Any) -> None: ...
    def call_soon(self, callback: Callable[[], None]) -> None: ...
    def run(self, coro: Awaitable[None]) -> Any: ...


class AsyncioScheduler:
    """Scheduler over an asyncio event loop (the running loop by default)."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self.loop.call_later(delay, callback)

    def cancel(self, handle: Any) -> None:
        if handle is not None:
            handle.cancel()

    def call_soon(self, callback: Callable[[], None]) -> None:
        self.loop.call_soon(callback)

    def run(self, coro: Awaitable[None]) -> asyncio.Future:
        return asyncio.ensure_future(coro, loop=self.loop)
