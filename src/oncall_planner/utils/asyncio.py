from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

from PySide6.QtCore import QObject, Signal


Scheduler = Callable[[float, Callable[[], None]], Callable[[], None]]


class AsyncBridge(QObject):
    """Run a coroutine on the asyncio loop and report back through a Qt signal."""

    task_completed = Signal(object, object)

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        super().__init__()
        self._loop = loop or asyncio.get_event_loop()

    def run_coroutine(self, coro: Awaitable[object]) -> None:
        asyncio.ensure_future(self._wrap(coro), loop=self._loop)

    async def _wrap(self, coro: Awaitable[object]) -> None:
        error = None
        result = None
        try:
            result = await coro
        except Exception as exc:  # noqa: BLE001
            error = exc
        self.task_completed.emit(result, error)


def call_later(delay: float, func: Callable[[], None]) -> Callable[[], None]:
    """Schedule ``func`` on the current loop; returns a cancel callable."""
    loop = asyncio.get_event_loop()
    handler = loop.call_later(delay, func)
    return handler.cancel


__all__ = [
    "AsyncBridge",
    "Scheduler",
    "call_later",
]
