"""Sink interface shared by the HTTP and socket variants."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from typing import Any, Protocol

from heartwatch.models.sample import HeartRateSample

DisconnectHandler = Callable[[], None]


class SampleSink(Protocol):
    """Structural sink interface used by the monitoring controller.

    ``send`` is fire-and-forget: it schedules delivery and returns at once.
    Having a protocol here makes it easy to pass test doubles while keeping
    the production sinks concrete.
    """

    @property
    def is_open(self) -> bool:
        ...

    async def open(self) -> None:
        ...

    async def close(self) -> None:
        ...

    def send(self, sample: HeartRateSample) -> None:
        ...

    def set_disconnect_handler(self, handler: DisconnectHandler | None) -> None:
        ...


class PendingSends:
    """Tracks fire-and-forget send tasks so ``close()`` can drain them."""

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger
        self._tasks: set[asyncio.Task[Any]] = set()

    def __len__(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self, timeout: float) -> None:
        """Wait up to *timeout* seconds for pending sends, then cancel the rest."""
        pending = set(self._tasks)
        if not pending:
            return
        if timeout > 0:
            _done, pending = await asyncio.wait(pending, timeout=timeout)
        for task in pending:
            task.cancel()
        if pending:
            self._logger.debug("Cancelled %d in-flight send(s)", len(pending))
            await asyncio.gather(*pending, return_exceptions=True)
