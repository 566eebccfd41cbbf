from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

import pytest

from heartwatch.exceptions import HeartwatchTransportError
from heartwatch.models.sample import HeartRateSample
from heartwatch.sinks.base import DisconnectHandler


@dataclass
class RecordingSink:
    """In-memory sink that records every send."""

    fail_open: bool = False
    sent: list[float] = field(default_factory=list)
    open_calls: int = 0
    close_calls: int = 0
    disconnect_handler: DisconnectHandler | None = None
    _open: bool = False

    @property
    def is_open(self) -> bool:
        return self._open

    async def open(self) -> None:
        self.open_calls += 1
        if self.fail_open:
            raise HeartwatchTransportError("connection refused", endpoint="fake://sink")
        self._open = True

    async def close(self) -> None:
        self.close_calls += 1
        self._open = False

    def send(self, sample: HeartRateSample) -> None:
        self.sent.append(sample.value)

    def set_disconnect_handler(self, handler: DisconnectHandler | None) -> None:
        self.disconnect_handler = handler

    def server_disconnect(self) -> None:
        self._open = False
        if self.disconnect_handler is not None:
            self.disconnect_handler()


async def settle(rounds: int = 3) -> None:
    """Let callbacks scheduled with call_soon(_threadsafe) run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()
