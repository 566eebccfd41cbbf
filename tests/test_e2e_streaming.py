from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

import pytest
from conftest import settle

from heartwatch.config import HeartwatchConfig
from heartwatch.models.state import SessionState
from heartwatch.monitor import MonitoringController
from heartwatch.sensor import ManualHeartRateSource
from heartwatch.sinks import HttpSink, SocketSink


@dataclass
class FakeWatchDataServer:
    """Records what reaches the server over either sink variant."""

    received: list[dict[str, Any]] = field(default_factory=list)
    connected: bool = False
    handlers: dict[str, Any] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    closed: bool = False

    # aiohttp.ClientSession surface
    def post(self, url: str, *, data: str, headers: dict[str, str]) -> Any:
        self.received.append(json.loads(data))
        self.headers = headers

        class _Response:
            status = 201

            async def text(self, encoding: str = "utf-8", errors: str = "strict") -> str:
                return "{}"

            async def __aenter__(self) -> _Response:
                return self

            async def __aexit__(self, *exc: Any) -> None:
                return None

        return _Response()

    async def close(self) -> None:
        self.closed = True

    # socketio.AsyncClient surface
    def on(self, event: str, handler: Any) -> None:
        self.handlers[event] = handler

    async def connect(self, url: str, *, headers: dict[str, str], **_kwargs: Any) -> None:
        self.headers = headers
        self.connected = True

    async def emit(self, event: str, data: Any = None) -> None:
        assert event == "watchdata"
        self.received.append(data)
        await self.handlers["watchdataSaved"]({"saved": True})

    async def disconnect(self) -> None:
        self.connected = False
        await self.handlers["disconnect"]()

    async def drop_connection(self) -> None:
        self.connected = False
        await self.handlers["disconnect"]("transport error")


@pytest.mark.asyncio
async def test_http_streaming_session() -> None:
    server = FakeWatchDataServer()
    source = ManualHeartRateSource()
    config = HeartwatchConfig()
    controller = MonitoringController(source, HttpSink(config, session=server), config)  # type: ignore[arg-type]

    async with controller:
        assert await controller.start()
        source.push(72)
        await settle()
        source.push(70, 75)
        await settle(6)

    await settle()
    source.push(99)
    await settle()

    assert server.received == [{"heartRate": 72.0}, {"heartRate": 70.0}, {"heartRate": 75.0}]
    assert server.headers["content-type"] == "application/json"
    assert controller.current_heart_rate == 0


@pytest.mark.asyncio
async def test_socket_streaming_session_ends_on_dropped_connection() -> None:
    server = FakeWatchDataServer()
    source = ManualHeartRateSource()
    config = HeartwatchConfig(sink="socket", socket_token="tok")
    controller = MonitoringController.from_config(config, source, client_factory=lambda: server)

    assert isinstance(controller.sink, SocketSink)
    assert await controller.start()
    assert server.headers == {"authorization": "Bearer tok"}

    source.push(81)
    await settle(6)
    await server.drop_connection()
    await settle()
    source.push(82)
    await settle()

    assert controller.state is SessionState.IDLE
    assert controller.current_heart_rate == 0
    assert server.received == [{"heartRate": 81.0}]
    assert controller.subscription is None and controller.lease is None
