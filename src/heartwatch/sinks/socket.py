"""Persistent Socket.IO channel sink."""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable
from typing import Any

import socketio
from socketio import exceptions as socketio_exceptions

from heartwatch._constants import EVENT_ERROR, EVENT_WATCHDATA, EVENT_WATCHDATA_SAVED
from heartwatch._redact import redact_for_log
from heartwatch.config import HeartwatchConfig
from heartwatch.exceptions import HeartwatchConfigError, HeartwatchTransportError
from heartwatch.models.sample import HeartRatePayload, HeartRateSample
from heartwatch.sinks.base import DisconnectHandler, PendingSends

_logger = logging.getLogger(__name__)

ClientFactory = Callable[[], socketio.AsyncClient]


def _default_client_factory() -> socketio.AsyncClient:
    # Reconnection is off: a dropped channel ends the monitoring session.
    return socketio.AsyncClient(reconnection=False, logger=False, engineio_logger=False)


class SocketSink:
    """Emit every sample as a ``watchdata`` event over one Socket.IO connection.

    The connection is authenticated with a static bearer token and lives
    exactly as long as the monitoring session: :meth:`open` connects,
    :meth:`close` disconnects. A disconnect the sink did not ask for is
    reported through the handler set with :meth:`set_disconnect_handler`.
    ``watchdataSaved`` and ``error`` events from the server are logged only.
    """

    def __init__(
        self,
        config: HeartwatchConfig,
        *,
        client_factory: ClientFactory | None = None,
    ) -> None:
        if not (config.socket_token or "").strip():
            raise HeartwatchConfigError("socket sink requires socket_token")
        self._config = config
        self._client_factory = client_factory or _default_client_factory
        self._client: socketio.AsyncClient | None = None
        self._pending = PendingSends(_logger)
        self._on_disconnect: DisconnectHandler | None = None
        self._closing = False

    @property
    def is_open(self) -> bool:
        client = self._client
        return client is not None and bool(client.connected)

    def set_disconnect_handler(self, handler: DisconnectHandler | None) -> None:
        self._on_disconnect = handler

    def _headers(self) -> dict[str, str]:
        return {"authorization": f"Bearer {self._config.socket_token}"}

    async def open(self) -> None:
        if self.is_open:
            return
        client = self._client_factory()
        client.on("connect", self._handle_connect)
        client.on("disconnect", functools.partial(self._handle_disconnect, client))
        client.on(EVENT_WATCHDATA_SAVED, self._handle_saved)
        client.on(EVENT_ERROR, self._handle_error)

        headers = self._headers()
        url = self._config.socket_url
        _logger.debug("Socket connect url=%s headers=%s", url, redact_for_log(headers))

        self._closing = False
        self._client = client
        try:
            await client.connect(
                url,
                headers=headers,
                transports=list(self._config.socket_transports),
                wait_timeout=self._config.request_timeout,
            )
        except socketio_exceptions.ConnectionError as exc:
            if self._client is client:
                self._client = None
            raise HeartwatchTransportError(f"Socket connection to {url} failed: {exc}", endpoint=url) from exc

        if self._closing or self._client is not client:
            # close() ran during connect() and saw no connection to drop.
            _logger.debug("Socket sink closed while connecting, dropping connection")
            await self._disconnect(client)
            raise HeartwatchTransportError(f"Socket sink closed while connecting to {url}", endpoint=url)

    async def close(self) -> None:
        client = self._client
        self._closing = True
        await self._pending.drain(self._config.drain_timeout)
        self._client = None
        if client is None:
            return
        await self._disconnect(client)
        _logger.debug("Socket sink closed")

    async def _disconnect(self, client: socketio.AsyncClient) -> None:
        try:
            if client.connected:
                await client.disconnect()
        except socketio_exceptions.SocketIOError:
            _logger.debug("Socket disconnect failed", exc_info=True)

    def send(self, sample: HeartRateSample) -> None:
        client = self._client
        if client is None or not client.connected:
            _logger.warning("Socket not connected, dropping heart rate %s", sample.value)
            return
        payload = HeartRatePayload.from_sample(sample).to_wire()
        self._pending.spawn(self._emit_logged(client, payload))

    async def _emit_logged(self, client: socketio.AsyncClient, payload: dict[str, Any]) -> None:
        try:
            await client.emit(EVENT_WATCHDATA, payload)
        except socketio_exceptions.SocketIOError as exc:
            _logger.warning("Error emitting %s: %s", EVENT_WATCHDATA, exc)
            return
        _logger.debug("Emitted %s payload=%s", EVENT_WATCHDATA, payload)

    # ------------------------------------------------------------------
    # Server events
    # ------------------------------------------------------------------

    async def _handle_connect(self) -> None:
        _logger.info("Socket connected to %s", self._config.socket_url)

    async def _handle_disconnect(self, client: socketio.AsyncClient, *args: Any) -> None:
        reason = args[0] if args else None
        if self._closing or client is not self._client:
            _logger.debug("Socket disconnected reason=%s", reason)
            return
        _logger.warning("Socket disconnected by server reason=%s", reason)
        handler = self._on_disconnect
        if handler is None:
            return
        try:
            handler()
        except Exception:
            _logger.debug("Disconnect handler failed", exc_info=True)

    async def _handle_saved(self, data: Any = None) -> None:
        _logger.info("Server saved watch data: %s", redact_for_log(data))

    async def _handle_error(self, data: Any = None) -> None:
        _logger.warning("Server error event: %s", redact_for_log(data))
