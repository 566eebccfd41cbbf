"""Request-per-sample HTTP sink."""

from __future__ import annotations

import json
import logging

import aiohttp

from heartwatch._constants import USER_AGENT
from heartwatch.config import HeartwatchConfig
from heartwatch.exceptions import HeartwatchTransportError
from heartwatch.models.sample import HeartRatePayload, HeartRateSample
from heartwatch.sinks.base import DisconnectHandler, PendingSends

_logger = logging.getLogger(__name__)


class HttpSink:
    """POST every sample as ``{"heartRate": <value>}`` to a fixed URL.

    Sends are fire-and-forget. Failures are logged and never retried.
    An injected ``aiohttp.ClientSession`` is used as-is and left open on
    :meth:`close`; otherwise the sink owns a session per open/close cycle.
    """

    def __init__(
        self,
        config: HeartwatchConfig,
        *,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._pending = PendingSends(_logger)
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    @property
    def pending_sends(self) -> int:
        return len(self._pending)

    async def open(self) -> None:
        if self._open:
            return
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._config.request_timeout),
            )
        self._open = True
        _logger.debug("HTTP sink open url=%s", self._config.http_url)

    async def close(self) -> None:
        was_open = self._open
        self._open = False
        await self._pending.drain(self._config.drain_timeout)
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        if was_open:
            _logger.debug("HTTP sink closed")

    def set_disconnect_handler(self, handler: DisconnectHandler | None) -> None:
        """HTTP has no connection to lose; the handler is never called."""

    def send(self, sample: HeartRateSample) -> None:
        if not self._open:
            _logger.debug("HTTP sink closed, dropping sample value=%s", sample.value)
            return
        self._pending.spawn(self._send_logged(sample))

    async def _send_logged(self, sample: HeartRateSample) -> None:
        try:
            status = await self.post_sample(sample)
        except HeartwatchTransportError as exc:
            _logger.warning("Error sending heart rate: %s", exc)
            return
        _logger.info("Heart rate sent. Status: %s", status)

    async def post_sample(self, sample: HeartRateSample) -> int:
        """POST one sample and return the HTTP status code.

        Raises :class:`HeartwatchTransportError` on network failure or a
        non-2xx status.
        """
        session = self._http_session
        url = self._config.http_url
        if session is None:
            raise HeartwatchTransportError("HTTP sink is not open", endpoint=url)

        body = json.dumps(HeartRatePayload.from_sample(sample).to_wire())
        headers = {
            "content-type": "application/json",
            "user-agent": USER_AGENT,
        }

        _logger.debug("POST %s body=%s", url, body)

        try:
            async with session.post(url, data=body, headers=headers) as resp:
                if not 200 <= resp.status < 300:
                    text = await resp.text(errors="replace")
                    raise HeartwatchTransportError(
                        f"HTTP {resp.status} from {url}: {text[:200]}",
                        status_code=resp.status,
                        endpoint=url,
                    )
                return resp.status
        except HeartwatchTransportError:
            raise
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise HeartwatchTransportError(
                f"Request to {url} failed: {exc!r}",
                endpoint=url,
            ) from exc
