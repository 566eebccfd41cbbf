"""Network sinks forwarding samples to the remote server."""

from __future__ import annotations

from typing import Any

from heartwatch._constants import SINK_SOCKET
from heartwatch.config import HeartwatchConfig
from heartwatch.sinks.base import SampleSink
from heartwatch.sinks.http import HttpSink
from heartwatch.sinks.socket import SocketSink


def create_sink(config: HeartwatchConfig, **kwargs: Any) -> SampleSink:
    """Build the sink variant named by ``config.sink``.

    Extra keyword arguments go to the sink constructor (``session`` for
    HTTP, ``client_factory`` for the socket channel).
    """
    if config.sink == SINK_SOCKET:
        return SocketSink(config, **kwargs)
    return HttpSink(config, **kwargs)


__all__ = ["HttpSink", "SampleSink", "SocketSink", "create_sink"]
