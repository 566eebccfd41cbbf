"""Client configuration for heartwatch."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from typing import Any

from heartwatch._constants import DEFAULT_HTTP_URL, DEFAULT_SOCKET_URL, SINK_HTTP, SINK_KINDS, SINK_SOCKET
from heartwatch.exceptions import HeartwatchConfigError


def _env_float(env: Mapping[str, str], key: str) -> float | None:
    value = env.get(key)
    if value is None:
        return None
    try:
        return float(value)
    except ValueError as exc:
        raise HeartwatchConfigError(f"{key} must be a number, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class HeartwatchConfig:
    """Streaming client configuration.

    Parameters
    ----------
    sink : str
        Network sink variant, ``"http"`` (one POST per sample) or
        ``"socket"`` (persistent Socket.IO channel).
    http_url : str
        Endpoint receiving ``{"heartRate": <value>}`` POST requests.
    socket_url : str
        Socket.IO server URL.
    socket_token : str or None
        Static bearer token sent in the ``authorization`` header when the
        socket channel connects. Required for the ``socket`` sink.
    socket_transports : tuple of str
        Engine.IO transports to try, in order.
    request_timeout : float
        Seconds before an HTTP send or socket connect is abandoned.
    drain_timeout : float
        Seconds ``close()`` waits for in-flight sends before cancelling them.
    lease_duration : float
        Length of the background execution lease in seconds.
    lease_warning : float
        How long before expiry the lease signals that it will expire.
        Monitoring stops on that signal.
    """

    sink: str = SINK_HTTP
    http_url: str = DEFAULT_HTTP_URL
    socket_url: str = DEFAULT_SOCKET_URL
    socket_token: str | None = None
    socket_transports: tuple[str, ...] = ("websocket",)
    request_timeout: float = 10.0
    drain_timeout: float = 2.0
    lease_duration: float = 3600.0
    lease_warning: float = 5.0

    def __post_init__(self) -> None:
        if self.sink not in SINK_KINDS:
            raise HeartwatchConfigError(f"sink must be one of {sorted(SINK_KINDS)}, got {self.sink!r}")
        if self.sink == SINK_SOCKET and not (self.socket_token or "").strip():
            raise HeartwatchConfigError("socket sink requires socket_token")
        if self.request_timeout <= 0:
            raise HeartwatchConfigError(f"request_timeout ({self.request_timeout}) must be positive")
        if self.drain_timeout < 0:
            raise HeartwatchConfigError(f"drain_timeout ({self.drain_timeout}) must not be negative")
        if self.lease_duration <= 0:
            raise HeartwatchConfigError(f"lease_duration ({self.lease_duration}) must be positive")
        if not 0 <= self.lease_warning < self.lease_duration:
            raise HeartwatchConfigError(
                f"lease_warning ({self.lease_warning}) must be >= 0 and < lease_duration ({self.lease_duration})"
            )

    @classmethod
    def from_env(cls, **overrides: Any) -> HeartwatchConfig:
        """Create configuration from environment variables.

        Reads optional ``HEARTWATCH_*`` variables. Explicit keyword
        arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        HeartwatchConfig
            Populated configuration.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "HEARTWATCH_SINK": "sink",
            "HEARTWATCH_HTTP_URL": "http_url",
            "HEARTWATCH_SOCKET_URL": "socket_url",
            "HEARTWATCH_SOCKET_TOKEN": "socket_token",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val.strip()

        _ENV_FLOAT_MAP = {
            "HEARTWATCH_REQUEST_TIMEOUT": "request_timeout",
            "HEARTWATCH_DRAIN_TIMEOUT": "drain_timeout",
            "HEARTWATCH_LEASE_DURATION": "lease_duration",
            "HEARTWATCH_LEASE_WARNING": "lease_warning",
        }
        for env_key, field_name in _ENV_FLOAT_MAP.items():
            if field_name in overrides:
                continue
            number = _env_float(env, env_key)
            if number is not None:
                config_kwargs[field_name] = number

        transports_env = env.get("HEARTWATCH_SOCKET_TRANSPORTS")
        if transports_env is not None and "socket_transports" not in overrides:
            transports = tuple(part.strip() for part in transports_env.split(",") if part.strip())
            if transports:
                config_kwargs["socket_transports"] = transports

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
