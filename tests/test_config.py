from __future__ import annotations

import pytest

from heartwatch._constants import DEFAULT_HTTP_URL
from heartwatch.config import HeartwatchConfig
from heartwatch.exceptions import HeartwatchConfigError


def test_defaults_target_http_endpoint() -> None:
    config = HeartwatchConfig()

    assert config.sink == "http"
    assert config.http_url == DEFAULT_HTTP_URL
    assert config.socket_token is None


def test_from_env_reads_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HEARTWATCH_SINK", "socket")
    monkeypatch.setenv("HEARTWATCH_SOCKET_URL", "https://socket.example.test")
    monkeypatch.setenv("HEARTWATCH_SOCKET_TOKEN", " abc ")
    monkeypatch.setenv("HEARTWATCH_LEASE_DURATION", "120")
    monkeypatch.setenv("HEARTWATCH_SOCKET_TRANSPORTS", "websocket, polling")

    config = HeartwatchConfig.from_env()

    assert config.sink == "socket"
    assert config.socket_url == "https://socket.example.test"
    assert config.socket_token == "abc"
    assert config.lease_duration == 120.0
    assert config.socket_transports == ("websocket", "polling")


def test_overrides_win_over_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HEARTWATCH_HTTP_URL", "https://env.example.test")
    monkeypatch.setenv("HEARTWATCH_REQUEST_TIMEOUT", "not-a-number")

    config = HeartwatchConfig.from_env(http_url="https://override.example.test", request_timeout=3.0)

    assert config.http_url == "https://override.example.test"
    assert config.request_timeout == 3.0


def test_bad_numeric_env_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HEARTWATCH_DRAIN_TIMEOUT", "soon")

    with pytest.raises(HeartwatchConfigError):
        HeartwatchConfig.from_env()


@pytest.mark.parametrize(
    "kwargs",
    [
        {"sink": "carrier-pigeon"},
        {"sink": "socket"},
        {"sink": "socket", "socket_token": "   "},
        {"request_timeout": 0},
        {"drain_timeout": -1},
        {"lease_duration": 0},
        {"lease_duration": 10, "lease_warning": 10},
    ],
)
def test_invalid_config_rejected(kwargs: dict[str, object]) -> None:
    with pytest.raises(HeartwatchConfigError):
        HeartwatchConfig(**kwargs)  # type: ignore[arg-type]
