"""heartwatch - Async client streaming wearable heart-rate samples to a server."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("heartwatch")
except PackageNotFoundError:
    __version__ = "0+local"
from heartwatch.config import HeartwatchConfig
from heartwatch.display import ConsoleDisplay, render
from heartwatch.exceptions import (
    HeartwatchConfigError,
    HeartwatchError,
    HeartwatchTransportError,
    LeaseError,
    SensorUnavailableError,
)
from heartwatch.lease import BackgroundLease, LeaseInvalidationReason, LeaseState
from heartwatch.models import HeartRatePayload, HeartRateSample, MonitorSnapshot, SessionState
from heartwatch.monitor import MonitoringController
from heartwatch.sensor import ManualHeartRateSource, SensorSource, SensorSubscription, SimulatedHeartRateSource
from heartwatch.sinks import HttpSink, SampleSink, SocketSink, create_sink

__all__ = [
    "__version__",
    "BackgroundLease",
    "ConsoleDisplay",
    "HeartRatePayload",
    "HeartRateSample",
    "HeartwatchConfig",
    "HeartwatchConfigError",
    "HeartwatchError",
    "HeartwatchTransportError",
    "HttpSink",
    "LeaseError",
    "LeaseInvalidationReason",
    "LeaseState",
    "ManualHeartRateSource",
    "MonitorSnapshot",
    "MonitoringController",
    "SampleSink",
    "SensorSource",
    "SensorSubscription",
    "SensorUnavailableError",
    "SessionState",
    "SimulatedHeartRateSource",
    "SocketSink",
    "create_sink",
    "render",
]
