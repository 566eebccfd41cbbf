"""Data models for samples, payloads and session state."""

from heartwatch.models.sample import HeartRatePayload, HeartRateSample
from heartwatch.models.state import MonitorSnapshot, SessionState

__all__ = [
    "HeartRatePayload",
    "HeartRateSample",
    "MonitorSnapshot",
    "SessionState",
]
