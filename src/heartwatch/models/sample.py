"""Heart-rate sample and its wire payload."""

from __future__ import annotations

import math
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from heartwatch._constants import HEART_RATE_UNIT
from heartwatch.models._base import HeartwatchBaseModel


class HeartRateSample(BaseModel):
    """A single heart-rate reading.

    Parameters
    ----------
    value : float
        Beats per minute as reported by the sensor (``count/min``).
    received_at : datetime
        Arrival time on this device (UTC). Samples carry no other timestamp.
    """

    model_config = ConfigDict(frozen=True)

    value: float
    unit: str = HEART_RATE_UNIT
    received_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("value")
    @classmethod
    def _finite(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("heart rate must be a finite number")
        return value

    @field_validator("received_at")
    @classmethod
    def _ensure_tz_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value


class HeartRatePayload(HeartwatchBaseModel):
    """Body of every outbound send: ``{"heartRate": <number>}``."""

    heart_rate: float

    @classmethod
    def from_sample(cls, sample: HeartRateSample) -> HeartRatePayload:
        return cls(heart_rate=sample.value)
