"""Monitoring session state."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class SessionState(StrEnum):
    IDLE = "idle"
    MONITORING = "monitoring"


class MonitorSnapshot(BaseModel):
    """What the display sees after every controller change."""

    model_config = ConfigDict(frozen=True)

    state: SessionState = SessionState.IDLE
    current_heart_rate: float = 0.0

    @property
    def is_monitoring(self) -> bool:
        return self.state is SessionState.MONITORING
