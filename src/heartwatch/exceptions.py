"""Custom exception hierarchy for heartwatch."""

from __future__ import annotations


class HeartwatchError(Exception):
    """Base exception for all heartwatch errors."""


class HeartwatchConfigError(HeartwatchError):
    """Invalid or missing configuration."""


class SensorUnavailableError(HeartwatchError):
    """The sensor source cannot deliver samples on this device."""


class LeaseError(HeartwatchError):
    """Background session lease could not be started."""


class HeartwatchTransportError(HeartwatchError):
    """Network-level failure (connect error, non-2xx status)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)
