"""Background execution lease.

Models the extended runtime window a wearable OS grants an app so sensor
delivery continues while the screen is off. The lease runs for a fixed
duration, warns shortly before it ends, and reports how it ended.

Ending a lease through :meth:`BackgroundLease.invalidate` is the owner's
own decision and fires no callbacks. Expiry and :meth:`BackgroundLease.revoke`
(the host taking the window away) fire ``on_invalidated``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from enum import StrEnum

from heartwatch.exceptions import LeaseError

_logger = logging.getLogger(__name__)


class LeaseState(StrEnum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    INVALID = "invalid"


class LeaseInvalidationReason(StrEnum):
    NONE = "none"
    EXPIRED = "expired"
    RESIGNED_FRONTMOST = "resigned_frontmost"
    SUPPRESSED_BY_SYSTEM = "suppressed_by_system"
    ERROR = "error"


LeaseCallback = Callable[["BackgroundLease"], None]
InvalidatedCallback = Callable[["BackgroundLease", LeaseInvalidationReason, BaseException | None], None]


class BackgroundLease:
    """Timed execution window driven by the running asyncio loop.

    Parameters
    ----------
    duration : float
        Seconds from :meth:`start` until the lease expires.
    warning : float
        Seconds before expiry at which ``on_will_expire`` fires.
    on_started, on_will_expire, on_invalidated
        Lifecycle callbacks. Exceptions raised by them are logged and
        swallowed.
    """

    def __init__(
        self,
        duration: float,
        warning: float = 0.0,
        *,
        on_started: LeaseCallback | None = None,
        on_will_expire: LeaseCallback | None = None,
        on_invalidated: InvalidatedCallback | None = None,
    ) -> None:
        if duration <= 0:
            raise LeaseError(f"lease duration must be positive, got {duration}")
        if not 0 <= warning < duration:
            raise LeaseError(f"lease warning must be >= 0 and < {duration}, got {warning}")
        self._duration = duration
        self._warning = warning
        self._on_started = on_started
        self._on_will_expire = on_will_expire
        self._on_invalidated = on_invalidated
        self._state = LeaseState.NOT_STARTED
        self._handles: list[asyncio.TimerHandle] = []

    @property
    def state(self) -> LeaseState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is LeaseState.RUNNING

    def start(self) -> None:
        """Begin the lease. A lease can only be started once."""
        if self._state is not LeaseState.NOT_STARTED:
            raise LeaseError(f"lease cannot be started from state {self._state.value}")
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as exc:
            raise LeaseError("lease requires a running event loop") from exc

        self._state = LeaseState.RUNNING
        if self._warning > 0:
            self._handles.append(loop.call_later(self._duration - self._warning, self._warn))
        self._handles.append(loop.call_later(self._duration, self._expire))
        _logger.debug("Background lease started duration=%.1fs warning=%.1fs", self._duration, self._warning)
        self._fire(self._on_started)

    def invalidate(self) -> None:
        """End the lease on the owner's request. No callbacks fire."""
        if self._state is not LeaseState.RUNNING:
            self._state = LeaseState.INVALID
            return
        self._end()
        _logger.debug("Background lease invalidated by owner")

    def revoke(
        self,
        reason: LeaseInvalidationReason = LeaseInvalidationReason.SUPPRESSED_BY_SYSTEM,
        error: BaseException | None = None,
    ) -> None:
        """End the lease from the host side and notify ``on_invalidated``."""
        if self._state is not LeaseState.RUNNING:
            return
        self._end()
        _logger.debug("Background lease ended reason=%s", reason.value)
        if self._on_invalidated is not None:
            try:
                self._on_invalidated(self, reason, error)
            except Exception:
                _logger.debug("on_invalidated callback failed", exc_info=True)

    def _end(self) -> None:
        self._state = LeaseState.INVALID
        for handle in self._handles:
            handle.cancel()
        self._handles.clear()

    def _warn(self) -> None:
        if self._state is LeaseState.RUNNING:
            _logger.debug("Background lease will expire in %.1fs", self._warning)
            self._fire(self._on_will_expire)

    def _expire(self) -> None:
        self.revoke(LeaseInvalidationReason.EXPIRED)

    def _fire(self, callback: LeaseCallback | None) -> None:
        if callback is None:
            return
        try:
            callback(self)
        except Exception:
            _logger.debug("Lease callback failed", exc_info=True)
