from __future__ import annotations

import asyncio

import pytest

from heartwatch.exceptions import LeaseError
from heartwatch.lease import BackgroundLease, LeaseInvalidationReason, LeaseState


class _Recorder:
    def __init__(self) -> None:
        self.events: list[str] = []
        self.reasons: list[LeaseInvalidationReason] = []

    def started(self, _lease: BackgroundLease) -> None:
        self.events.append("started")

    def will_expire(self, _lease: BackgroundLease) -> None:
        self.events.append("will_expire")

    def invalidated(
        self,
        _lease: BackgroundLease,
        reason: LeaseInvalidationReason,
        _error: BaseException | None,
    ) -> None:
        self.events.append("invalidated")
        self.reasons.append(reason)

    def lease(self, duration: float, warning: float = 0.0) -> BackgroundLease:
        return BackgroundLease(
            duration,
            warning,
            on_started=self.started,
            on_will_expire=self.will_expire,
            on_invalidated=self.invalidated,
        )


@pytest.mark.asyncio
async def test_lease_warns_then_expires() -> None:
    recorder = _Recorder()
    lease = recorder.lease(0.06, 0.04)

    lease.start()
    assert lease.is_running
    await asyncio.sleep(0.1)

    assert recorder.events == ["started", "will_expire", "invalidated"]
    assert recorder.reasons == [LeaseInvalidationReason.EXPIRED]
    assert lease.state is LeaseState.INVALID


@pytest.mark.asyncio
async def test_owner_invalidate_fires_no_callbacks() -> None:
    recorder = _Recorder()
    lease = recorder.lease(0.05, 0.02)

    lease.start()
    lease.invalidate()
    await asyncio.sleep(0.08)

    assert recorder.events == ["started"]
    assert lease.state is LeaseState.INVALID


@pytest.mark.asyncio
async def test_revoke_reports_reason_once() -> None:
    recorder = _Recorder()
    lease = recorder.lease(60.0)

    lease.start()
    lease.revoke(LeaseInvalidationReason.ERROR, RuntimeError("watchdog"))
    lease.revoke(LeaseInvalidationReason.ERROR)

    assert recorder.reasons == [LeaseInvalidationReason.ERROR]


@pytest.mark.asyncio
async def test_lease_cannot_start_twice() -> None:
    lease = BackgroundLease(60.0)
    lease.start()
    with pytest.raises(LeaseError):
        lease.start()
    lease.invalidate()
    with pytest.raises(LeaseError):
        lease.start()


@pytest.mark.asyncio
async def test_failing_callback_does_not_break_lease() -> None:
    def _boom(_lease: BackgroundLease) -> None:
        raise RuntimeError("callback failed")

    lease = BackgroundLease(60.0, on_started=_boom)
    lease.start()

    assert lease.is_running
    lease.invalidate()


def test_lease_requires_running_loop() -> None:
    with pytest.raises(LeaseError):
        BackgroundLease(1.0).start()


@pytest.mark.parametrize(("duration", "warning"), [(0.0, 0.0), (-1.0, 0.0), (10.0, 10.0), (10.0, -1.0)])
def test_invalid_lease_timing_rejected(duration: float, warning: float) -> None:
    with pytest.raises(LeaseError):
        BackgroundLease(duration, warning)
