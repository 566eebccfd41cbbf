"""Monitoring controller: the idle/monitoring toggle.

The controller owns one sensor subscription, one background lease and one
sink, and keeps them in step with its :class:`SessionState`: all three are
active while monitoring and all three are released while idle.

``start()`` brings them up in a fixed order (subscription, lease, sink).
``stop()`` tears them down and resets the displayed heart rate to ``0``.
A lease that is about to expire, a lease the host revokes, or a sink that
loses its connection runs the same teardown. Nothing is retried.
"""

from __future__ import annotations

import asyncio
import contextlib
import functools
import logging
from collections.abc import Callable
from typing import Any

from heartwatch.config import HeartwatchConfig
from heartwatch.exceptions import HeartwatchError
from heartwatch.lease import BackgroundLease, LeaseInvalidationReason
from heartwatch.models.sample import HeartRateSample
from heartwatch.models.state import MonitorSnapshot, SessionState
from heartwatch.sensor import SensorSource, SensorSubscription
from heartwatch.sinks import SampleSink, create_sink

_logger = logging.getLogger(__name__)

SnapshotListener = Callable[[MonitorSnapshot], None]
LeaseFactory = Callable[..., BackgroundLease]


class MonitoringController:
    """Stream heart-rate samples from *source* to *sink* while monitoring.

    Usage::

        async with MonitoringController(source, sink) as controller:
            await controller.start()
            ...

    Every sample that arrives while monitoring updates
    :attr:`current_heart_rate` and is sent once, unmodified, through the
    sink. Samples arriving at any other time are dropped.
    """

    def __init__(
        self,
        source: SensorSource,
        sink: SampleSink,
        config: HeartwatchConfig | None = None,
        *,
        lease_factory: LeaseFactory = BackgroundLease,
    ) -> None:
        self._config = config or HeartwatchConfig()
        self._source = source
        self._sink = sink
        self._lease_factory = lease_factory
        self._state = SessionState.IDLE
        self._current_heart_rate = 0.0
        self._subscription: SensorSubscription | None = None
        self._lease: BackgroundLease | None = None
        # Bumped on every teardown; callbacks carrying an older value are late.
        self._generation = 0
        self._listeners: list[SnapshotListener] = []
        self._background: set[asyncio.Task[Any]] = set()

    @classmethod
    def from_config(cls, config: HeartwatchConfig, source: SensorSource, **sink_kwargs: Any) -> MonitoringController:
        """Build a controller with the sink variant ``config.sink`` names."""
        return cls(source, create_sink(config, **sink_kwargs), config)

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> MonitoringController:
        await self.request_authorization()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()
        await self._wait_background()

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_monitoring(self) -> bool:
        return self._state is SessionState.MONITORING

    @property
    def current_heart_rate(self) -> float:
        return self._current_heart_rate

    @property
    def sink(self) -> SampleSink:
        return self._sink

    @property
    def subscription(self) -> SensorSubscription | None:
        return self._subscription

    @property
    def lease(self) -> BackgroundLease | None:
        return self._lease

    def snapshot(self) -> MonitorSnapshot:
        return MonitorSnapshot(state=self._state, current_heart_rate=self._current_heart_rate)

    def add_listener(self, listener: SnapshotListener) -> Callable[[], None]:
        """Register *listener* for snapshots; returns a function that removes it."""
        self._listeners.append(listener)

        def _remove() -> None:
            with contextlib.suppress(ValueError):
                self._listeners.remove(listener)

        return _remove

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                _logger.debug("Snapshot listener failed", exc_info=True)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def request_authorization(self) -> bool:
        """Ask the source for heart-rate read access. Never raises."""
        if not self._source.is_available():
            _logger.warning("Heart-rate data is not available on this device")
            return False
        try:
            granted = await self._source.request_authorization()
        except HeartwatchError as exc:
            _logger.warning("Heart-rate authorization failed: %s", exc)
            return False
        if granted:
            _logger.info("Heart-rate authorization granted")
        else:
            _logger.warning("Heart-rate authorization denied")
        return granted

    async def start(self) -> bool:
        """Start monitoring; returns whether monitoring is now active.

        Starting while already monitoring replaces the running session.
        A failure in any step rolls back the steps already taken and
        leaves the controller idle.
        """
        await self._wait_background()
        if self._subscription is not None or self._state is SessionState.MONITORING:
            _logger.info("Monitoring already active, replacing session")
            self._release()
            self._state = SessionState.IDLE
            await self._sink.close()

        generation = self._generation
        try:
            self._subscription = self._source.subscribe(functools.partial(self._on_samples, generation))
            lease = self._lease_factory(
                self._config.lease_duration,
                self._config.lease_warning,
                on_started=self._on_lease_started,
                on_will_expire=functools.partial(self._on_lease_will_expire, generation),
                on_invalidated=functools.partial(self._on_lease_invalidated, generation),
            )
            self._lease = lease
            lease.start()
            await self._sink.open()
        except HeartwatchError as exc:
            if generation != self._generation:
                _logger.debug("Start abandoned after teardown: %s", exc)
                await self._close_sink_if_unclaimed()
                return False
            _logger.warning("Failed to start monitoring: %s", exc)
            self._release()
            await self._sink.close()
            self._current_heart_rate = 0.0
            self._notify()
            return False

        if generation != self._generation:
            # Torn down (stop, lease revoked) while the sink was opening.
            await self._close_sink_if_unclaimed()
            return False

        self._sink.set_disconnect_handler(functools.partial(self._on_sink_disconnect, generation))
        self._state = SessionState.MONITORING
        _logger.info("Monitoring started")
        self._notify()
        return True

    async def stop(self) -> None:
        """Stop monitoring and reset the displayed heart rate to ``0``."""
        was_monitoring = self._state is SessionState.MONITORING
        self._release()
        self._state = SessionState.IDLE
        self._current_heart_rate = 0.0
        self._notify()
        await self._sink.close()
        if was_monitoring:
            _logger.info("Monitoring stopped")

    async def toggle(self) -> bool:
        """Flip between idle and monitoring; returns whether monitoring is active."""
        if self.is_monitoring:
            await self.stop()
            return False
        return await self.start()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _release(self) -> None:
        """Cancel the subscription and invalidate the lease."""
        self._generation += 1
        self._sink.set_disconnect_handler(None)
        subscription = self._subscription
        self._subscription = None
        if subscription is not None:
            subscription.cancel()
        lease = self._lease
        self._lease = None
        if lease is not None:
            lease.invalidate()

    def _force_stop(self, generation: int, cause: str) -> None:
        """Run the stop steps from a callback that cannot await."""
        if generation != self._generation:
            _logger.debug("Ignoring %s from a replaced session", cause)
            return
        _logger.info("Stopping monitoring: %s", cause)
        self._release()
        self._state = SessionState.IDLE
        self._current_heart_rate = 0.0
        self._notify()
        task = asyncio.get_running_loop().create_task(self._sink.close())
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _close_sink_if_unclaimed(self) -> None:
        # A newer start() owns the sink once it has subscribed.
        if self._subscription is None:
            await self._sink.close()

    async def _wait_background(self) -> None:
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    def _on_samples(self, generation: int, samples: list[HeartRateSample]) -> None:
        if generation != self._generation or self._state is not SessionState.MONITORING:
            _logger.debug("Dropping %d sample(s) received while not monitoring", len(samples))
            return
        for sample in samples:
            self._current_heart_rate = sample.value
            self._notify()
            self._sink.send(sample)

    def _on_lease_started(self, _lease: BackgroundLease) -> None:
        _logger.info("Extended runtime session started")

    def _on_lease_will_expire(self, generation: int, _lease: BackgroundLease) -> None:
        _logger.info("Extended runtime session will expire")
        self._force_stop(generation, "lease will expire")

    def _on_lease_invalidated(
        self,
        generation: int,
        _lease: BackgroundLease,
        reason: LeaseInvalidationReason,
        error: BaseException | None,
    ) -> None:
        if error is not None:
            _logger.warning("Extended runtime session invalidated with reason: %s (%s)", reason.value, error)
        else:
            _logger.info("Extended runtime session invalidated with reason: %s", reason.value)
        self._force_stop(generation, f"lease invalidated ({reason.value})")

    def _on_sink_disconnect(self, generation: int) -> None:
        self._force_stop(generation, "sink disconnected")
