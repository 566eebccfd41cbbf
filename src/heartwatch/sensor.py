"""Heart-rate sensor sources and live subscriptions.

A :class:`SensorSource` hands out :class:`SensorSubscription` objects that
deliver batches of :class:`~heartwatch.models.HeartRateSample` to a
callback on the asyncio loop the subscription was created on. The first
batch carries any samples the source already holds; later batches are
live updates.

Two sources ship with the package:

* :class:`SimulatedHeartRateSource` produces a bounded random walk around a
  baseline at a fixed interval.
* :class:`ManualHeartRateSource` delivers whatever is passed to
  :meth:`~ManualHeartRateSource.push`, from any thread.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Callable, Iterable
from typing import Protocol

from heartwatch.exceptions import SensorUnavailableError
from heartwatch.models.sample import HeartRateSample

_logger = logging.getLogger(__name__)

SamplesHandler = Callable[[list[HeartRateSample]], None]


class SensorSubscription(Protocol):
    """Handle for a live registration with a sensor source."""

    @property
    def is_active(self) -> bool:
        ...

    def cancel(self) -> None:
        ...


class SensorSource(Protocol):
    """Structural interface for anything that can stream heart-rate samples."""

    def is_available(self) -> bool:
        ...

    async def request_authorization(self) -> bool:
        ...

    def subscribe(self, on_samples: SamplesHandler) -> SensorSubscription:
        ...


class _LoopSubscription:
    """Subscription bound to the running loop; delivery is loop-thread only."""

    def __init__(self, on_samples: SamplesHandler, loop: asyncio.AbstractEventLoop) -> None:
        self._on_samples = on_samples
        self._loop = loop
        self._active = True

    @property
    def is_active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        self._active = False

    def deliver(self, batch: list[HeartRateSample]) -> None:
        if not self._active or not batch:
            return
        try:
            self._on_samples(batch)
        except Exception:
            _logger.debug("Sample handler failed", exc_info=True)

    def deliver_threadsafe(self, batch: list[HeartRateSample]) -> None:
        self._loop.call_soon_threadsafe(self.deliver, batch)


class ManualHeartRateSource:
    """Source fed explicitly through :meth:`push`.

    Parameters
    ----------
    initial : iterable of float
        Readings already stored when a subscription starts; each new
        subscription receives them as its first batch.
    available : bool
        Whether heart-rate data exists on this device at all.
    authorize : bool
        Answer given to :meth:`request_authorization`.
    """

    def __init__(
        self,
        initial: Iterable[float] = (),
        *,
        available: bool = True,
        authorize: bool = True,
    ) -> None:
        self._initial = [float(value) for value in initial]
        self._available = available
        self._authorize = authorize
        self._subscriptions: list[_LoopSubscription] = []

    def is_available(self) -> bool:
        return self._available

    async def request_authorization(self) -> bool:
        if not self._available:
            raise SensorUnavailableError("Heart-rate data is not available on this device")
        return self._authorize

    @property
    def subscriber_count(self) -> int:
        """Number of subscriptions that are still active."""
        return sum(1 for sub in self._subscriptions if sub.is_active)

    def subscribe(self, on_samples: SamplesHandler) -> SensorSubscription:
        if not self._available:
            raise SensorUnavailableError("Heart-rate data is not available on this device")
        subscription = _LoopSubscription(on_samples, asyncio.get_running_loop())
        self._subscriptions = [sub for sub in self._subscriptions if sub.is_active]
        self._subscriptions.append(subscription)
        if self._initial:
            subscription.deliver_threadsafe([HeartRateSample(value=value) for value in self._initial])
        return subscription

    def push(self, *values: float) -> None:
        """Deliver *values* as one batch to every active subscription.

        Safe to call from any thread.
        """
        if not values:
            return
        batch = [HeartRateSample(value=float(value)) for value in values]
        for subscription in list(self._subscriptions):
            if subscription.is_active:
                subscription.deliver_threadsafe(batch)


class _SimulatedSubscription(_LoopSubscription):
    def __init__(self, on_samples: SamplesHandler, loop: asyncio.AbstractEventLoop) -> None:
        super().__init__(on_samples, loop)
        self.task: asyncio.Task[None] | None = None

    def cancel(self) -> None:
        super().cancel()
        task = self.task
        self.task = None
        if task is not None and not task.done():
            task.cancel()


class SimulatedHeartRateSource:
    """Synthetic heart-rate stream for running without a wearable.

    Each reading moves the previous one by at most ``max_step`` beats and
    stays inside ``[minimum, maximum]``. Readings are whole numbers, as a
    wrist sensor reports them.
    """

    def __init__(
        self,
        *,
        baseline: float = 72.0,
        max_step: float = 3.0,
        minimum: float = 40.0,
        maximum: float = 190.0,
        interval: float = 1.0,
        seed: int | None = None,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        if not minimum <= baseline <= maximum:
            raise ValueError(f"baseline {baseline} must be between {minimum} and {maximum}")
        self._baseline = baseline
        self._max_step = max_step
        self._minimum = minimum
        self._maximum = maximum
        self._interval = interval
        self._rng = random.Random(seed)

    def is_available(self) -> bool:
        return True

    async def request_authorization(self) -> bool:
        return True

    def next_value(self, previous: float) -> float:
        """Return the reading that follows *previous*."""
        step = self._rng.uniform(-self._max_step, self._max_step)
        return float(round(min(self._maximum, max(self._minimum, previous + step))))

    def subscribe(self, on_samples: SamplesHandler) -> SensorSubscription:
        loop = asyncio.get_running_loop()
        subscription = _SimulatedSubscription(on_samples, loop)
        subscription.task = loop.create_task(self._run(subscription))
        return subscription

    async def _run(self, subscription: _SimulatedSubscription) -> None:
        value = float(round(self._baseline))
        while subscription.is_active:
            await asyncio.sleep(self._interval)
            value = self.next_value(value)
            subscription.deliver([HeartRateSample(value=value)])
