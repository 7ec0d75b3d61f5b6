"""Continuous position sources.

A position source delivers a push-driven, unbounded stream of observations to
each subscriber until the subscription is cancelled.

## Interface

- ``subscribe(on_update, on_error, options) -> Subscription``
- ``unsubscribe(subscription)``

Callbacks run on the event loop thread. A cancelled subscription never
delivers again and cannot be restarted; subscribe again for a fresh stream.

## Implementations

- ``ManualPositionSource``: observations are pushed by the caller (tests,
  embedding applications that bridge a device API)
- ``SimulatedPositionSource``: emits jittered positions around a fixed point
  on a timer, for demos without a real location sensor
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import random
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Callable
from datetime import datetime, timezone

from family_hub.models.location import Coordinates, PositionObservation, WatchOptions

logger = logging.getLogger(__name__)


class ObservationError(Exception):
    """A position update could not be delivered.

    Codes follow the W3C Geolocation API ``GeolocationPositionError`` values.
    """

    PERMISSION_DENIED = 1
    POSITION_UNAVAILABLE = 2
    TIMEOUT = 3

    def __init__(self, message: str, code: int | None = None):
        super().__init__(message)
        self.code = code


UpdateCallback = Callable[[PositionObservation], None]
ErrorCallback = Callable[[ObservationError], None]

_CLOSED = object()
_watch_ids = itertools.count(1)


class Subscription:
    """Ownership token for an active position stream."""

    def __init__(
        self,
        on_update: UpdateCallback,
        on_error: ErrorCallback,
        options: WatchOptions,
    ):
        self.watch_id = next(_watch_ids)
        self.options = options
        self._on_update = on_update
        self._on_error = on_error
        self._active = True
        self._queue: asyncio.Queue | None = None

    def __repr__(self) -> str:
        state = "active" if self._active else "cancelled"
        return f"<Subscription {self.watch_id} {state}>"

    @property
    def active(self) -> bool:
        return self._active

    def deliver(self, observation: PositionObservation) -> bool:
        """Hand an observation to the subscriber.

        Returns False if the subscription was already cancelled.
        """
        if not self._active:
            return False
        self._on_update(observation)
        if self._queue is not None:
            self._queue.put_nowait(observation)
        return True

    def deliver_error(self, error: ObservationError) -> bool:
        if not self._active:
            return False
        self._on_error(error)
        return True

    def cancel(self) -> None:
        """Stop delivery. Safe to call more than once."""
        if not self._active:
            return
        self._active = False
        if self._queue is not None:
            self._queue.put_nowait(_CLOSED)

    def observations(self) -> AsyncIterator[PositionObservation]:
        """Iterate over observations delivered from this call until cancellation.

        Only one iterator may be taken per subscription.

        Raises:
            RuntimeError: If the stream was already taken
        """
        if self._queue is not None:
            raise RuntimeError("Subscription stream has already been consumed")
        queue: asyncio.Queue = asyncio.Queue()
        self._queue = queue
        if not self._active:
            queue.put_nowait(_CLOSED)
        return self._drain(queue)

    async def _drain(self, queue: asyncio.Queue) -> AsyncIterator[PositionObservation]:
        while True:
            item = await queue.get()
            if item is _CLOSED:
                return
            yield item


class PositionSource(ABC):
    """Abstract base class for continuous position sources."""

    name: str = "position"

    @abstractmethod
    def subscribe(
        self,
        on_update: UpdateCallback,
        on_error: ErrorCallback,
        options: WatchOptions,
    ) -> Subscription:
        """Start a watch and return its handle."""
        pass

    @abstractmethod
    def unsubscribe(self, subscription: Subscription) -> None:
        """Stop a watch. Unknown or already-cancelled handles are ignored."""
        pass


class ManualPositionSource(PositionSource):
    """Position source fed explicitly by the caller.

    Example:
        ```python
        source = ManualPositionSource()
        sub = source.subscribe(on_update, on_error, WatchOptions())
        source.push(-33.8688, 151.2093)
        source.unsubscribe(sub)
        ```
    """

    name = "manual"

    def __init__(self) -> None:
        self._subscriptions: dict[int, Subscription] = {}

    @property
    def subscriptions(self) -> list[Subscription]:
        """Currently active subscriptions."""
        return list(self._subscriptions.values())

    def subscribe(
        self,
        on_update: UpdateCallback,
        on_error: ErrorCallback,
        options: WatchOptions,
    ) -> Subscription:
        subscription = Subscription(on_update, on_error, options)
        self._subscriptions[subscription.watch_id] = subscription
        logger.debug(f"Started watch {subscription.watch_id} on {self.name} source")
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        self._subscriptions.pop(subscription.watch_id, None)
        subscription.cancel()
        logger.debug(f"Cleared watch {subscription.watch_id} on {self.name} source")

    def push(
        self,
        latitude: float,
        longitude: float,
        accuracy_m: float | None = None,
    ) -> int:
        """Deliver a position to every active subscriber.

        Returns:
            Number of subscribers that received it
        """
        observation = PositionObservation(
            latitude=latitude,
            longitude=longitude,
            accuracy_m=accuracy_m,
            timestamp=datetime.now(timezone.utc),
        )
        return sum(sub.deliver(observation) for sub in self.subscriptions)

    def fail(self, message: str, code: int | None = None) -> int:
        """Deliver an observation error to every active subscriber."""
        error = ObservationError(message, code=code)
        return sum(sub.deliver_error(error) for sub in self.subscriptions)


class SimulatedPositionSource(ManualPositionSource):
    """Emit positions near ``center`` every ``interval`` seconds.

    Each subscription gets its own timer task on the running event loop; the
    task is cancelled when the subscription is released.
    """

    name = "simulated"

    def __init__(
        self,
        center: Coordinates,
        interval: float = 5.0,
        jitter_deg: float = 0.0005,
        rng: random.Random | None = None,
    ):
        super().__init__()
        self.center = center
        self.interval = interval
        self.jitter_deg = jitter_deg
        self._rng = rng or random.Random()
        self._tasks: dict[int, asyncio.Task] = {}

    def subscribe(
        self,
        on_update: UpdateCallback,
        on_error: ErrorCallback,
        options: WatchOptions,
    ) -> Subscription:
        loop = asyncio.get_running_loop()
        subscription = super().subscribe(on_update, on_error, options)
        self._tasks[subscription.watch_id] = loop.create_task(self._run(subscription))
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        task = self._tasks.pop(subscription.watch_id, None)
        try:
            super().unsubscribe(subscription)
        finally:
            if task is not None:
                task.cancel()

    async def _run(self, subscription: Subscription) -> None:
        while subscription.active:
            latitude = self.center.latitude + self._rng.uniform(-self.jitter_deg, self.jitter_deg)
            longitude = self.center.longitude + self._rng.uniform(-self.jitter_deg, self.jitter_deg)
            subscription.deliver(
                PositionObservation(
                    latitude=max(-90.0, min(90.0, latitude)),
                    longitude=max(-180.0, min(180.0, longitude)),
                    accuracy_m=10.0 if subscription.options.high_accuracy else 100.0,
                    timestamp=datetime.now(timezone.utc),
                )
            )
            await asyncio.sleep(self.interval)
