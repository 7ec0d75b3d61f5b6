"""Live location tracking for the two family members.

Each subject has its own sharing toggle and at most one position watch.

## States

- **Idle**: not sharing, no watch held (initial state)
- **Active**: sharing, watch held

Turning sharing on while Active does nothing. Turning it off, or closing the
tracker, releases the watch even if releasing it raises.

## Updates

Every observation replaces ``last_position`` with a new ``PositionRecord``
stamped with the time it was received. Observation errors are passed to a
``DiagnosticSink`` and otherwise ignored: sharing stays on and the last known
position stays visible.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Protocol

from family_hub.location.source import ObservationError, PositionSource, Subscription
from family_hub.models.location import (
    PositionObservation,
    PositionRecord,
    Subject,
    WatchOptions,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TrackerState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"


class DiagnosticSink(Protocol):
    """Receives problems that must not affect visible tracking state."""

    def observation_error(self, subject: Subject, error: ObservationError) -> None: ...

    def source_unavailable(self, subject: Subject) -> None: ...


class LoggingDiagnosticSink:
    """Default sink: write diagnostics to the module logger."""

    def observation_error(self, subject: Subject, error: ObservationError) -> None:
        logger.warning(f"{subject.value} geo error (code={error.code}): {error}")

    def source_unavailable(self, subject: Subject) -> None:
        logger.warning(f"No position source available for {subject.label}")


class SubjectTracker:
    """Sharing state and watch lifecycle for one subject."""

    def __init__(
        self,
        subject: Subject,
        source: PositionSource | None,
        options: WatchOptions,
        sink: DiagnosticSink,
        clock: Clock = utc_now,
    ):
        self.subject = subject
        self.source = source
        self.options = options
        self.sink = sink
        self.clock = clock

        self.sharing_enabled = False
        self.last_position: PositionRecord | None = None
        self.subscription: Subscription | None = None

        # Bumped on every release so callbacks from old watches are dropped
        self._generation = 0

    def __repr__(self) -> str:
        return (
            f"<SubjectTracker {self.subject.value} {self.state.value} "
            f"sharing={self.sharing_enabled}>"
        )

    @property
    def state(self) -> TrackerState:
        return TrackerState.ACTIVE if self.subscription is not None else TrackerState.IDLE

    def set_sharing(self, enabled: bool) -> None:
        if enabled:
            self.start()
        else:
            self.stop()

    def start(self) -> None:
        """Enable sharing and start a watch if none is held.

        If the source refuses the watch, sharing is left off and the error
        propagates.
        """
        self.sharing_enabled = True
        if self.subscription is not None:
            return
        if self.source is None:
            self.sink.source_unavailable(self.subject)
            return

        generation = self._generation

        def on_update(observation: PositionObservation) -> None:
            if generation == self._generation:
                self._apply(observation)

        def on_error(error: ObservationError) -> None:
            if generation == self._generation:
                self.sink.observation_error(self.subject, error)

        try:
            self.subscription = self.source.subscribe(on_update, on_error, self.options)
        except Exception:
            self.sharing_enabled = False
            raise
        logger.info(f"{self.subject.label} started sharing (watch {self.subscription.watch_id})")

    def stop(self) -> None:
        """Disable sharing and release the watch.

        ``last_position`` is kept so the last reading stays visible.
        """
        self.sharing_enabled = False
        self.release()

    def release(self) -> None:
        """Release the watch without touching the sharing flag."""
        subscription = self.subscription
        if subscription is None:
            return
        self.subscription = None
        self._generation += 1
        try:
            self.source.unsubscribe(subscription)
        finally:
            subscription.cancel()
            logger.info(f"{self.subject.label} watch {subscription.watch_id} released")

    def seed(self, position: PositionRecord) -> None:
        """Set the last known position directly."""
        self.last_position = position

    def _apply(self, observation: PositionObservation) -> None:
        self.last_position = PositionRecord(
            latitude=observation.latitude,
            longitude=observation.longitude,
            observed_at=self.clock(),
        )


class LocationTracker:
    """Tracks both subjects.

    Example:
        ```python
        with LocationTracker.with_shared_source(source) as tracker:
            tracker.set_sharing(Subject.A, True)
            ...
        # every watch is released here
        ```
    """

    def __init__(
        self,
        sources: Mapping[Subject, PositionSource | None],
        options: WatchOptions | None = None,
        sink: DiagnosticSink | None = None,
        clock: Clock = utc_now,
    ):
        self.options = options or WatchOptions()
        self.sink = sink or LoggingDiagnosticSink()
        self._subjects = {
            subject: SubjectTracker(
                subject,
                sources.get(subject),
                self.options,
                self.sink,
                clock,
            )
            for subject in Subject
        }

    @classmethod
    def with_shared_source(
        cls,
        source: PositionSource | None,
        **kwargs: Any,
    ) -> LocationTracker:
        """Create a tracker where both subjects watch the same source."""
        return cls({subject: source for subject in Subject}, **kwargs)

    def __enter__(self) -> LocationTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def __getitem__(self, subject: Subject) -> SubjectTracker:
        return self._subjects[Subject(subject)]

    def __iter__(self) -> Iterator[SubjectTracker]:
        return iter(self._subjects.values())

    def set_sharing(self, subject: Subject, enabled: bool) -> None:
        self[subject].set_sharing(enabled)

    def last_position(self, subject: Subject) -> PositionRecord | None:
        return self[subject].last_position

    def seed(self, subject: Subject, position: PositionRecord) -> None:
        self[subject].seed(position)

    def close(self) -> None:
        """Stop sharing for every subject and release all watches.

        Every subject is released even if an earlier release raises; the
        first error is re-raised afterwards.
        """
        errors: list[Exception] = []
        for tracker in self:
            try:
                tracker.stop()
            except Exception as e:
                logger.error(f"Failed to release watch for {tracker.subject.label}: {e}")
                errors.append(e)
        if errors:
            raise errors[0]
