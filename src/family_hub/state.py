"""Application state.

``AppState`` is owned by whatever hosts the UI and is passed to it explicitly.
It holds the feed URLs, the events currently on the calendar, the loading and
error flags, and the location tracker, and implements the user actions:

- load calendars
- quick demo
- toggle sharing for a person

## Usage

```python
async with AppState.from_settings(get_settings(), position_source=source) as state:
    state.feed_a = "https://example.com/a.ics"
    await state.load_calendars()
    render(state.events)
```
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any

from family_hub.calendar.aggregator import EventAggregator, demo_events
from family_hub.calendar.errors import FeedError
from family_hub.calendar.loader import FeedLoader
from family_hub.config import Settings
from family_hub.location.source import PositionSource
from family_hub.location.tracker import DiagnosticSink, LocationTracker
from family_hub.models.event import EventRecord
from family_hub.models.location import PositionRecord, Subject

logger = logging.getLogger(__name__)

DEMO_POSITIONS: dict[Subject, tuple[float, float]] = {
    Subject.A: (-33.8688, 151.2093),
    Subject.B: (-33.7322, 150.9997),
}


class AppState:
    """State shared between the calendar and location views."""

    def __init__(
        self,
        aggregator: EventAggregator,
        tracker: LocationTracker,
        feed_a: str | None = None,
        feed_b: str | None = None,
    ):
        self.aggregator = aggregator
        self.tracker = tracker
        self.feed_a = feed_a
        self.feed_b = feed_b

        self.events: list[EventRecord] = []
        self.loading = False
        self.error = ""

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        position_source: PositionSource | None = None,
        sink: DiagnosticSink | None = None,
        loader: FeedLoader | None = None,
    ) -> AppState:
        """Build the state from configuration.

        Args:
            settings: Application settings
            position_source: Source both people's watches use (optional)
            sink: Diagnostic sink for location errors (optional)
            loader: Feed loader to use instead of a new one (optional)
        """
        loader = loader or FeedLoader(
            user_agent=settings.user_agent,
            timeout=settings.fetch_timeout_seconds,
            untitled_title=settings.untitled_event_title,
        )
        tracker = LocationTracker.with_shared_source(
            position_source,
            options=settings.watch_options(),
            sink=sink,
        )
        return cls(
            EventAggregator(loader),
            tracker,
            feed_a=settings.feed_url_a,
            feed_b=settings.feed_url_b,
        )

    async def __aenter__(self) -> AppState:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Release every location watch and close the feed loader."""
        try:
            self.tracker.close()
        finally:
            await self.aggregator.loader.aclose()

    async def load_calendars(self) -> list[EventRecord]:
        """Load both feeds and replace the displayed events.

        On failure ``error`` holds the message and ``events`` keeps its
        previous value. Concurrent calls are not serialized; whichever
        finishes last decides what is displayed.
        """
        self.loading = True
        self.error = ""
        try:
            events = await self.aggregator.load_all(self.feed_a, self.feed_b)
        except FeedError as e:
            logger.error(f"Calendar load failed: {e}")
            self.error = str(e)
        else:
            self.events = events
        finally:
            self.loading = False
        return self.events

    def load_demo(self, today: date | None = None, now: datetime | None = None) -> None:
        """Show sample events and positions without any network access."""
        now = now or datetime.now(timezone.utc)
        self.events = demo_events(today)
        for subject, (latitude, longitude) in DEMO_POSITIONS.items():
            self.tracker.seed(
                subject,
                PositionRecord(latitude=latitude, longitude=longitude, observed_at=now),
            )
            self.tracker.set_sharing(subject, True)
        logger.info("Loaded demo events and positions")

    def set_sharing(self, subject: Subject, enabled: bool) -> None:
        self.tracker.set_sharing(subject, enabled)
