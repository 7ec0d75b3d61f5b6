"""Event aggregation across the two family calendars.

Both feeds are loaded concurrently and merged into a single list. Events from
feed A come first, then events from feed B; each keeps the order its feed
listed it in. Titles are prefixed with the feed tag ("A: ", "B: ") so a shared
month view shows whose event is whose.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date, timedelta

from family_hub.calendar.loader import FeedLoader
from family_hub.models.event import EventRecord
from family_hub.models.location import Subject

logger = logging.getLogger(__name__)


class EventAggregator:
    """Merge events from the A and B feeds.

    Example:
        ```python
        async with FeedLoader() as loader:
            aggregator = EventAggregator(loader)
            events = await aggregator.load_all(url_a, url_b)
        ```
    """

    def __init__(self, loader: FeedLoader):
        self.loader = loader

    async def load_all(
        self,
        locator_a: str | None,
        locator_b: str | None,
    ) -> list[EventRecord]:
        """Load both feeds concurrently and merge them.

        Either locator may be empty, in which case that feed contributes no
        events. If either load fails the first error raised is propagated and
        nothing is merged.

        Raises:
            FetchError: If a feed cannot be retrieved
            ParseError: If a feed is not valid iCalendar data
        """
        events_a, events_b = await asyncio.gather(
            self.loader.load(locator_a),
            self.loader.load(locator_b),
        )
        merged = merge_tagged(events_a, events_b)
        logger.info(
            f"Merged {len(merged)} events "
            f"({len(events_a)} from A, {len(events_b)} from B)"
        )
        return merged


def merge_tagged(
    events_a: list[EventRecord],
    events_b: list[EventRecord],
) -> list[EventRecord]:
    """Tag and concatenate events, A before B."""
    return [e.tagged(Subject.A.value) for e in events_a] + [
        e.tagged(Subject.B.value) for e in events_b
    ]


def demo_events(today: date | None = None) -> list[EventRecord]:
    """Build the fixed sample event set used by the offline demo.

    Titles are already tagged; the last event belongs to both people and has
    no tag.
    """
    today = today or date.today()

    def d(offset: int) -> date:
        return today + timedelta(days=offset)

    return [
        EventRecord(id="1", title="A: Daycare drop-off", start=d(1), all_day=True),
        EventRecord(id="2", title="B: Vet appointment", start=d(2), end=d(2), all_day=True),
        EventRecord(id="3", title="A: Work shift", start=d(3), end=d(3), all_day=True),
        EventRecord(id="4", title="Family dinner", start=d(4), all_day=True),
    ]
