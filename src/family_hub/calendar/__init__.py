"""Calendar feed module.

Loads the two family ICS feeds and merges them into a single event list for a
month view.

## Load Process

1. Fetch each feed URL (both requests in flight at once)
2. Parse the VCALENDAR text and map every top-level VEVENT
3. Prefix titles with the feed tag ("A: " / "B: ")
4. Concatenate A's events before B's

A failed feed fails the whole load; callers keep whatever events they were
showing before.
"""

from family_hub.calendar.aggregator import EventAggregator, demo_events, merge_tagged
from family_hub.calendar.errors import FeedError, FetchError, ParseError
from family_hub.calendar.loader import FeedLoader
from family_hub.calendar.parser import parse_calendar, random_event_id

__all__ = [
    "EventAggregator",
    "FeedError",
    "FeedLoader",
    "FetchError",
    "ParseError",
    "demo_events",
    "merge_tagged",
    "parse_calendar",
    "random_event_id",
]
