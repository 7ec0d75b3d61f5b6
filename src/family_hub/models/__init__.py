"""Domain models for the family hub."""

from family_hub.models.event import DEFAULT_EVENT_TITLE, EventRecord
from family_hub.models.location import (
    Coordinates,
    PositionObservation,
    PositionRecord,
    Subject,
    WatchOptions,
)

__all__ = [
    # Event
    "DEFAULT_EVENT_TITLE",
    "EventRecord",
    # Location
    "Coordinates",
    "PositionObservation",
    "PositionRecord",
    "Subject",
    "WatchOptions",
]
