"""iCalendar parsing.

Turns the text of an ICS feed into ``EventRecord`` objects.

## Field Mapping (VEVENT -> EventRecord)

| iCalendar | EventRecord | Notes |
|-----------|-------------|-------|
| UID | id | Falls back to the id factory when missing or blank |
| SUMMARY | title | Falls back to the placeholder title |
| DTSTART | start | ``date`` for VALUE=DATE, ``datetime`` otherwise |
| DTEND | end | Optional |
| DURATION | end | Used as ``start + duration`` when DTEND is absent |
| DTSTART type | all_day | True when DTSTART is a date-only value |

Only VEVENTs that are direct children of the VCALENDAR are mapped.
RRULEs are not expanded: a recurring series yields its first instance and any
RECURRENCE-ID overrides appear as separate events.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from datetime import date, datetime, timedelta

from icalendar import Calendar, Event as ICalEvent

from family_hub.calendar.errors import ParseError
from family_hub.models.event import DEFAULT_EVENT_TITLE, EventRecord

logger = logging.getLogger(__name__)

IdFactory = Callable[[], str]

_TIME_PROPERTIES = frozenset({"DTSTART", "DTEND", "DURATION"})


def random_event_id() -> str:
    """Generate a fallback event id (unique in practice, not guaranteed)."""
    return uuid.uuid4().hex


def parse_calendar(
    text: str,
    *,
    locator: str | None = None,
    id_factory: IdFactory = random_event_id,
    untitled_title: str = DEFAULT_EVENT_TITLE,
) -> list[EventRecord]:
    """Parse iCalendar text into event records.

    Args:
        text: Raw VCALENDAR text
        locator: Feed the text came from (only used in errors and logs)
        id_factory: Called for every event that has no UID
        untitled_title: Title used for events without a SUMMARY

    Returns:
        Event records in document order

    Raises:
        ParseError: If the text is not a single valid VCALENDAR
    """
    # Some Outlook and Exchange exports start with a byte order mark
    text = text.removeprefix("\ufeff")
    try:
        calendar = Calendar.from_ical(text)
    except (ValueError, IndexError, KeyError) as e:
        raise ParseError(f"Couldn't parse calendar: {e}", locator=locator) from e

    if calendar.name != "VCALENDAR":
        raise ParseError(
            f"Couldn't parse calendar: expected VCALENDAR, got {calendar.name}",
            locator=locator,
        )

    events: list[EventRecord] = []
    for component in calendar.subcomponents:
        if component.name != "VEVENT":
            continue
        record = _to_event_record(component, locator, id_factory, untitled_title)
        if record is not None:
            events.append(record)

    logger.debug(f"Parsed {len(events)} events from {locator or 'calendar text'}")
    return events


def _to_event_record(
    component: ICalEvent,
    locator: str | None,
    id_factory: IdFactory,
    untitled_title: str,
) -> EventRecord | None:
    _check_property_errors(component, locator)

    start = _decode_time(component, "DTSTART", locator)
    if start is None:
        uid = component.get("UID")
        logger.warning(f"Skipping VEVENT without DTSTART (uid={uid}) in {locator}")
        return None

    end = _decode_time(component, "DTEND", locator)
    if end is None and "DURATION" in component:
        duration = _read_dt(component, "DURATION", locator)
        if not isinstance(duration, timedelta):
            raise ParseError(
                f"Couldn't parse calendar: invalid DURATION value {component['DURATION']!r}",
                locator=locator,
            )
        end = start + duration

    uid = str(component.get("UID") or "").strip()
    summary = str(component.get("SUMMARY") or "").strip()

    return EventRecord(
        id=uid or id_factory(),
        title=summary or untitled_title,
        start=start,
        end=end,
        all_day=not isinstance(start, datetime),
    )


def _decode_time(
    component: ICalEvent,
    name: str,
    locator: str | None,
) -> date | datetime | None:
    if name not in component:
        return None
    value = _read_dt(component, name, locator)
    if not isinstance(value, date):
        raise ParseError(
            f"Couldn't parse calendar: invalid {name} value {component[name]!r}",
            locator=locator,
        )
    return value


def _read_dt(component: ICalEvent, name: str, locator: str | None) -> object:
    # Newer icalendar releases keep unparseable values as broken properties
    # that raise a ValueError subclass on access
    try:
        return component[name].dt
    except (ValueError, AttributeError) as e:
        raise ParseError(
            f"Couldn't parse calendar: invalid {name} value: {e}",
            locator=locator,
        ) from e


def _check_property_errors(component: ICalEvent, locator: str | None) -> None:
    # Older icalendar releases drop unparseable values and record them here
    for name, message in getattr(component, "errors", []):
        if name in _TIME_PROPERTIES:
            raise ParseError(
                f"Couldn't parse calendar: invalid {name} value: {message}",
                locator=locator,
            )
