"""Event models for calendar aggregation."""

from __future__ import annotations

from datetime import date, datetime, timedelta

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_EVENT_TITLE = "(no title)"


def _as_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


class EventRecord(BaseModel):
    """A normalized calendar event ready for display.

    ``start`` and ``end`` hold a ``date`` for whole-day events and a
    ``datetime`` otherwise. ``end`` is passed through from the source without
    checking that it comes after ``start``.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    title: str = DEFAULT_EVENT_TITLE
    start: datetime | date
    end: datetime | date | None = None
    all_day: bool = False

    def tagged(self, tag: str) -> EventRecord:
        """Return a copy whose title is prefixed with ``"<tag>: "``."""
        return self.model_copy(update={"title": f"{tag}: {self.title}"})

    @property
    def first_day(self) -> date:
        return _as_date(self.start)

    @property
    def last_day(self) -> date:
        """Last calendar day the event occupies on a month grid.

        Whole-day ends are exclusive in iCalendar, so an all-day event ending
        on the 6th only occupies up to the 5th. Events without an end occupy
        their start day only.
        """
        if self.end is None:
            return self.first_day
        end_day = _as_date(self.end)
        if self.all_day and not isinstance(self.end, datetime):
            end_day -= timedelta(days=1)
        elif isinstance(self.end, datetime) and self.end.time() == datetime.min.time():
            # An end at midnight does not spill into the next day
            end_day -= timedelta(days=1)
        return max(end_day, self.first_day)

    def covers_day(self, day: date) -> bool:
        """Check if the event should be drawn on ``day``."""
        return self.first_day <= day <= self.last_day
