"""Text for the location status cards."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import tzinfo

from family_hub.location.tracker import SubjectTracker
from family_hub.models.location import PositionRecord

NOT_SHARING = "Not sharing"


@dataclass(frozen=True)
class StatusCard:
    """What a status card shows for one subject."""

    label: str
    sharing_enabled: bool
    lines: tuple[str, ...]


def format_position(position: PositionRecord | None, tz: tzinfo | None = None) -> tuple[str, ...]:
    """Format a position as status card lines.

    Shows "Not sharing" when there is no position. The time is converted to
    ``tz`` (local time when omitted) before formatting.
    """
    if position is None:
        return (NOT_SHARING,)
    observed_at = position.observed_at
    if observed_at.tzinfo is not None:
        observed_at = observed_at.astimezone(tz)
    return (
        f"Lat: {position.latitude:.5f} | Lng: {position.longitude:.5f}",
        f"Updated: {observed_at:%H:%M:%S}",
    )


def status_card(tracker: SubjectTracker, tz: tzinfo | None = None) -> StatusCard:
    # The last reading stays visible after sharing is turned off
    return StatusCard(
        label=tracker.subject.label,
        sharing_enabled=tracker.sharing_enabled,
        lines=format_position(tracker.last_position, tz),
    )
