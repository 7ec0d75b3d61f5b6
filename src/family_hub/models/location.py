"""Location models for live position tracking."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Subject(str, Enum):
    """One of the two fixed people whose position can be shared."""

    A = "A"
    B = "B"

    @property
    def label(self) -> str:
        return f"Person {self.value}"


class Coordinates(BaseModel):
    """Geographic coordinates (latitude/longitude).

    Latitude:
        - Negative (-) = south of equator
        - Positive (+) = north of equator
        - Range: -90 to +90

    Longitude:
        - Negative (-) = west of prime meridian
        - Positive (+) = east of prime meridian
        - Range: -180 to +180
    """

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., ge=-90, le=90, description="Latitude in decimal degrees")
    longitude: float = Field(..., ge=-180, le=180, description="Longitude in decimal degrees")

    def __str__(self) -> str:
        return f"{self.latitude},{self.longitude}"

    def to_tuple(self) -> tuple[float, float]:
        """Return coordinates as (latitude, longitude) tuple."""
        return (self.latitude, self.longitude)


class PositionRecord(Coordinates):
    """Snapshot of a subject's position.

    ``observed_at`` is the wall-clock time the update was received, not the
    device's own timestamp. Records are immutable; a newer observation
    replaces the whole record.
    """

    observed_at: datetime = Field(..., description="When the update was received")


class PositionObservation(BaseModel):
    """A raw update delivered by a position source."""

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    accuracy_m: float | None = Field(default=None, ge=0)
    timestamp: datetime | None = Field(
        default=None,
        description="Device-reported fix time (informational only)",
    )


class WatchOptions(BaseModel):
    """Options passed to a position source when a watch is started."""

    model_config = ConfigDict(frozen=True)

    high_accuracy: bool = True
    maximum_age_seconds: float = Field(default=10.0, ge=0)
    timeout_seconds: float = Field(default=20.0, gt=0)
