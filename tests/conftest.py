"""Pytest fixtures for family hub tests.

This module provides test fixtures that ensure:
1. No real calendar feeds are contacted (HTTP goes through httpx.MockTransport)
2. No real location sensors are used (positions come from ManualPositionSource)
3. Isolated test environment with controlled configuration
"""

import itertools
import os
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

import httpx
import pytest
import pytest_asyncio

# Set test environment BEFORE importing application modules
os.environ.setdefault("FAMILY_HUB_ENVIRONMENT", "development")
os.environ.pop("FAMILY_HUB_FEED_URL_A", None)
os.environ.pop("FAMILY_HUB_FEED_URL_B", None)

from family_hub.calendar.loader import FeedLoader
from family_hub.location.source import ManualPositionSource, ObservationError
from family_hub.location.tracker import LocationTracker
from family_hub.models.location import Subject, WatchOptions


FEED_A = "https://calendars.example.com/a.ics"
FEED_B = "https://calendars.example.com/b.ics"


def make_ics(*vevents: str) -> str:
    """Wrap VEVENT bodies in a minimal VCALENDAR."""
    lines = ["BEGIN:VCALENDAR", "VERSION:2.0", "PRODID:-//Family Hub Tests//EN"]
    for body in vevents:
        lines.append("BEGIN:VEVENT")
        lines.extend(line.strip() for line in body.strip().splitlines())
        lines.append("END:VEVENT")
    lines.append("END:VCALENDAR")
    return "\r\n".join(lines) + "\r\n"


CHECKUP_ICS = make_ics(
    """
    UID:checkup-1@example.com
    SUMMARY:Checkup
    DTSTART:20240105T090000
    DTEND:20240105T093000
    """
)

SCHOOL_ICS = make_ics(
    """
    UID:school-1@example.com
    SUMMARY:School play
    DTSTART:20240110T180000
    """,
    """
    UID:school-2@example.com
    SUMMARY:Pupil free day
    DTSTART;VALUE=DATE:20240112
    DTEND;VALUE=DATE:20240113
    """,
)

EMPTY_ICS = make_ics()


# =============================================================================
# Test Isolation Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """Reset settings cache before each test to ensure clean state."""
    from family_hub.config import get_settings
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class FeedServer:
    """Serves canned responses per URL and records requests."""

    def __init__(self) -> None:
        self.responses: dict[str, httpx.Response | Exception] = {}
        self.requests: list[httpx.Request] = []

    def add(self, url: str, body: str, status_code: int = 200) -> None:
        self.responses[url] = httpx.Response(
            status_code,
            text=body,
            headers={"Content-Type": "text/calendar; charset=utf-8"},
        )

    def fail(self, url: str, error: Exception) -> None:
        self.responses[url] = error

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.get(str(request.url))
        if response is None:
            return httpx.Response(404, text="not found")
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def feed_server() -> FeedServer:
    return FeedServer()


@pytest.fixture
def sequential_ids() -> Callable[[], str]:
    """Deterministic id factory: gen-1, gen-2, ..."""
    counter = itertools.count(1)
    return lambda: f"gen-{next(counter)}"


@pytest_asyncio.fixture
async def feed_loader(feed_server: FeedServer, sequential_ids):
    """FeedLoader whose HTTP traffic goes to ``feed_server``."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(feed_server.handler))
    loader = FeedLoader(client=client, id_factory=sequential_ids)
    yield loader
    await client.aclose()


class RecordingSink:
    """Diagnostic sink that keeps everything it receives."""

    def __init__(self) -> None:
        self.errors: list[tuple[Subject, ObservationError]] = []
        self.unavailable: list[Subject] = []

    def observation_error(self, subject: Subject, error: ObservationError) -> None:
        self.errors.append((subject, error))

    def source_unavailable(self, subject: Subject) -> None:
        self.unavailable.append(subject)


class StepClock:
    """Clock that advances one second per call."""

    def __init__(self, start: datetime) -> None:
        self.current = start

    def __call__(self) -> datetime:
        now = self.current
        self.current += timedelta(seconds=1)
        return now


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def clock() -> StepClock:
    return StepClock(datetime(2024, 1, 5, 9, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def sources() -> dict[Subject, ManualPositionSource]:
    return {Subject.A: ManualPositionSource(), Subject.B: ManualPositionSource()}


@pytest.fixture
def tracker(sources, sink, clock) -> LocationTracker:
    tracker = LocationTracker(sources, options=WatchOptions(), sink=sink, clock=clock)
    yield tracker
    tracker.close()
