"""Calendar feed loader.

Fetches an ICS/iCal feed over HTTP and parses it into event records.

## Supported Feeds

Any URL serving ``text/calendar`` data, for example:
- Google Calendar "Secret address in iCal format"
- iCloud public calendar links (``webcal://`` is rewritten to ``https://``
  by the settings layer)

## Behavior

- An empty locator returns no events without making a request
- A single GET per load; no retries and no conditional requests
- Non-2xx responses raise ``FetchError`` carrying the status code
- Malformed bodies raise ``ParseError``; partial results are never returned
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from family_hub.calendar.errors import FetchError
from family_hub.calendar.parser import IdFactory, parse_calendar, random_event_id
from family_hub.models.event import DEFAULT_EVENT_TITLE, EventRecord

logger = logging.getLogger(__name__)


class FeedLoader:
    """Loads events from ICS feeds.

    Example:
        ```python
        async with FeedLoader() as loader:
            events = await loader.load("https://example.com/family.ics")
        ```

    An ``httpx.AsyncClient`` may be injected; the loader then uses it as-is
    and leaves closing it to the caller.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        user_agent: str = "family-hub/0.1.0",
        timeout: float = 30.0,
        id_factory: IdFactory = random_event_id,
        untitled_title: str = DEFAULT_EVENT_TITLE,
    ):
        """Initialize the loader.

        Args:
            client: Shared HTTP client (optional)
            user_agent: User-Agent string for requests
            timeout: Request timeout in seconds
            id_factory: Id generator for events without a UID
            untitled_title: Title for events without a SUMMARY
        """
        self.user_agent = user_agent
        self.timeout = timeout
        self.id_factory = id_factory
        self.untitled_title = untitled_title
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> FeedLoader:
        """Enter async context manager."""
        self._get_client()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit async context manager."""
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client if this loader created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
            )
            self._owns_client = True
        return self._client

    def _get_default_headers(self) -> dict[str, str]:
        return {
            "User-Agent": self.user_agent,
            "Accept": "text/calendar, text/plain;q=0.9, */*;q=0.1",
        }

    async def fetch_text(self, locator: str) -> str:
        """Retrieve the raw calendar text for a feed.

        Raises:
            FetchError: If the request fails or returns a non-2xx status
        """
        client = self._get_client()
        try:
            response = await client.get(locator, headers=self._get_default_headers())
        except httpx.HTTPError as e:
            logger.warning(f"Calendar request to {locator} failed: {e}")
            raise FetchError(f"Couldn't fetch calendar: {e}", locator=locator) from e

        if not response.is_success:
            logger.warning(f"Calendar request to {locator} returned {response.status_code}")
            raise FetchError(
                f"Couldn't fetch calendar: {response.status_code}",
                locator=locator,
                status_code=response.status_code,
            )

        return response.text

    async def load(self, locator: str | None) -> list[EventRecord]:
        """Load all events from a feed.

        Args:
            locator: Feed URL; ``None`` or blank means "no feed"

        Returns:
            Event records in feed order (untagged)

        Raises:
            FetchError: If the feed cannot be retrieved
            ParseError: If the feed is not valid iCalendar data
        """
        if not locator or not locator.strip():
            return []

        text = await self.fetch_text(locator)
        events = parse_calendar(
            text,
            locator=locator,
            id_factory=self.id_factory,
            untitled_title=self.untitled_title,
        )
        logger.info(f"Loaded {len(events)} events from {locator}")
        return events
