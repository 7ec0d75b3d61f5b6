"""Calendar feed errors."""

from __future__ import annotations


class FeedError(Exception):
    """Base exception for calendar feed errors."""

    def __init__(self, message: str, locator: str | None = None):
        super().__init__(message)
        self.locator = locator


class FetchError(FeedError):
    """Raised when a feed cannot be retrieved.

    ``status_code`` is the HTTP status for non-success responses and ``None``
    when the request never produced a response (DNS, connect, timeout).
    """

    def __init__(
        self,
        message: str,
        locator: str | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message, locator=locator)
        self.status_code = status_code


class ParseError(FeedError):
    """Raised when a feed body is not valid iCalendar data."""

    pass
