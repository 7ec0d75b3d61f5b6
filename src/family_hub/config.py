"""Application configuration.

Configuration is loaded from environment variables using pydantic-settings.
Every variable is prefixed with ``FAMILY_HUB_``.

## Optional Environment Variables

- FAMILY_HUB_FEED_URL_A: ICS/iCal URL for person A's calendar
- FAMILY_HUB_FEED_URL_B: ICS/iCal URL for person B's calendar
- FAMILY_HUB_FETCH_TIMEOUT_SECONDS: Feed request timeout (default: 30)
- FAMILY_HUB_LOG_LEVEL: Logging level (default: INFO)
- FAMILY_HUB_DEBUG: Enable debug mode (default: false)

## Example .env file

```
FAMILY_HUB_FEED_URL_A=https://calendar.google.com/calendar/ical/.../basic.ics
FAMILY_HUB_FEED_URL_B=webcal://p01-caldav.icloud.com/published/2/...
```
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from family_hub.models.location import WatchOptions


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="FAMILY_HUB_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    debug: bool = False
    environment: Literal["development", "staging", "production"] = "development"
    log_level: str = "INFO"

    # Calendar feeds
    feed_url_a: str | None = Field(
        default=None,
        description="ICS/iCal URL for person A (empty means no feed)",
    )
    feed_url_b: str | None = Field(
        default=None,
        description="ICS/iCal URL for person B (empty means no feed)",
    )
    fetch_timeout_seconds: float = Field(default=30.0, gt=0, le=300)
    user_agent: str = "family-hub/0.1.0"
    untitled_event_title: str = "(no title)"

    # Location watches
    location_high_accuracy: bool = True
    location_maximum_age_seconds: float = Field(default=10.0, ge=0)
    location_timeout_seconds: float = Field(default=20.0, gt=0)

    @field_validator("feed_url_a", "feed_url_b", mode="before")
    @classmethod
    def normalize_feed_url(cls, v: str | None) -> str | None:
        """Treat blank URLs as unset and rewrite webcal:// to https://."""
        if v is None:
            return None
        v = v.strip()
        if not v:
            return None
        if v.startswith("webcal://"):
            return v.replace("webcal://", "https://", 1)
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = str(v).upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    def watch_options(self) -> WatchOptions:
        """Build the options used for every location watch."""
        return WatchOptions(
            high_accuracy=self.location_high_accuracy,
            maximum_age_seconds=self.location_maximum_age_seconds,
            timeout_seconds=self.location_timeout_seconds,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Settings are loaded once and cached. To reload, clear the cache:
    ```python
    get_settings.cache_clear()
    ```
    """
    return Settings()


def configure_logging(settings: Settings | None = None) -> None:
    """Apply the configured log level to the ``family_hub`` logger tree."""
    settings = settings or get_settings()
    level = logging.DEBUG if settings.debug else settings.log_level
    logging.getLogger("family_hub").setLevel(level)
