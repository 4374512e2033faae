"""
Configuration models for the system.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional
from urllib.parse import urlparse

from dateutil import parser as date_parser

from .availability import SearchQuery

DEFAULT_BOOKING_URL = "https://bmvs.onlineappointmentscheduling.net.au/"
DEFAULT_RESEND_API_URL = "https://api.resend.com/emails"
PLACEHOLDER_API_KEY = "your_resend_api_key_here"
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_CONFIG_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _validate_config_date(value: str, label: str) -> None:
    if not isinstance(value, str) or not _CONFIG_DATE_PATTERN.match(value):
        raise ValueError(f"{label} must be in YYYY-MM-DD format")
    try:
        date_parser.isoparse(value)
    except ValueError:
        raise ValueError(f"{label} is not a valid calendar date: {value}")


@dataclass
class NotificationPlace:
    """A place rule; every field that is set must match."""

    location_id: Optional[str] = None
    location_name: Optional[str] = None
    state: Optional[str] = None
    max_distance: Optional[str] = None


@dataclass
class ExistingSlot:
    """The slot the user has already booked."""

    date: str
    location_id: Optional[str] = None
    location_name: Optional[str] = None
    time: Optional[str] = None

    def validate(self) -> bool:
        """Validate existing slot configuration."""
        _validate_config_date(self.date, "Existing slot date")
        return True


@dataclass
class ExpectedSlot:
    """The location and/or date the user would prefer."""

    location_id: Optional[str] = None
    location_name: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None

    def validate(self) -> bool:
        """Validate expected slot configuration."""
        if self.date is not None:
            _validate_config_date(self.date, "Expected slot date")
        return True


@dataclass
class NotificationPreferences:
    """User notification preferences, fixed for the duration of one cycle."""

    places_to_notify: List[NotificationPlace] = field(default_factory=list)
    existing_slot: Optional[ExistingSlot] = None
    expected_slot: Optional[ExpectedSlot] = None
    only_better_slots: bool = False
    email_recipients: List[str] = field(default_factory=list)

    def validate(self) -> bool:
        """Validate notification preferences."""
        if not isinstance(self.places_to_notify, list):
            raise ValueError("places_to_notify must be a list")

        for place in self.places_to_notify:
            if not isinstance(place, NotificationPlace):
                raise ValueError("places_to_notify entries must be NotificationPlace")

        if self.existing_slot is not None:
            self.existing_slot.validate()

        if self.expected_slot is not None:
            self.expected_slot.validate()

        if not isinstance(self.only_better_slots, bool):
            raise ValueError("only_better_slots must be a boolean")

        for recipient in self.email_recipients:
            if not isinstance(recipient, str) or not _EMAIL_PATTERN.match(recipient):
                raise ValueError(f"Invalid email recipient: {recipient}")

        return True


@dataclass
class CrawlerSettings:
    """Settings for the booking site scraper."""

    base_url: str = DEFAULT_BOOKING_URL
    timeout: int = 30000  # milliseconds
    headless: bool = True
    search_delay: float = 2.0

    def validate(self) -> bool:
        """Validate crawler settings."""
        parsed_url = urlparse(self.base_url)
        if parsed_url.scheme not in ["http", "https"] or not parsed_url.netloc:
            raise ValueError(f"Invalid crawler base URL: {self.base_url}")

        if not isinstance(self.timeout, int) or self.timeout <= 0:
            raise ValueError("Crawler timeout must be a positive integer")

        if self.search_delay < 0:
            raise ValueError("Crawler search delay cannot be negative")

        return True


@dataclass
class EmailSettings:
    """Credentials and sender settings for the transactional email provider."""

    enabled: bool = False
    api_key: str = ""
    from_address: str = "noreply@example.com"
    subject: str = "Medical Visa Slots Available!"
    api_url: str = DEFAULT_RESEND_API_URL
    timeout: int = 30

    @property
    def has_usable_api_key(self) -> bool:
        return bool(self.api_key) and self.api_key != PLACEHOLDER_API_KEY

    def validate(self) -> bool:
        """Validate email settings."""
        if not self.enabled:
            return True

        if not self.from_address or "@" not in self.from_address:
            raise ValueError("Email 'from' address must be a valid address")

        if not self.subject or not self.subject.strip():
            raise ValueError("Email subject cannot be empty")

        if not self.api_url.startswith("https://"):
            raise ValueError("Email API URL must use HTTPS")

        return True


@dataclass
class ServiceSettings:
    """Scheduling and persistence settings for the service loop."""

    interval_minutes: int = 5
    max_retries: int = 3
    retry_base_delay: float = 2.0
    results_path: str = "latest-medical-visa-results.json"
    notification_path: str = "notification-result.json"
    log_dir: str = "logs"
    log_level: str = "INFO"

    def validate(self) -> bool:
        """Validate service settings."""
        validate_interval(self.interval_minutes)

        if not isinstance(self.max_retries, int) or self.max_retries < 1:
            raise ValueError("max_retries must be a positive integer")

        if self.retry_base_delay < 0:
            raise ValueError("retry_base_delay cannot be negative")

        if not self.results_path or not self.notification_path:
            raise ValueError("Artifact paths cannot be empty")

        if str(self.log_level).upper() not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of: {', '.join(LOG_LEVELS)}")

        return True


@dataclass
class Configuration:
    """System configuration."""

    search_locations: List[SearchQuery]
    preferences: NotificationPreferences
    crawler: CrawlerSettings = field(default_factory=CrawlerSettings)
    email: EmailSettings = field(default_factory=EmailSettings)
    service: ServiceSettings = field(default_factory=ServiceSettings)

    def validate(self) -> bool:
        """Validate system configuration."""
        if not isinstance(self.search_locations, list):
            raise ValueError("search_locations must be a list")

        if not self.search_locations:
            raise ValueError("At least one search location must be configured")

        for search_location in self.search_locations:
            search_location.validate()

        self.preferences.validate()
        self.crawler.validate()
        self.email.validate()
        self.service.validate()

        return True


def validate_interval(interval_minutes) -> int:
    """
    Validate a scheduling interval given in minutes.

    Raises:
        ValueError: when the interval is not an integer of at least one minute.
    """
    if isinstance(interval_minutes, bool) or not isinstance(interval_minutes, int):
        raise ValueError(
            f"Interval must be a whole number of minutes, got {interval_minutes!r}"
        )

    if interval_minutes < 1:
        raise ValueError("Interval must be at least 1 minute")

    return interval_minutes
