"""
Protocol interfaces for the medical visa slot monitor.

These protocols mark the boundaries between the service loop and its
collaborators so that each one can be replaced in tests.
"""

from typing import TYPE_CHECKING, Iterable, List, Optional, Protocol, Sequence

from .models.availability import AvailabilityRecord, CrawlResult, SearchQuery
from .models.config import Configuration, NotificationPreferences
from .models.notification import NotificationResult

if TYPE_CHECKING:
    from datetime import datetime

    from .services.config_manager import ConfigLoadResult


class ISlotCrawler(Protocol):
    """Protocol for booking site scrapers."""

    async def crawl(self, search_queries: Sequence[SearchQuery]) -> CrawlResult:
        """Scrape availability for every search query."""
        ...


class INotificationFilter(Protocol):
    """Protocol for classifying availability records."""

    def classify(
        self,
        records: Iterable[AvailabilityRecord],
        preferences: NotificationPreferences,
    ) -> NotificationResult:
        """Classify records against the user's notification preferences."""
        ...


class IReportGenerator(Protocol):
    """Protocol for rendering results as text."""

    def generate_report(self, result: NotificationResult) -> str:
        """Render a notification result."""
        ...

    def generate_crawl_summary(self, crawl_result: CrawlResult) -> str:
        """Render a crawl result."""
        ...


class IEmailDispatcher(Protocol):
    """Protocol for notification email delivery."""

    def send(
        self,
        result: NotificationResult,
        recipients: List[str],
        booking_base_url: str,
    ) -> bool:
        """Send one notification email; never raises."""
        ...

    def send_test_email(self, recipients: List[str], booking_base_url: str) -> bool:
        """Send a canned notification to verify the configuration."""
        ...


class IConfigurationManager(Protocol):
    """Protocol for configuration management."""

    def load_config(self) -> Configuration:
        """Load and validate the configuration file."""
        ...

    def try_load_config(self) -> "ConfigLoadResult":
        """Load the configuration without raising."""
        ...

    def load_preferences(self, path: Optional[str] = None) -> NotificationPreferences:
        """Load only the notification preferences."""
        ...


class IArtifactStore(Protocol):
    """Protocol for persisting result artifacts."""

    def save_latest_results(self, crawl_result: CrawlResult) -> bool:
        """Overwrite the latest-results artifact."""
        ...

    def save_notification_result(
        self,
        result: NotificationResult,
        check_time: "datetime",
        next_check_time: "Optional[datetime]" = None,
    ) -> bool:
        """Overwrite the notification artifact."""
        ...
