"""
Data models for the medical visa slot monitor.

This module contains all data classes and type definitions used throughout
the application for representing scraped availability, configuration and
notification results.
"""

from .availability import AvailabilityRecord, CrawlResult, SearchQuery, SearchResult
from .config import (
    Configuration,
    CrawlerSettings,
    EmailSettings,
    ExistingSlot,
    ExpectedSlot,
    NotificationPlace,
    NotificationPreferences,
    ServiceSettings,
)
from .delivery import DeliveryResult, FormattedEmail
from .notification import NotificationLevel, NotificationResult, NotificationSummary

__all__ = [
    "AvailabilityRecord",
    "CrawlResult",
    "SearchQuery",
    "SearchResult",
    "Configuration",
    "CrawlerSettings",
    "EmailSettings",
    "ExistingSlot",
    "ExpectedSlot",
    "NotificationPlace",
    "NotificationPreferences",
    "ServiceSettings",
    "DeliveryResult",
    "FormattedEmail",
    "NotificationLevel",
    "NotificationResult",
    "NotificationSummary",
]
