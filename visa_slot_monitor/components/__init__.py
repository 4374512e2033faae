"""
Core components for the medical visa slot monitor.

This module contains the components that scrape the booking site, classify
availability, render reports and deliver email notifications.
"""

from .email_dispatcher import EmailDispatcher
from .email_formatter import EmailFormatter, build_booking_link
from .notification_filter import NotificationFilter, classify
from .report_generator import ReportGenerator
from .slot_crawler import SlotCrawler, parse_location_row

__all__ = [
    "EmailDispatcher",
    "EmailFormatter",
    "build_booking_link",
    "NotificationFilter",
    "classify",
    "ReportGenerator",
    "SlotCrawler",
    "parse_location_row",
]
