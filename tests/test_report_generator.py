"""
Unit tests for text report generation.
"""

from datetime import datetime

import pytest

from visa_slot_monitor.components.notification_filter import NotificationFilter
from visa_slot_monitor.components.report_generator import REPORT_TITLE, ReportGenerator
from visa_slot_monitor.models.config import (
    ExistingSlot,
    ExpectedSlot,
    NotificationPlace,
    NotificationPreferences,
)


@pytest.fixture
def generator():
    return ReportGenerator()


class TestGenerateReport:
    """Test cases for ReportGenerator.generate_report."""

    def test_no_relevant_slots(self, generator, sample_preferences):
        """Test the report when nothing is relevant."""
        result = NotificationFilter().classify([], sample_preferences)

        report = generator.generate_report(result)

        assert report.startswith(REPORT_TITLE)
        assert "❌ No relevant slots found based on your criteria." in report
        assert "BETTER SLOTS" not in report

    def test_sections_in_priority_order(self, generator, make_record, perth_query):
        """Test that better, expected and other slots each get a section."""
        better = make_record(
            id="512",
            name="Perth Medical Centre",
            availability="Wednesday 01/10/2025 9:00 AM",
            search_query=perth_query,
        )
        expected = make_record(
            id="140",
            name="Adelaide Health Centre",
            availability="Call to book",
        )
        other = make_record(id="143", name="Hobart Clinic", availability="Call to book")
        preferences = NotificationPreferences(
            places_to_notify=[NotificationPlace()],
            existing_slot=ExistingSlot(location_name="Perth", date="2025-12-31"),
            expected_slot=ExpectedSlot(location_name="Adelaide"),
        )
        result = NotificationFilter().classify(
            [better, expected, other],
            preferences,
            now=datetime(2025, 8, 20, 9, 30, 0),
        )

        report = generator.generate_report(result)

        better_index = report.index("🎯 BETTER SLOTS (earlier than your existing booking):")
        expected_index = report.index("⭐ MATCHES YOUR PREFERENCES:")
        other_index = report.index("📋 OTHER RELEVANT SLOTS:")
        assert better_index < expected_index < other_index
        assert "📅 Report generated: 2025-08-20 09:30:00" in report
        assert "• Perth Medical Centre (2 km)" in report
        assert "  🕐 Wednesday 01/10/2025 9:00 AM" in report
        assert report.count("• Hobart Clinic") == 1


class TestGenerateCrawlSummary:
    """Test cases for ReportGenerator.generate_crawl_summary."""

    def test_counts_and_listings(self, generator, sample_crawl_result):
        """Test the per-search breakdown and location listings."""
        summary = generator.generate_crawl_summary(sample_crawl_result)

        assert "(2025-08-20 09:30:00)" in summary
        assert "📍 Total Search Areas: 1" in summary
        assert "📍 Total Locations Found: 2" in summary
        assert "✅ Available Slots: 1" in summary
        assert "❌ Not Available: 1" in summary
        assert "1. Adelaide CBD (5000, SA)" in summary
        assert "🎉 ALL AVAILABLE LOCATIONS:" in summary
        assert "[Adelaide CBD] Adelaide Health Centre" in summary
        assert "❌ NOT AVAILABLE LOCATIONS (by search area):" in summary
        assert "Mount Gambier Clinic" in summary

    def test_nothing_available(self, generator, sample_crawl_result):
        """Test the summary when no location is available."""
        for location in sample_crawl_result.locations:
            location.is_available = False

        summary = generator.generate_crawl_summary(sample_crawl_result)

        assert "😔 No available slots found in any search area." in summary
