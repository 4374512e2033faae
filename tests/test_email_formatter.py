"""
Unit tests for email formatting.
"""

from datetime import datetime

import pytest

from visa_slot_monitor.components.email_formatter import (
    EmailFormatter,
    build_booking_link,
    describe_search,
)
from visa_slot_monitor.components.notification_filter import NotificationFilter
from visa_slot_monitor.models.config import (
    ExistingSlot,
    ExpectedSlot,
    NotificationPlace,
    NotificationPreferences,
)

BASE_URL = "https://bmvs.onlineappointmentscheduling.net.au/"


class TestBookingLink:
    """Test cases for booking deep-links."""

    def test_link_with_search_query(self, make_record):
        """Test that the link carries the postcode and state."""
        link = build_booking_link(make_record(), BASE_URL)

        assert link == f"{BASE_URL}?postcode=5000&state=SA"

    def test_link_without_search_query(self, make_record):
        """Test the fallback to the base URL."""
        assert build_booking_link(make_record(search_query=None), BASE_URL) == BASE_URL

    def test_describe_search(self, make_record):
        """Test the search description line."""
        assert describe_search(make_record()) == "Search: Adelaide CBD - 5000, SA"
        assert describe_search(make_record(search_query=None)) == ""


class TestEmailFormatter:
    """Test cases for EmailFormatter."""

    @pytest.fixture
    def formatter(self):
        return EmailFormatter(subject="Medical Visa Slots Available!")

    def classify(self, records, **preference_kwargs):
        preferences = NotificationPreferences(
            places_to_notify=[NotificationPlace()], **preference_kwargs
        )
        return NotificationFilter().classify(
            records, preferences, now=datetime(2025, 8, 20, 9, 30, 0)
        )

    def test_low_level_subject(self, formatter, make_record):
        """Test the subject prefix for plain relevant slots."""
        email = formatter.format_email(self.classify([make_record()]), BASE_URL)

        assert email.subject == "🏥 Medical Visa Slots Available!"

    def test_high_level_subject(self, formatter, make_record):
        """Test the subject prefix when a better slot exists."""
        result = self.classify(
            [make_record()], existing_slot=ExistingSlot(location_name="Perth", date="2025-12-31")
        )

        email = formatter.format_email(result, BASE_URL)

        assert email.subject.startswith("🎯 ")

    def test_medium_level_subject(self, formatter, make_record):
        """Test the subject prefix for expected matches."""
        result = self.classify(
            [make_record()], expected_slot=ExpectedSlot(location_name="Adelaide")
        )

        email = formatter.format_email(result, BASE_URL)

        assert email.subject.startswith("⭐ ")

    def test_no_prefix_without_slots(self, formatter):
        """Test the plain subject when nothing is relevant."""
        email = formatter.format_email(self.classify([]), BASE_URL)

        assert email.subject == "Medical Visa Slots Available!"

    def test_html_body(self, formatter, make_record):
        """Test the HTML body content."""
        result = self.classify(
            [make_record()], existing_slot=ExistingSlot(location_name="Perth", date="2025-12-31")
        )

        email = formatter.format_email(result, BASE_URL)

        assert email.html.startswith("<!DOCTYPE html>")
        assert 'class="slot better-slot"' in email.html
        assert "Adelaide Health Centre" in email.html
        assert f'href="{BASE_URL}?postcode=5000&amp;state=SA"' in email.html
        assert "Report generated: 2025-08-20 09:30:00" in email.html

    def test_html_escapes_scraped_text(self, formatter, make_record):
        """Test that scraped values are HTML-escaped."""
        record = make_record(name="<script>alert(1)</script>")

        email = formatter.format_email(self.classify([record]), BASE_URL)

        assert "<script>" not in email.html
        assert "&lt;script&gt;" in email.html

    def test_text_body(self, formatter, make_record):
        """Test the plain text body content."""
        email = formatter.format_email(self.classify([make_record()]), BASE_URL)

        assert "📋 OTHER RELEVANT SLOTS:" in email.text
        assert "• Adelaide Health Centre (2 km)" in email.text
        assert "  [Search: Adelaide CBD - 5000, SA]" in email.text
        assert f"  🔗 Book: {BASE_URL}?postcode=5000&state=SA" in email.text
        assert "1. Open the booking link for your preferred slot" in email.text
