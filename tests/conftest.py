"""
Pytest configuration and shared fixtures.

This module provides common fixtures for the medical visa slot monitor
test suite.
"""

from datetime import datetime

import pytest
import yaml

from visa_slot_monitor.models.availability import (
    AvailabilityRecord,
    CrawlResult,
    SearchQuery,
    SearchResult,
)
from visa_slot_monitor.models.config import (
    ExistingSlot,
    ExpectedSlot,
    NotificationPlace,
    NotificationPreferences,
)
from visa_slot_monitor.utils.logging import ComponentLogger


@pytest.fixture
def adelaide_query():
    """Search query for the Adelaide CBD."""
    return SearchQuery(postcode="5000", state="SA", name="Adelaide CBD")


@pytest.fixture
def perth_query():
    """Search query for Perth."""
    return SearchQuery(postcode="6000", state="WA", name="Perth")


@pytest.fixture
def make_record(adelaide_query):
    """Factory for availability records with sensible defaults."""

    def _make_record(**kwargs):
        defaults = {
            "id": "140",
            "name": "Adelaide Health Centre",
            "full_name": "Bupa Medical Visa Services Adelaide",
            "address": "Level 1, 33 King William Street, Adelaide SA 5000",
            "distance": "2 km",
            "availability": "Tuesday 26/08/2025 10:00 AM",
            "is_available": True,
            "search_query": adelaide_query,
        }
        defaults.update(kwargs)
        return AvailabilityRecord(**defaults)

    return _make_record


@pytest.fixture
def unavailable_record(make_record):
    """A record with no available appointments."""
    return make_record(
        id="141",
        name="Mount Gambier Clinic",
        availability="No available slot",
        is_available=False,
    )


@pytest.fixture
def sample_preferences():
    """Preferences watching every SA location within 100 km."""
    return NotificationPreferences(
        places_to_notify=[NotificationPlace(state="SA", max_distance="100 km")],
        email_recipients=["user@example.com"],
    )


@pytest.fixture
def perth_preferences():
    """Preferences with an existing Perth booking."""
    return NotificationPreferences(
        places_to_notify=[NotificationPlace()],
        existing_slot=ExistingSlot(
            date="2025-12-15", location_id="512", location_name="Perth"
        ),
        expected_slot=ExpectedSlot(location_name="Perth", date="2025-10-03"),
    )


@pytest.fixture
def sample_crawl_result(make_record, unavailable_record, adelaide_query):
    """Crawl result with one available and one unavailable location."""
    return CrawlResult(
        timestamp=datetime(2025, 8, 20, 9, 30, 0),
        search_results=[
            SearchResult(
                search_query=adelaide_query,
                locations=[make_record(), unavailable_record],
            )
        ],
    )


@pytest.fixture
def config_dict():
    """A complete configuration file body."""
    return {
        "search_locations": [
            {"postcode": "5000", "state": "SA", "name": "Adelaide CBD"},
            {"postcode": "6000", "state": "WA", "name": "Perth"},
        ],
        "crawler_settings": {
            "base_url": "https://bmvs.onlineappointmentscheduling.net.au/",
            "timeout": 30000,
            "headless": True,
        },
        "places_to_notify": [{"state": "SA", "max_distance": "100 km"}],
        "existing_slot": {"date": "2025-12-15", "location_name": "Perth"},
        "expected_slot": {"date": "2025-10-01"},
        "only_better_slots": False,
        "email": {
            "to": ["user@example.com"],
            "enabled": True,
            "api_key": "re_test_key",
            "from": "alerts@example.com",
            "subject": "Medical Visa Slots Available!",
        },
        "service": {"interval_minutes": 5, "max_retries": 3, "retry_base_delay": 0},
    }


@pytest.fixture
def config_file(tmp_path, config_dict):
    """Write the configuration to a temporary YAML file."""
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(config_dict), encoding="utf-8")
    return str(path)


@pytest.fixture
def test_logger():
    """Component logger for tests."""
    return ComponentLogger("test")
