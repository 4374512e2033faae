"""
Unit tests for the slot matching rules.
"""

from datetime import date

import pytest

from visa_slot_monitor.components.slot_matcher import (
    is_better_than_existing,
    is_same_location,
    matches_expected,
    matches_place,
    parse_availability_date,
    parse_config_date,
    parse_distance,
)
from visa_slot_monitor.models.availability import SearchQuery
from visa_slot_monitor.models.config import ExistingSlot, ExpectedSlot, NotificationPlace


class TestParsers:
    """Test cases for the date and distance parsers."""

    def test_parse_availability_date(self):
        """Test extracting a D/M/YYYY date."""
        assert parse_availability_date("Tuesday 26/08/2025 10:00 AM") == date(2025, 8, 26)

    def test_parse_availability_date_without_separator_before_time(self):
        """Test a date glued to the time that follows it."""
        assert parse_availability_date("Tuesday 26/08/202510:00 AM") == date(2025, 8, 26)

    def test_parse_availability_date_single_digits(self):
        """Test one-digit day and month."""
        assert parse_availability_date("Monday 1/9/2025 8:15 AM") == date(2025, 9, 1)

    @pytest.mark.parametrize(
        "text",
        ["", None, "No available slot", "NO AVAILABLE SLOT 26/08/2025", "Call to book"],
    )
    def test_parse_availability_date_missing(self, text):
        """Test texts that carry no usable date."""
        assert parse_availability_date(text) is None

    def test_parse_availability_date_invalid_calendar_date(self):
        """Test an impossible calendar date."""
        assert parse_availability_date("Friday 31/02/2025 9:00 AM") is None

    def test_parse_config_date(self):
        """Test parsing a YYYY-MM-DD date."""
        assert parse_config_date("2025-12-31") == date(2025, 12, 31)

    def test_parse_config_date_invalid(self):
        """Test that a malformed config date raises."""
        with pytest.raises(ValueError):
            parse_config_date("31/12/2025")

    @pytest.mark.parametrize(
        "text,expected",
        [("235 km", 235), ("2 km", 2), ("km", 0), ("", 0), (None, 0), ("1.5 km", 1)],
    )
    def test_parse_distance(self, text, expected):
        """Test the leading integer of a distance string."""
        assert parse_distance(text) == expected


class TestMatchesPlace:
    """Test cases for notification place rules."""

    def test_empty_rule_matches_everything(self, make_record):
        """Test that a rule with no fields matches any record."""
        assert matches_place(make_record(), NotificationPlace()) is True
        assert matches_place(make_record(search_query=None), NotificationPlace()) is True

    def test_adelaide_scenario(self, make_record):
        """Test a name and state rule against an Adelaide record."""
        record = make_record(
            name="Adelaide City Centre",
            availability="Monday 26/08/2025 10:00 AM",
        )
        rule = NotificationPlace(location_name="Adelaide", state="SA")

        assert matches_place(record, rule) is True

    def test_location_id_short_circuits(self, make_record):
        """Test that a matching id wins over the other fields."""
        record = make_record(id="999", name="Somewhere Else")
        rule = NotificationPlace(location_id="999", location_name="Perth", state="WA")

        assert matches_place(record, rule) is True

    def test_location_name_case_insensitive(self, make_record):
        """Test case-insensitive name matching."""
        rule = NotificationPlace(location_name="adelaide HEALTH")

        assert matches_place(make_record(), rule) is True

    def test_location_name_mismatch(self, make_record):
        """Test that a non-matching name fails."""
        assert matches_place(make_record(), NotificationPlace(location_name="Perth")) is False

    def test_state_mismatch(self, make_record):
        """Test that a different search state fails."""
        assert matches_place(make_record(), NotificationPlace(state="WA")) is False

    def test_state_without_search_query(self, make_record):
        """Test that a state rule fails for a record without a search query."""
        record = make_record(search_query=None)

        assert matches_place(record, NotificationPlace(state="SA")) is False

    def test_max_distance_boundary(self, make_record):
        """Test that the distance limit is inclusive."""
        rule = NotificationPlace(max_distance="100 km")

        assert matches_place(make_record(distance="100 km"), rule) is True
        assert matches_place(make_record(distance="101 km"), rule) is False

    def test_unmatched_id_falls_through(self, make_record):
        """Test that an id-only rule with a different id still passes the other checks."""
        rule = NotificationPlace(location_id="other")

        assert matches_place(make_record(id="140"), rule) is True


class TestIsBetterThanExisting:
    """Test cases for comparing against the booked slot."""

    @pytest.fixture
    def perth_existing(self):
        return ExistingSlot(location_name="Perth", date="2025-12-31")

    @pytest.fixture
    def perth_record(self, make_record):
        def _perth_record(availability):
            return make_record(
                id="512",
                name="Perth Medical Centre",
                availability=availability,
                search_query=SearchQuery(postcode="6000", state="WA"),
            )

        return _perth_record

    def test_earlier_at_same_location(self, perth_record, perth_existing):
        """Test that an earlier slot at the booked location is better."""
        record = perth_record("Wednesday 01/10/2025 9:00 AM")

        assert is_better_than_existing(record, perth_existing) is True

    def test_later_at_same_location(self, perth_record, perth_existing):
        """Test that a later slot at the booked location is not better."""
        record = perth_record("Monday 05/01/2026 9:00 AM")

        assert is_better_than_existing(record, perth_existing) is False

    def test_same_day_is_not_better(self, perth_record, perth_existing):
        """Test that the booked day itself is not strictly earlier."""
        record = perth_record("Wednesday 31/12/2025 8:00 AM")

        assert is_better_than_existing(record, perth_existing) is False

    def test_other_location_is_better(self, make_record, perth_existing):
        """Test the permissive rule for a dated slot elsewhere."""
        record = make_record(availability="Monday 05/01/2026 9:00 AM")

        assert is_better_than_existing(record, perth_existing) is True

    def test_unparseable_date_is_never_better(self, make_record, perth_existing):
        """Test that a record without a date is not better."""
        record = make_record(availability="Call the centre")

        assert is_better_than_existing(record, perth_existing) is False

    def test_same_location_by_id(self, make_record):
        """Test location identity by id."""
        existing = ExistingSlot(location_id="140", date="2025-08-01")
        record = make_record(availability="Tuesday 26/08/2025 10:00 AM")

        assert is_same_location(record, "140", None) is True
        assert is_better_than_existing(record, existing) is False


class TestMatchesExpected:
    """Test cases for the preferred slot."""

    @pytest.mark.parametrize(
        "availability,expected",
        [
            ("Wednesday 08/10/2025 9:00 AM", True),
            ("Wednesday 24/09/2025 9:00 AM", True),
            ("Thursday 09/10/2025 9:00 AM", False),
            ("Tuesday 23/09/2025 9:00 AM", False),
        ],
    )
    def test_date_tolerance(self, make_record, availability, expected):
        """Test the seven day tolerance around the preferred date."""
        expected_slot = ExpectedSlot(date="2025-10-01")

        assert matches_expected(make_record(availability=availability), expected_slot) is expected

    def test_location_only(self, make_record):
        """Test that a location match suffices without a date."""
        expected_slot = ExpectedSlot(location_name="adelaide")

        assert matches_expected(make_record(availability="Call to book"), expected_slot) is True

    def test_location_id_mismatch(self, make_record):
        """Test that a different id fails."""
        assert matches_expected(make_record(), ExpectedSlot(location_id="999")) is False

    def test_location_name_mismatch(self, make_record):
        """Test that a different name fails."""
        assert matches_expected(make_record(), ExpectedSlot(location_name="Perth")) is False

    def test_date_without_parseable_record_date(self, make_record):
        """Test that a date preference fails for an undated record."""
        record = make_record(availability="Call to book")

        assert matches_expected(record, ExpectedSlot(date="2025-08-26")) is False
