"""Slot matching rules for classifying a single availability record.

All functions here are pure: they never raise on odd record contents and
never touch I/O. Dates are compared at day granularity, so two slots on the
same calendar day are never better than each other.
"""

import re
from datetime import date
from typing import Optional

from dateutil import parser as date_parser

from ..models.availability import AvailabilityRecord
from ..models.config import ExistingSlot, ExpectedSlot, NotificationPlace

# e.g. "Tuesday 26/08/2025 10:00 AM" or "Tuesday 26/08/202510:00 AM"
AVAILABILITY_DATE_PATTERN = re.compile(r"(\d{1,2})/(\d{1,2})/(\d{4})")
DISTANCE_PATTERN = re.compile(r"(\d+)")
NO_SLOT_MARKER = "no available"
EXPECTED_DATE_TOLERANCE_DAYS = 7


def parse_availability_date(availability: Optional[str]) -> Optional[date]:
    """Extract the first D/M/YYYY date from an availability string."""
    if not availability or NO_SLOT_MARKER in availability.lower():
        return None

    match = AVAILABILITY_DATE_PATTERN.search(availability)
    if not match:
        return None

    day, month, year = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_config_date(value: str) -> date:
    """Parse a YYYY-MM-DD config date.

    Raises:
        ValueError: if the value is not a valid ISO date.
    """
    return date_parser.isoparse(value).date()


def parse_distance(distance: Optional[str]) -> int:
    """Leading integer of a distance string ("235 km" -> 235), 0 when absent."""
    match = DISTANCE_PATTERN.search(distance or "")
    return int(match.group(1)) if match else 0


def _name_contains(record: AvailabilityRecord, fragment: str) -> bool:
    return fragment.lower() in (record.name or "").lower()


def matches_place(record: AvailabilityRecord, rule: NotificationPlace) -> bool:
    """Check whether a record satisfies one notification place rule."""
    if rule.location_id and record.id == rule.location_id:
        return True

    if rule.location_name and not _name_contains(record, rule.location_name):
        return False

    if rule.state:
        if record.search_query is None or record.search_query.state != rule.state:
            return False

    if rule.max_distance:
        if parse_distance(record.distance) > parse_distance(rule.max_distance):
            return False

    return True


def is_same_location(
    record: AvailabilityRecord,
    location_id: Optional[str],
    location_name: Optional[str],
) -> bool:
    if location_id and record.id == location_id:
        return True
    return bool(location_name) and _name_contains(record, location_name)


def is_better_than_existing(
    record: AvailabilityRecord, existing_slot: ExistingSlot
) -> bool:
    """Check whether a record improves on the already booked slot.

    At the booked location only a strictly earlier date counts. Any dated
    slot at a different location counts as better.
    """
    slot_date = parse_availability_date(record.availability)
    if slot_date is None:
        return False

    if is_same_location(
        record, existing_slot.location_id, existing_slot.location_name
    ):
        return slot_date < parse_config_date(existing_slot.date)

    # TODO: narrow the cross-location rule once there is a product decision
    # on whether a later slot elsewhere should still be reported.
    return True


def matches_expected(record: AvailabilityRecord, expected_slot: ExpectedSlot) -> bool:
    """Check a record against the preferred location and date (+/- 7 days)."""
    if expected_slot.location_id and record.id != expected_slot.location_id:
        return False

    if expected_slot.location_name and not _name_contains(
        record, expected_slot.location_name
    ):
        return False

    if expected_slot.date:
        slot_date = parse_availability_date(record.availability)
        if slot_date is None:
            return False

        expected_date = parse_config_date(expected_slot.date)
        if abs((slot_date - expected_date).days) > EXPECTED_DATE_TOLERANCE_DAYS:
            return False

    return True
