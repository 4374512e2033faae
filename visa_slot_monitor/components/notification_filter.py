"""Notification filter that classifies a full availability set."""

from datetime import datetime
from typing import Any, Iterable, List, Mapping, Optional, TypeVar, Union

from ..models.availability import AvailabilityRecord
from ..models.config import ExistingSlot, ExpectedSlot, NotificationPreferences
from ..models.notification import NotificationResult, NotificationSummary
from ..utils.logging import ComponentLogger
from .slot_matcher import is_better_than_existing, matches_expected, matches_place

RecordInput = Union[AvailabilityRecord, Mapping[str, Any]]
SlotPreference = TypeVar("SlotPreference", ExistingSlot, ExpectedSlot)


def build_summary_message(relevant: int, better: int, expected: int) -> str:
    """One-line summary, preferring better/expected counts over relevant ones."""
    parts = []
    if better:
        parts.append(f"{better} slot(s) better than your existing booking")
    if expected:
        parts.append(f"{expected} slot(s) matching your preferences")
    if not parts and relevant:
        parts.append(f"{relevant} relevant slot(s) available")

    if not parts:
        return "No relevant slots found."
    return f"Found {' and '.join(parts)}."


class NotificationFilter:
    """Aggregates the slot matcher over every record of a scrape."""

    def __init__(self, logger: Optional[ComponentLogger] = None):
        self.logger = logger or ComponentLogger("notification.filter")

    def classify(
        self,
        records: Iterable[RecordInput],
        preferences: NotificationPreferences,
        now: Optional[datetime] = None,
    ) -> NotificationResult:
        """
        Classify availability records against notification preferences.

        A record that cannot be coerced or matched is logged and skipped;
        the remaining records are still classified. An existing or expected
        slot that fails validation is ignored for the whole call.

        Args:
            records: Scraped records, as models or raw mappings
            preferences: User notification preferences
            now: Classification timestamp, defaults to the current time

        Returns:
            NotificationResult with relevant, better and expected-match slots
        """
        existing_slot = self._usable_slot(preferences.existing_slot, "existing_slot")
        expected_slot = self._usable_slot(preferences.expected_slot, "expected_slot")

        relevant_slots: List[AvailabilityRecord] = []
        better_than_existing: List[AvailabilityRecord] = []
        expected_matches: List[AvailabilityRecord] = []

        for index, raw_record in enumerate(records):
            try:
                record = self._coerce(raw_record)
                if not record.is_available:
                    continue

                if not any(
                    matches_place(record, rule)
                    for rule in preferences.places_to_notify
                ):
                    continue

                is_better = existing_slot is not None and (
                    is_better_than_existing(record, existing_slot)
                )
                is_expected = expected_slot is not None and (
                    matches_expected(record, expected_slot)
                )
            except Exception as e:
                self.logger.warning(
                    "Skipping malformed availability record",
                    extra={"index": index, "error": str(e)},
                )
                continue

            relevant_slots.append(record)
            if is_better:
                better_than_existing.append(record)
            if is_expected:
                expected_matches.append(record)

        if preferences.only_better_slots:
            should_notify = bool(better_than_existing or expected_matches)
        else:
            should_notify = bool(relevant_slots)

        summary = NotificationSummary(
            total_relevant_slots=len(relevant_slots),
            better_slots_count=len(better_than_existing),
            expected_matches_count=len(expected_matches),
            message=build_summary_message(
                len(relevant_slots), len(better_than_existing), len(expected_matches)
            ),
        )

        self.logger.debug(
            "Classified availability records",
            extra={
                "relevant": summary.total_relevant_slots,
                "better": summary.better_slots_count,
                "expected": summary.expected_matches_count,
                "should_notify": should_notify,
            },
        )

        return NotificationResult(
            should_notify=should_notify,
            relevant_slots=relevant_slots,
            better_than_existing=better_than_existing,
            matches_expected=expected_matches,
            summary=summary,
            generated_at=now or datetime.now(),
        )

    def _usable_slot(
        self, slot: Optional[SlotPreference], label: str
    ) -> Optional[SlotPreference]:
        if slot is None:
            return None
        try:
            slot.validate()
        except ValueError as e:
            self.logger.warning(
                f"Ignoring invalid {label} preference", extra={"error": str(e)}
            )
            return None
        return slot

    @staticmethod
    def _coerce(record: RecordInput) -> AvailabilityRecord:
        if isinstance(record, AvailabilityRecord):
            return record
        if isinstance(record, Mapping):
            return AvailabilityRecord.from_dict(record)
        raise TypeError(f"Unsupported availability record type: {type(record).__name__}")


def classify(
    records: Iterable[RecordInput], preferences: NotificationPreferences
) -> NotificationResult:
    """Classify records with a default-configured filter."""
    return NotificationFilter().classify(records, preferences)
