"""
Notification result models.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List

from .availability import AvailabilityRecord


class NotificationLevel(Enum):
    """How important a classified result is."""

    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    NONE = "NONE"


@dataclass
class NotificationSummary:
    """Counts plus a one-line message describing a classification."""

    total_relevant_slots: int
    better_slots_count: int
    expected_matches_count: int
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_relevant_slots": self.total_relevant_slots,
            "better_slots_count": self.better_slots_count,
            "expected_matches_count": self.expected_matches_count,
            "message": self.message,
        }


@dataclass
class NotificationResult:
    """Outcome of classifying one availability set against the preferences."""

    should_notify: bool
    relevant_slots: List[AvailabilityRecord]
    better_than_existing: List[AvailabilityRecord]
    matches_expected: List[AvailabilityRecord]
    summary: NotificationSummary
    generated_at: datetime = field(default_factory=datetime.now)

    @property
    def level(self) -> NotificationLevel:
        if self.better_than_existing:
            return NotificationLevel.HIGH
        if self.matches_expected:
            return NotificationLevel.MEDIUM
        if self.relevant_slots:
            return NotificationLevel.LOW
        return NotificationLevel.NONE

    @property
    def other_relevant_slots(self) -> List[AvailabilityRecord]:
        """Relevant slots that are neither better nor an expected match."""
        classified = {id(slot) for slot in self.better_than_existing}
        classified.update(id(slot) for slot in self.matches_expected)
        return [slot for slot in self.relevant_slots if id(slot) not in classified]

    def validate(self) -> bool:
        """Validate notification result data."""
        if not isinstance(self.should_notify, bool):
            raise ValueError("should_notify must be a boolean")

        relevant = {id(slot) for slot in self.relevant_slots}
        for slot in self.better_than_existing + self.matches_expected:
            if id(slot) not in relevant:
                raise ValueError("Classified slots must also be relevant slots")

        if self.summary.total_relevant_slots != len(self.relevant_slots):
            raise ValueError("Summary count does not match relevant slots")

        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "should_notify": self.should_notify,
            "generated_at": self.generated_at.isoformat(),
            "relevant_slots": [slot.to_dict() for slot in self.relevant_slots],
            "better_than_existing": [
                slot.to_dict() for slot in self.better_than_existing
            ],
            "matches_expected": [slot.to_dict() for slot in self.matches_expected],
            "summary": self.summary.to_dict(),
        }
