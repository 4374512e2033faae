"""
Email formatting and delivery result models.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional


@dataclass
class FormattedEmail:
    """Email content ready for delivery."""

    subject: str
    html: str
    text: str

    def validate(self) -> bool:
        """Validate formatted email data."""
        if not isinstance(self.subject, str) or not self.subject.strip():
            raise ValueError("subject cannot be empty")

        if len(self.subject) > 200:
            raise ValueError("subject too long (max 200 characters)")

        if not self.html.strip() or not self.text.strip():
            raise ValueError("email body cannot be empty")

        return True


@dataclass
class DeliveryResult:
    """Result of an email delivery attempt."""

    success: bool
    delivery_time: datetime
    recipients: List[str]
    message_id: Optional[str] = None
    error_message: Optional[str] = None

    def validate(self) -> bool:
        """Validate delivery result data."""
        if not isinstance(self.success, bool):
            raise ValueError("success must be a boolean")

        if not isinstance(self.delivery_time, datetime):
            raise ValueError("delivery_time must be a datetime object")

        if self.error_message is not None and len(self.error_message) > 500:
            raise ValueError("error_message too long (max 500 characters)")

        if not self.success and not self.error_message:
            raise ValueError("error_message should be provided when success is False")

        return True
