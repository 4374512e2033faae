"""
Email dispatching for the medical visa slot monitor.

Delivers formatted notification emails through the Resend HTTP API. Delivery
is attempted exactly once per call; failures are logged and reported through
the return value, never raised.
"""

from datetime import datetime
from typing import List, Optional

import requests

from ..models.availability import AvailabilityRecord, SearchQuery
from ..models.config import EmailSettings
from ..models.delivery import DeliveryResult
from ..models.notification import NotificationResult, NotificationSummary
from ..utils.logging import ComponentLogger
from .email_formatter import EmailFormatter


class EmailDispatcher:
    """Sends notification emails via the Resend API."""

    def __init__(
        self,
        settings: EmailSettings,
        logger: Optional[ComponentLogger] = None,
        session: Optional[requests.Session] = None,
        formatter: Optional[EmailFormatter] = None,
    ):
        """
        Initialize email dispatcher.

        Args:
            settings: Email provider credentials and sender settings
            logger: Component logger
            session: HTTP session, created on demand when omitted
            formatter: Email formatter, defaults to one using the configured subject
        """
        self.settings = settings
        self.logger = logger or ComponentLogger("email.dispatcher")
        self.session = session or self._create_session()
        self.formatter = formatter or EmailFormatter(subject=settings.subject)
        self.last_result: Optional[DeliveryResult] = None

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        session.headers.update(
            {
                "Authorization": f"Bearer {self.settings.api_key}",
                "Content-Type": "application/json",
                "User-Agent": "Visa-Slot-Monitor/1.0 (Email Dispatcher)",
            }
        )
        return session

    def send(
        self,
        result: NotificationResult,
        recipients: List[str],
        booking_base_url: str,
    ) -> bool:
        """
        Send one notification email.

        Args:
            result: Classified notification result
            recipients: Destination addresses
            booking_base_url: Booking site URL used for deep-links

        Returns:
            True if the provider accepted the email
        """
        if not self.settings.enabled:
            self.logger.info("Email notifications are disabled")
            return False

        if not self.settings.has_usable_api_key:
            self.logger.warning(
                "Email notification skipped: configure the Resend API key"
            )
            return False

        if not recipients:
            self.logger.info("No email recipients configured, skipping email")
            return False

        try:
            email = self.formatter.format_email(result, booking_base_url)
            payload = {
                "from": self.settings.from_address,
                "to": list(recipients),
                "subject": email.subject,
                "html": email.html,
                "text": email.text,
            }

            self.logger.info(
                f"Sending email notification to {len(recipients)} recipient(s)"
            )
            response = self.session.post(
                self.settings.api_url, json=payload, timeout=self.settings.timeout
            )
            response.raise_for_status()

            message_id = response.json().get("id")
            self.last_result = DeliveryResult(
                success=True,
                delivery_time=datetime.now(),
                recipients=list(recipients),
                message_id=message_id,
            )
            self.logger.info(
                "Email notification sent", extra={"message_id": message_id}
            )
            return True

        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            return self._record_failure(
                recipients, f"Email API returned HTTP {status}: {e}"
            )
        except requests.exceptions.RequestException as e:
            return self._record_failure(recipients, f"Email API request failed: {e}")
        except Exception as e:
            return self._record_failure(
                recipients, f"Unexpected error sending email: {e}"
            )

    def _record_failure(self, recipients: List[str], message: str) -> bool:
        self.last_result = DeliveryResult(
            success=False,
            delivery_time=datetime.now(),
            recipients=list(recipients),
            error_message=message[:500],
        )
        self.logger.error("Failed to send email notification", extra={"error": message})
        return False

    def send_test_email(self, recipients: List[str], booking_base_url: str) -> bool:
        """Send a canned notification to verify the email configuration."""
        slot = AvailabilityRecord(
            id="test-1",
            name="Test Medical Center",
            full_name="Test Medical Center - Test Location",
            address="123 Test Street, Test City",
            distance="5 km",
            availability="Monday 26/08/2025 10:00 AM",
            is_available=True,
            search_query=SearchQuery(postcode="5000", state="SA", name="Adelaide CBD"),
        )
        test_result = NotificationResult(
            should_notify=True,
            relevant_slots=[slot],
            better_than_existing=[],
            matches_expected=[],
            summary=NotificationSummary(
                total_relevant_slots=1,
                better_slots_count=0,
                expected_matches_count=0,
                message="This is a test email - your email configuration is working!",
            ),
        )
        return self.send(test_result, recipients, booking_base_url)
