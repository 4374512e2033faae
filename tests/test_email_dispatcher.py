"""
Unit tests for the email dispatcher.
"""

from unittest.mock import Mock

import pytest
import requests

from visa_slot_monitor.components.email_dispatcher import EmailDispatcher
from visa_slot_monitor.components.notification_filter import NotificationFilter
from visa_slot_monitor.models.config import (
    DEFAULT_RESEND_API_URL,
    PLACEHOLDER_API_KEY,
    EmailSettings,
    NotificationPlace,
    NotificationPreferences,
)

BASE_URL = "https://bmvs.onlineappointmentscheduling.net.au/"


@pytest.fixture
def email_settings():
    return EmailSettings(
        enabled=True,
        api_key="re_test_key",
        from_address="alerts@example.com",
        subject="Medical Visa Slots Available!",
    )


@pytest.fixture
def mock_session():
    session = Mock(spec=requests.Session)
    response = Mock()
    response.raise_for_status.return_value = None
    response.json.return_value = {"id": "email-123"}
    session.post.return_value = response
    return session


@pytest.fixture
def notification_result(make_record):
    preferences = NotificationPreferences(places_to_notify=[NotificationPlace()])
    return NotificationFilter().classify([make_record()], preferences)


class TestEmailDispatcher:
    """Test cases for EmailDispatcher.send."""

    def test_send_success(self, email_settings, mock_session, notification_result, test_logger):
        """Test a successful delivery."""
        dispatcher = EmailDispatcher(email_settings, logger=test_logger, session=mock_session)

        sent = dispatcher.send(notification_result, ["user@example.com"], BASE_URL)

        assert sent is True
        mock_session.post.assert_called_once()
        args, kwargs = mock_session.post.call_args
        assert args[0] == DEFAULT_RESEND_API_URL
        assert kwargs["json"]["from"] == "alerts@example.com"
        assert kwargs["json"]["to"] == ["user@example.com"]
        assert kwargs["json"]["subject"] == "🏥 Medical Visa Slots Available!"
        assert "Adelaide Health Centre" in kwargs["json"]["text"]
        assert kwargs["timeout"] == email_settings.timeout
        assert dispatcher.last_result.success is True
        assert dispatcher.last_result.message_id == "email-123"

    def test_disabled(self, email_settings, mock_session, notification_result):
        """Test that a disabled dispatcher sends nothing."""
        email_settings.enabled = False
        dispatcher = EmailDispatcher(email_settings, session=mock_session)

        assert dispatcher.send(notification_result, ["user@example.com"], BASE_URL) is False
        mock_session.post.assert_not_called()

    @pytest.mark.parametrize("api_key", ["", PLACEHOLDER_API_KEY])
    def test_missing_api_key(self, email_settings, mock_session, notification_result, api_key):
        """Test that a missing or placeholder key sends nothing."""
        email_settings.api_key = api_key
        dispatcher = EmailDispatcher(email_settings, session=mock_session)

        assert dispatcher.send(notification_result, ["user@example.com"], BASE_URL) is False
        mock_session.post.assert_not_called()

    def test_no_recipients(self, email_settings, mock_session, notification_result):
        """Test that an empty recipient list sends nothing."""
        dispatcher = EmailDispatcher(email_settings, session=mock_session)

        assert dispatcher.send(notification_result, [], BASE_URL) is False
        mock_session.post.assert_not_called()

    def test_http_error(self, email_settings, mock_session, notification_result):
        """Test that an HTTP error is reported, not raised."""
        error_response = Mock(status_code=422)
        mock_session.post.return_value.raise_for_status.side_effect = (
            requests.exceptions.HTTPError("422 Client Error", response=error_response)
        )
        dispatcher = EmailDispatcher(email_settings, session=mock_session)

        assert dispatcher.send(notification_result, ["user@example.com"], BASE_URL) is False
        assert dispatcher.last_result.success is False
        assert "HTTP 422" in dispatcher.last_result.error_message

    def test_connection_error(self, email_settings, mock_session, notification_result):
        """Test that a network failure is reported, not raised."""
        mock_session.post.side_effect = requests.exceptions.ConnectionError("refused")
        dispatcher = EmailDispatcher(email_settings, session=mock_session)

        assert dispatcher.send(notification_result, ["user@example.com"], BASE_URL) is False
        assert "request failed" in dispatcher.last_result.error_message

    def test_default_session_headers(self, email_settings):
        """Test the bearer token on the default session."""
        dispatcher = EmailDispatcher(email_settings)

        assert dispatcher.session.headers["Authorization"] == "Bearer re_test_key"

    def test_send_test_email(self, email_settings, mock_session):
        """Test the canned test email."""
        dispatcher = EmailDispatcher(email_settings, session=mock_session)

        assert dispatcher.send_test_email(["user@example.com"], BASE_URL) is True
        payload = mock_session.post.call_args.kwargs["json"]
        assert "Test Medical Center" in payload["html"]
        assert "your email configuration is working" in payload["text"]
