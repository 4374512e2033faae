"""
Email formatting component for the medical visa slot monitor.

This module turns a classified notification result into HTML and plain text
email bodies, with a booking deep-link for every slot.
"""

from html import escape
from typing import List, Tuple
from urllib.parse import urlencode

from ..models.availability import AvailabilityRecord
from ..models.delivery import FormattedEmail
from ..models.notification import NotificationLevel, NotificationResult

EMAIL_STYLES = """
        body { font-family: Arial, sans-serif; line-height: 1.6; margin: 0; padding: 20px; background-color: #f4f4f4; }
        .container { max-width: 600px; margin: 0 auto; background: white; padding: 20px; border-radius: 10px; }
        .header { background: #28a745; color: white; padding: 20px; text-align: center; border-radius: 10px 10px 0 0; margin: -20px -20px 20px -20px; }
        .section { margin: 20px 0; }
        .slot { background: #f8f9fa; padding: 15px; margin: 10px 0; border-left: 4px solid #28a745; border-radius: 5px; }
        .better-slot { border-left-color: #dc3545; }
        .expected-slot { border-left-color: #ffc107; }
        .booking-btn { display: inline-block; background: #007bff; color: white; padding: 10px 20px; text-decoration: none; border-radius: 5px; font-weight: bold; }
        .search-info { color: #666; font-size: 14px; font-style: italic; }
        .slot-id { color: #888; font-size: 12px; }
        .footer { text-align: center; color: #666; font-size: 14px; margin-top: 30px; padding-top: 20px; border-top: 1px solid #eee; }
        .main-booking-link { background: #1e7e34; color: white; padding: 15px 30px; text-decoration: none; border-radius: 8px; font-size: 18px; font-weight: bold; display: inline-block; margin: 20px 0; }
"""

HOW_TO_BOOK_STEPS = [
    "Open the booking link for your preferred slot",
    "The booking website opens with your search area pre-filled",
    "Look for the location and time slot mentioned in this email",
    "Complete your booking on the official website",
]


def build_booking_link(slot: AvailabilityRecord, base_url: str) -> str:
    """Deep-link into the booking site pre-filled with the slot's search area."""
    if slot.search_query is None:
        return base_url

    query = urlencode(
        {"postcode": slot.search_query.postcode, "state": slot.search_query.state}
    )
    return f"{base_url}?{query}"


def describe_search(slot: AvailabilityRecord) -> str:
    query = slot.search_query
    if query is None:
        return ""
    return f"Search: {query.name} - {query.postcode}, {query.state}"


class EmailFormatter:
    """Formats notification results into email content."""

    def __init__(self, subject: str = "Medical Visa Slots Available!"):
        self.subject = subject

    def format_email(self, result: NotificationResult, base_url: str) -> FormattedEmail:
        """
        Format a notification result into an email.

        Args:
            result: Classified notification result
            base_url: Booking site URL used for deep-links

        Returns:
            FormattedEmail ready for delivery
        """
        email = FormattedEmail(
            subject=self._create_subject(result),
            html=self._create_html(result, base_url),
            text=self._create_text(result, base_url),
        )
        email.validate()
        return email

    def _create_subject(self, result: NotificationResult) -> str:
        prefix = {
            NotificationLevel.HIGH: "🎯",
            NotificationLevel.MEDIUM: "⭐",
            NotificationLevel.LOW: "🏥",
        }.get(result.level)
        return f"{prefix} {self.subject}" if prefix else self.subject

    def _sections(
        self, result: NotificationResult
    ) -> List[Tuple[str, str, List[AvailabilityRecord]]]:
        return [
            (
                "🎯 Better Slots (earlier than your existing booking)",
                "better-slot",
                result.better_than_existing,
            ),
            ("⭐ Matches Your Preferences", "expected-slot", result.matches_expected),
            ("📋 Other Relevant Slots", "", result.other_relevant_slots),
        ]

    def _create_html(self, result: NotificationResult, base_url: str) -> str:
        summary = result.summary
        safe_base_url = escape(base_url, quote=True)
        parts = [
            "<!DOCTYPE html>",
            "<html>",
            "<head>",
            '  <meta charset="utf-8">',
            '  <meta name="viewport" content="width=device-width, initial-scale=1.0">',
            "  <title>Medical Visa Slots Available</title>",
            f"  <style>{EMAIL_STYLES}  </style>",
            "</head>",
            "<body>",
            '  <div class="container">',
            '    <div class="header">',
            "      <h1>🏥 Medical Visa Slots Available!</h1>",
            "      <p>New slots found matching your criteria</p>",
            f'      <a href="{safe_base_url}" class="main-booking-link">🔗 Go to Booking Website</a>',
            "    </div>",
            '    <div class="section">',
            "      <h2>📊 Summary</h2>",
            f"      <p>{escape(summary.message)}</p>",
            "      <ul>",
            f"        <li><strong>Total relevant slots:</strong> {summary.total_relevant_slots}</li>",
            f"        <li><strong>Better than existing:</strong> {summary.better_slots_count}</li>",
            f"        <li><strong>Matching preferences:</strong> {summary.expected_matches_count}</li>",
            "      </ul>",
            "    </div>",
        ]

        for title, css_class, slots in self._sections(result):
            if not slots:
                continue
            parts.append('    <div class="section">')
            parts.append(f"      <h2>{title}</h2>")
            for slot in slots:
                parts.extend(self._slot_html(slot, css_class, base_url))
            parts.append("    </div>")

        parts.extend(
            [
                '    <div class="footer">',
                "      <p><strong>📋 How to Book:</strong></p>",
                "      <ol>",
                *[f"        <li>{step}</li>" for step in HOW_TO_BOOK_STEPS],
                "      </ol>",
                f'      <p><strong>🌐 Direct Link:</strong> <a href="{safe_base_url}">{safe_base_url}</a></p>',
                f"      <p>Report generated: {result.generated_at.strftime('%Y-%m-%d %H:%M:%S')}</p>",
                "      <p>This is an automated notification from your Medical Visa Slots Monitor</p>",
                "    </div>",
                "  </div>",
                "</body>",
                "</html>",
            ]
        )
        return "\n".join(parts)

    @staticmethod
    def _slot_html(slot: AvailabilityRecord, css_class: str, base_url: str) -> List[str]:
        classes = f"slot {css_class}".strip()
        booking_link = escape(build_booking_link(slot, base_url), quote=True)
        return [
            f'      <div class="{classes}">',
            f'        <div class="search-info">{escape(describe_search(slot))}</div>',
            f"        <h3>{escape(slot.name)}</h3>",
            f"        <p><strong>📍 Location:</strong> {escape(slot.full_name)}</p>",
            f"        <p><strong>📏 Distance:</strong> {escape(slot.distance)}</p>",
            f"        <p><strong>🕐 Available:</strong> {escape(slot.availability)}</p>",
            f'        <p class="slot-id"><strong>ID:</strong> {escape(slot.id)}</p>',
            f'        <a href="{booking_link}" class="booking-btn">📅 Book This Slot</a>',
            "      </div>",
        ]

    def _create_text(self, result: NotificationResult, base_url: str) -> str:
        summary = result.summary
        lines = [
            "🏥 Medical Visa Slots Available!",
            "",
            "📊 Summary:",
            summary.message,
            "",
            f"• Total relevant slots: {summary.total_relevant_slots}",
            f"• Better than existing: {summary.better_slots_count}",
            f"• Matching preferences: {summary.expected_matches_count}",
            "",
            f"🌐 Booking Website: {base_url}",
            "",
        ]

        for title, _, slots in self._sections(result):
            if not slots:
                continue
            heading = title.upper()
            lines.append(f"{heading}:")
            lines.append("=" * (len(heading) + 1))
            for slot in slots:
                lines.append(f"• {slot.name} ({slot.distance})")
                search_info = describe_search(slot)
                if search_info:
                    lines.append(f"  [{search_info}]")
                lines.append(f"  📍 {slot.full_name}")
                lines.append(f"  🕐 {slot.availability}")
                lines.append(f"  🆔 ID: {slot.id}")
                lines.append(f"  🔗 Book: {build_booking_link(slot, base_url)}")
                lines.append("")

        lines.append("📋 HOW TO BOOK:")
        lines.extend(
            f"{number}. {step}" for number, step in enumerate(HOW_TO_BOOK_STEPS, start=1)
        )
        lines.extend(
            [
                "",
                f"🌐 Direct Link: {base_url}",
                "",
                "---",
                f"Report generated: {result.generated_at.strftime('%Y-%m-%d %H:%M:%S')}",
                "This is an automated notification from your Medical Visa Slots Monitor",
            ]
        )
        return "\n".join(lines)
