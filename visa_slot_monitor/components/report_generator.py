"""
Report generation for the medical visa slot monitor.

This module renders classified notification results and raw crawl results
into human-readable text for the logs and the console.
"""

from typing import List

from ..models.availability import AvailabilityRecord, CrawlResult
from ..models.notification import NotificationResult

REPORT_TITLE = "🏥 Medical Visa Slots Notification Report"


def _underline(title: str) -> str:
    return "=" * len(title)


class ReportGenerator:
    """Formats notification and crawl results as plain text."""

    def generate_report(self, result: NotificationResult) -> str:
        """
        Render a notification result as a multi-section report.

        Args:
            result: Classified notification result

        Returns:
            Report text
        """
        lines: List[str] = [REPORT_TITLE, _underline(REPORT_TITLE), ""]
        lines.append(
            f"📅 Report generated: {result.generated_at.strftime('%Y-%m-%d %H:%M:%S')}"
        )
        lines.append("")

        if not result.relevant_slots:
            lines.append("❌ No relevant slots found based on your criteria.")
            return "\n".join(lines) + "\n"

        lines.append(f"✅ {result.summary.message}")
        lines.append("")

        self._append_section(
            lines,
            "🎯 BETTER SLOTS (earlier than your existing booking):",
            result.better_than_existing,
        )
        self._append_section(
            lines, "⭐ MATCHES YOUR PREFERENCES:", result.matches_expected
        )
        self._append_section(
            lines, "📋 OTHER RELEVANT SLOTS:", result.other_relevant_slots
        )

        return "\n".join(lines) + "\n"

    def _append_section(
        self, lines: List[str], title: str, slots: List[AvailabilityRecord]
    ) -> None:
        if not slots:
            return

        lines.append(title)
        lines.append(_underline(title))
        for slot in slots:
            lines.extend(self._format_slot(slot))
            lines.append("")

    @staticmethod
    def _format_slot(slot: AvailabilityRecord) -> List[str]:
        return [
            f"• {slot.name} ({slot.distance})",
            f"  📍 {slot.full_name}",
            f"  🕐 {slot.availability}",
        ]

    def generate_crawl_summary(self, crawl_result: CrawlResult) -> str:
        """
        Render a crawl result with per-search counts and location listings.

        Args:
            crawl_result: Output of one crawl

        Returns:
            Summary text
        """
        locations = crawl_result.locations
        available = crawl_result.available_locations
        timestamp = crawl_result.timestamp.strftime("%Y-%m-%d %H:%M:%S")

        lines = [
            f"🏥 Medical Visa Appointment Status - Multiple Locations ({timestamp})",
            "",
            f"📍 Total Search Areas: {len(crawl_result.search_results)}",
            f"📍 Total Locations Found: {len(locations)}",
            f"✅ Available Slots: {len(available)}",
            f"❌ Not Available: {len(locations) - len(available)}",
            "",
            "📊 SEARCH SUMMARY:",
        ]

        for index, search_result in enumerate(crawl_result.search_results, start=1):
            query = search_result.search_query
            lines.append(f"{index}. {query.name} ({query.postcode}, {query.state})")
            lines.append(
                f"   📍 Found: {len(search_result.locations)} locations"
                f" | ✅ Available: {search_result.available_count}"
                f" | ❌ Not Available: {search_result.not_available_count}"
            )
        lines.append("")

        if available:
            lines.append("🎉 ALL AVAILABLE LOCATIONS:")
            for index, location in enumerate(available, start=1):
                search_info = (
                    f"[{location.search_query.name}]"
                    if location.search_query
                    else "[Unknown Search]"
                )
                lines.append(
                    f"{index}. {search_info} {location.name} - {location.full_name}"
                )
                lines.append(
                    f"   📍 Address: {location.address or 'Address not specified'}"
                )
                lines.append(f"   📏 Distance: {location.distance}")
                lines.append(f"   🆔 ID: {location.id}")
                lines.append(f"   ✅ Status: {location.availability}")
        else:
            lines.append("😔 No available slots found in any search area.")
        lines.append("")

        if crawl_result.not_available_locations:
            lines.append("❌ NOT AVAILABLE LOCATIONS (by search area):")
            for search_result in crawl_result.search_results:
                unavailable = [
                    location
                    for location in search_result.locations
                    if not location.is_available
                ]
                if not unavailable:
                    continue
                lines.append(f"📍 {search_result.search_query.name}:")
                for index, location in enumerate(unavailable, start=1):
                    lines.append(
                        f"  {index}. {location.name} - {location.full_name}"
                    )
                    lines.append(
                        f"     📏 Distance: {location.distance}"
                        f" | 🆔 ID: {location.id}"
                        f" | Status: {location.availability}"
                    )

        return "\n".join(lines) + "\n"
