"""
JSON artifact persistence for crawl and notification results.
"""

import json
import os
import tempfile
from datetime import datetime
from typing import Any, Dict, Optional

from ..models.availability import CrawlResult
from ..models.notification import NotificationResult
from ..utils.logging import ComponentLogger


class ArtifactStore:
    """Writes the latest crawl and notification results as flat JSON files."""

    def __init__(
        self,
        results_path: str = "latest-medical-visa-results.json",
        notification_path: str = "notification-result.json",
        logger: Optional[ComponentLogger] = None,
    ):
        self.results_path = results_path
        self.notification_path = notification_path
        self.logger = logger or ComponentLogger("artifact.store")

    def save_latest_results(
        self, crawl_result: CrawlResult, search_time: Optional[datetime] = None
    ) -> bool:
        """
        Overwrite the latest-results artifact.

        Returns:
            True if the file was written
        """
        return self._write_json(
            self.results_path, crawl_result.to_artifact(search_time=search_time)
        )

    def save_notification_result(
        self,
        result: NotificationResult,
        check_time: datetime,
        next_check_time: Optional[datetime] = None,
    ) -> bool:
        """
        Overwrite the notification artifact.

        The classified result is written together with its notification level
        and the service check times.

        Returns:
            True if the file was written
        """
        payload = result.to_dict()
        payload["notification_level"] = result.level.value
        payload["service_check"] = {
            "check_time": check_time.isoformat(),
            "next_check_time": next_check_time.isoformat() if next_check_time else None,
        }
        return self._write_json(self.notification_path, payload)

    def load_latest_results(self) -> Optional[Dict[str, Any]]:
        """Read the latest-results artifact, or None if it is missing or unreadable."""
        return self._read_json(self.results_path)

    def load_notification_result(self) -> Optional[Dict[str, Any]]:
        """Read the notification artifact, or None if it is missing or unreadable."""
        return self._read_json(self.notification_path)

    def _write_json(self, path: str, payload: Dict[str, Any]) -> bool:
        directory = os.path.dirname(os.path.abspath(path))
        temp_path = None

        try:
            os.makedirs(directory, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(
                dir=directory, prefix=".", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, ensure_ascii=False, default=str)
            os.replace(temp_path, path)
            temp_path = None

            self.logger.info(f"Results saved to: {path}")
            return True

        except (OSError, TypeError, ValueError) as e:
            self.logger.error(
                "Failed to write artifact", extra={"path": path, "error": str(e)}
            )
            return False

        finally:
            if temp_path and os.path.exists(temp_path):
                os.remove(temp_path)

    def _read_json(self, path: str) -> Optional[Dict[str, Any]]:
        if not os.path.exists(path):
            return None

        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            self.logger.warning(
                "Failed to read artifact", extra={"path": path, "error": str(e)}
            )
            return None
