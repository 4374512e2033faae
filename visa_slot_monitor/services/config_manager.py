"""
Configuration management for the medical visa slot monitor.
"""

import json
import os
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

import yaml

from ..models.availability import SearchQuery, _pick
from ..models.config import (
    Configuration,
    CrawlerSettings,
    EmailSettings,
    ExistingSlot,
    ExpectedSlot,
    NotificationPlace,
    NotificationPreferences,
    ServiceSettings,
)
from ..utils.error_handling import ConfigurationError
from ..utils.logging import ComponentLogger

_ENV_VAR_PATTERN = re.compile(r"^\$\{([A-Za-z_][A-Za-z0-9_]*)\}$")


@dataclass
class ConfigLoadResult:
    """Outcome of a configuration load that does not raise."""

    ok: bool
    config: Optional[Configuration] = None
    error: Optional[ConfigurationError] = None


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


class ConfigurationManager:
    """Loads and validates the system configuration from YAML or JSON."""

    def __init__(
        self, config_path: str = "config.yaml", logger: Optional[ComponentLogger] = None
    ):
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to a YAML or JSON configuration file
            logger: Component logger
        """
        self.config_path = config_path
        self.logger = logger or ComponentLogger("config.manager")

    def load_config(self) -> Configuration:
        """
        Load configuration from file.

        Returns:
            Configuration object with validated settings.

        Raises:
            ConfigurationError: If the file is missing, unparseable or invalid.
        """
        raw_config = self._read_file(self.config_path)

        try:
            config = self._parse_config(raw_config)
            config.validate()
        except (AttributeError, TypeError, ValueError) as e:
            raise ConfigurationError(
                f"Invalid configuration: {e}", path=self.config_path
            ) from e

        self.logger.info(
            "Configuration loaded",
            extra={
                "path": self.config_path,
                "search_locations": len(config.search_locations),
                "places_to_notify": len(config.preferences.places_to_notify),
            },
        )
        return config

    def try_load_config(self) -> ConfigLoadResult:
        """Load configuration, reporting failure in the result instead of raising."""
        try:
            return ConfigLoadResult(ok=True, config=self.load_config())
        except ConfigurationError as e:
            self.logger.error("Failed to load configuration", extra={"error": str(e)})
            return ConfigLoadResult(ok=False, error=e)

    def load_preferences(self, path: Optional[str] = None) -> NotificationPreferences:
        """
        Load only the notification preferences from a configuration file.

        Raises:
            ConfigurationError: If the file is missing, unparseable or invalid.
        """
        path = path or self.config_path
        raw_config = self._read_file(path)

        try:
            preferences = self._parse_preferences(raw_config)
            preferences.validate()
        except (AttributeError, TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid preferences: {e}", path=path) from e

        return preferences

    def _read_file(self, path: str) -> Dict[str, Any]:
        if not os.path.exists(path):
            raise ConfigurationError(f"Configuration file not found: {path}", path=path)

        try:
            with open(path, "r", encoding="utf-8") as f:
                if path.endswith(".json"):
                    raw_config = json.load(f)
                else:
                    raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML in configuration file: {e}", path=path
            ) from e
        except json.JSONDecodeError as e:
            raise ConfigurationError(
                f"Invalid JSON in configuration file: {e}", path=path
            ) from e
        except OSError as e:
            raise ConfigurationError(
                f"Cannot read configuration file: {e}", path=path
            ) from e

        if not isinstance(raw_config, dict):
            raise ConfigurationError(
                "Configuration file must contain a mapping at the top level", path=path
            )

        try:
            return self._expand_env_vars(raw_config)
        except ValueError as e:
            raise ConfigurationError(str(e), path=path) from e

    def _expand_env_vars(self, obj: Any) -> Any:
        """Recursively expand ${VAR_NAME} values from the environment."""
        if isinstance(obj, dict):
            return {key: self._expand_env_vars(value) for key, value in obj.items()}
        if isinstance(obj, list):
            return [self._expand_env_vars(item) for item in obj]
        if isinstance(obj, str):
            match = _ENV_VAR_PATTERN.match(obj)
            if match:
                env_value = os.getenv(match.group(1))
                if env_value is None:
                    raise ValueError(
                        f"Environment variable '{match.group(1)}' not found"
                    )
                return env_value
        return obj

    def _parse_config(self, raw_config: Mapping[str, Any]) -> Configuration:
        """Parse raw configuration dictionary into Configuration object."""
        search_locations = [
            self._parse_search_query(item)
            for item in self._as_list(
                _pick(raw_config, "search_locations", "searchLocations", default=[]),
                "search_locations",
            )
        ]

        return Configuration(
            search_locations=search_locations,
            preferences=self._parse_preferences(raw_config),
            crawler=self._parse_crawler(
                _pick(raw_config, "crawler_settings", "crawlerSettings", default={})
            ),
            email=self._parse_email(_pick(raw_config, "email", default={})),
            service=self._parse_service(_pick(raw_config, "service", default={})),
        )

    def _parse_preferences(self, raw_config: Mapping[str, Any]) -> NotificationPreferences:
        places = [
            NotificationPlace(
                location_id=_optional_str(_pick(item, "location_id", "locationId")),
                location_name=_optional_str(_pick(item, "location_name", "locationName")),
                state=_optional_str(item.get("state")),
                max_distance=_optional_str(_pick(item, "max_distance", "maxDistance")),
            )
            for item in self._as_list(
                _pick(raw_config, "places_to_notify", "placesToNotify", default=[]),
                "places_to_notify",
            )
        ]

        existing_data = _pick(raw_config, "existing_slot", "existingSlot")
        existing_slot = None
        if existing_data is not None:
            existing_slot = ExistingSlot(
                date=_optional_str(existing_data.get("date")) or "",
                location_id=_optional_str(_pick(existing_data, "location_id", "locationId")),
                location_name=_optional_str(
                    _pick(existing_data, "location_name", "locationName")
                ),
                time=_optional_str(existing_data.get("time")),
            )

        expected_data = _pick(raw_config, "expected_slot", "expectedSlot")
        expected_slot = None
        if expected_data is not None:
            expected_slot = ExpectedSlot(
                location_id=_optional_str(_pick(expected_data, "location_id", "locationId")),
                location_name=_optional_str(
                    _pick(expected_data, "location_name", "locationName")
                ),
                date=_optional_str(expected_data.get("date")),
                time=_optional_str(expected_data.get("time")),
            )

        email_data = _pick(raw_config, "email", default={})
        recipients = email_data.get("to", []) if isinstance(email_data, Mapping) else []

        return NotificationPreferences(
            places_to_notify=places,
            existing_slot=existing_slot,
            expected_slot=expected_slot,
            only_better_slots=_pick(
                raw_config, "only_better_slots", "onlyBetterSlots", default=False
            ),
            email_recipients=list(self._as_list(recipients, "email.to")),
        )

    @staticmethod
    def _parse_search_query(item: Any) -> SearchQuery:
        if not isinstance(item, Mapping):
            raise ValueError("search_locations entries must be mappings")
        return SearchQuery.from_dict(item)

    @staticmethod
    def _parse_crawler(data: Mapping[str, Any]) -> CrawlerSettings:
        defaults = CrawlerSettings()
        return CrawlerSettings(
            base_url=_pick(data, "base_url", "baseUrl", default=defaults.base_url),
            timeout=_pick(data, "timeout", default=defaults.timeout),
            headless=_pick(data, "headless", default=defaults.headless),
            search_delay=_pick(
                data, "search_delay", "searchDelay", default=defaults.search_delay
            ),
        )

    @staticmethod
    def _parse_email(data: Mapping[str, Any]) -> EmailSettings:
        defaults = EmailSettings()
        return EmailSettings(
            enabled=_pick(data, "enabled", default=defaults.enabled),
            api_key=_pick(
                data, "api_key", "resend_api_key", "resendApiKey", default=defaults.api_key
            ),
            from_address=_pick(data, "from", "from_address", default=defaults.from_address),
            subject=_pick(data, "subject", default=defaults.subject),
            api_url=_pick(data, "api_url", "apiUrl", default=defaults.api_url),
            timeout=_pick(data, "timeout", default=defaults.timeout),
        )

    @staticmethod
    def _parse_service(data: Mapping[str, Any]) -> ServiceSettings:
        defaults = ServiceSettings()
        return ServiceSettings(
            interval_minutes=_pick(
                data, "interval_minutes", "intervalMinutes", default=defaults.interval_minutes
            ),
            max_retries=_pick(data, "max_retries", "maxRetries", default=defaults.max_retries),
            retry_base_delay=_pick(
                data, "retry_base_delay", "retryBaseDelay", default=defaults.retry_base_delay
            ),
            results_path=_pick(
                data, "results_path", "resultsPath", default=defaults.results_path
            ),
            notification_path=_pick(
                data,
                "notification_path",
                "notificationPath",
                default=defaults.notification_path,
            ),
            log_dir=_pick(data, "log_dir", "logDir", default=defaults.log_dir),
            log_level=_pick(data, "log_level", "logLevel", default=defaults.log_level),
        )

    @staticmethod
    def _as_list(value: Any, label: str) -> List[Any]:
        if not isinstance(value, list):
            raise ValueError(f"{label} must be a list")
        return value
