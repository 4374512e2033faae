"""
Service loop for the medical visa slot monitor.

This module runs scrape, classify, persist and notify cycles on a fixed
interval, retrying the scrape with linear backoff and shutting down cleanly
on SIGINT/SIGTERM.
"""

import asyncio
import signal
import sys
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from .components.email_dispatcher import EmailDispatcher
from .components.notification_filter import NotificationFilter
from .components.report_generator import ReportGenerator
from .components.slot_crawler import SlotCrawler
from .interfaces import (
    IArtifactStore,
    IConfigurationManager,
    IEmailDispatcher,
    INotificationFilter,
    IReportGenerator,
    ISlotCrawler,
)
from .models.availability import _pick
from .models.config import Configuration, validate_interval
from .models.notification import NotificationResult
from .services.artifact_store import ArtifactStore
from .services.config_manager import ConfigurationManager
from .utils.error_handling import (
    ErrorCategory,
    ErrorSeverity,
    ErrorTracker,
    RetryAbortedError,
    RetryConfig,
    RetryExhaustedError,
    retry_async,
)
from .utils.logging import ComponentLogger, LoggingManager


class SlotMonitorService:
    """
    Periodically checks the booking site and notifies about relevant slots.

    Collaborators that are not injected are built from the configuration
    loaded at the start of each cycle.
    """

    def __init__(
        self,
        config_path: str = "config.yaml",
        interval_minutes: Optional[int] = None,
        logging_manager: Optional[LoggingManager] = None,
        config_manager: Optional[IConfigurationManager] = None,
        crawler: Optional[ISlotCrawler] = None,
        dispatcher: Optional[IEmailDispatcher] = None,
        artifact_store: Optional[IArtifactStore] = None,
        notification_filter: Optional[INotificationFilter] = None,
        report_generator: Optional[IReportGenerator] = None,
        headless: Optional[bool] = None,
    ):
        """
        Initialize the service.

        Args:
            config_path: Path to the configuration file
            interval_minutes: Check interval, overrides the configured value
            logging_manager: Source of component loggers
            config_manager: Configuration loader
            crawler: Booking site scraper
            dispatcher: Email dispatcher
            artifact_store: JSON artifact writer
            notification_filter: Record classifier
            report_generator: Text report renderer
            headless: Browser mode, overrides the configured value

        Raises:
            ValueError: If interval_minutes is not a whole number of at least 1.
        """
        if interval_minutes is not None:
            validate_interval(interval_minutes)

        self.config_path = config_path
        self.logging_manager = logging_manager
        self.logger = self._component_logger("scheduler")

        self.config_manager = config_manager or ConfigurationManager(
            config_path, logger=self._component_logger("config.manager")
        )
        self.notification_filter = notification_filter or NotificationFilter(
            logger=self._component_logger("notification.filter")
        )
        self.report_generator = report_generator or ReportGenerator()
        self._crawler = crawler
        self._dispatcher = dispatcher
        self._artifact_store = artifact_store

        self.error_tracker = ErrorTracker(self._component_logger("error.tracker"))

        self._interval_override = interval_minutes
        self._headless_override = headless
        self.interval_minutes: int = interval_minutes or 5
        self._config: Optional[Configuration] = None

        self._running = False
        self._stop_event = asyncio.Event()
        self._timer_task: Optional[asyncio.Task] = None
        self._cycle_in_flight = False

        self._start_time: Optional[datetime] = None
        self._last_check_time: Optional[datetime] = None
        self._next_check_time: Optional[datetime] = None
        self._cycles_completed = 0
        self._cycles_failed = 0
        self.last_report: Optional[str] = None

    def _component_logger(self, name: str) -> ComponentLogger:
        if self.logging_manager:
            return self.logging_manager.get_component_logger(name)
        return ComponentLogger(name)

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def interval(self) -> timedelta:
        return timedelta(minutes=self.interval_minutes)

    async def start(self) -> None:
        """
        Load the configuration, run one check immediately and arm the timer.

        Raises:
            ConfigurationError: If the configuration cannot be loaded.
            ValueError: If the configured interval is invalid.
        """
        if self._running:
            self.logger.warning("Service is already running")
            return

        # a timer stopped mid-cycle exits once that cycle returns
        await self.wait_closed()

        self._config = self.config_manager.load_config()
        self.interval_minutes = validate_interval(
            self._interval_override or self._config.service.interval_minutes
        )

        self._stop_event.clear()
        self._running = True
        self._start_time = datetime.now()
        self.logger.info(
            "Starting medical visa slot monitor",
            extra={
                "config_path": self.config_path,
                "interval_minutes": self.interval_minutes,
            },
        )

        await self.run_check_cycle()

        if self._running:
            self._next_check_time = datetime.now() + self.interval
            self._timer_task = asyncio.create_task(self._run_timer())
            self.logger.info(
                f"Service started. Next check in {self.interval_minutes} minutes",
                extra={"next_check_time": self._next_check_time.isoformat()},
            )

    def stop(self) -> None:
        """
        Stop the service.

        An idle timer is cancelled; a cycle that is already running finishes
        its current step and then exits.
        """
        if not self._running:
            self.logger.warning("Service is not running")
            return

        self.logger.info("Stopping medical visa slot monitor...")
        self._running = False
        self._stop_event.set()

        if self._timer_task and not self._timer_task.done() and not self._cycle_in_flight:
            self._timer_task.cancel()

        uptime = datetime.now() - self._start_time if self._start_time else None
        self._next_check_time = None
        self.logger.info(f"Service stopped. Uptime: {uptime}")

    async def wait_closed(self) -> None:
        """Wait until the timer task has finished."""
        if self._timer_task:
            await asyncio.gather(self._timer_task, return_exceptions=True)

    async def _run_timer(self) -> None:
        while self._running:
            try:
                await asyncio.wait_for(
                    self._stop_event.wait(), timeout=self.interval.total_seconds()
                )
                return
            except asyncio.TimeoutError:
                pass

            await self.run_check_cycle()

            if self._running:
                self._next_check_time = datetime.now() + self.interval

    async def run_once(self) -> Optional[NotificationResult]:
        """
        Run a single check cycle without arming the timer.

        Raises:
            ConfigurationError: If the configuration cannot be loaded.
        """
        self._config = self.config_manager.load_config()
        if not self._running:
            self._stop_event.clear()
        if self._interval_override is None:
            self.interval_minutes = validate_interval(
                self._config.service.interval_minutes
            )
        return await self.run_check_cycle()

    async def run_check_cycle(self) -> Optional[NotificationResult]:
        """
        Run one scrape, classify, persist and notify cycle.

        Failures abort only this cycle; they are logged and counted.

        Returns:
            The classification result, or None if the cycle was aborted
        """
        if self._cycle_in_flight:
            self.logger.warning("A check is already in progress, skipping")
            return None

        self._cycle_in_flight = True
        started = datetime.now()
        self.logger.info("Starting scheduled medical visa check")

        try:
            result = await self._run_cycle_steps(started)
        except Exception as e:
            self.error_tracker.record_error(
                component="scheduler",
                category=ErrorCategory.SYSTEM,
                severity=ErrorSeverity.HIGH,
                message=f"Unexpected error during check cycle: {e}",
                exception=e,
            )
            result = None
        finally:
            self._cycle_in_flight = False

        if result is None:
            self._cycles_failed += 1

        return result

    async def _run_cycle_steps(self, started: datetime) -> Optional[NotificationResult]:
        load_result = self.config_manager.try_load_config()
        if not load_result.ok:
            self.error_tracker.record_error(
                component="scheduler",
                category=ErrorCategory.CONFIGURATION,
                severity=ErrorSeverity.HIGH,
                message="Configuration reload failed, skipping this check",
                exception=load_result.error,
            )
            return None

        config = load_result.config
        self._config = config

        crawler_settings = config.crawler
        if self._headless_override is not None:
            crawler_settings = replace(crawler_settings, headless=self._headless_override)

        crawler = self._crawler or SlotCrawler(
            crawler_settings, logger=self._component_logger("slot.crawler")
        )
        retry_config = RetryConfig(
            max_attempts=config.service.max_retries,
            base_delay=config.service.retry_base_delay,
        )

        try:
            crawl_result = await retry_async(
                lambda: crawler.crawl(config.search_locations),
                retry_config,
                self.logger,
                stop_event=self._stop_event,
                description="Crawler",
            )
        except RetryAbortedError:
            self.logger.info("Check aborted by shutdown during crawler retry")
            return None
        except RetryExhaustedError as e:
            self.error_tracker.record_error(
                component="scheduler",
                category=ErrorCategory.SCRAPING,
                severity=ErrorSeverity.HIGH,
                message=f"All {e.attempts} crawler attempts failed",
                exception=e.last_error,
            )
            return None

        if self._stop_event.is_set():
            self.logger.info("Shutdown requested, discarding crawl results")
            return None

        if crawl_result.message:
            self.logger.info(crawl_result.message)

        check_time = datetime.now()
        next_check_time = check_time + self.interval if self._running else None
        store = self._artifact_store or ArtifactStore(
            config.service.results_path,
            config.service.notification_path,
            logger=self._component_logger("artifact.store"),
        )

        if not store.save_latest_results(crawl_result):
            self._record_persistence_failure("latest results")

        result = self.notification_filter.classify(
            crawl_result.locations, config.preferences
        )
        self._publish(result, config, store, check_time, next_check_time)

        self._last_check_time = check_time
        self._cycles_completed += 1
        duration = (datetime.now() - started).total_seconds()
        self.logger.info(
            f"Check completed in {duration:.1f}s",
            extra={
                "relevant": result.summary.total_relevant_slots,
                "better": result.summary.better_slots_count,
                "expected": result.summary.expected_matches_count,
                "notification_level": result.level.value,
                "next_check_time": next_check_time.isoformat() if next_check_time else None,
            },
        )
        return result

    def classify_saved_results(self, results_path: str) -> Optional[NotificationResult]:
        """
        Classify a saved latest-results file without crawling.

        The notification artifact, report and email are produced as in a
        regular check.

        Returns:
            The classification result, or None if the file is missing,
            unreadable or has no location list

        Raises:
            ConfigurationError: If the configuration cannot be loaded.
        """
        config = self.config_manager.load_config()
        self._config = config
        store = ArtifactStore(
            results_path,
            config.service.notification_path,
            logger=self._component_logger("artifact.store"),
        )

        saved = store.load_latest_results()
        records = _pick(saved, "all_locations", "allLocations") if isinstance(saved, dict) else None
        if not isinstance(records, list):
            self.logger.error(
                "Saved results are missing or have no location list",
                extra={"path": results_path},
            )
            return None

        check_time = datetime.now()
        result = self.notification_filter.classify(records, config.preferences)
        self._publish(result, config, store, check_time, None)
        return result

    def _publish(
        self,
        result: NotificationResult,
        config: Configuration,
        store: IArtifactStore,
        check_time: datetime,
        next_check_time: Optional[datetime],
    ) -> None:
        if not store.save_notification_result(result, check_time, next_check_time):
            self._record_persistence_failure("notification result")

        self.last_report = self.report_generator.generate_report(result)
        self.logger.info(self.last_report)

        self._notify(result, config)

    def _notify(self, result: NotificationResult, config: Configuration) -> None:
        if not result.should_notify:
            self.logger.info("No notification needed for this check")
            return

        recipients = config.preferences.email_recipients
        if not recipients:
            self.logger.info("Email notifications not configured, skipping email")
            return

        if not config.email.enabled:
            self.logger.info("Email notifications disabled, skipping email")
            return

        dispatcher = self._dispatcher or EmailDispatcher(
            config.email, logger=self._component_logger("email.dispatcher")
        )
        if dispatcher.send(result, recipients, config.crawler.base_url):
            self.logger.info("Email notification sent")
        else:
            self.error_tracker.record_error(
                component="scheduler",
                category=ErrorCategory.MESSAGE_DELIVERY,
                severity=ErrorSeverity.MEDIUM,
                message="Email notification was not sent",
                context={"recipients": len(recipients)},
            )

    def _record_persistence_failure(self, artifact: str) -> None:
        self.error_tracker.record_error(
            component="scheduler",
            category=ErrorCategory.PERSISTENCE,
            severity=ErrorSeverity.MEDIUM,
            message=f"Failed to persist {artifact} artifact",
        )

    async def run_forever(self) -> None:
        """Start the service and block until it is stopped by a signal."""
        loop = asyncio.get_running_loop()
        handled_signals = []

        if sys.platform != "win32":
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.add_signal_handler(sig, self._handle_signal, sig)
                handled_signals.append(sig)

        try:
            await self.start()
            await self.wait_closed()
        finally:
            for sig in handled_signals:
                loop.remove_signal_handler(sig)

    def _handle_signal(self, signum: int) -> None:
        self.logger.info(
            "Received shutdown signal, initiating graceful shutdown",
            extra={"signal": signum},
        )
        self.stop()

    def get_status(self) -> Dict[str, Any]:
        """Get current service status information."""
        uptime_minutes = None
        if self._running and self._start_time:
            uptime_minutes = int((datetime.now() - self._start_time).total_seconds() // 60)

        return {
            "is_running": self._running,
            "start_time": self._start_time.isoformat() if self._start_time else None,
            "uptime_minutes": uptime_minutes,
            "interval_minutes": self.interval_minutes,
            "config_path": self.config_path,
            "next_check_time": (
                self._next_check_time.isoformat() if self._next_check_time else None
            ),
            "last_check_time": (
                self._last_check_time.isoformat() if self._last_check_time else None
            ),
            "cycles_completed": self._cycles_completed,
            "cycles_failed": self._cycles_failed,
            "error_stats": self.error_tracker.get_error_stats(),
        }
