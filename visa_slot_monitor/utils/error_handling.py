"""
Error handling utilities for the medical visa slot monitor.

This module provides the exception hierarchy, error tracking and the
retry-with-backoff helper used around the scrape step.
"""

import asyncio
import traceback
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

from .logging import ComponentLogger

T = TypeVar("T")


class ErrorSeverity(Enum):
    """Error severity levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Error categories for classification."""

    NETWORK = "network"
    CONFIGURATION = "configuration"
    SCRAPING = "scraping"
    PARSING = "parsing"
    CLASSIFICATION = "classification"
    MESSAGE_DELIVERY = "message_delivery"
    PERSISTENCE = "persistence"
    SYSTEM = "system"


class SlotMonitorError(Exception):
    """Base class for all slot monitor errors."""


class ConfigurationError(SlotMonitorError):
    """Configuration file is missing, unparseable or invalid."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class CrawlError(SlotMonitorError):
    """The scraper could not produce any availability data."""


class RetryExhaustedError(SlotMonitorError):
    """All retry attempts of an operation failed."""

    def __init__(self, attempts: int, last_error: Optional[BaseException]):
        super().__init__(f"Operation failed after {attempts} attempts: {last_error}")
        self.attempts = attempts
        self.last_error = last_error


class RetryAbortedError(SlotMonitorError):
    """A retry loop was interrupted by shutdown during a backoff sleep."""


@dataclass
class ErrorInfo:
    """Information about an error occurrence."""

    timestamp: datetime
    component: str
    category: ErrorCategory
    severity: ErrorSeverity
    message: str
    exception_type: str
    traceback: str
    context: Dict[str, Any]


class ErrorTracker:
    """
    Tracks errors and provides statistics for monitoring.
    """

    def __init__(self, logger: ComponentLogger, max_errors: int = 1000):
        """
        Initialize error tracker.

        Args:
            logger: Logger used to report recorded errors
            max_errors: Maximum number of errors to keep in memory
        """
        self.max_errors = max_errors
        self.errors: List[ErrorInfo] = []
        self.error_counts: Dict[str, int] = {}
        self.logger = logger

    def record_error(
        self,
        component: str,
        category: ErrorCategory,
        severity: ErrorSeverity,
        message: str,
        exception: Optional[BaseException] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> ErrorInfo:
        """
        Record an error occurrence.

        Args:
            component: Component where error occurred
            category: Error category
            severity: Error severity
            message: Error message
            exception: Exception object if available
            context: Additional context information

        Returns:
            ErrorInfo object
        """
        error_info = ErrorInfo(
            timestamp=datetime.now(),
            component=component,
            category=category,
            severity=severity,
            message=message,
            exception_type=type(exception).__name__ if exception else "Unknown",
            traceback=(
                "".join(
                    traceback.format_exception(
                        type(exception), exception, exception.__traceback__
                    )
                )
                if exception
                else ""
            ),
            context=context or {},
        )

        self.errors.append(error_info)
        if len(self.errors) > self.max_errors:
            self.errors.pop(0)

        error_key = f"{component}.{category.value}.{severity.value}"
        self.error_counts[error_key] = self.error_counts.get(error_key, 0) + 1

        self.logger.error(
            f"Error recorded: {message}",
            extra={
                "error_component": component,
                "category": category.value,
                "severity": severity.value,
                "exception_type": error_info.exception_type,
                "context": context,
            },
        )

        return error_info

    def get_error_stats(self) -> Dict[str, Any]:
        """Get error statistics."""
        last_hour = datetime.now() - timedelta(hours=1)

        return {
            "total_errors": len(self.errors),
            "errors_last_hour": len(
                [e for e in self.errors if e.timestamp >= last_hour]
            ),
            "error_counts": self.error_counts.copy(),
            "category_breakdown": {
                category.value: len([e for e in self.errors if e.category == category])
                for category in ErrorCategory
            },
        }


class RetryConfig:
    """Configuration for retry behavior."""

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 2.0,
        max_delay: float = 60.0,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if base_delay < 0:
            raise ValueError("base_delay cannot be negative")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay

    def delay_for(self, attempt: int) -> float:
        """Backoff before the attempt following ``attempt`` (1-based): 2s, 4s, 6s."""
        return min(self.base_delay * attempt, self.max_delay)


async def interruptible_sleep(
    delay: float, stop_event: Optional[asyncio.Event] = None
) -> bool:
    """
    Sleep for ``delay`` seconds or until ``stop_event`` is set.

    Returns:
        True if the sleep was interrupted by the stop event.
    """
    if stop_event is None:
        await asyncio.sleep(delay)
        return False

    if stop_event.is_set():
        return True

    try:
        await asyncio.wait_for(stop_event.wait(), timeout=delay)
        return True
    except asyncio.TimeoutError:
        return False


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    retry_config: RetryConfig,
    logger: ComponentLogger,
    stop_event: Optional[asyncio.Event] = None,
    description: str = "operation",
) -> T:
    """
    Run ``operation`` with up to ``retry_config.max_attempts`` attempts.

    Raises:
        RetryExhaustedError: every attempt failed; the last error is chained.
        RetryAbortedError: the stop event fired during a backoff sleep.
    """
    last_error: Optional[Exception] = None

    for attempt in range(1, retry_config.max_attempts + 1):
        try:
            logger.info(
                f"{description} attempt {attempt}/{retry_config.max_attempts}"
            )
            result = await operation()
            if attempt > 1:
                logger.info(f"{description} succeeded on attempt {attempt}")
            return result

        except Exception as e:
            last_error = e
            logger.warning(
                f"{description} attempt {attempt} failed",
                extra={"error": str(e), "exception_type": type(e).__name__},
            )

            if attempt < retry_config.max_attempts:
                delay = retry_config.delay_for(attempt)
                logger.info(f"Retrying {description} in {delay:.1f}s")
                if await interruptible_sleep(delay, stop_event):
                    raise RetryAbortedError(
                        f"{description} retry aborted by shutdown"
                    ) from e

    raise RetryExhaustedError(retry_config.max_attempts, last_error) from last_error
