"""
Main entry point for the medical visa slot monitor.
"""

import argparse
import asyncio
import sys
from typing import List, Optional

from .components.email_dispatcher import EmailDispatcher
from .models.config import LOG_LEVELS, ServiceSettings, validate_interval
from .scheduler import SlotMonitorService
from .services.config_manager import ConfigurationManager
from .utils.error_handling import ConfigurationError
from .utils.logging import LoggingManager


def parse_interval(value: Optional[str]) -> Optional[int]:
    """Parse the --interval option; raises ValueError when it is not a whole number >= 1."""
    if value is None:
        return None
    try:
        minutes = int(value)
    except ValueError:
        raise ValueError(f"Interval must be a whole number of minutes, got {value!r}")
    return validate_interval(minutes)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="visa-slot-monitor",
        description="Monitor the medical visa booking site for available slots.",
    )
    parser.add_argument(
        "--config",
        default="config.yaml",
        help="Path to the YAML or JSON configuration file (default: config.yaml)",
    )
    parser.add_argument(
        "--interval",
        default=None,
        help="Minutes between checks, overrides the configured interval",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--once", action="store_true", help="Run a single check and print the report"
    )
    mode.add_argument(
        "--test-email",
        action="store_true",
        help="Send a test email using the configured recipients and exit",
    )
    mode.add_argument(
        "--results",
        metavar="PATH",
        default=None,
        help=(
            "Classify a saved latest-results file without crawling; exits 0 when "
            "relevant slots exist, 1 when none and 2 on error"
        ),
    )
    parser.add_argument(
        "--visible",
        action="store_true",
        help="Show the browser window, overrides the configured headless mode",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=LOG_LEVELS,
        help="Logging level, overrides the configured level",
    )
    return parser


def create_logging_manager(args: argparse.Namespace) -> LoggingManager:
    """Set up logging from the service settings, before the service starts."""
    settings = ServiceSettings()
    try:
        settings = ConfigurationManager(args.config).load_config().service
    except ConfigurationError:
        # defaults apply; the error is reported once logging is up
        pass

    return LoggingManager(
        log_dir=settings.log_dir, log_level=args.log_level or settings.log_level
    )


def send_test_email(config_path: str, logging_manager: LoggingManager) -> int:
    """Send a test email and return the process exit code."""
    logger = logging_manager.get_component_logger("main")
    config = ConfigurationManager(
        config_path, logger=logging_manager.get_component_logger("config.manager")
    ).load_config()

    dispatcher = EmailDispatcher(
        config.email, logger=logging_manager.get_component_logger("email.dispatcher")
    )
    if dispatcher.send_test_email(
        config.preferences.email_recipients, config.crawler.base_url
    ):
        logger.info("Test email sent successfully")
        return 0

    logger.error("Test email failed, check the email configuration")
    return 1


def filter_saved_results(args: argparse.Namespace, logging_manager: LoggingManager) -> int:
    """Classify a saved results file and return 0 (relevant), 1 (none) or 2 (error)."""
    logger = logging_manager.get_component_logger("main")
    service = SlotMonitorService(config_path=args.config, logging_manager=logging_manager)

    try:
        result = service.classify_saved_results(args.results)
    except ConfigurationError as e:
        logger.error("Configuration error", extra={"error": str(e), "path": e.path})
        return 2

    if result is None:
        return 2

    if service.last_report:
        print(service.last_report)
    return 0 if result.summary.total_relevant_slots else 1


async def async_main(args: argparse.Namespace, logging_manager: LoggingManager) -> int:
    """Async main application entry point."""
    logger = logging_manager.get_component_logger("main")
    service = SlotMonitorService(
        config_path=args.config,
        interval_minutes=args.interval,
        logging_manager=logging_manager,
        headless=False if args.visible else None,
    )

    if args.once:
        result = await service.run_once()
        if service.last_report:
            print(service.last_report)
        return 0 if result is not None else 1

    logger.info("Starting medical visa slot monitor", extra={"config_path": args.config})
    await service.run_forever()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main application entry point."""
    args = build_parser().parse_args(argv)
    try:
        args.interval = parse_interval(args.interval)
    except ValueError as e:
        print(f"Invalid interval: {e}", file=sys.stderr)
        return 1

    logging_manager = create_logging_manager(args)
    logger = logging_manager.get_component_logger("main")

    try:
        if args.test_email:
            return send_test_email(args.config, logging_manager)
        if args.results:
            return filter_saved_results(args, logging_manager)
        return asyncio.run(async_main(args, logging_manager))
    except ConfigurationError as e:
        logger.error("Configuration error", extra={"error": str(e), "path": e.path})
        return 1
    except KeyboardInterrupt:
        print("\nShutdown requested by user")
        return 0
    finally:
        logging_manager.close()


if __name__ == "__main__":
    sys.exit(main())
