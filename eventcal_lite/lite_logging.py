"""
Central logging configuration for eventcal_lite.

Suppresses verbose debug logs from third-party libraries while keeping
eventcal_lite's own diagnostics, and stamps every record with the request
correlation id.
"""

import logging
import os
from typing import Optional

NOISY_LOGGERS = (
    "aiohttp.access",
    "aiohttp.server",
    "aiohttp.web_log",
    "asyncio",
)

LITE_MODULES = (
    "eventcal_lite",
    "eventcal_lite.api.server",
    "eventcal_lite.calendar.occurrence_generator",
    "eventcal_lite.domain.occurrence_resolver",
    "eventcal_lite.domain.event_store",
    "eventcal_lite.domain.event_service",
)


class CorrelationIdFilter(logging.Filter):
    """Add correlation ID to all log records for request tracing."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Add correlation ID to log record.

        Args:
            record: Log record to enhance

        Returns:
            True to allow record to be logged
        """
        # Import here to avoid pulling aiohttp in at import time
        try:
            from .api.middleware.correlation_id import get_request_id

            record.request_id = get_request_id()
        except ImportError:
            record.request_id = "no-request-id"

        return True


def configure_lite_logging(debug_mode: bool = False, force_debug: Optional[bool] = None) -> None:
    """
    Configure logging levels for eventcal_lite.

    Args:
        debug_mode: Whether to enable debug logging for eventcal_lite modules
        force_debug: Override debug mode setting (None to use env var detection)

    Environment Variables:
        EVENTCAL_DEBUG: Set to '1', 'true', 'yes' to force debug logging
        EVENTCAL_LOG_LEVEL: Override root log level (DEBUG, INFO, WARNING, ERROR)
    """
    env_debug = os.getenv("EVENTCAL_DEBUG", "").lower() in ("1", "true", "yes")
    env_log_level = os.getenv("EVENTCAL_LOG_LEVEL", "").upper()

    if force_debug is not None:
        final_debug = force_debug
    elif env_debug:
        final_debug = True
    else:
        final_debug = debug_mode

    root_level = logging.DEBUG if final_debug else logging.INFO
    if env_log_level in ("DEBUG", "INFO", "WARNING", "ERROR"):
        root_level = getattr(logging, env_log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(root_level)

    correlation_filter = CorrelationIdFilter()

    # Only add a handler if none exist (preserve the console setup from __init__.py)
    if not root_logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(root_level)
        formatter = logging.Formatter(
            "[%(asctime)s] [%(request_id)s] %(levelname)s - %(name)s - %(message)s"
        )
        handler.setFormatter(formatter)
        handler.addFilter(correlation_filter)
        root_logger.addHandler(handler)
    else:
        for existing_handler in root_logger.handlers:
            if not any(isinstance(f, CorrelationIdFilter) for f in existing_handler.filters):
                existing_handler.addFilter(correlation_filter)

    logger_config: dict[str, int] = {name: logging.WARNING for name in NOISY_LOGGERS}
    logger_config["aiohttp.web"] = logging.INFO

    lite_level = logging.DEBUG if final_debug else logging.INFO
    for module in LITE_MODULES:
        logger_config[module] = lite_level

    for logger_name, level in logger_config.items():
        logging.getLogger(logger_name).setLevel(level)

    if final_debug:
        root_logger.info("Debug logging enabled for eventcal_lite modules")
    else:
        root_logger.info("Production logging configuration applied")


def get_logging_status() -> dict[str, str]:
    """
    Get current logging configuration status.

    Returns:
        Dictionary mapping logger names to their current levels
    """
    status = {"root": logging.getLevelName(logging.getLogger().level)}
    for logger_name in ("eventcal_lite", "aiohttp.access", "asyncio"):
        status[logger_name] = logging.getLevelName(logging.getLogger(logger_name).level)
    return status
