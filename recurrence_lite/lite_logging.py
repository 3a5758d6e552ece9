"""
Central logging configuration for recurrence_lite.

The library itself only emits records through module-level loggers. This
module is used by the command line entry point (and by applications that want
the same console output) to install a colorized handler and pick levels.
"""

import logging
import os
import sys
from typing import Optional

from colorlog import ColoredFormatter

# Readable colorized format:
# HH:MM:SS  LEVEL   logger.name: message
# Only the level is colorized; it is left-aligned to 7 chars for column alignment.
LOG_FORMAT = "%(asctime)s %(log_color)s%(levelname)-7s%(reset)s %(name)s: %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"
LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bold_red",
}

_LITE_MODULES = [
    "recurrence_lite",
    "recurrence_lite.lite_rrule_codec",
    "recurrence_lite.lite_rrule_expander",
    "recurrence_lite.lite_occurrences",
    "recurrence_lite.lite_regions",
    "recurrence_lite.lite_exception_overlay",
    "recurrence_lite.lite_event_expander",
]

# Third-party loggers kept quiet unless explicitly reset
_SUPPRESSED_LOGGERS = ["dateutil", "pydantic"]


def build_console_handler(level: int = logging.NOTSET) -> logging.Handler:
    """Create a stderr handler using the colorized formatter."""
    handler = logging.StreamHandler(stream=sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(ColoredFormatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT, log_colors=LOG_COLORS))
    return handler


def configure_lite_logging(debug_mode: bool = False, force_debug: Optional[bool] = None) -> None:
    """
    Configure logging levels for recurrence_lite.

    Installs a colorized console handler on the root logger when it has none,
    and sets recurrence_lite module loggers to DEBUG or INFO. Debug mode can be
    overridden via environment variable for troubleshooting.

    Args:
        debug_mode: Whether to enable debug logging for recurrence_lite modules
        force_debug: Override debug mode setting (None to use env var detection)

    Environment Variables:
        RECURRENCE_LITE_DEBUG: Set to '1', 'true', 'yes' to force debug logging
        RECURRENCE_LITE_LOG_LEVEL: Override root log level (DEBUG, INFO, WARNING, ERROR)
    """
    env_debug = os.getenv("RECURRENCE_LITE_DEBUG", "").lower() in ("1", "true", "yes")
    env_log_level = os.getenv("RECURRENCE_LITE_LOG_LEVEL", "").upper()

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

    # Preserve handlers installed by the host application
    if not root_logger.handlers:
        root_logger.addHandler(build_console_handler(root_level))

    logger_config: dict[str, int] = {name: logging.WARNING for name in _SUPPRESSED_LOGGERS}

    lite_level = logging.DEBUG if final_debug else logging.INFO
    for module in _LITE_MODULES:
        logger_config[module] = lite_level

    for logger_name, level in logger_config.items():
        logging.getLogger(logger_name).setLevel(level)

    if final_debug:
        root_logger.debug("Debug logging enabled for recurrence_lite modules")


def reset_logging_to_debug() -> None:
    """
    Reset all loggers to DEBUG level for troubleshooting.

    This is a utility function to temporarily enable verbose logging
    for all modules when diagnosing expansion issues.
    """
    logging.getLogger().setLevel(logging.DEBUG)

    for logger_name in _SUPPRESSED_LOGGERS + _LITE_MODULES:
        logging.getLogger(logger_name).setLevel(logging.DEBUG)

    logging.getLogger().info("All loggers reset to DEBUG level for troubleshooting")


def get_logging_status() -> dict[str, str]:
    """
    Get current logging configuration status.

    Returns:
        Dictionary mapping logger names to their current levels
    """
    status = {"root": logging.getLevelName(logging.getLogger().level)}

    for logger_name in ["recurrence_lite", *_SUPPRESSED_LOGGERS]:
        status[logger_name] = logging.getLevelName(logging.getLogger(logger_name).level)

    return status
