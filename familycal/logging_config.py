"""
Central logging configuration for familycal.

Expansion runs on every render and notification poll, so package loggers stay
at INFO unless debugging is requested; per-window debug lines are only
emitted in debug mode.
"""

import logging
import os
import sys
from typing import Optional

from colorlog import ColoredFormatter

PACKAGE_LOGGER = "familycal"

_LOG_FORMAT = "%(asctime)s %(log_color)s%(levelname)-7s%(reset)s %(name)s: %(message)s"
_LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bold_red",
}

_PACKAGE_MODULES = [
    PACKAGE_LOGGER,
    "familycal.expander",
    "familycal.window_policy",
    "familycal.notifications",
    "familycal.notified_store",
    "familycal.expansion_cache",
    "familycal.edits",
]


def _env_debug() -> bool:
    return os.getenv("FAMILYCAL_DEBUG", "").strip().lower() in ("1", "true", "yes", "on")


def configure_logging(debug_mode: bool = False, force_debug: Optional[bool] = None) -> None:
    """
    Configure logging for familycal.

    Installs a colorized console handler on the root logger when none exists
    and sets package logger levels.

    Args:
        debug_mode: Whether to enable debug logging for familycal modules
        force_debug: Override debug mode setting (None to use env var detection)

    Environment Variables:
        FAMILYCAL_DEBUG: Set to '1', 'true', 'yes' to force debug logging
        FAMILYCAL_LOG_LEVEL: Override root log level (DEBUG, INFO, WARNING, ERROR)
    """
    if force_debug is not None:
        final_debug = force_debug
    elif _env_debug():
        final_debug = True
    else:
        final_debug = debug_mode

    root_level = logging.DEBUG if final_debug else logging.INFO
    env_log_level = os.getenv("FAMILYCAL_LOG_LEVEL", "").upper()
    if env_log_level in ("DEBUG", "INFO", "WARNING", "ERROR"):
        root_level = getattr(logging, env_log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(root_level)

    # Only add a handler if none exist, to avoid duplicate output.
    if not root_logger.handlers:
        handler = logging.StreamHandler(stream=sys.stderr)
        handler.setFormatter(
            ColoredFormatter(_LOG_FORMAT, datefmt="%H:%M:%S", log_colors=_LOG_COLORS)
        )
        root_logger.addHandler(handler)

    package_level = logging.DEBUG if final_debug else logging.INFO
    for module in _PACKAGE_MODULES:
        logging.getLogger(module).setLevel(package_level)

    if final_debug:
        root_logger.info("Debug logging enabled for familycal modules.")
    else:
        root_logger.info("Production logging configuration applied.")


def get_logging_status() -> dict[str, str]:
    """
    Get current logging configuration status.

    Returns:
        Dictionary mapping logger names to their current levels
    """
    status = {"root": logging.getLevelName(logging.getLogger().level)}
    for logger_name in _PACKAGE_MODULES:
        status[logger_name] = logging.getLevelName(logging.getLogger(logger_name).level)
    return status
