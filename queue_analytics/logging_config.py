"""
Logging Configuration

This module provides centralized logging configuration for the analytics
engine, its web server and its command line entry point.
"""

import os
import logging
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional


# Default logging format
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Console format (shorter for readability)
CONSOLE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
CONSOLE_DATE_FORMAT = "%H:%M:%S"

# Log levels mapping
LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def setup_logging(
    log_path: str = "logs/queue-analytics.log",
    log_level: str = "INFO",
    max_size_mb: int = 10,
    backup_count: int = 3,
    console_output: bool = True,
    file_output: bool = True,
) -> logging.Logger:
    """
    Configure logging for the application.

    Args:
        log_path: Path to the log file
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        max_size_mb: Maximum log file size in MB before rotation
        backup_count: Number of backup log files to keep
        console_output: Enable console (stderr) logging
        file_output: Enable file logging

    Returns:
        The root logger configured for the application
    """
    level = LOG_LEVELS.get(log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    if file_output:
        log_dir = os.path.dirname(log_path)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=max_size_mb * 1024 * 1024,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter(DEFAULT_FORMAT, datefmt=DEFAULT_DATE_FORMAT)
        )
        root_logger.addHandler(file_handler)

    if console_output:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(
            logging.Formatter(CONSOLE_FORMAT, datefmt=CONSOLE_DATE_FORMAT)
        )
        root_logger.addHandler(console_handler)

    logger = logging.getLogger(__name__)
    logger.info("Logging configured: level=%s, path=%s", log_level, log_path)

    return root_logger


def setup_logging_from_config(config, console_output: bool = True) -> logging.Logger:
    """
    Configure logging from a Config object.

    Args:
        config: Config object with logging settings
        console_output: Enable console logging

    Returns:
        The root logger configured for the application
    """
    return setup_logging(
        log_path=config.log_path,
        log_level=config.log_level,
        max_size_mb=config.log_max_size_mb,
        backup_count=config.log_backup_count,
        console_output=console_output,
    )


def format_context(context: Optional[Dict[str, Any]]) -> str:
    """
    Render contextual fields as a stable ``key=value`` string.

    Args:
        context: Contextual fields (shop id, operation, date range, ...)

    Returns:
        Space separated key=value pairs, sorted by key
    """
    if not context:
        return ""
    return " ".join(f"{key}={context[key]}" for key in sorted(context))


def log_exception(
    logger: logging.Logger,
    message: str,
    exc: BaseException,
    context: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Log an exception with context.

    Args:
        logger: Logger to use
        message: Context message
        exc: Exception to log
        context: Optional contextual fields appended to the message
    """
    suffix = format_context(context)
    if suffix:
        message = f"{message} [{suffix}]"
    logger.error(
        "%s: %s: %s", message, type(exc).__name__, exc, exc_info=True
    )
