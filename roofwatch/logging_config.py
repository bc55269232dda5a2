"""
ROOFWATCH Logging Configuration

Provides centralized logging configuration for the ROOFWATCH roof controller
with support for:
- Rotating file handlers with size limits
- Optional JSON line format (machine-parseable)
- Per-service log level configuration
- Helpers for logging exceptions and timing relay commands

Usage:
    from roofwatch.logging_config import setup_logging, get_logger

    # Initialize logging at application startup
    setup_logging(log_level="INFO", log_file="roofwatch.log")

    # Get a logger for your module
    logger = get_logger(__name__)
    logger.info("Roof is open.", extra={"park_state": "unparked"})
"""

import json
import logging
import sys
import time
import traceback
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional

# Module-level constants
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_MAX_BYTES = 10 * 1024 * 1024  # 10MB
DEFAULT_BACKUP_COUNT = 5

# Log level mapping for per-service configuration
LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


class JsonFormatter(logging.Formatter):
    """Format records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "time": self.formatTime(record, DEFAULT_DATE_FORMAT),
            "logger": record.name,
            "level": record.levelname,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def setup_logging(
    log_level: str = DEFAULT_LOG_LEVEL,
    log_file: Optional[str | Path] = None,
    json_format: bool = False,
) -> None:
    """Configure logging for the ROOFWATCH application.

    Sets up the roofwatch logger with a console handler and an optional
    rotating file handler. Should be called once at application startup;
    calling it again replaces the existing handlers.

    Args:
        log_level: Default logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to log file. If provided, enables file logging
                  with rotation.
        json_format: If True, use structured JSON format for logs.
    """
    level = LOG_LEVELS.get(log_level.upper(), logging.INFO)

    root_logger = logging.getLogger("roofwatch")
    root_logger.setLevel(level)

    # Clear any existing handlers
    for handler in list(root_logger.handlers):
        handler.close()
    root_logger.handlers.clear()

    if json_format:
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(DEFAULT_LOG_FORMAT, DEFAULT_DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        from logging.handlers import RotatingFileHandler

        file_path = Path(log_file)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            file_path,
            maxBytes=DEFAULT_MAX_BYTES,
            backupCount=DEFAULT_BACKUP_COUNT,
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the roofwatch namespace.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Configured logger instance
    """
    if not name.startswith("roofwatch"):
        name = f"roofwatch.{name}"
    return logging.getLogger(name)


def set_service_level(service_name: str, level: str) -> None:
    """Set log level for a specific service.

    Example:
        set_service_level("enclosure", "DEBUG")  # Show raw limit switch levels
    """
    logger = logging.getLogger(f"roofwatch.{service_name}")
    logger.setLevel(LOG_LEVELS.get(level.upper(), logging.INFO))


def log_exception(
    logger: logging.Logger,
    message: str,
    exc: BaseException,
    level: int = logging.ERROR,
    include_traceback: bool = True,
) -> None:
    """Log an exception with its type and optional traceback.

    Args:
        logger: Logger to write to
        message: Context message
        exc: The exception
        level: Log level (ERROR by default)
        include_traceback: Attach the formatted traceback as extra data
    """
    extra: dict[str, Any] = {"exception_type": type(exc).__name__}
    if include_traceback:
        extra["traceback"] = "".join(
            traceback.format_exception(type(exc), exc, exc.__traceback__)
        )
    logger.log(level, f"{message}: {type(exc).__name__}: {exc}", extra=extra)


@contextmanager
def log_timing(
    logger: logging.Logger,
    operation: str,
    warn_threshold_sec: Optional[float] = None,
    level: int = logging.DEBUG,
) -> Iterator[None]:
    """Log start, completion and duration of an operation.

    Emits a warning when the operation runs longer than warn_threshold_sec.
    Completion is logged even if the block raises.
    """
    logger.log(level, f"{operation} started", extra={"operation": operation})
    start = time.monotonic()
    try:
        yield
    finally:
        elapsed = time.monotonic() - start
        logger.log(
            level,
            f"{operation} completed in {elapsed:.3f}s",
            extra={"operation": operation, "elapsed_seconds": elapsed},
        )
        if warn_threshold_sec is not None and elapsed > warn_threshold_sec:
            logger.warning(
                f"{operation} took {elapsed:.3f}s, exceeded "
                f"{warn_threshold_sec:.3f}s threshold"
            )
