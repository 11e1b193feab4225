"""
Centralized logging configuration for the print estimator.

Every log record carries the name of the thread that produced it, so
estimates fanned out over a worker pool can still be told apart.

Features:
    - Automatic thread name and ID in all log messages
    - Console output (always enabled)
    - Rotating file logs (optional, for production)
    - Separate error log for ERROR/CRITICAL messages
    - Helper functions for getting loggers with consistent naming

Log Format:
    2026-03-02 10:15:30 [INFO    ] [MainThread] print_estimator.app - Starting service
    2026-03-02 10:15:31 [DEBUG   ] [Estimate-1] print_estimator.modules.imposition - 16pp on 22x28
    2026-03-02 10:15:31 [INFO    ] [MainThread] print_estimator.estimate.a1b2c3d4 - 3 results

Usage:
    # At application startup
    from logging_config import setup_logging, get_logger

    setup_logging(log_level=logging.INFO, enable_file_logging=True)

    # In modules
    logger = get_logger(__name__)
    logger.info("This message includes thread context automatically")

    # For a single estimate request
    estimate_logger = get_estimate_logger("a1b2c3d4")
"""

import logging
import sys
import threading
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional


APP_LOGGER_NAME = "print_estimator"


# =============================================================================
# THREAD CONTEXT FILTER
# =============================================================================

class ThreadContextFilter(logging.Filter):
    """
    Logging filter that adds thread context to all log records.

    This filter adds two attributes to each log record:
        - thread_name: Name of the current thread (e.g., "MainThread", "Estimate-2")
        - thread_id: Numeric ID of the current thread
    """

    def filter(self, record: logging.LogRecord) -> bool:
        current_thread = threading.current_thread()
        record.thread_name = current_thread.name
        record.thread_id = threading.get_ident()

        # Never drops a record, only decorates it
        return True


# =============================================================================
# LOGGING SETUP
# =============================================================================

LOG_FORMAT = "%(asctime)s [%(levelname)-8s] [%(thread_name)s] %(name)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_MAX_BYTES = 10 * 1024 * 1024  # 10 MB per file
LOG_BACKUP_COUNT = 5


def _decorate(
    handler: logging.Handler,
    level: int,
    formatter: logging.Formatter,
    thread_filter: logging.Filter,
) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    handler.addFilter(thread_filter)
    return handler


def _rotating_file(path: Path) -> RotatingFileHandler:
    return RotatingFileHandler(
        filename=path,
        maxBytes=LOG_MAX_BYTES,
        backupCount=LOG_BACKUP_COUNT,
        encoding="utf-8",
    )


def setup_logging(
    app_name: str = APP_LOGGER_NAME,
    log_level: int = logging.INFO,
    log_dir: Optional[Path] = None,
    enable_file_logging: bool = True,
) -> logging.Logger:
    """
    Configure application logging with thread context.

    Handlers installed:
    1. Console (always)
    2. Rotating application log (optional)
    3. Rotating error log, ERROR/CRITICAL only (optional)

    Each one carries the ThreadContextFilter.

    Args:
        app_name: Name of the root logger (default: "print_estimator")
        log_level: Minimum log level (default: INFO)
        log_dir: Directory for log files (default: ./logs relative to this file)
        enable_file_logging: Whether to write to log files (default: True)

    Returns:
        Configured root logger instance
    """
    logger = logging.getLogger(app_name)
    logger.setLevel(log_level)
    logger.propagate = False

    # Allows re-configuration (tests create several apps)
    logger.handlers.clear()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    thread_filter = ThreadContextFilter()

    logger.addHandler(
        _decorate(logging.StreamHandler(sys.stdout), log_level, formatter, thread_filter)
    )

    if enable_file_logging:
        log_dir = log_dir or Path(__file__).parent / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)

        app_log_file = log_dir / f"{app_name}.log"
        logger.addHandler(
            _decorate(_rotating_file(app_log_file), log_level, formatter, thread_filter)
        )
        logger.addHandler(
            _decorate(
                _rotating_file(log_dir / f"{app_name}_error.log"),
                logging.ERROR,
                formatter,
                thread_filter,
            )
        )
        logger.info(f"File logging enabled: {app_log_file}")

    logger.info(f"Logging configured at level {logging.getLevelName(log_level)}")
    return logger


# =============================================================================
# LOGGER FACTORY FUNCTIONS
# =============================================================================

def get_logger(name: str) -> logging.Logger:
    """
    Get a child logger with the application namespace.

    Args:
        name: Module name (typically __name__)

    Returns:
        Logger instance under "print_estimator."

    Example:
        # In modules/printing.py
        logger = get_logger(__name__)
        # Logger name: "print_estimator.modules.printing"
    """
    if not name.startswith(APP_LOGGER_NAME):
        name = f"{APP_LOGGER_NAME}.{name}"

    return logging.getLogger(name)


def get_estimate_logger(estimate_id: str) -> logging.Logger:
    """
    Get a logger for a single estimate request.

    Only the first 8 characters of the id are used in the logger name,
    which keeps lines short and still makes one request easy to grep.

    Args:
        estimate_id: UUID of the estimate request

    Returns:
        Logger instance for the estimate
    """
    short_id = estimate_id[:8] if len(estimate_id) >= 8 else estimate_id
    return logging.getLogger(f"{APP_LOGGER_NAME}.estimate.{short_id}")


def set_thread_name(name: str) -> None:
    """
    Set the name of the current thread.

    This name appears in log messages in the [thread_name] field.
    Worker threads call this when they pick up a quantity.

    Args:
        name: Thread name to display in logs
    """
    threading.current_thread().name = name
