"""Logging for remotepkg.

Every remotepkg module (stream, sniffer, parsers, adapters, HTTP sources)
logs under the ``remotepkg`` logger namespace, so an application embedding
the library can tune or silence identification logs with one logger.
The library itself never installs handlers: that is left to the host
application, or to ``python -m remotepkg``, which calls ``setup_logger``
with the ``logging`` section of the configuration file.
"""

import logging
import logging.handlers
import os
from typing import Optional

LOGGER_NAMESPACE = "remotepkg"

DEFAULT_LOG_DIR = os.path.join("~", ".cache", "remotepkg", "logs")


def _qualify(name: str) -> str:
    """Place a logger name under the remotepkg namespace."""
    if name == LOGGER_NAMESPACE or name.startswith(LOGGER_NAMESPACE + "."):
        return name
    return f"{LOGGER_NAMESPACE}.{name}"


def setup_logger(
    name: str = LOGGER_NAMESPACE,
    log_dir: str = DEFAULT_LOG_DIR,
    level: str = "INFO",
    log_format: Optional[str] = None,
    date_format: Optional[str] = None,
    file_logging: bool = False,
    console_logging: bool = True,
    max_bytes: int = 10485760,  # 10MB
    backup_count: int = 5,
) -> logging.Logger:
    """Attach console and optional rotating file handlers to a remotepkg logger.

    Used by the command line entry point; called again for an already
    configured logger, only the level is updated.

    Args:
        name: Logger name, qualified under the ``remotepkg`` namespace
        log_dir: Directory for log files (``~`` is expanded)
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Custom log format string
        date_format: Custom date format string (ISO 8601 by default)
        file_logging: Enable rotating file logging
        console_logging: Enable console logging (stderr)
        max_bytes: Maximum log file size before rotation
        backup_count: Number of backup log files to keep

    Returns:
        Configured logger instance

    Raises:
        ValueError: If the log level is not recognized
    """
    logger = logging.getLogger(_qualify(name))

    level_upper = level.upper()
    if level_upper not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        raise ValueError(
            f"Invalid log level: {level}. "
            f"Must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL"
        )
    logger.setLevel(getattr(logging, level_upper))

    # Prevent duplicate handlers
    if logger.handlers:
        return logger

    if log_format is None:
        log_format = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"
    if date_format is None:
        date_format = "%Y-%m-%dT%H:%M:%S"

    formatter = logging.Formatter(log_format, datefmt=date_format)

    if file_logging:
        log_dir = os.path.expanduser(log_dir)
        os.makedirs(log_dir, exist_ok=True)
        log_file = os.path.join(log_dir, f"{logger.name}.log")
        file_handler = logging.handlers.RotatingFileHandler(
            log_file, maxBytes=max_bytes, backupCount=backup_count
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if console_logging:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get the logger a remotepkg component writes to.

    Args:
        name: Component name (e.g., 'factory', 'format.deb')

    Returns:
        Logger instance
    """
    return logging.getLogger(_qualify(name))
