"""Structured logging configuration."""

import logging
import sys
from pythonjsonlogger import jsonlogger


LOG_FORMATS = ("json", "text")


def setup_logger(
    name: str = "nakivo_exporter",
    level: str = "INFO",
    fmt: str = "json"
) -> logging.Logger:
    """
    Configure exporter logging.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        fmt: Output format, "json" for structured records or "text" for
            human-readable lines

    Returns:
        logging.Logger: Configured logger instance

    Raises:
        ValueError: If the format is not supported
    """
    if fmt not in LOG_FORMATS:
        raise ValueError(f"Unsupported log format: {fmt}")

    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper()))

    # Remove existing handlers to avoid duplicates
    logger.handlers = []

    handler = logging.StreamHandler(sys.stdout)
    if fmt == "json":
        formatter = jsonlogger.JsonFormatter(
            '%(asctime)s %(name)s %(levelname)s %(message)s',
            timestamp=True
        )
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    # Don't propagate to root logger
    logger.propagate = False

    return logger
