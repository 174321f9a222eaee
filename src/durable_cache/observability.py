"""
Durable Cache — Logging Setup

Every module logs through ``logging.getLogger(__name__)`` with structured
``extra`` fields. configure_logging() attaches one handler to the package
logger, emitting either JSON lines or plain text.

Usage:
    from durable_cache import configure_logging, get_config

    configure_logging(get_config())
"""

import json
import logging
from datetime import UTC, datetime

from .config import DurableCacheConfig, LogFormat, LogLevel, get_config

PACKAGE_LOGGER = "durable_cache"

TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# LogRecord attributes that are not user-supplied extra fields
_RESERVED_ATTRS = frozenset(
    (
        "args",
        "msg",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "name",
        "message",
    )
)


class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        # Add any extra fields from record.__dict__
        for key, value in record.__dict__.items():
            if key not in log_data and not key.startswith("_") and key not in _RESERVED_ATTRS:
                log_data[key] = value

        # Add exception info if present
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def configure_logging(config: DurableCacheConfig | None = None) -> logging.Logger:
    """
    Configure the package logger from configuration.

    Replaces any handlers previously attached to the package logger, so
    calling it again (e.g. after reload_config()) does not duplicate output.

    Args:
        config: Configuration to apply (uses global config if not provided)

    Returns:
        The configured package logger
    """
    if config is None:
        config = get_config()

    logger = logging.getLogger(PACKAGE_LOGGER)

    # Remove existing handlers
    logger.handlers.clear()

    handler = logging.StreamHandler()
    if config.log_format == LogFormat.JSON:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))

    logger.addHandler(handler)
    logger.setLevel(LogLevel(config.log_level).value)

    return logger
