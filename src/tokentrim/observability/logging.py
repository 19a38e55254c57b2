"""
TokenTrim — Structured Logging

Installs a handler on the package logger ("tokentrim") that renders
records either as JSON lines or as plain text. Library modules only ever
call logging.getLogger(__name__); configuring output is left to the
hosting application via setup_logging().
"""

import json
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..config.schemas import TokenTrimConfig

PACKAGE_LOGGER = "tokentrim"

TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# LogRecord attributes that are never copied into the JSON payload
_RESERVED_ATTRS = frozenset(
    {
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
    }
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

        # Add any extra fields passed via extra={...}
        for key, value in record.__dict__.items():
            if key not in log_data and not key.startswith("_") and key not in _RESERVED_ATTRS:
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging(level: str = "INFO", fmt: str = "json") -> logging.Logger:
    """
    Configure the package logger.

    Replaces any handler previously installed by this function, so calling
    it again (e.g. after a config reload) does not duplicate output.

    Args:
        level: Log level name (DEBUG, INFO, ...)
        fmt: "json" for JSONFormatter, "text" for a plain line format

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.handlers.clear()

    handler = logging.StreamHandler()
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))

    logger.addHandler(handler)
    logger.setLevel(level.upper())
    return logger


def configure_logging(config: "TokenTrimConfig | None" = None) -> logging.Logger:
    """
    Configure the package logger from runtime configuration.

    Args:
        config: Loaded configuration (get_config() if None)

    Returns:
        The configured package logger
    """
    if config is None:
        from ..config import get_config

        config = get_config()
    return setup_logging(level=config.log_level, fmt=config.log_format)
