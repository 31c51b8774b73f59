"""Logging infrastructure for the Smoothie catalog service.

Provides centralized logging with configurable format (text/JSON) and level.
Configured via environment variables:
- LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
- LOG_TYPE: text, json (default: text)

Request, provider and cache context travels through `extra=` and is rendered
by both formatters. The HTTP server's own loggers can be routed through the
same handler with route_server_logs(), so one process emits one format.
"""

import json
import logging
import os
import sys
from typing import Any, Iterable

# Optional LogRecord attributes rendered when set via `extra=`
CONTEXT_FIELDS = ("request_id", "provider", "cache_key")

# Loggers owned by uvicorn (started with log_config=None)
SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def record_context(record: logging.LogRecord) -> dict[str, Any]:
    """Collect the context fields present on a record, in CONTEXT_FIELDS order."""
    return {field: getattr(record, field) for field in CONTEXT_FIELDS if hasattr(record, field)}


class JSONFormatter(logging.Formatter):
    """Formatter that outputs one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON.

        Args:
            record: Log record to format.

        Returns:
            JSON string with timestamp, level, logger name, message, context and optional traceback.
        """
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Include exception traceback if present
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Request id, provider name and cache key, when the caller passed them
        log_data.update(record_context(record))

        # Accented titles stay unescaped
        return json.dumps(log_data, ensure_ascii=False, default=str)


class RichTextFormatter(logging.Formatter):
    """Formatter that outputs colored text with emoji icons and a context suffix."""

    # ANSI color codes
    COLORS = {
        "DEBUG": "\033[36m",      # Cyan
        "INFO": "\033[32m",       # Green
        "WARNING": "\033[33m",    # Yellow
        "ERROR": "\033[31m",      # Red
        "CRITICAL": "\033[35m",   # Magenta
        "RESET": "\033[0m",       # Reset
    }

    # Emoji icons for each level
    ICONS = {
        "DEBUG": "🔍",
        "INFO": "🥤",
        "WARNING": "⚠️",
        "ERROR": "❌",
        "CRITICAL": "🔥",
    }

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as colored text.

        Returns:
            Formatted string with color codes, emoji icon and a trailing
            [key=value ...] block for any context fields.
        """
        level = record.levelname
        color = self.COLORS.get(level, self.COLORS["RESET"])
        icon = self.ICONS.get(level, "")
        reset = self.COLORS["RESET"]

        # Format: YYYY-MM-DD HH:MM:SS
        timestamp = self.formatTime(record, "%Y-%m-%d %H:%M:%S")

        message = f"{color}{icon} {timestamp} {level:<8} {record.name:<20} {record.getMessage()}"

        context = " ".join(f"{key}={value}" for key, value in record_context(record).items())
        if context:
            message += f" [{context}]"
        message += reset

        # Include exception traceback if present
        if record.exc_info:
            message += f"\n{self.formatException(record.exc_info)}"

        return message


def build_handler(level: int, log_type: str) -> logging.Handler:
    """Stdout handler with the formatter matching LOG_TYPE."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter() if log_type == "json" else RichTextFormatter())
    return handler


def get_logger(name: str) -> logging.Logger:
    """Create and configure logger instance.

    Args:
        name: Logger name, typically module name.

    Returns:
        Configured logger instance (handlers are attached only once per name).
    """
    logger_instance = logging.getLogger(name)

    # Return existing logger if already configured
    if logger_instance.handlers:
        return logger_instance

    # Read configuration from environment
    log_level_str = os.getenv("LOG_LEVEL", "INFO").upper()
    log_type = os.getenv("LOG_TYPE", "text").lower()

    log_level = getattr(logging, log_level_str, logging.INFO)
    logger_instance.setLevel(log_level)
    logger_instance.addHandler(build_handler(log_level, log_type))

    return logger_instance


def route_server_logs(source: logging.Logger, names: Iterable[str] = SERVER_LOGGERS) -> None:
    """Send the named loggers through source's handlers and level.

    Existing handlers on those loggers are replaced, so re-routing is idempotent.
    """
    for name in names:
        server_logger = logging.getLogger(name)
        server_logger.handlers = list(source.handlers)
        server_logger.setLevel(source.level)
        server_logger.propagate = False


# Create module-level logger instance
logger = get_logger("smoothies")

# aiohttp access logs duplicate what uvicorn already prints
logging.getLogger("aiohttp.access").setLevel(logging.WARNING)
