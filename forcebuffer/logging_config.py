"""Structured logging configuration for forcebuffer.

Log lines are key=value pairs. Controller records carry the bound source,
attempt number and stream quality when the caller passes them via ``extra``.
"""

import logging
import sys
from typing import Any, Optional, TextIO

from forcebuffer.config import get_config

# Third-party loggers and the level they are held at
LIBRARY_LEVELS = {
    "uvicorn": logging.INFO,
    "uvicorn.access": logging.WARNING,
    "fastapi": logging.INFO,
}


def _format_value(value: Any) -> str:
    text = str(value)
    if not text or any(ch.isspace() or ch in '"=' for ch in text):
        escaped = text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
        return f'"{escaped}"'
    return text


class StructuredFormatter(logging.Formatter):
    """Key=value structured log formatter with controller context."""

    CONTEXT_FIELDS = ("source_id", "attempt", "quality")

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as key=value pairs.

        Values containing whitespace, quotes or '=' are double-quoted so a
        line splits back into the same pairs.

        Args:
            record: Log record to format

        Returns:
            Structured log string
        """
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
        }

        for field in self.CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_data[field] = value

        log_data["message"] = record.getMessage()
        log_data["location"] = f"{record.module}.{record.funcName}:{record.lineno}"

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return " ".join(f"{k}={_format_value(v)}" for k, v in log_data.items())


def setup_logging(
    level: Optional[str] = None, stream: Optional[TextIO] = None
) -> logging.Handler:
    """Install the structured handler on the root logger.

    Replaces any handlers already on the root logger.

    Args:
        level: Level for forcebuffer loggers (defaults to config.log_level)
        stream: Output stream (defaults to stdout)

    Returns:
        The installed handler
    """
    level_name = (level or get_config().log_level).upper()
    numeric_level = logging.getLevelName(level_name)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setLevel(numeric_level)
    handler.setFormatter(StructuredFormatter(datefmt="%Y-%m-%dT%H:%M:%S"))
    root_logger.addHandler(handler)

    for name, library_level in LIBRARY_LEVELS.items():
        logging.getLogger(name).setLevel(library_level)
    logging.getLogger("forcebuffer").setLevel(numeric_level)

    return handler
