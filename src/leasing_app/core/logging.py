"""Structured logging configuration for the leasing engine."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def setup_logging(level: str = "INFO", format_type: str = "standard") -> None:
    """Configure the root logger with a single stderr handler.

    Parameters
    ----------
    level : str
        Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    format_type : str
        Format type: "standard" or "json".
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    if format_type == "json":
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(fmt=TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # stdout carries CLI JSON output
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    logging.getLogger("leasing_app").setLevel(log_level)


class JsonFormatter(logging.Formatter):
    """JSON log formatter; merges ``extra={"extra": {...}}`` fields into the record."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra"):
            log_data.update(record.extra)

        return json.dumps(log_data, default=str)


def get_logger(name: str) -> logging.Logger:
    """Return the named logger (usually ``__name__``)."""
    return logging.getLogger(name)


def log_context(**fields: Any) -> dict[str, dict[str, Any]]:
    """Build the ``extra`` mapping for a structured log call."""
    return {"extra": {key: value for key, value in fields.items() if value is not None}}
