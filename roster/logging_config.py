"""Logging setup for the roster backend.

JSON output (python-json-logger) by default, plain text for local debugging.
"""
from __future__ import annotations

import logging
import sys

from pythonjsonlogger.json import JsonFormatter

from .config import settings

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


class RosterJsonFormatter(JsonFormatter):
    """JSON formatter with a stable level and component field."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)

        if log_record.get("levelname"):
            log_record["level"] = log_record.pop("levelname").upper()
        else:
            log_record["level"] = record.levelname

        log_record["component"] = "roster"


def _build_formatter(fmt: str) -> logging.Formatter:
    if fmt == "json":
        return RosterJsonFormatter(JSON_FORMAT)
    return logging.Formatter(fmt=TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")


def setup_logging(level: str | None = None, fmt: str | None = None) -> None:
    """Configure the root logger from LoggingSettings.

    Args:
        level: Override for the configured level (DEBUG, INFO, ...)
        fmt: Override for the configured format ("json" or "text")
    """
    level = (level or settings.logging.level).upper()
    fmt = fmt or settings.logging.format
    log_level = getattr(logging, level, logging.INFO)

    formatter = _build_formatter(fmt)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if settings.logging.file:
        handlers.append(logging.FileHandler(settings.logging.file, encoding="utf-8"))

    for handler in handlers:
        handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers = []
    root.setLevel(log_level)
    for handler in handlers:
        root.addHandler(handler)

    logging.getLogger("uvicorn").setLevel(log_level)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    logging.getLogger(__name__).info(f"Logging configured at {level} level ({fmt})")
