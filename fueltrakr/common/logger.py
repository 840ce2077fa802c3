"""
Fueltrakr — Structured JSON Logger

One JSON object per line. Context passed as ``extra={"context": {...}}``
(vin, source, kind, payload ...) is merged into the top level of the
entry so log pipelines can filter on it directly.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

_RESERVED = frozenset({"timestamp", "level", "service", "logger", "message", "traceback"})


class StructuredJsonFormatter(logging.Formatter):
    def __init__(self, service: str = "fueltrakr") -> None:
        super().__init__()
        self._service = service

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "service": self._service,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = getattr(record, "context", None)
        if isinstance(context, dict):
            for key, value in context.items():
                # never let context clobber the envelope
                entry[key if key not in _RESERVED else f"ctx_{key}"] = value

        if record.exc_info and record.exc_info[1]:
            entry["traceback"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def _json_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredJsonFormatter())
    return handler


def get_logger(name: str, level: str = "INFO") -> logging.Logger:
    """
    Logger with its own JSON handler, for modules that may run outside the
    proxy process (the edge sampler and classifiers).

        logger = get_logger(__name__, settings.log_level.value)
        logger.info("Scan candidate accepted", extra={"context": {"kind": "VIN"}})
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.addHandler(_json_handler())
        logger.propagate = False
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    return logger


def configure_logging(level: str = "INFO") -> None:
    """Route every module logger (and uvicorn's) through the JSON formatter."""
    root = logging.getLogger()
    root.handlers[:] = [_json_handler()]
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
