"""
Tests — Structured JSON Logger
"""

import json
import logging
import sys

from fueltrakr.common.logger import StructuredJsonFormatter, get_logger


def _record(msg: str, context=None, exc_info=None) -> logging.LogRecord:
    record = logging.LogRecord("fueltrakr.test", logging.INFO, __file__, 1, msg, None, exc_info)
    if context is not None:
        record.context = context
    return record


def test_entry_is_single_line_json():
    line = StructuredJsonFormatter().format(_record("Scan candidate accepted"))
    entry = json.loads(line)
    assert "\n" not in line
    assert entry["message"] == "Scan candidate accepted"
    assert entry["level"] == "INFO"
    assert entry["service"] == "fueltrakr"
    assert entry["logger"] == "fueltrakr.test"


def test_context_is_merged_without_clobbering_envelope():
    entry = json.loads(
        StructuredJsonFormatter().format(
            _record("hello", context={"kind": "VIN", "message": "sneaky"})
        )
    )
    assert entry["kind"] == "VIN"
    assert entry["message"] == "hello"
    assert entry["ctx_message"] == "sneaky"


def test_traceback_included():
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        entry = json.loads(StructuredJsonFormatter().format(_record("failed", exc_info=sys.exc_info())))
    assert "RuntimeError: boom" in entry["traceback"]


def test_get_logger_attaches_one_handler():
    first = get_logger("fueltrakr.test.handlers", "DEBUG")
    second = get_logger("fueltrakr.test.handlers", "WARNING")
    assert first is second
    assert len(second.handlers) == 1
    assert second.level == logging.WARNING
