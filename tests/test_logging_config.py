"""Tests for structured logging configuration."""

from __future__ import annotations

import json
import logging
import sys

import pytest

from core.logging_config import JSONFormatter, get_logger, log_context, setup_logging


def _record(msg="hello %s", args=("world",), level=logging.INFO, exc_info=None):
    return logging.LogRecord(
        name="test", level=level, pathname="test.py",
        lineno=1, msg=msg, args=args, exc_info=exc_info
    )


@pytest.fixture
def bare_root():
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    root.handlers.clear()
    yield root
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)


def test_json_formatter_outputs_valid_json():
    parsed = json.loads(JSONFormatter().format(_record()))
    assert parsed["event"] == "hello world"
    assert parsed["level"] == "INFO"
    assert parsed["logger"] == "test"
    assert "timestamp" in parsed
    assert "context" not in parsed
    assert "source" not in parsed


def test_json_formatter_includes_exception():
    try:
        raise ValueError("test error")
    except ValueError:
        exc_info = sys.exc_info()
    parsed = json.loads(JSONFormatter().format(_record(msg="fail", args=(), level=logging.ERROR, exc_info=exc_info)))
    assert parsed["exception"]["type"] == "ValueError"
    assert parsed["exception"]["message"] == "test error"
    assert parsed["source"] == "test:1"


def test_json_formatter_groups_context_fields():
    record = _record(msg="block_dates_edited", args=())
    for key, value in log_context(block=1, weeks=4).items():
        setattr(record, key, value)
    parsed = json.loads(JSONFormatter().format(record))
    assert parsed["context"] == {"block": 1, "weeks": 4}


def test_log_context_prefixes_keys():
    assert log_context(routine="lifting", cleared=2) == {"ctx_routine": "lifting", "ctx_cleared": 2}
    assert log_context() == {}


def test_get_logger_returns_named_logger():
    log = get_logger("my.module")
    assert log.name == "my.module"
    assert isinstance(log, logging.Logger)


def test_setup_logging_idempotent(bare_root):
    setup_logging()
    setup_logging()
    assert len(bare_root.handlers) == 1
    assert isinstance(bare_root.handlers[0].formatter, JSONFormatter)


def test_setup_logging_replace_swaps_formatter(bare_root):
    setup_logging("DEBUG")
    custom = logging.Formatter("%(message)s")
    setup_logging("WARNING", formatter=custom, replace=True)
    assert len(bare_root.handlers) == 1
    assert bare_root.handlers[0].formatter is custom
    assert bare_root.level == logging.WARNING
