"""Tests for logging setup."""

import json
import logging

from leasing_app.core.logging import JsonFormatter, get_logger, log_context, setup_logging


def test_json_formatter_merges_context() -> None:
    record = logging.LogRecord("leasing_app.test", logging.INFO, __file__, 1, "hello", None, None)
    record.extra = {"correlation_id": "abc", "agreement_id": "LA-1"}

    payload = json.loads(JsonFormatter().format(record))

    assert payload["message"] == "hello"
    assert payload["level"] == "INFO"
    assert payload["correlation_id"] == "abc"


def test_log_context_drops_empty_fields() -> None:
    assert log_context(correlation_id="abc", error=None) == {"extra": {"correlation_id": "abc"}}


def test_setup_logging_installs_single_handler() -> None:
    root = logging.getLogger()
    saved = root.handlers[:]
    try:
        setup_logging("DEBUG", "json")
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JsonFormatter)
        assert get_logger("leasing_app").level == logging.DEBUG
    finally:
        root.handlers[:] = saved
        root.setLevel(logging.WARNING)
        get_logger("leasing_app").setLevel(logging.NOTSET)
