"""
Unit tests for the JSON log formatter used by the production log files.
"""

import json
import logging

from core.log_formatters import json_formatter


def make_record(message, **extra):
    return logging.makeLogRecord(
        {
            "name": "budget.services.category_service",
            "levelno": logging.WARNING,
            "levelname": "WARNING",
            "msg": message,
            **extra,
        }
    )


def test_quotes_and_newlines_stay_on_one_valid_line():
    line = json_formatter().format(make_record('Category "Food"\nrenamed'))

    assert "\n" not in line
    entry = json.loads(line)
    assert entry["message"] == 'Category "Food"\nrenamed'
    assert entry["level"] == "warning"
    assert entry["logger"] == "budget.services.category_service"
    assert "time" in entry


def test_extra_context_becomes_fields():
    record = make_record("Category renamed", action="category_renamed", space_id=7)

    entry = json.loads(json_formatter().format(record))

    assert entry["action"] == "category_renamed"
    assert entry["space_id"] == 7


def test_traceback_is_embedded():
    try:
        raise ValueError("boom")
    except ValueError as e:
        record = make_record("Service operation failed", exc_info=(type(e), e, e.__traceback__))

    line = json_formatter().format(record)

    assert "\n" not in line
    assert "ValueError: boom" in json.loads(line)["exception"]
