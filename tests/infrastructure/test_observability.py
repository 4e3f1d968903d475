"""Tests for the JSON log formatter — structured extra fields survive formatting."""

import json
import logging

from education_lifecycle.infrastructure.observability import (
    JSONFormatter, OperationTextFormatter, setup_logging,
)


def make_record(msg="Education category updated", **extra):
    record = logging.LogRecord(
        "education_lifecycle.services.category_sweep", logging.INFO,
        __file__, 1, msg, None, None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_extra_fields_are_emitted():
    out = json.loads(JSONFormatter().format(make_record(
        operation_id="manual-category-update-1-ab", record_id="e1",
        old_category="student", new_category="new_graduated",
    )))
    assert out["message"] == "Education category updated"
    assert out["operation_id"] == "manual-category-update-1-ab"
    assert out["old_category"] == "student"
    assert out["new_category"] == "new_graduated"


def test_unknown_and_none_extras_are_left_out():
    out = json.loads(JSONFormatter().format(make_record(record_id=None, secret="x")))
    assert "record_id" not in out
    assert "secret" not in out


def test_stats_dict_is_nested_json():
    out = json.loads(JSONFormatter().format(make_record(stats={"errors": 2})))
    assert out["stats"] == {"errors": 2}


def test_text_format_tags_lines_with_the_operation_id():
    line = OperationTextFormatter().format(make_record(operation_id="daily-category-check-1-ab"))
    assert "[daily-category-check-1-ab] Education category updated" in line

    untagged = OperationTextFormatter().format(make_record())
    assert "[" not in untagged


def test_setup_logging_is_idempotent_and_quiets_library_loggers():
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        setup_logging("INFO", "json")
        setup_logging("INFO", "text")

        added = [h for h in root.handlers if h not in saved_handlers]
        assert len(added) == 1
        assert isinstance(added[0].formatter, OperationTextFormatter)
        assert logging.getLogger("apscheduler").level == logging.WARNING
        assert logging.getLogger("httpx").level == logging.WARNING
    finally:
        for h in root.handlers[:]:
            if h not in saved_handlers:
                root.removeHandler(h)
        root.setLevel(saved_level)
