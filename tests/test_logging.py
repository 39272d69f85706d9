# tests/test_logging.py
"""
Test structured logging output.
"""

import json
import logging

from offboarding.logging import StructuredLogFormatter, get_logger


def make_record(log_level=logging.INFO, **fields) -> logging.LogRecord:
    record = logging.LogRecord(
        "offboarding.approvals.engine", log_level, __file__, 10, "approval_recorded", None, None
    )
    record.structured_data = fields
    return record


class TestStructuredLogger:
    """Tests for the keyword-field logger."""

    def test_any_field_name_is_accepted(self, caplog):
        logger = get_logger("offboarding.tests")

        with caplog.at_level(logging.INFO, logger="offboarding.tests"):
            logger.info("approval_recorded", level=2, message_id="m1", exc_info=False)

        record = caplog.records[-1]
        assert record.levelno == logging.INFO
        assert record.getMessage() == "approval_recorded"
        assert record.structured_data == {"level": 2, "message_id": "m1"}

    def test_exception_includes_traceback(self, caplog):
        logger = get_logger("offboarding.tests")

        with caplog.at_level(logging.ERROR, logger="offboarding.tests"):
            try:
                raise RuntimeError("boom")
            except RuntimeError:
                logger.exception("listener_failed", request_id="r1")

        record = caplog.records[-1]
        assert record.exc_info is not None
        assert record.structured_data == {"request_id": "r1"}


class TestStructuredLogFormatter:
    """Tests for the JSON line format."""

    def test_fields_are_merged(self):
        line = json.loads(StructuredLogFormatter().format(make_record(request_id="r1", approvals=2)))

        assert line["level"] == "INFO"
        assert line["message"] == "approval_recorded"
        assert line["logger"] == "offboarding.approvals.engine"
        assert line["request_id"] == "r1"
        assert line["approvals"] == 2
        assert "fields" not in line

    def test_core_keys_are_not_overwritten(self):
        line = json.loads(StructuredLogFormatter().format(make_record(level=2, logger="x")))

        assert line["level"] == "INFO"
        assert line["logger"] == "offboarding.approvals.engine"
        assert line["fields"] == {"level": 2, "logger": "x"}

    def test_errors_carry_source_location(self):
        line = json.loads(StructuredLogFormatter().format(make_record(logging.ERROR)))

        assert line["level"] == "ERROR"
        assert line["source"]["line"] == 10
