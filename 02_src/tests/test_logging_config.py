"""Tests for structured logging."""

import json
import logging

from dialogue_core.logging_config import JSONFormatter, get_logger, setup_logging


def make_record(**extra):
    record = logging.LogRecord(
        name="dialogue_core.test",
        level=logging.WARNING,
        pathname=__file__,
        lineno=10,
        msg="Dropping dialogue request %s",
        args=(3,),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_format_basic_fields(self):
        """Test that records render as one JSON object."""
        data = json.loads(JSONFormatter().format(make_record()))

        assert data["level"] == "WARNING"
        assert data["logger"] == "dialogue_core.test"
        assert data["message"] == "Dropping dialogue request 3"
        assert "timestamp" in data

    def test_format_context_and_task(self):
        """Test that context extras and task names are included."""
        record = make_record(context={"request_id": 3}, taskName="dialogue-request-3")

        data = json.loads(JSONFormatter().format(record))

        assert data["context"] == {"request_id": 3}
        assert data["task"] == "dialogue-request-3"


class TestSetupLogging:
    """Tests for setup_logging()."""

    def test_writes_json_lines_to_file(self, tmp_path):
        """Test that the file handler receives JSON records."""
        log_file = tmp_path / "logs" / "app.log"
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            setup_logging(log_level="DEBUG", log_file=str(log_file), console=False)
            get_logger("dialogue_core.test").info("hello %s", "world")
            for handler in root.handlers:
                handler.flush()
        finally:
            for handler in root.handlers:
                if handler not in saved_handlers:
                    handler.close()
            root.handlers = saved_handlers
            root.setLevel(saved_level)

        lines = log_file.read_text(encoding="utf-8").splitlines()
        assert json.loads(lines[-1])["message"] == "hello world"
