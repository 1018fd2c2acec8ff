"""Tests for agentbox structured logging."""

import json
import logging
import sys

from agentbox.logging import AgentboxFormatter, configure_logging, get_logger


def _record(msg="hello", **extra):
    record = logging.LogRecord(
        name="agentbox.test",
        level=logging.INFO,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestFormatter:
    def test_human_readable(self):
        output = AgentboxFormatter().format(_record("Tool call completed", tool_name="weather"))
        assert "INFO" in output
        assert "agentbox.test: Tool call completed" in output
        assert "tool_name=weather" in output

    def test_json_output(self):
        formatter = AgentboxFormatter(json_output=True)
        data = json.loads(formatter.format(_record(thread_id="t-1", iteration=2)))
        assert data["message"] == "hello"
        assert data["level"] == "INFO"
        assert data["thread_id"] == "t-1"
        assert data["iteration"] == 2
        assert "timestamp" in data

    def test_unknown_extras_ignored(self):
        formatter = AgentboxFormatter(json_output=True)
        data = json.loads(formatter.format(_record(secret="x")))
        assert "secret" not in data

    def test_exception_included(self):
        try:
            raise ValueError("bad")
        except ValueError:
            record = _record()
            record.exc_info = sys.exc_info()

        data = json.loads(AgentboxFormatter(json_output=True).format(record))
        assert "ValueError: bad" in data["exception"]


class TestConfigure:
    def test_configure_sets_level_and_handler(self):
        configure_logging(level="DEBUG", json_output=True)
        root = logging.getLogger("agentbox")
        try:
            assert root.level == logging.DEBUG
            assert len(root.handlers) == 1
            assert isinstance(root.handlers[0].formatter, AgentboxFormatter)
            assert root.propagate is False
        finally:
            configure_logging()

    def test_get_logger_namespace(self):
        assert get_logger("agentbox.sandbox").name == "agentbox.sandbox"
        assert get_logger().name == "agentbox"
