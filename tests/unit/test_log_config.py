"""
Unit tests for log formatting and configuration.
"""

import json
import logging
import sys

import pytest

from targetgroup_sidecar.log_config import JsonFormatter, TextFormatter, configure_logging


def make_record(message: str = "Registered instance", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="targetgroup_sidecar.coordinator",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def restore_root_logger():
    """Put the root logger back the way pytest configured it."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


class TestTextFormatter:
    """Tests for TextFormatter."""

    def test_appends_extra_fields(self):
        line = TextFormatter().format(
            make_record(instance_id="i-abc", target_group_id="tg-1")
        )

        assert "INFO [targetgroup_sidecar.coordinator] Registered instance" in line
        assert line.endswith("instance_id=i-abc target_group_id=tg-1")

    def test_without_extra(self):
        line = TextFormatter().format(make_record())
        assert line.endswith("Registered instance")


class TestJsonFormatter:
    """Tests for JsonFormatter."""

    def test_one_object_per_record(self):
        payload = json.loads(
            JsonFormatter().format(make_record(instance_id="i-abc", failed=["tg-2"]))
        )

        assert payload["level"] == "INFO"
        assert payload["logger"] == "targetgroup_sidecar.coordinator"
        assert payload["message"] == "Registered instance"
        assert payload["instance_id"] == "i-abc"
        assert payload["failed"] == ["tg-2"]
        assert "time" in payload

    def test_exception_info(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = make_record()
            record.exc_info = sys.exc_info()

        payload = json.loads(JsonFormatter().format(record))
        assert "RuntimeError: boom" in payload["exc_info"]


class TestConfigureLogging:
    """Tests for configure_logging."""

    @pytest.mark.parametrize(
        ("fmt", "formatter_class"),
        [("text", TextFormatter), ("json", JsonFormatter)],
    )
    def test_installs_handler(self, restore_root_logger, fmt, formatter_class):
        configure_logging("debug", fmt)

        assert restore_root_logger.level == logging.DEBUG
        assert len(restore_root_logger.handlers) == 1
        assert isinstance(restore_root_logger.handlers[0].formatter, formatter_class)

    def test_unknown_level(self):
        with pytest.raises(ValueError, match="Unknown log level"):
            configure_logging("LOUD")

    def test_unknown_format(self):
        with pytest.raises(ValueError, match="Unknown log format"):
            configure_logging("INFO", "xml")
