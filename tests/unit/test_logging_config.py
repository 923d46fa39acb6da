"""Tests for structured log formatting and setup."""

import io
import logging

import pytest

from forcebuffer.logging_config import StructuredFormatter, setup_logging


def make_record(message, **extra):
    record = logging.LogRecord(
        name="forcebuffer.controller",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg=message,
        args=(),
        exc_info=None,
        func="tick",
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers = root.handlers[:]
    root_level = root.level
    package_level = logging.getLogger("forcebuffer").level
    yield
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(root_level)
    logging.getLogger("forcebuffer").setLevel(package_level)


class TestStructuredFormatter:
    def setup_method(self):
        self.formatter = StructuredFormatter()

    def test_context_fields_included(self):
        line = self.formatter.format(
            make_record("Seek", source_id="tab-1", attempt=3, quality="720p")
        )
        assert "source_id=tab-1" in line
        assert "attempt=3" in line
        assert "quality=720p" in line
        assert "level=INFO" in line

    def test_missing_context_fields_omitted(self):
        line = self.formatter.format(make_record("Seek", quality=None))
        assert "quality=" not in line
        assert "source_id=" not in line

    def test_values_with_spaces_are_quoted(self):
        line = self.formatter.format(make_record('Source bound (720p) "main"'))
        assert 'message="Source bound (720p) \\"main\\""' in line

    def test_location(self):
        line = self.formatter.format(make_record("Seek"))
        assert "location=test_logging_config.tick:10" in line


class TestSetupLogging:
    def test_explicit_level_and_stream(self, restore_logging):
        stream = io.StringIO()
        handler = setup_logging(level="warning", stream=stream)

        assert handler.level == logging.WARNING
        assert logging.getLogger("forcebuffer").level == logging.WARNING
        assert logging.getLogger("uvicorn.access").level == logging.WARNING

        logging.getLogger("forcebuffer.test").info("hidden")
        logging.getLogger("forcebuffer.test").warning("shown", extra={"source_id": "tab-9"})
        output = stream.getvalue()
        assert "hidden" not in output
        assert "message=shown" in output
        assert "source_id=tab-9" in output

    def test_replaces_existing_handlers(self, restore_logging):
        setup_logging(level="INFO", stream=io.StringIO())
        handler = setup_logging(level="INFO", stream=io.StringIO())
        assert logging.getLogger().handlers == [handler]

    def test_unknown_level_rejected(self, restore_logging):
        with pytest.raises(ValueError):
            setup_logging(level="LOUD", stream=io.StringIO())
