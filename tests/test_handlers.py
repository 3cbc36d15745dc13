"""
Tests for the structured logging sinks and logging setup.
"""
import io
import logging

import orjson
import pytest

from vido_secrets.handlers import (
    ConsoleHandler,
    JSONHandler,
    extra_attributes,
    record_attributes,
)
from vido_secrets.logging_hardening import setup_logging
from vido_secrets.masking import MaskingHandler
from vido_secrets.vault.config import VaultConfig


@pytest.fixture
def logger():
    log = logging.getLogger("vido_secrets.tests.handlers")
    log.handlers.clear()
    log.propagate = False
    log.setLevel(logging.DEBUG)
    yield log
    log.handlers.clear()


class TestRecordAttributes:
    """Tests for extracting structured attributes."""

    def test_only_extra_fields(self, logger):
        """Test standard LogRecord fields are excluded."""
        captured = []

        class Capture(logging.Handler):
            def emit(self, record):
                captured.append(record_attributes(record))

        logger.addHandler(Capture())
        logger.info("hello %s", "world", extra={"b": 1, "a": 2})
        assert captured == [{"b": 1, "a": 2}]
        assert list(captured[0]) == ["b", "a"]

    def test_private_fields(self):
        """Test underscore fields are extra attributes but are not rendered."""
        record = logging.makeLogRecord({"msg": "x", "_hidden": 1, "shown": 2})
        assert extra_attributes(record) == {"_hidden": 1, "shown": 2}
        assert record_attributes(record) == {"shown": 2}


class TestJSONHandler:
    """Tests for JSON line output."""

    def test_renders_record(self, logger):
        """Test message, level and attributes are rendered."""
        stream = io.StringIO()
        logger.addHandler(JSONHandler(stream))
        logger.info("stored %d secrets", 3, extra={"entry": "tmdb", "count": 3})
        entry = orjson.loads(stream.getvalue())
        assert entry["msg"] == "stored 3 secrets"
        assert entry["level"] == "INFO"
        assert entry["logger"] == "vido_secrets.tests.handlers"
        assert entry["entry"] == "tmdb"
        assert entry["count"] == 3
        assert "time" in entry

    def test_unserializable_values_use_str(self, logger):
        """Test arbitrary objects fall back to str()."""
        stream = io.StringIO()
        logger.addHandler(JSONHandler(stream))
        logger.info("x", extra={"obj": object()})
        assert orjson.loads(stream.getvalue())["obj"].startswith("<object")

    def test_exception_rendered(self, logger):
        """Test exc_info is rendered as text."""
        stream = io.StringIO()
        logger.addHandler(JSONHandler(stream))
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            logger.exception("failed")
        entry = orjson.loads(stream.getvalue())
        assert "RuntimeError: boom" in entry["exc"]

    def test_with_attributes_returns_copy(self):
        """Test binding attributes leaves the original sink unchanged."""
        stream = io.StringIO()
        base = JSONHandler(stream)
        bound = base.with_attributes({"service": "vault"})
        assert bound is not base
        base.handle(logging.makeLogRecord({"msg": "plain"}))
        bound.handle(logging.makeLogRecord({"msg": "bound"}))
        first, second = [orjson.loads(line) for line in stream.getvalue().splitlines()]
        assert "service" not in first
        assert second["service"] == "vault"

    def test_empty_group_is_noop(self):
        """Test with_group('') returns the same sink."""
        handler = JSONHandler(io.StringIO())
        assert handler.with_group("") is handler

    def test_enabled(self):
        """Test enabled follows the handler level."""
        handler = JSONHandler(io.StringIO(), level="WARNING")
        assert handler.enabled(logging.ERROR)
        assert not handler.enabled(logging.INFO)


class TestConsoleHandler:
    """Tests for human-readable output."""

    def test_key_value_line(self, logger):
        """Test attributes render as key=value, groups as dotted keys."""
        stream = io.StringIO()
        logger.addHandler(ConsoleHandler(stream).with_group("req"))
        logger.info("hello", extra={"path": "/api"})
        line = stream.getvalue().strip()
        assert " INFO vido_secrets.tests.handlers hello " in line
        assert line.endswith("req.path=/api")


class TestSetupLogging:
    """Tests for installing the masking handler."""

    def test_installs_masking_handler(self):
        """Test a masking JSON handler is attached and masks values."""
        stream = io.StringIO()
        name = "vido_secrets.tests.setup"
        handler = setup_logging(VaultConfig(log_level="DEBUG"), stream, name)
        log = logging.getLogger(name)
        log.propagate = False
        try:
            assert isinstance(handler, MaskingHandler)
            assert isinstance(handler.inner, JSONHandler)
            log.info("configured", extra={"gemini_api_key": "AIza0123456789"})
            assert "AIza0123456789" not in stream.getvalue()
            assert "AIza****6789" in stream.getvalue()
        finally:
            log.handlers.clear()

    def test_idempotent(self):
        """Test calling twice keeps a single masking handler."""
        name = "vido_secrets.tests.setup_twice"
        config = VaultConfig(log_format="console")
        setup_logging(config, io.StringIO(), name)
        second = setup_logging(config, io.StringIO(), name)
        log = logging.getLogger(name)
        try:
            assert log.handlers == [second]
            assert isinstance(second.inner, ConsoleHandler)
        finally:
            log.handlers.clear()
