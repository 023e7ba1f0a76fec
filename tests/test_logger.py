"""Tests for bcup.logger module."""

import json
import logging
import os
from unittest import mock

import pytest

from bcup.logger import (
    Logger,
    StructuredLogger,
    create_logger,
    get_logger,
)
from bcup.logger import _get_env_prefix


class TestLoggerInterface:
    """Tests for the Logger abstract interface."""

    def test_logger_is_abstract(self):
        """Test that Logger cannot be instantiated directly."""
        with pytest.raises(TypeError):
            Logger()  # type: ignore

    def test_logger_has_required_methods(self):
        """Test that Logger defines all required abstract methods."""
        for method in ("debug", "info", "warning", "error", "get_session_id"):
            assert hasattr(Logger, method)


class TestStructuredLogger:
    """Tests for the StructuredLogger implementation."""

    def test_structured_logger_creates_session_id(self):
        """Test that StructuredLogger creates a short session ID."""
        logger = StructuredLogger(name="test-structured")
        assert len(logger.get_session_id()) == 8

    def test_different_instances_have_different_session_ids(self):
        """Test that each logger gets its own session ID."""
        assert (
            StructuredLogger(name="test-a").get_session_id()
            != StructuredLogger(name="test-b").get_session_id()
        )

    def test_structured_logger_text_format(self, capsys):
        """Test that StructuredLogger outputs text format by default."""
        logger = StructuredLogger(name="test-text", json_format=False)
        logger.info("Test message")

        captured = capsys.readouterr()
        assert "INFO" in captured.out
        assert "Test message" in captured.out
        assert "test-text" in captured.out
        assert f"session:{logger.get_session_id()}" in captured.out

    def test_structured_logger_json_format(self, capsys):
        """Test that StructuredLogger can output JSON format."""
        logger = StructuredLogger(name="test-json", json_format=True)
        logger.info("Test message")

        log_entry = json.loads(capsys.readouterr().out.strip())
        assert log_entry["level"] == "INFO"
        assert log_entry["message"] == "Test message"
        assert log_entry["logger"] == "test-json"
        assert log_entry["session_id"] == logger.get_session_id()

    def test_structured_logger_json_includes_extras(self, capsys):
        """Test that JSON format includes extra kwargs."""
        logger = StructuredLogger(name="test-json-extras", json_format=True)
        logger.info("Backup saved", file="parts_2024-01-01_00-00-00.json.gz", documents=3)

        log_entry = json.loads(capsys.readouterr().out.strip())
        assert log_entry["file"] == "parts_2024-01-01_00-00-00.json.gz"
        assert log_entry["documents"] == 3

    def test_structured_logger_text_includes_extras(self, capsys):
        """Test that text format includes extra kwargs."""
        logger = StructuredLogger(name="test-text-extras", json_format=False)
        logger.info("Test message", collection="orders")

        assert "collection=orders" in capsys.readouterr().out

    def test_structured_logger_file_output(self, tmp_path):
        """Test that StructuredLogger can write to a file."""
        log_file = tmp_path / "bcup.log"
        logger = StructuredLogger(name="test-file", log_file=str(log_file))
        logger.info("File test message")

        for handler in logger._logger.handlers:
            handler.flush()

        assert "File test message" in log_file.read_text()

    def test_structured_logger_unwritable_file_falls_back(self, tmp_path, capsys):
        """Test that an unopenable log file leaves console logging working."""
        logger = StructuredLogger(
            name="test-bad-file", log_file=str(tmp_path / "missing" / "x.log")
        )
        logger.info("Still logged")

        captured = capsys.readouterr()
        assert "Still logged" in captured.out
        assert "Failed to setup log file" in captured.err

    def test_structured_logger_all_levels(self, capsys):
        """Test that all log levels work with StructuredLogger."""
        logger = StructuredLogger(name="test-levels", level=logging.DEBUG)

        logger.debug("Debug message")
        logger.info("Info message")
        logger.warning("Warning message")
        logger.error("Error message")

        out = capsys.readouterr().out
        for level in ("DEBUG", "INFO", "WARNING", "ERROR"):
            assert level in out

    def test_structured_logger_handles_reserved_kwargs(self, capsys):
        """Test that reserved kwargs are prefixed to avoid conflicts."""
        logger = StructuredLogger(name="test-reserved", json_format=True)
        logger.info("Test", name="should be prefixed")

        log_entry = json.loads(capsys.readouterr().out.strip())
        assert "_name" in log_entry

    def test_reinitialising_does_not_duplicate_handlers(self, capsys):
        """Test that creating the same logger twice logs each message once."""
        StructuredLogger(name="test-dupe")
        logger = StructuredLogger(name="test-dupe")
        logger.info("Only once")

        assert capsys.readouterr().out.count("Only once") == 1


class TestLoggerFactoryFunctions:
    """Tests for create_logger and get_logger factory functions."""

    def test_create_logger_returns_logger(self):
        """Test that create_logger returns a Logger instance."""
        assert isinstance(create_logger(name="test-factory"), Logger)

    def test_create_logger_respects_level(self, capsys):
        """Test that create_logger respects the level parameter."""
        logger = create_logger(name="test-level-factory", level=logging.WARNING)
        logger.info("Should not appear")
        logger.warning("Should appear")

        captured = capsys.readouterr()
        assert "Should not appear" not in captured.out
        assert "Should appear" in captured.out

    def test_create_logger_respects_json_format(self, capsys):
        """Test that create_logger respects the json_format parameter."""
        logger = create_logger(name="test-json-factory", json_format=True)
        logger.info("JSON test")

        assert json.loads(capsys.readouterr().out.strip())["message"] == "JSON test"

    def test_get_logger_reads_env_level(self, capsys):
        """Test that get_logger reads the level from {PREFIX}_LOG_LEVEL."""
        with mock.patch.dict(os.environ, {"BCUP_LOG_LEVEL": "WARNING"}):
            logger = get_logger("bcup-level")
            logger.info("Should not appear")
            logger.warning("Should appear")

        captured = capsys.readouterr()
        assert "Should not appear" not in captured.out
        assert "Should appear" in captured.out

    def test_get_logger_reads_env_json(self, capsys):
        """Test that get_logger reads JSON format from environment."""
        with mock.patch.dict(os.environ, {"BCUP_LOG_JSON": "true"}):
            logger = get_logger("bcup-json")
            logger.info("JSON env test")

        assert json.loads(capsys.readouterr().out.strip())["message"] == "JSON env test"

    def test_get_logger_reads_env_format(self, capsys):
        """Test that {PREFIX}_LOG_FORMAT=json also selects JSON output."""
        with mock.patch.dict(os.environ, {"BCUP_LOG_FORMAT": "json"}):
            logger = get_logger("bcup-format")
            logger.info("Format env test")

        assert json.loads(capsys.readouterr().out.strip())["message"] == "Format env test"

    def test_env_prefix_conversion(self):
        """Test that logger names map to the first name segment."""
        assert _get_env_prefix("bcup") == "BCUP"
        assert _get_env_prefix("bcup-web") == "BCUP"
        assert _get_env_prefix("bcup-storage") == "BCUP"

    def test_default_level_is_info(self, capsys):
        """Test that default log level is INFO."""
        with mock.patch.dict(os.environ, {}, clear=True):
            logger = get_logger("bcup-default-level")
        logger.debug("Debug should not appear")
        logger.info("Info should appear")

        captured = capsys.readouterr()
        assert "Debug should not appear" not in captured.out
        assert "Info should appear" in captured.out
