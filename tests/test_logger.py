"""Tests for logger.py: setup_logging() and JsonFormatter.

Strategy: Mock logging.basicConfig to verify setup_logging passes correct args,
since pytest's log capture plugin interferes with actual basicConfig calls.
"""

import json
import logging
import sys
from unittest.mock import patch

import pytest

from oddmuse_sync.logger import DEFAULT_LOG_FILE, JsonFormatter, setup_logging


@pytest.fixture(autouse=True)
def _no_env(monkeypatch):
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.delenv("LOG_FILE", raising=False)


class TestSetupLogging:
    """Tests for setup_logging()."""

    @patch("oddmuse_sync.logger.logging.basicConfig")
    def test_cli_mode_logs_to_stderr(self, mock_basic):
        setup_logging(mode="cli")

        handlers = mock_basic.call_args[1]["handlers"]
        assert isinstance(handlers[0], logging.StreamHandler)
        assert handlers[0].stream is sys.stderr

    @patch("oddmuse_sync.logger.logging.basicConfig")
    def test_mcp_mode_logs_to_file(self, mock_basic, tmp_path):
        log_file = str(tmp_path / "mcp.log")
        setup_logging(mode="mcp", log_file=log_file)
        assert mock_basic.call_args[1]["filename"] == log_file

    @patch("oddmuse_sync.logger.logging.basicConfig")
    def test_mcp_mode_default_log_file(self, mock_basic):
        setup_logging(mode="mcp")
        assert mock_basic.call_args[1]["filename"] == DEFAULT_LOG_FILE

    @patch("oddmuse_sync.logger.logging.basicConfig")
    def test_mcp_default_level_is_warning(self, mock_basic):
        setup_logging(mode="mcp")
        assert mock_basic.call_args[1]["level"] == logging.WARNING

    @patch("oddmuse_sync.logger.logging.basicConfig")
    def test_cli_default_level_is_info(self, mock_basic):
        setup_logging(mode="cli")
        assert mock_basic.call_args[1]["level"] == logging.INFO

    @patch("oddmuse_sync.logger.logging.basicConfig")
    def test_config_level_used(self, mock_basic):
        setup_logging(mode="mcp", level="error")
        assert mock_basic.call_args[1]["level"] == logging.ERROR

    @patch("oddmuse_sync.logger.logging.basicConfig")
    def test_env_level_beats_config_level(self, mock_basic, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        setup_logging(mode="mcp", level="ERROR")
        assert mock_basic.call_args[1]["level"] == logging.DEBUG

    @patch("oddmuse_sync.logger.logging.basicConfig")
    def test_debug_beats_env(self, mock_basic, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        setup_logging(mode="cli", debug=True)
        assert mock_basic.call_args[1]["level"] == logging.DEBUG

    @patch("oddmuse_sync.logger.logging.basicConfig")
    def test_cli_mode_with_log_file(self, mock_basic, tmp_path):
        setup_logging(mode="cli", log_file=str(tmp_path / "cli.log"))

        handlers = mock_basic.call_args[1]["handlers"]
        file_handlers = [
            h for h in handlers if isinstance(h, logging.FileHandler)
        ]
        assert len(handlers) == 2
        assert len(file_handlers) == 1
        for h in file_handlers:
            h.close()

    @patch("oddmuse_sync.logger.logging.basicConfig")
    def test_json_format(self, mock_basic):
        setup_logging(mode="cli", debug_format="json")
        handlers = mock_basic.call_args[1]["handlers"]
        assert isinstance(handlers[0].formatter, JsonFormatter)

    @patch("oddmuse_sync.logger.logging.basicConfig")
    def test_sdk_loggers_silenced(self, _mock_basic):
        setup_logging(mode="mcp")
        assert logging.getLogger("mcp").level == logging.WARNING
        assert logging.getLogger("anyio").level == logging.WARNING


class TestJsonFormatter:
    def test_basic_output(self):
        formatter = JsonFormatter(datefmt="%Y-%m-%d %H:%M:%S")
        record = logging.LogRecord(
            name="oddmuse_sync.sync.engine",
            level=logging.INFO,
            pathname="engine.py",
            lineno=1,
            msg="Loaded %s at revision %s",
            args=("Alex:Contact", "59"),
            exc_info=None,
        )

        data = json.loads(formatter.format(record))

        assert data["level"] == "INFO"
        assert data["logger"] == "oddmuse_sync.sync.engine"
        assert data["msg"] == "Loaded Alex:Contact at revision 59"
        assert "exc" not in data
        assert "wiki" not in data

    def test_page_context(self):
        formatter = JsonFormatter()
        record = logging.LogRecord(
            name="oddmuse_sync.sync.engine",
            level=logging.INFO,
            pathname="engine.py",
            lineno=1,
            msg="Posted",
            args=(),
            exc_info=None,
        )
        record.wiki = "Alex"
        record.page = "Contact"
        record.revision = "60"

        data = json.loads(formatter.format(record))

        assert (data["wiki"], data["page"], data["revision"]) == (
            "Alex",
            "Contact",
            "60",
        )

    def test_includes_exception(self):
        formatter = JsonFormatter()
        try:
            raise ValueError("bad template")
        except ValueError:
            exc_info = sys.exc_info()

        record = logging.LogRecord(
            name="test",
            level=logging.ERROR,
            pathname="test.py",
            lineno=1,
            msg="failed",
            args=(),
            exc_info=exc_info,
        )
        data = json.loads(formatter.format(record))
        assert "bad template" in data["exc"]
