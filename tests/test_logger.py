"""Tests for logger.py: setup_logging() and JsonFormatter.

Strategy: Mock logging.basicConfig to verify setup_logging passes correct args,
since pytest's log capture plugin interferes with actual basicConfig calls.
"""

import json
import logging
import sys
from unittest.mock import patch

from markedspace.logger import JsonFormatter, setup_logging

# ---------------------------------------------------------------------------
# setup_logging tests
# ---------------------------------------------------------------------------


class TestSetupLogging:
    """Tests for setup_logging()."""

    @patch("markedspace.logger.logging.basicConfig")
    def test_logs_to_stderr(self, mock_basic):
        setup_logging()

        mock_basic.assert_called_once()
        kwargs = mock_basic.call_args[1]
        handlers = kwargs["handlers"]
        assert len(handlers) == 1
        assert handlers[0].stream is sys.stderr
        assert kwargs["force"] is True

    @patch("markedspace.logger.logging.basicConfig")
    def test_default_level_is_info(self, mock_basic):
        setup_logging()
        assert mock_basic.call_args[1]["level"] == logging.INFO

    @patch("markedspace.logger.logging.basicConfig")
    def test_config_level_used(self, mock_basic):
        setup_logging(level="warning")
        assert mock_basic.call_args[1]["level"] == logging.WARNING

    @patch("markedspace.logger.logging.basicConfig")
    def test_env_log_level_beats_config(self, mock_basic, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        setup_logging(level="WARNING")
        assert mock_basic.call_args[1]["level"] == logging.ERROR

    @patch("markedspace.logger.logging.basicConfig")
    def test_debug_beats_env(self, mock_basic, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        setup_logging(debug=True)
        assert mock_basic.call_args[1]["level"] == logging.DEBUG

    @patch("markedspace.logger.logging.basicConfig")
    def test_unknown_level_falls_back_to_info(self, mock_basic, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "CHATTY")
        setup_logging()
        assert mock_basic.call_args[1]["level"] == logging.INFO

    @patch("markedspace.logger.logging.basicConfig")
    def test_log_file_adds_handler(self, mock_basic, tmp_path):
        setup_logging(log_file=str(tmp_path / "markedspace.log"))

        handlers = mock_basic.call_args[1]["handlers"]
        file_handlers = [
            h for h in handlers if isinstance(h, logging.FileHandler)
        ]
        assert len(handlers) == 2
        assert len(file_handlers) == 1
        assert "%(name)s" in file_handlers[0].formatter._fmt
        for h in file_handlers:
            h.close()

    @patch("markedspace.logger.logging.basicConfig")
    def test_json_format_uses_json_formatter(self, mock_basic):
        setup_logging(debug_format="json")

        handlers = mock_basic.call_args[1]["handlers"]
        assert all(isinstance(h.formatter, JsonFormatter) for h in handlers)

    @patch("markedspace.logger.logging.basicConfig")
    def test_third_party_silenced(self, _mock_basic):
        setup_logging()
        assert logging.getLogger("charset_normalizer").level == logging.WARNING


# ---------------------------------------------------------------------------
# JsonFormatter tests
# ---------------------------------------------------------------------------


def _record(msg, args=(), exc_info=None, level=logging.INFO):
    return logging.LogRecord(
        name="markedspace.test",
        level=level,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=args,
        exc_info=exc_info,
    )


class TestJsonFormatter:
    def test_basic_output(self):
        formatter = JsonFormatter(datefmt="%Y-%m-%d %H:%M:%S")
        data = json.loads(formatter.format(_record("Hello %s", ("world",))))

        assert "ts" in data
        assert data["level"] == "INFO"
        assert data["logger"] == "markedspace.test"
        assert data["msg"] == "Hello world"
        assert "exc" not in data

    def test_includes_exception(self):
        formatter = JsonFormatter()
        try:
            raise ValueError("test error")
        except ValueError:
            exc_info = sys.exc_info()

        output = formatter.format(
            _record("failed", exc_info=exc_info, level=logging.ERROR)
        )
        data = json.loads(output)

        assert "\n" not in output
        assert "ValueError: test error" in data["exc"]
