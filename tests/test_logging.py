"""Tests for mailspool.logging."""

from __future__ import annotations

import json
import logging

import structlog

from mailspool.logging import setup_logging


class TestSetupLogging:
    def test_json_mode(self):
        setup_logging(json=True, level="INFO")
        root = logging.getLogger()
        assert root.level == logging.INFO
        assert len(root.handlers) == 1

    def test_console_mode(self):
        setup_logging(json=False, level="DEBUG")
        assert logging.getLogger().level == logging.DEBUG

    def test_level_case_insensitive(self):
        setup_logging(level="warning")
        assert logging.getLogger().level == logging.WARNING

    def test_replaces_existing_handlers(self):
        root = logging.getLogger()
        root.addHandler(logging.StreamHandler())
        root.addHandler(logging.StreamHandler())
        setup_logging()
        assert len(root.handlers) == 1

    def test_access_log_quietened(self):
        setup_logging(level="DEBUG")
        assert logging.getLogger("uvicorn.access").level == logging.WARNING

    def test_service_bound_into_json_events(self, capsys):
        setup_logging(json=True, level="INFO", service="spool-test")
        structlog.get_logger("test_logger").info("test_event", key="value")
        lines = [line for line in capsys.readouterr().out.splitlines() if "test_event" in line]
        assert lines
        event = json.loads(lines[-1])
        assert event["service"] == "spool-test"
        assert event["key"] == "value"
        assert event["level"] == "info"

    def test_stdlib_records_rendered(self, capsys):
        setup_logging(json=True, level="INFO")
        logging.getLogger("plain").warning("from stdlib")
        out = capsys.readouterr().out
        assert "from stdlib" in out
