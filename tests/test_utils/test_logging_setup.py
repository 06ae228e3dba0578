"""Tests for root logger configuration."""

from __future__ import annotations

import json
import logging

import pytest

from sponsorwall.config import LoggingConfig
from sponsorwall.utils.logging import _JsonFormatter, configure_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestConfigureLogging:
    def test_level_from_config(self):
        configure_logging(LoggingConfig(level="WARNING"))
        assert logging.getLogger().level == logging.WARNING

    def test_debug_flag_overrides_level(self):
        configure_logging(LoggingConfig(level="ERROR"), debug=True)
        assert logging.getLogger().level == logging.DEBUG

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "logs" / "run.log"
        configure_logging(LoggingConfig(log_file=str(log_file)))
        logging.getLogger("sponsorwall.test").info("hello file")
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert "hello file" in log_file.read_text(encoding="utf-8")

    def test_third_party_loggers_quietened(self):
        configure_logging(LoggingConfig(level="DEBUG"))
        assert logging.getLogger("httpx").level == logging.WARNING


class TestJsonFormatter:
    def test_fields_and_extra(self):
        record = logging.LogRecord(
            "sponsorwall.x", logging.INFO, __file__, 1, "fetched %d", (3,), None
        )
        record.provider = "github"
        payload = json.loads(_JsonFormatter().format(record))
        assert payload["level"] == "INFO"
        assert payload["logger"] == "sponsorwall.x"
        assert payload["msg"] == "fetched 3"
        assert payload["provider"] == "github"
        assert payload["ts"].endswith("Z")
