"""
Unit tests for logging setup
"""

import json
import logging
import sys

import pytest
from rich.logging import RichHandler

from src.api.logging_config import JSONFormatter, resolve_level, setup_logging


class TestResolveLevel:

    @pytest.mark.parametrize("environment,level,expected", [
        ("production", None, logging.INFO),
        ("development", None, logging.DEBUG),
        ("production", "debug", logging.DEBUG),
        ("development", "WARN", logging.WARNING),
        ("development", "ERROR", logging.ERROR),
        ("development", "chatty", logging.INFO),
    ])
    def test_levels(self, environment, level, expected):
        assert resolve_level(environment, level) == expected


class TestJSONFormatter:

    def _record(self, **extra):
        record = logging.LogRecord("src.api.server", logging.WARNING, __file__, 1, "Rate limit %s", ("exceeded",), None)
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_fields(self):
        entry = json.loads(JSONFormatter().format(self._record(data={"ip": "1.2.3.4"})))

        assert entry["level"] == "WARNING"
        assert entry["name"] == "src.api.server"
        assert entry["message"] == "Rate limit exceeded"
        assert entry["data"] == {"ip": "1.2.3.4"}
        assert "timestamp" in entry

    def test_no_data(self):
        entry = json.loads(JSONFormatter().format(self._record()))

        assert "data" not in entry

    def test_exception(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = self._record()
            record.exc_info = sys.exc_info()

        entry = json.loads(JSONFormatter().format(record))
        assert "ValueError: boom" in entry["exception"]


class TestSetupLogging:

    def test_production_uses_json(self):
        assert setup_logging("production") == logging.INFO

        handler = logging.getLogger().handlers[0]
        assert isinstance(handler.formatter, JSONFormatter)

    def test_development_uses_rich(self):
        assert setup_logging("development") == logging.DEBUG

        assert isinstance(logging.getLogger().handlers[0], RichHandler)
        assert logging.getLogger("httpx").level == logging.WARNING
