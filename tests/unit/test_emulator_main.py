"""
Unit tests for emulator startup.

Tests cover:
- Settings loading from environment
- Logging configuration
"""

import logging

import json_log_formatter
import pytest

from srclient import Compatibility
from srclient_emulator import Settings
from srclient_emulator.main import setup_logging


@pytest.fixture
def restore_root_logger():
    """Restore root logger state after a test reconfigures it."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers = handlers
    root.setLevel(level)


class TestSettings:
    """Tests for emulator Settings."""

    def test_defaults(self):
        """Defaults bind the registry port with an empty catalog."""
        settings = Settings()

        assert settings.port == 8081
        assert settings.seed is False
        assert settings.compatibility_level == Compatibility.BACKWARD

    def test_env(self, monkeypatch):
        """Settings load from SR_EMULATOR_* variables."""
        monkeypatch.setenv("SR_EMULATOR_PORT", "9090")
        monkeypatch.setenv("SR_EMULATOR_SEED", "true")
        monkeypatch.setenv("SR_EMULATOR_COMPATIBILITY_LEVEL", "NONE")

        settings = Settings()

        assert settings.port == 9090
        assert settings.seed is True
        assert settings.compatibility_level == Compatibility.NONE


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_text_format(self, restore_root_logger):
        """Text format uses a plain formatter at the configured level."""
        setup_logging(Settings(log_level="debug", log_format="text"))

        root = restore_root_logger
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert not isinstance(root.handlers[0].formatter, json_log_formatter.JSONFormatter)

    def test_json_format(self, restore_root_logger):
        """JSON format uses the JSON formatter."""
        setup_logging(Settings(log_format="json"))

        formatter = restore_root_logger.handlers[0].formatter
        assert isinstance(formatter, json_log_formatter.JSONFormatter)

    def test_quiets_libraries(self, restore_root_logger):
        """HTTP client and access logs are raised to WARNING."""
        setup_logging(Settings())

        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("uvicorn.access").level == logging.WARNING
