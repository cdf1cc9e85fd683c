"""Unit tests for the logging configuration module."""

import logging
from unittest.mock import MagicMock, patch

import pytest
import structlog

from discord_vault_sync.logging import (
    RUN_ID_KEY,
    bind_run_context,
    clear_run_context,
    get_logger,
    setup_logging,
)


@pytest.fixture(autouse=True)
def _reset_logging():
    """Reset root logger and structlog state around each test."""
    original_handlers = logging.root.handlers[:]
    original_level = logging.root.level
    logging.root.handlers.clear()
    logging.root.setLevel(logging.WARNING)
    yield
    logging.root.handlers.clear()
    logging.root.handlers.extend(original_handlers)
    logging.root.setLevel(original_level)
    structlog.reset_defaults()


def _mock_settings(level: str = "INFO", *, development: bool = False) -> MagicMock:
    settings = MagicMock()
    settings.log_level = level
    settings.is_development = development
    return settings


class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_basic_config_uses_configured_level(self):
        with patch(
            "discord_vault_sync.logging.get_settings", return_value=_mock_settings("DEBUG")
        ):
            with patch("discord_vault_sync.logging.logging.basicConfig") as mock_basic:
                setup_logging()

        assert mock_basic.call_args.kwargs["level"] == logging.DEBUG
        assert mock_basic.call_args.kwargs["format"] == "%(message)s"

    def test_invalid_level_defaults_to_info(self):
        with patch(
            "discord_vault_sync.logging.get_settings", return_value=_mock_settings("NONEXISTENT")
        ):
            with patch("discord_vault_sync.logging.logging.basicConfig") as mock_basic:
                setup_logging()

        assert mock_basic.call_args.kwargs["level"] == logging.INFO

    def test_development_uses_console_renderer(self):
        settings = _mock_settings(development=True)
        with patch("discord_vault_sync.logging.get_settings", return_value=settings):
            setup_logging()

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)

    def test_production_uses_json_renderer(self):
        with patch("discord_vault_sync.logging.get_settings", return_value=_mock_settings()):
            setup_logging()

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)

    def test_merges_context_variables(self):
        with patch("discord_vault_sync.logging.get_settings", return_value=_mock_settings()):
            setup_logging()

        processors = structlog.get_config()["processors"]
        assert structlog.contextvars.merge_contextvars in processors

    def test_third_party_loggers_quieted(self):
        with patch("discord_vault_sync.logging.get_settings", return_value=_mock_settings()):
            setup_logging()

        for name in ("httpx", "httpcore", "trafilatura"):
            assert logging.getLogger(name).level == logging.WARNING


class TestGetLogger:
    """Tests for get_logger function."""

    def test_returns_usable_logger(self):
        logger = get_logger("discord_vault_sync.test")
        assert logger is not None
        assert hasattr(logger, "info")
        assert hasattr(logger, "warning")


class TestRunContext:
    """Tests for bind_run_context and clear_run_context."""

    def test_bind_adds_run_id_to_context(self):
        structlog.contextvars.clear_contextvars()
        run_id = bind_run_context()
        try:
            context = structlog.contextvars.get_contextvars()
            assert context[RUN_ID_KEY] == run_id
            assert len(run_id) == 12
        finally:
            clear_run_context()

        assert RUN_ID_KEY not in structlog.contextvars.get_contextvars()

    def test_each_run_gets_a_new_id(self):
        first = bind_run_context()
        second = bind_run_context()
        clear_run_context()
        assert first != second
