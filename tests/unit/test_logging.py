# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for logging configuration."""

import logging

import pytest
import structlog

from src.core.config.settings import Settings
from src.utils.logging import (
    HANDLER_NAME,
    bind_context,
    clear_context,
    get_logger,
    mask_secrets,
    setup_logging,
)


def _installed_handlers() -> list[logging.Handler]:
    return [h for h in logging.getLogger().handlers if h.get_name() == HANDLER_NAME]


@pytest.fixture(autouse=True)
def reset_logging():
    """Remove the installed handler and restore structlog defaults."""
    yield
    for handler in _installed_handlers():
        logging.getLogger().removeHandler(handler)
    clear_context()
    structlog.reset_defaults()


class TestSetupLogging:
    """Test cases for setup_logging."""

    def test_development_uses_console_renderer(self) -> None:
        """Test colored console output in development."""
        setup_logging(Settings(_env_file=None, environment="development", log_level="DEBUG"))

        handlers = _installed_handlers()
        assert len(handlers) == 1
        assert isinstance(handlers[0].formatter.processors[-1], structlog.dev.ConsoleRenderer)
        assert logging.getLogger("src").level == logging.DEBUG
        assert logging.getLogger("litellm").level == logging.WARNING

    def test_production_uses_json_renderer(self) -> None:
        """Test JSON output outside development."""
        settings = Settings(
            _env_file=None,
            environment="staging",
            debug=False,
            log_level="WARNING",
        )

        setup_logging(settings)

        formatter = _installed_handlers()[0].formatter
        assert isinstance(formatter.processors[-1], structlog.processors.JSONRenderer)
        assert logging.getLogger("src").level == logging.WARNING

    def test_repeated_setup_keeps_one_handler(self) -> None:
        """Test the handler is replaced rather than duplicated."""
        settings = Settings(_env_file=None)

        setup_logging(settings)
        setup_logging(settings)

        assert len(_installed_handlers()) == 1

    def test_stdlib_records_are_rendered(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test %-style module logging goes through the JSON renderer."""
        setup_logging(
            Settings(_env_file=None, environment="staging", debug=False, log_level="INFO")
        )

        logging.getLogger("src.domains.analytics.service").info("Record saved: id=%s", "doc-1")

        output = capsys.readouterr().out
        assert '"event": "Record saved: id=doc-1"' in output
        assert '"logger": "src.domains.analytics.service"' in output


class TestHelpers:
    """Test cases for logger helpers."""

    def test_mask_secrets(self) -> None:
        """Test secret values are masked and others kept."""
        event = mask_secrets(None, "info", {"event": "call", "api_key": "k", "model": "m"})

        assert event == {"event": "call", "api_key": "***", "model": "m"}

    def test_get_logger(self) -> None:
        """Test that a usable logger is returned."""
        logger = get_logger("src.domains.analytics")

        assert hasattr(logger, "info")

    def test_bind_and_clear_context(self) -> None:
        """Test context variables are bound and cleared."""
        bind_context(render_id="abc-123")

        assert structlog.contextvars.get_contextvars() == {"render_id": "abc-123"}

        clear_context()

        assert structlog.contextvars.get_contextvars() == {}
