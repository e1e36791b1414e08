"""Tests for webcallback structured logging."""

import pytest
import structlog

from webcallback.logging import (
    bind_context,
    bound_context,
    clear_context,
    configure_logging,
    get_logger,
    unbind_context,
)


class TestConfigureLogging:
    """Tests for logging configuration."""

    def test_configure_with_defaults(self):
        """Should configure from settings when called without arguments."""
        configure_logging()
        logger = get_logger("test")
        logger.info("test message")

    def test_configure_with_debug_level(self):
        configure_logging(level="DEBUG")
        logger = get_logger("test")
        logger.debug("debug message")

    def test_configure_with_text_format(self):
        """Should accept text format for development."""
        configure_logging(level="INFO", format="text")
        logger = get_logger("test")
        logger.info("text format message")

    def test_configure_multiple_times(self):
        configure_logging(level="INFO")
        configure_logging(level="DEBUG", format="json")
        logger = get_logger("test")
        logger.info("after reconfigure")

    def test_unknown_level_falls_back(self):
        """An unknown level name should not raise."""
        configure_logging(level="CHATTY")
        get_logger("test").info("still logging")


class TestGetLogger:
    """Tests for logger creation."""

    def test_get_logger_with_name(self):
        assert get_logger("webcallback.test") is not None

    def test_get_logger_without_name(self):
        assert get_logger() is not None

    def test_loggers_are_callable(self):
        logger = get_logger("test")
        assert callable(getattr(logger, "info", None))
        assert callable(getattr(logger, "warning", None))
        assert callable(getattr(logger, "debug", None))


class TestContextBinding:
    """Tests for context variable binding."""

    def setup_method(self):
        clear_context()

    def teardown_method(self):
        clear_context()

    def test_bind_and_unbind(self):
        bind_context(callback_url="https://example.com", temp="value")
        unbind_context("temp")
        get_logger("test").info("partial unbind")

    def test_clear_context(self):
        bind_context(callback_url="https://example.com")
        clear_context()
        get_logger("test").info("context cleared")

    def test_log_with_exception(self):
        """Should handle exception logging."""
        configure_logging()
        logger = get_logger("test")
        try:
            raise ValueError("test error")
        except ValueError:
            logger.exception("caught an error")

    def test_bound_context_restores_previous_value(self):
        bind_context(callback_url="outer")

        with bound_context(callback_url="inner", attempt=1):
            inner = structlog.contextvars.get_contextvars()

        assert inner == {"callback_url": "inner", "attempt": 1}
        assert structlog.contextvars.get_contextvars() == {"callback_url": "outer"}

    def test_bound_context_restores_on_error(self):
        with pytest.raises(RuntimeError), bound_context(callback_url="inner"):
            raise RuntimeError("boom")

        assert "callback_url" not in structlog.contextvars.get_contextvars()
