"""
Tests for the logging setup.
"""

import logging

import structlog

from seedmix.utils import logging_config


class TestLoggingConfig:
    """Test suite for SeedMixLogger."""

    def test_setup_creates_log_files(self, tmp_path):
        instance = logging_config.setup_logging(log_dir=str(tmp_path), log_level="INFO", enable_console=False)

        logging_config.get_logger("test").error("something_failed", reason="boom")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert instance.log_level == logging.INFO
        assert "something_failed" in (tmp_path / "seedmix.log").read_text()
        assert "something_failed" in (tmp_path / "errors.log").read_text()
        assert logging.getLogger("aiohttp").level == logging.WARNING

    def test_request_context_is_bound(self, tmp_path):
        logging_config.setup_logging(log_dir=str(tmp_path), enable_console=False)

        logging_config.set_request_context("req-1", "user-1")

        context = structlog.contextvars.get_contextvars()
        assert context["request_id"] == "req-1"
        assert context["user_id"] == "user-1"
        structlog.contextvars.clear_contextvars()
