"""Tests for settings and logging setup."""

import logging
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from ringsync.config.settings import Settings
from ringsync.logging import LOGGER_NAME, setup_logging


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self):
        settings = Settings()
        assert settings.api_url == "https://api.github.com"
        assert settings.api_version == "2022-11-28"
        assert settings.api_delay == 0.1
        assert settings.page_size == 100
        assert settings.marker_label == "ringmaster"
        assert settings.config_file.name == "config.json"
        assert settings.config_file.parent.name == ".ringmaster"

    def test_env_override(self):
        with patch.dict("os.environ", {"RINGSYNC_API_DELAY": "0", "RINGSYNC_PAGE_SIZE": "50"}):
            settings = Settings()
        assert settings.api_delay == 0
        assert settings.page_size == 50

    def test_page_size_bounds(self):
        with pytest.raises(ValidationError):
            Settings(page_size=101)


class TestSetupLogging:
    """Tests for setup_logging."""

    @pytest.fixture(autouse=True)
    def reset_logger(self):
        logger = logging.getLogger(LOGGER_NAME)
        handlers = list(logger.handlers)
        level = logger.level
        yield
        for handler in logger.handlers:
            if handler not in handlers:
                handler.close()
        logger.handlers = handlers
        logger.setLevel(level)

    def test_off_by_default(self):
        setup_logging(0)
        assert logging.getLogger(LOGGER_NAME).handlers == []

    def test_debug_level(self):
        setup_logging(2)
        logger = logging.getLogger(LOGGER_NAME)
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1

    def test_file_only(self, tmp_path):
        log_file = tmp_path / "logs" / "ringsync.log"
        setup_logging(0, log_file)
        logging.getLogger("ringsync.sync.engine").info("hello from the engine")
        for handler in logging.getLogger(LOGGER_NAME).handlers:
            handler.flush()

        assert "hello from the engine" in log_file.read_text()
