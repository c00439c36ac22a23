"""Tests for mediaserver/logging_config.py"""

import logging

import pytest
import structlog

from mediaserver.logging_config import get_logger, setup_logging


@pytest.fixture
def root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    quiet = {name: logging.getLogger(name).level for name in ("httpx", "httpcore")}
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)
    for name, saved in quiet.items():
        logging.getLogger(name).setLevel(saved)
    structlog.reset_defaults()


class TestSetupLogging:
    def test_level_from_env(self, root_logger, monkeypatch):
        monkeypatch.setenv("MEDIASERVER_LOG_LEVEL", "debug")
        setup_logging()
        assert root_logger.level == logging.DEBUG
        assert len(root_logger.handlers) == 1

    def test_unknown_level(self, root_logger):
        setup_logging(level="chatty")
        assert root_logger.level == logging.WARNING

    def test_json_output(self, root_logger, capsys):
        setup_logging(level="INFO", json_output=True)
        logging.getLogger("mediaserver.test").info("Created library folder /media/movies")

        line = capsys.readouterr().err.strip().splitlines()[-1]
        assert '"event": "Created library folder /media/movies"' in line
        assert '"level": "info"' in line

    def test_get_logger(self, root_logger):
        setup_logging(level="INFO")
        logger = get_logger("mediaserver.test")
        logger.info("hello")

    def test_httpx_quiet_by_default(self, root_logger):
        setup_logging(level="INFO")
        assert logging.getLogger("httpx").level == logging.WARNING
        assert not logging.getLogger("httpx").isEnabledFor(logging.INFO)

    def test_httpx_follows_stricter_level(self, root_logger):
        setup_logging(level="ERROR")
        assert logging.getLogger("httpcore").level == logging.ERROR
