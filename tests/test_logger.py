import logging
from logging.handlers import RotatingFileHandler

import pytest

from content_server.core.config import LoggingSettings
from content_server.core.logger import set_debug_mode, setup_logger


def test_file_logging(tmp_path):
    settings = LoggingSettings(enabled=True, log_path=tmp_path / "logs", log_name="test-server")
    logger = setup_logger("content_server_test_file", settings)
    logger.info("hello from the content server")
    for handler in logger.handlers:
        handler.flush()

    log_file = tmp_path / "logs" / "test-server.log"
    assert log_file.exists()
    assert "hello from the content server" in log_file.read_text(encoding="utf-8")


def test_no_duplicate_handlers(tmp_path):
    settings = LoggingSettings(enabled=True, log_path=tmp_path)
    first = setup_logger("content_server_test_dupes", settings)
    count = len(first.handlers)
    second = setup_logger("content_server_test_dupes", settings)
    assert first is second
    assert len(second.handlers) == count
    assert sum(isinstance(h, RotatingFileHandler) for h in second.handlers) == 1
    assert second.propagate is False


def test_levels():
    logger = setup_logger("content_server_test_levels", LoggingSettings(log_level="warn"))
    assert logger.level == logging.WARNING

    set_debug_mode(True)
    assert logger.level == logging.DEBUG
    set_debug_mode(False)
    assert logger.level == logging.INFO


def test_unknown_level():
    with pytest.raises(ValueError):
        setup_logger("content_server_test_bad", LoggingSettings(log_level="loud"))
