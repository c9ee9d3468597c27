"""Tests for logging setup."""

import logging

import pytest

from marketplace.common.logger import LOG_FILE_NAME, ROOT_LOGGER_NAME, get_logger, setup_logger


@pytest.fixture
def root_logger():
    """The marketplace logger with its handlers and level restored afterwards."""
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    saved_handlers, saved_level = logger.handlers[:], logger.level
    logger.handlers.clear()
    yield logger
    for handler in logger.handlers:
        handler.close()
    logger.handlers[:] = saved_handlers
    logger.setLevel(saved_level)


class TestSetupLogger:

    def test_console_only_by_default(self, root_logger):
        logger = setup_logger("debug")

        assert logger is root_logger
        assert logger.level == logging.DEBUG
        assert [type(h) for h in logger.handlers] == [logging.StreamHandler]

    def test_file_logging(self, root_logger, tmp_path):
        setup_logger("INFO", log_dir=str(tmp_path / "logs"), file_logging=True)

        get_logger("approval").info("listing approved")
        for handler in root_logger.handlers:
            handler.flush()

        content = (tmp_path / "logs" / LOG_FILE_NAME).read_text()
        assert "[INFO] [marketplace.approval] listing approved" in content

    def test_second_call_only_changes_level(self, root_logger):
        setup_logger("INFO")
        setup_logger("WARNING")

        assert len(root_logger.handlers) == 1
        assert root_logger.level == logging.WARNING

    def test_invalid_level(self, root_logger):
        with pytest.raises(ValueError):
            setup_logger("LOUD")


def test_component_loggers_are_children():
    component = get_logger("store")
    assert component.name == "marketplace.store"
    assert component.parent is logging.getLogger(ROOT_LOGGER_NAME)
