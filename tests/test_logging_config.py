"""Tests for application logging setup."""

import logging

import pytest

from core.logging_config import DEFAULT_FORMAT, setup_logging


@pytest.fixture
def restore_root_logger():
    root_logger = logging.getLogger()
    handlers, level = root_logger.handlers[:], root_logger.level
    yield root_logger
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root_logger.addHandler(handler)
    root_logger.setLevel(level)


def test_console_handler(restore_root_logger):
    setup_logging('debug')
    assert restore_root_logger.level == logging.DEBUG
    assert len(restore_root_logger.handlers) == 1
    assert restore_root_logger.handlers[0].formatter._fmt == DEFAULT_FORMAT


def test_file_handler(restore_root_logger, tmp_path):
    log_file = tmp_path / 'logs' / 'merge.log'
    setup_logging('INFO', log_file=str(log_file), format_string='%(message)s')

    assert len(restore_root_logger.handlers) == 2
    logging.getLogger().handlers[1].flush()
    assert 'Logging to file' in log_file.read_text()


def test_unknown_level_falls_back_to_info(restore_root_logger):
    setup_logging('verbose')
    assert restore_root_logger.level == logging.INFO
