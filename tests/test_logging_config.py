"""Tests for logging setup."""

import logging

import pytest

from threeman.logging_config import get_logger, setup_logging


@pytest.fixture
def restore_logger():
    logger = logging.getLogger('threeman')
    handlers, level = list(logger.handlers), logger.level
    yield
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    for handler in handlers:
        logger.addHandler(handler)
    logger.setLevel(level)


class TestSetupLogging:
    """Tests for handler configuration."""

    def test_file_log_named_after_run(self, tmp_path, restore_logger):
        logger = setup_logging(log_dir=tmp_path, log_to_console=False, run_name='backfill')
        get_logger('backfill').info('week-3 completed')
        for handler in logger.handlers:
            handler.flush()

        log_files = list(tmp_path.glob('threeman_backfill_*.log'))
        assert len(log_files) == 1
        content = log_files[0].read_text()
        assert 'threeman.backfill' in content
        assert '[MainThread]' in content

    def test_repeated_setup_replaces_handlers(self, tmp_path, restore_logger):
        setup_logging(log_dir=tmp_path, log_to_console=False)
        logger = setup_logging(log_to_file=False)
        assert len(logger.handlers) == 1

    def test_get_logger_prefix(self):
        assert get_logger('cli').name == 'threeman.cli'
        assert get_logger('threeman.store').name == 'threeman.store'
        assert get_logger().name == 'threeman'
