import logging
from logging.handlers import RotatingFileHandler

import pytest

from mattermost_notifier.config import NotifierConfig
from mattermost_notifier.logging_setup import configure_logging
from mattermost_notifier.mattermost_handler import MattermostHandler

WEBHOOK_URL = 'https://chat.example.com/hooks/abc123'


@pytest.fixture(autouse=True)
def restore_root_logger():
    root_logger = logging.getLogger()
    handlers = root_logger.handlers[:]
    level = root_logger.level
    yield
    for handler in root_logger.handlers[:]:
        if handler not in handlers:
            root_logger.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root_logger.handlers:
            root_logger.addHandler(handler)
    root_logger.setLevel(level)


def handler_types(logger):
    return [type(handler) for handler in logger.handlers]


class TestConfigureLogging:

    def test_console_and_file(self, tmp_path):
        log_file = tmp_path / 'logs' / 'app.log'

        root_logger = configure_logging(level='DEBUG', log_file=str(log_file))

        assert root_logger.level == logging.DEBUG
        assert handler_types(root_logger) == [logging.StreamHandler, RotatingFileHandler]
        file_handler = root_logger.handlers[1]
        assert file_handler.maxBytes == 5 * 1024 * 1024
        assert file_handler.backupCount == 5

        logging.getLogger('shop').info("order created")
        file_handler.flush()
        assert 'shop - INFO - order created' in log_file.read_text(encoding='utf-8')

    def test_level_and_file_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv('LOGGING_LEVEL', 'warning')
        monkeypatch.setenv('LOG_FILE', '')

        root_logger = configure_logging()

        assert root_logger.level == logging.WARNING
        assert handler_types(root_logger) == [logging.StreamHandler]

    def test_mattermost_handler_added(self):
        config = NotifierConfig(webhook_url=WEBHOOK_URL, error_level='CRITICAL')

        root_logger = configure_logging(log_file='', config=config)

        mattermost_handlers = [h for h in root_logger.handlers if isinstance(h, MattermostHandler)]
        assert len(mattermost_handlers) == 1
        assert mattermost_handlers[0].config is config
        assert mattermost_handlers[0].level == logging.CRITICAL

    def test_mattermost_from_env(self, monkeypatch):
        monkeypatch.setenv('MATTERMOST_WEBHOOK_URL', WEBHOOK_URL)

        root_logger = configure_logging(log_file='')

        assert MattermostHandler in handler_types(root_logger)

    def test_without_webhook(self):
        root_logger = configure_logging(log_file='')
        assert MattermostHandler not in handler_types(root_logger)

    def test_invalid_mattermost_config_keeps_logging(self, monkeypatch):
        monkeypatch.setenv('MATTERMOST_WEBHOOK_URL', WEBHOOK_URL)
        monkeypatch.setenv('MATTERMOST_TIMEZONE', 'Atlantis/Capital')

        root_logger = configure_logging(log_file='')

        assert handler_types(root_logger) == [logging.StreamHandler]

    def test_replaces_existing_handlers(self):
        root_logger = logging.getLogger()
        stale = logging.NullHandler()
        root_logger.addHandler(stale)

        configure_logging(log_file='')

        assert stale not in root_logger.handlers

    def test_unknown_level_falls_back_to_info(self, monkeypatch, capsys):
        monkeypatch.setenv('LOGGING_LEVEL', 'verbose')

        root_logger = configure_logging(log_file='')

        assert root_logger.level == logging.INFO
        assert handler_types(root_logger) == [logging.StreamHandler]
        assert "Unknown log level 'verbose', falling back to INFO" in capsys.readouterr().err
