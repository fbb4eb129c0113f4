import logging
from unittest.mock import Mock

import pytest

ENV_KEYS = (
    'MATTERMOST_WEBHOOK_URL',
    'MATTERMOST_ERROR_LEVEL',
    'MATTERMOST_TIMEZONE',
    'MATTERMOST_EXCLUDED_PHRASES',
    'MATTERMOST_TIMEOUT',
    'APP_NAME',
    'LOGGING_LEVEL',
    'LOG_FILE',
)

# 2024-01-01T00:00:00Z
NEW_YEAR_UTC = 1704067200.0


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    # never pick up a developer's .env
    monkeypatch.setattr('mattermost_notifier.config.load_dotenv', lambda: None)
    monkeypatch.setattr('mattermost_notifier.logging_setup.load_dotenv', lambda: None)


@pytest.fixture
def session():
    return Mock()


@pytest.fixture
def make_record():
    def _make(msg='DB down', levelno=500, name='app', created=NEW_YEAR_UTC, **extra):
        fields = {
            'name': name,
            'msg': msg,
            'levelno': levelno,
            'levelname': logging.getLevelName(levelno),
            'created': created,
        }
        fields.update(extra)
        return logging.makeLogRecord(fields)
    return _make
