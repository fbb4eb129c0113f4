import logging
import os
from dataclasses import dataclass

import pytz
from dotenv import load_dotenv

DEFAULT_TIMEZONE = 'Asia/Kolkata'
DEFAULT_APP_NAME = 'python-app'
DEFAULT_EXCLUDED_PHRASES = ('not instantiable', 'not instantiate')
DEFAULT_TIMEOUT = 5.0
MAX_CONTENT_LENGTH = 38000
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Level names accepted in LOGGING_LEVEL and MATTERMOST_ERROR_LEVEL
LOG_LEVELS = {
    'DEBUG': logging.DEBUG,
    'INFO': logging.INFO,
    'WARNING': logging.WARNING,
    'WARN': logging.WARNING,
    'ERROR': logging.ERROR,
    'CRITICAL': logging.CRITICAL,
    'FATAL': logging.CRITICAL,
}


def parse_level(value, default=logging.ERROR):
    """Turn a level name ("error") or number ("40", 40) into an int level."""
    if value is None:
        return default
    if isinstance(value, bool):
        raise ValueError(f"Invalid log level: {value!r}")
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if not text:
        return default
    if text.lstrip('-').isdigit():
        return int(text)
    try:
        return LOG_LEVELS[text.upper()]
    except KeyError:
        raise ValueError(f"Invalid log level: {value!r}") from None


def parse_phrases(value):
    if value is None:
        return DEFAULT_EXCLUDED_PHRASES
    return tuple(phrase.strip().lower() for phrase in value.split(',') if phrase.strip())


@dataclass(frozen=True)
class NotifierConfig:
    """Settings for the Mattermost notifier, read once at startup."""

    webhook_url: str = ''
    error_level: int = logging.ERROR
    timezone: str = DEFAULT_TIMEZONE
    app_name: str = DEFAULT_APP_NAME
    excluded_phrases: tuple = DEFAULT_EXCLUDED_PHRASES
    timeout: float = DEFAULT_TIMEOUT
    max_content_length: int = MAX_CONTENT_LENGTH

    def __post_init__(self):
        # frozen dataclass: normalise through object.__setattr__
        object.__setattr__(self, 'webhook_url', (self.webhook_url or '').strip())
        object.__setattr__(self, 'error_level', parse_level(self.error_level))
        object.__setattr__(self, 'timezone', (self.timezone or '').strip() or DEFAULT_TIMEZONE)
        object.__setattr__(self, 'timeout', float(self.timeout))
        object.__setattr__(self, 'max_content_length', int(self.max_content_length))
        phrases = self.excluded_phrases
        if isinstance(phrases, str):
            phrases = parse_phrases(phrases)
        object.__setattr__(self, 'excluded_phrases',
                           tuple(phrase.lower() for phrase in phrases if phrase))

        if self.timezone not in pytz.all_timezones_set:
            raise ValueError(f"Unknown timezone: {self.timezone!r}")
        if self.timeout <= 0:
            raise ValueError(f"Timeout must be positive, got {self.timeout}")
        if self.max_content_length <= 0:
            raise ValueError(f"max_content_length must be positive, got {self.max_content_length}")

    @property
    def enabled(self):
        return bool(self.webhook_url)

    @classmethod
    def from_env(cls, **overrides):
        """Build the config from environment variables (and a .env file).

        Keyword arguments that are not None take precedence over the
        environment, which lets ``logging.config.dictConfig`` pass handler
        options straight through.
        """
        load_dotenv()

        timeout = os.getenv('MATTERMOST_TIMEOUT', '')
        values = {
            'webhook_url': os.getenv('MATTERMOST_WEBHOOK_URL', ''),
            'error_level': parse_level(os.getenv('MATTERMOST_ERROR_LEVEL')),
            'timezone': os.getenv('MATTERMOST_TIMEZONE', ''),
            'app_name': os.getenv('APP_NAME') or DEFAULT_APP_NAME,
            'excluded_phrases': parse_phrases(os.getenv('MATTERMOST_EXCLUDED_PHRASES')),
            'timeout': float(timeout) if timeout.strip() else DEFAULT_TIMEOUT,
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        if isinstance(values['excluded_phrases'], str):
            values['excluded_phrases'] = parse_phrases(values['excluded_phrases'])
        return cls(**values)
