import logging
import sys
from datetime import datetime

import pytz
import requests

from mattermost_notifier.config import DEFAULT_TIMEZONE, LOG_FORMAT, MAX_CONTENT_LENGTH

CHANNEL_MENTION = '<!channel>'
TIMESTAMP_FORMAT = '%Y-%m-%d %I:%M: %p'
UNKNOWN_TIMESTAMP = 'unknown'
DEFAULT_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'
HEADERS = {'Content-Type': 'application/json'}

# Failed notifications are reported here. The logger does not propagate, so
# nothing written to it can reach the root logger's Mattermost handler.
diagnostics = logging.getLogger('mattermost_notifier.diagnostics')
diagnostics.propagate = False
if not diagnostics.handlers:
    _stderr_handler = logging.StreamHandler(sys.stderr)
    _stderr_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    diagnostics.addHandler(_stderr_handler)


def truncate_content(content, limit=MAX_CONTENT_LENGTH):
    return content[:limit]


def is_excluded(message, phrases):
    lower_message = message.lower()
    return any(phrase in lower_message for phrase in phrases)


def _to_datetime(value):
    if isinstance(value, datetime):
        return value if value.tzinfo else pytz.utc.localize(value)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value, tz=pytz.utc)
    if isinstance(value, str):
        text = value.strip()
        try:
            return _to_datetime(float(text))
        except ValueError:
            pass
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        return _to_datetime(datetime.fromisoformat(text))
    raise TypeError(f"Unsupported timestamp type: {type(value).__name__}")


def format_timestamp(value, timezone=DEFAULT_TIMEZONE):
    """Render a record timestamp as ``YYYY-MM-DD hh:mm: AM`` in ``timezone``.

    Accepts epoch seconds, datetimes (naive ones are taken as UTC) and
    ISO-8601 strings. Anything else, or an unknown timezone name, gives
    ``UNKNOWN_TIMESTAMP``.
    """
    try:
        tz = pytz.timezone(timezone or DEFAULT_TIMEZONE)
        moment = _to_datetime(value)
    except (pytz.UnknownTimeZoneError, TypeError, ValueError, OverflowError, OSError):
        return UNKNOWN_TIMESTAMP
    return moment.astimezone(tz).strftime(TIMESTAMP_FORMAT)


class ChatNotifier:
    """Posts qualifying log records to a Mattermost incoming webhook."""

    def __init__(self, config, formatter=None, session=None):
        self.config = config
        self.formatter = formatter or logging.Formatter(DEFAULT_FORMAT)
        self._owns_session = session is None
        self.session = session if session is not None else requests.Session()

    def handle(self, record, formatted=None):
        try:
            if self.should_notify(record):
                self.send(record, formatted)
        except Exception:
            diagnostics.exception("Unexpected error while notifying Mattermost")

    def should_notify(self, record):
        if record.levelno < self.config.error_level:
            return False
        return not is_excluded(record.getMessage(), self.config.excluded_phrases)

    def format_text(self, record, formatted=None):
        if formatted is None:
            formatted = self.formatter.format(record)
        date_time = format_timestamp(getattr(record, 'created', None), self.config.timezone)

        text = f"{CHANNEL_MENTION} **Application: {self.config.app_name}"
        text += f"\nError: {record.getMessage()}"
        text += f"\nDate&Time: {date_time}**"
        text += f"\n{truncate_content(formatted, self.config.max_content_length)}"
        return text

    def send(self, record, formatted=None):
        if not self.config.enabled:
            diagnostics.debug("MATTERMOST_WEBHOOK_URL not set, notification skipped")
            return

        payload = {'text': self.format_text(record, formatted)}
        try:
            # Fire and forget: the response is not inspected and nothing is retried
            self.session.post(self.config.webhook_url, json=payload, headers=HEADERS,
                              timeout=self.config.timeout)
        except requests.exceptions.RequestException as e:
            diagnostics.warning(f"Failed to send log to Mattermost: {e}")

    def close(self):
        if self._owns_session:
            self.session.close()
