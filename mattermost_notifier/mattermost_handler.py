import logging

from mattermost_notifier.config import NotifierConfig
from mattermost_notifier.notifier import ChatNotifier

# Records from these loggers are never forwarded, otherwise a failing POST
# could log its way back into this handler.
IGNORED_LOGGERS = ('urllib3', 'requests', 'mattermost_notifier')


def _is_ignored(name):
    return any(name == prefix or name.startswith(prefix + '.') for prefix in IGNORED_LOGGERS)


class MattermostHandler(logging.Handler):
    def __init__(self, webhook_url=None, config=None, session=None, **options):
        super().__init__()
        if config is not None and (webhook_url is not None or options):
            raise TypeError("Pass either config or webhook_url/options, not both")
        if config is None:
            config = NotifierConfig.from_env(webhook_url=webhook_url, **options)
        self.notifier = ChatNotifier(config, session=session)

    @property
    def config(self):
        return self.notifier.config

    def setFormatter(self, fmt):
        super().setFormatter(fmt)
        if fmt is not None:
            self.notifier.formatter = fmt

    def emit(self, record):
        if _is_ignored(record.name):
            return
        try:
            self.notifier.handle(record)
        except Exception:
            self.handleError(record)

    def close(self):
        try:
            self.notifier.close()
        finally:
            super().close()
