import logging
import os
from logging.handlers import RotatingFileHandler

from dotenv import load_dotenv

from mattermost_notifier.config import LOG_FORMAT, NotifierConfig, parse_level
from mattermost_notifier.mattermost_handler import MattermostHandler

MATTERMOST_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'
DEFAULT_LOG_FILE = 'logs/app.log'

logger = logging.getLogger(__name__)


def configure_logging(level=None, log_file=None, config=None):
    """
    Configures the root logger with console, rotating file and (optional) Mattermost handlers.
    :param level: log level name or number, defaults to LOGGING_LEVEL or INFO
    :param log_file: path of the rotating log file, '' disables it, defaults to LOG_FILE
    :param config: NotifierConfig, read from the environment if not given
    :return: the root logger
    """
    load_dotenv()

    if level is None:
        level = os.getenv('LOGGING_LEVEL', 'INFO')
    invalid_level = None
    try:
        numeric_level = parse_level(level, default=logging.INFO)
    except ValueError:
        invalid_level = level
        numeric_level = logging.INFO
    if log_file is None:
        log_file = os.getenv('LOG_FILE', DEFAULT_LOG_FILE)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(console_handler)

    # File handler
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=5 * 1024 * 1024,  # 5 MB
            backupCount=5,
            encoding='utf-8'
        )
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root_logger.addHandler(file_handler)

    logger.info(f"Logging initialized with level {logging.getLevelName(numeric_level)}")
    if invalid_level is not None:
        logger.warning(f"Unknown log level {invalid_level!r}, falling back to INFO")

    # Add the Mattermost handler if configured
    try:
        if config is None:
            config = NotifierConfig.from_env()
        if config.enabled:
            mattermost_handler = MattermostHandler(config=config)
            mattermost_handler.setLevel(config.error_level)
            mattermost_handler.setFormatter(logging.Formatter(MATTERMOST_FORMAT))
            root_logger.addHandler(mattermost_handler)
            logger.info(f"Mattermost notifications enabled for level {logging.getLevelName(config.error_level)} "
                        f"and above")
        else:
            logger.warning("MATTERMOST_WEBHOOK_URL not set. Mattermost notifications are disabled.")
    except ValueError as e:
        logger.error(f"Failed to initialize the Mattermost handler: {e}")

    return root_logger
