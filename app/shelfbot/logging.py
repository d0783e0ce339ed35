import logging
import sys

from shelfbot.config import settings

# Болтливые библиотеки: оставляем только предупреждения
_QUIET_LOGGERS = ("TeleBot", "urllib3", "werkzeug")


def setup_logging() -> logging.Logger:
    """Единый логгер приложения: stdout, уровень из настроек."""
    level = settings.log_level.upper()
    logger = logging.getLogger("shelfbot")
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(level)
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s | %(levelname)-8s | %(threadName)s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logger


logger = setup_logging()
