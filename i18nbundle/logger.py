"""
Centralized logging for i18nbundle.

Every module asks for its logger through get_logger(__name__) so that all
output shares one format. Output goes to the console, and additionally to
a log file when the settings name one (``log_file``).
"""
import logging
import os
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(funcName)s() | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


def get_logger(name: str) -> logging.Logger:
    """
    Returns a configured logger instance.

    Args:
        name: Usually __name__ of the calling module.
    """
    logger = logging.getLogger(name)

    # Avoid adding handlers multiple times
    if logger.handlers:
        return logger

    # Settings import logging too, so read them lazily
    from .settings import get_settings
    settings = get_settings()

    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(_LEVELS.get(str(settings.log_level).upper(), logging.WARNING))
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    logger.addHandler(console_handler)

    if settings.log_file:
        log_dir = os.path.dirname(os.path.abspath(settings.log_file))
        os.makedirs(log_dir, exist_ok=True)
        # File handler captures everything for post-mortem analysis
        file_handler = logging.FileHandler(settings.log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        logger.addHandler(file_handler)

    return logger
