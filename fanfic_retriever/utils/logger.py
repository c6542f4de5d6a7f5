import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

# Default log level - can be overridden by environment variable
LOG_LEVEL_STR = os.environ.get('LOG_LEVEL', 'INFO').upper()
LOG_LEVEL = getattr(logging, LOG_LEVEL_STR, logging.INFO)

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(name)s - %(module)s.%(funcName)s:%(lineno)d - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

APP_LOGGER_NAME = 'fanfic_retriever'
# Nothing is written to disk unless a log file is explicitly requested
LOG_FILE_ENV_VAR = 'FFR_LOG_FILE'


def setup_logger(logger_name: str, log_file: Optional[str] = None, level=logging.INFO, add_console_handler: bool = True) -> logging.Logger:
    """Generic function to set up a logger."""
    logger = logging.getLogger(logger_name)
    logger.setLevel(level)
    logger.propagate = False

    # Remove existing handlers to avoid duplication
    if logger.hasHandlers():
        for handler in list(logger.handlers):
            handler.close()
        logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(log_file, maxBytes=5*1024*1024, backupCount=5, encoding='utf-8')
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if add_console_handler:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger


# Setup main application logger. Module loggers named 'fanfic_retriever.*' propagate to it.
logger = setup_logger(APP_LOGGER_NAME, os.environ.get(LOG_FILE_ENV_VAR), LOG_LEVEL)


def get_logger(name: str = APP_LOGGER_NAME) -> logging.Logger:
    """
    Returns a logger under the application logger hierarchy.
    """
    return logging.getLogger(name)
