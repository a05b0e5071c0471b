import logging
import os
import sys
from logging.handlers import TimedRotatingFileHandler
from concurrent_log_handler import ConcurrentRotatingFileHandler

LOGGER_NAME = 'smoothbook_app'
LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s:%(funcName)s:%(lineno)d - %(message)s'

class MinLevelFilter(logging.Filter):
    """Pass records at or above ``level`` regardless of the handler's own level."""

    def __init__(self, level):
        super().__init__()
        self.level = level

    def filter(self, record):
        return record.levelno >= self.level

def _with_format(handler, level, formatter):
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler

def _file_handlers(log_dir, app_log_file, debug_log_file, error_log_file, max_bytes, backup_count, formatter):
    # app log rotates daily; debug and error logs rotate by size and are safe across worker processes
    app_handler = _with_format(
        TimedRotatingFileHandler(os.path.join(log_dir, app_log_file), when='midnight', backupCount=backup_count),
        logging.INFO, formatter
    )
    app_handler.addFilter(MinLevelFilter(logging.INFO))
    return [
        app_handler,
        _with_format(
            ConcurrentRotatingFileHandler(os.path.join(log_dir, debug_log_file), maxBytes=max_bytes, backupCount=backup_count),
            logging.DEBUG, formatter
        ),
        _with_format(
            ConcurrentRotatingFileHandler(os.path.join(log_dir, error_log_file), maxBytes=max_bytes, backupCount=backup_count),
            logging.ERROR, formatter
        ),
    ]

def setup_logging(
    log_dir: str = None,
    app_log_file: str = 'app.log',
    debug_log_file: str = 'debug.log',
    error_log_file: str = 'error.log',
    max_bytes: int = 10485760,
    backup_count: int = 7,
    level: str = 'DEBUG'
):
    """Attach file and console handlers to the ``smoothbook_app`` logger.

    Only the first call installs handlers; later calls just adjust the level.
    When the log directory cannot be created, logging goes to the console only.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False
    if logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT)
    handlers = [_with_format(logging.StreamHandler(), logging.DEBUG, formatter)]

    log_dir = log_dir or os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'logs')
    try:
        os.makedirs(log_dir, exist_ok=True)
        handlers.extend(_file_handlers(
            log_dir, app_log_file, debug_log_file, error_log_file, max_bytes, backup_count, formatter
        ))
    except OSError as e:
        print(f"Cannot write logs to {log_dir}: {e}. Logging to console only.", file=sys.stderr)

    for handler in handlers:
        logger.addHandler(handler)
    return logger
