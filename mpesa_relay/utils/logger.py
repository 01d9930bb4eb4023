"""
Logging Configuration
Centralized logging setup for the relay
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
import os

DEFAULT_LOG_DIR = 'logs'


def _ensure_log_dir(log_dir: str) -> bool:
    if not os.path.exists(log_dir):
        try:
            os.makedirs(log_dir)
        except OSError:
            return False
    return True


def get_logger(name: str, log_dir: str = None) -> logging.Logger:
    """
    Get a configured logger instance

    Args:
        name: Logger name (typically __name__)
        log_dir: Directory for the rotating log file

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)

    # Only configure if not already configured
    if not logger.handlers:
        logger.setLevel(logging.INFO)

        # Console handler
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.INFO)

        log_dir = log_dir or os.getenv('LOG_DIR', DEFAULT_LOG_DIR)
        if _ensure_log_dir(log_dir):
            file_handler = RotatingFileHandler(
                os.path.join(log_dir, 'mpesa-relay.log'),
                maxBytes=10485760,  # 10MB
                backupCount=10
            )
            file_handler.setLevel(logging.INFO)

            file_formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            file_handler.setFormatter(file_formatter)
            logger.addHandler(file_handler)

        console_formatter = logging.Formatter(
            '%(levelname)s - %(name)s - %(message)s'
        )
        console_handler.setFormatter(console_formatter)

        logger.addHandler(console_handler)

    return logger


def configure_app_logging(app):
    """
    Configure logging for the Flask application

    Args:
        app: Flask application instance
    """
    app.logger.setLevel(logging.DEBUG if app.debug else logging.INFO)

    log_dir = app.config.get('LOG_DIR', DEFAULT_LOG_DIR)
    if not _ensure_log_dir(log_dir):
        return

    error_log = os.path.abspath(os.path.join(log_dir, 'error.log'))
    if any(getattr(h, 'baseFilename', None) == error_log for h in app.logger.handlers):
        return

    # Error log
    error_handler = RotatingFileHandler(
        error_log,
        maxBytes=10485760,
        backupCount=10
    )
    error_handler.setLevel(logging.ERROR)
    error_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s\n%(pathname)s:%(lineno)d',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    error_handler.setFormatter(error_formatter)

    app.logger.addHandler(error_handler)
