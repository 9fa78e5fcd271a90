# storefront/utils/logging_utils.py
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

DETAILED_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'
SIMPLE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

def setup_logging(app) -> logging.Logger:
    """
    Configure the package logger (and the Flask app logger) once per app.

    Console output uses the simple format; when LOG_FILE is configured a
    rotating file handler with the detailed format is attached as well.
    """
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)

    logger = logging.getLogger("storefront")
    logger.setLevel(level)
    app.logger.setLevel(level)

    # If logger is already configured, return it
    if logger.handlers:
        return logger

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(SIMPLE_FORMAT))
    logger.addHandler(console_handler)

    log_file = app.config.get("LOG_FILE")
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(log_file, maxBytes=10 * 1024 * 1024, backupCount=5)
        file_handler.setFormatter(logging.Formatter(DETAILED_FORMAT))
        logger.addHandler(file_handler)
        app.logger.addHandler(file_handler)

    logger.propagate = False
    return logger
