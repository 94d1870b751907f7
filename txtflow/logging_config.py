"""
Logging setup for txtflow.

Modules log through `logging.getLogger(__name__)`; this module only wires
handlers onto the package logger. Console output goes to stderr because
stdout belongs to the pipeline output and the emitted command line.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional, TextIO, Union

LOGGER_NAME = "txtflow"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    level: Union[int, str] = logging.WARNING,
    log_file: Optional[str] = None,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Configure the `txtflow` logger.

    Args:
        level: Level for the console handler (name or number).
        log_file: Optional path; when given, DEBUG and above are also written
            there, rotating at 1 MB with 3 backups.
        stream: Console stream, stderr by default.

    Returns:
        The configured package logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    # Drop handlers from a previous call
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler(stream)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=1024 * 1024,
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.debug("Logging initialised (console=%s, file=%s)", level, log_file)
    return logger
