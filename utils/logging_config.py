# utils/logging_config.py
import logging
import sys
from typing import Optional, TextIO

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None,
                  stream: Optional[TextIO] = None) -> None:
    """
    Configure the root logger with a console handler and optionally a file handler.

    Console output goes to stderr by default so that a matrix written to
    stdout is never interleaved with log lines.

    Args:
        level: Logging level (e.g., logging.INFO, logging.DEBUG).
        log_file: Optional path to a file for logging output.
        stream: Console stream; defaults to ``sys.stderr``.
    """
    logger = logging.getLogger()
    logger.setLevel(level)

    # Clear existing handlers to avoid duplicates
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    ch = logging.StreamHandler(stream or sys.stderr)
    ch.setFormatter(formatter)
    logger.addHandler(ch)

    if log_file:
        fh = logging.FileHandler(log_file)
        fh.setFormatter(formatter)
        logger.addHandler(fh)


def get_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """
    Retrieve a module logger.

    Args:
        name: The name of the logger, normally ``__name__``.
        level: Optional level; when omitted the logger inherits from the root.

    Returns:
        The named logger.
    """
    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level)
    return logger
