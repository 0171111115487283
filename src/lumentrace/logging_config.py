"""Logging configuration for lumentrace scripts.

Library modules only create module-level loggers
(``logging.getLogger(__name__)``); handlers are attached here, by the
application, through ``setup_logging``.
"""

import logging
from pathlib import Path

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    level: str = "INFO",
    log_file: Path | None = None,
    name: str = "lumentrace",
) -> logging.Logger:
    """Set up console (and optional file) logging.

    Calling this more than once replaces the handlers added by the previous
    call instead of duplicating output.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional path of a log file to write as well.
        name: Logger to configure. Defaults to the package logger.

    Returns:
        The configured logger.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger(name)
    logger.setLevel(log_level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
