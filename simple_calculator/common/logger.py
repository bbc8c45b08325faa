"""Shared logger for the calculator package."""
import logging
from typing import Union


LOGGER_NAME = "simple_calculator"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

logger: logging.Logger = logging.getLogger(LOGGER_NAME)


def configure_logging(level: Union[int, str] = logging.INFO) -> logging.Logger:
    """
    Attach a console handler to the package logger and set its level.

    Calling this more than once only updates the level; handlers are never duplicated.

    :param Union[int, str] level: Logging level, as a number or a name such as "DEBUG"

    :return: The configured package logger
    :rtype: logging.Logger
    :raises ValueError: If the level name is unknown
    """
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level: {level!r}")
        level = resolved

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    logger.setLevel(level)
    return logger
