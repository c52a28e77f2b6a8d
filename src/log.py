"""Log utilities."""

import logging
import os

from rich.logging import RichHandler

from constants import DEFAULT_LOG_LEVEL, VECTOR_CONFIG_LOG_LEVEL_ENV_VAR

_managed_loggers: dict[str, logging.Logger] = {}


def resolve_log_level(level_str: str) -> int:
    """Convert a level name such as `debug` or `WARNING` to its numeric value.

    Parameters:
        level_str (str): Level name, case-insensitive.

    Returns:
        int: The logging level, or the default level if the name is unknown.
    """
    level = getattr(logging, level_str.upper(), None)
    if isinstance(level, int):
        return level
    return getattr(logging, DEFAULT_LOG_LEVEL)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger configured for Rich console output.

    The level comes from the VECTOR_CONFIG_LOG_LEVEL environment variable
    (INFO when unset or invalid). The logger writes through a single
    RichHandler and does not propagate to ancestor loggers.

    Parameters:
        name (str): Name of the logger to retrieve or create.

    Returns:
        logging.Logger: The configured logger instance.
    """
    if name in _managed_loggers:
        return _managed_loggers[name]

    logger = logging.getLogger(name)
    logger.handlers = [RichHandler(show_path=False)]
    logger.propagate = False

    level_str = os.environ.get(VECTOR_CONFIG_LOG_LEVEL_ENV_VAR, DEFAULT_LOG_LEVEL)
    level = resolve_log_level(level_str)
    if not isinstance(getattr(logging, level_str.upper(), None), int):
        logger.warning(
            "Invalid log level '%s', falling back to %s", level_str, DEFAULT_LOG_LEVEL
        )
    logger.setLevel(level)

    _managed_loggers[name] = logger
    return logger


def set_log_level(level: int) -> None:
    """Change the level of every logger handed out by `get_logger`."""
    for logger in _managed_loggers.values():
        logger.setLevel(level)
