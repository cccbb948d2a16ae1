"""Centralized logging configuration for reckon.

Usage:
    from reckon.logging_setup import get_logger
    logger = get_logger(__name__)

    logger.debug("Detailed debug info")
    logger.info("General info")
    logger.warning("Warning message")

Library modules never attach handlers. Until the CLI (or a host application)
calls configure_logging, the reckon namespace logger only carries a
NullHandler, so importing reckon.api stays silent.

Environment variables:
    RECKON_LOG_LEVEL: Set log level (DEBUG, INFO, WARNING, ERROR). Default: WARNING
"""

import logging
import os
import sys

ROOT_LOGGER_NAME = "reckon"

# Quiet by default so CLI output stays readable
DEFAULT_LOG_LEVEL = logging.WARNING

LOG_FORMAT = "%(levelname)s [%(name)s] %(message)s"
LOG_FORMAT_DEBUG = "%(asctime)s %(levelname)s [%(name)s:%(lineno)d] %(message)s"

_logging_configured = False


def _level_from_env() -> int:
    env_level = os.environ.get("RECKON_LOG_LEVEL", "").strip().upper()
    level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "WARN": logging.WARNING,
        "ERROR": logging.ERROR,
    }
    return level_map.get(env_level, DEFAULT_LOG_LEVEL)


def configure_logging(level: int | None = None) -> None:
    """Configure the reckon namespace logger.

    Args:
        level: Log level to use. If None, reads from RECKON_LOG_LEVEL env var
               or uses DEFAULT_LOG_LEVEL.
    """
    global _logging_configured

    if _logging_configured:
        if level is not None:
            set_log_level(level)
        return

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    for existing in list(root_logger.handlers):
        if isinstance(existing, logging.NullHandler):
            root_logger.removeHandler(existing)

    if level is None:
        level = _level_from_env()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT_DEBUG if level == logging.DEBUG else LOG_FORMAT))

    root_logger.setLevel(level)
    root_logger.addHandler(handler)
    root_logger.propagate = False

    _logging_configured = True


def get_logger(name: str) -> logging.Logger:
    """Get a logger for the given module name.

    Attaches a NullHandler to the reckon namespace logger when logging has not
    been configured, so library use emits nothing.

    Args:
        name: Module name, typically __name__

    Returns:
        Logger instance
    """
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    if not _logging_configured and not root_logger.handlers:
        root_logger.addHandler(logging.NullHandler())

    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def set_log_level(level: int) -> None:
    """Change the log level at runtime.

    Args:
        level: New log level (e.g., logging.DEBUG)
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)

    for handler in logger.handlers:
        handler.setFormatter(logging.Formatter(LOG_FORMAT_DEBUG if level == logging.DEBUG else LOG_FORMAT))
