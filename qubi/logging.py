"""
Package logging for qubi.

This module provides:
- get_logger(): per-module loggers under the "qubi" namespace
- set_log_level(): change the level of every qubi logger at once
- configure_logging(): swap the output stream or format (tests use this to
  capture records)

The simulator logs soft failures (unknown gate names, collapse onto a
zero-probability outcome, skipped gates) at WARNING or ERROR, so the default
level is WARNING. Records are written to stderr as "[LEVEL] name: message"
and are not passed on to the root logger.
"""

import logging
import sys
from typing import Dict, Optional, Union

ROOT_NAME = "qubi"
LINE_FORMAT = "[%(levelname)s] %(name)s: %(message)s"

_level = logging.WARNING
_registry: Dict[str, logging.Logger] = {}


# =============================================================================
# Internal helpers
# =============================================================================

def _as_level(level: Union[int, str]) -> int:
    """Accept logging.DEBUG as well as "debug"; unknown names mean WARNING."""
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.WARNING)
    return level


def _qualify(name: Optional[str]) -> str:
    if not name or name == ROOT_NAME:
        return ROOT_NAME
    if name.startswith(ROOT_NAME + "."):
        return name
    return f"{ROOT_NAME}.{name}"


def _install_handler(logger: logging.Logger, level: int, stream=None,
                     fmt: str = LINE_FORMAT):
    """Replace any handlers on logger with a single stream handler."""
    for old in list(logger.handlers):
        logger.removeHandler(old)
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    logger.addHandler(handler)
    logger.setLevel(level)


# =============================================================================
# Public API
# =============================================================================

def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Return the qubi logger for a module.

    Modules call get_logger(__name__). Names outside the package are moved
    under it, so get_logger("tools") gives "qubi.tools".

    Args:
        name: Module name, or None for the package logger

    Returns:
        The same Logger object on every call with the same name
    """
    qualified = _qualify(name)
    logger = _registry.get(qualified)
    if logger is not None:
        return logger

    logger = logging.getLogger(qualified)
    if not logger.handlers:
        _install_handler(logger, _level)
        logger.propagate = False
    _registry[qualified] = logger
    return logger


def set_log_level(level: Union[int, str]) -> None:
    """Set the level on every qubi logger, including ones created later."""
    global _level
    _level = _as_level(level)
    for logger in _registry.values():
        logger.setLevel(_level)
        for handler in logger.handlers:
            handler.setLevel(_level)


def configure_logging(level: Union[int, str] = logging.WARNING,
                      format_string: Optional[str] = None,
                      stream=None,
                      propagate: bool = False) -> None:
    """
    Point every qubi logger at a new stream and format.

    Args:
        level: Level number or name
        format_string: Record format (default "[LEVEL] name: message")
        stream: Where records go (default sys.stderr)
        propagate: Also hand records to the root logger, e.g. for caplog
    """
    global _level
    _level = _as_level(level)
    for logger in _registry.values():
        _install_handler(logger, _level, stream, format_string or LINE_FORMAT)
        logger.propagate = propagate
