"""Logging configuration for the ``wallet`` package.

``configure_logging(...)`` attaches one ``StreamHandler`` to the package root
logger and is meant to be called once by an entrypoint (the streamlit app).
``get_logger(name)`` is what library modules use; until the package is
configured the root logger only carries a ``NullHandler``.
"""

import logging
import os
import sys
from typing import IO, Optional, Union

_PKG_LOGGER_NAME = "wallet"
_CONFIGURED = False


def _level_from_name(name: str) -> Optional[int]:
    name = name.strip().upper()
    if name.isdigit():
        return int(name)
    numeric = getattr(logging, name, None)
    return numeric if isinstance(numeric, int) else None


def _parse_level(level: Union[int, str, None]) -> int:
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        resolved = _level_from_name(level)
        if resolved is not None:
            return resolved
    env_val = os.getenv("WALLET_LOG_LEVEL")
    if env_val:
        resolved = _level_from_name(env_val)
        if resolved is not None:
            return resolved
    return logging.INFO


def configure_logging(
    level: Union[int, str, None] = None,
    *,
    fmt: Optional[str] = None,
    stream: IO[str] = sys.stderr,
) -> None:
    """Configure the package root logger exactly once.

    ``level`` falls back to ``WALLET_LOG_LEVEL`` and then to ``INFO``.
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    logger = logging.getLogger(_PKG_LOGGER_NAME)
    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    resolved = _parse_level(level)
    handler = logging.StreamHandler(stream)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt or "%(asctime)s %(name)s %(levelname)s %(message)s"))

    logger.setLevel(resolved)
    logger.addHandler(handler)
    logger.propagate = False

    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not _CONFIGURED and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)
