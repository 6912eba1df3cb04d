# lorerank/logging/logger.py
"""
Unified logging setup for lorerank.

All modules use:
    from lorerank.logging.logger import get_logger
    logger = get_logger(__name__)

Log namespaces follow module paths, so one call to configure_logging()
at the entrypoint (CLI, host application) controls the whole package.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

DEFAULT_FORMAT = "[%(levelname)s] %(name)s - %(message)s"


def configure_logging(
    level: int | str = logging.INFO,
    fmt: str = DEFAULT_FORMAT,
    stream: TextIO = sys.stderr,
) -> None:
    """
    Configure the root logging handler.

    Called once early in the application lifecycle. Safe to call multiple
    times: a second handler is never installed.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler(stream)
        handler.setFormatter(logging.Formatter(fmt))
        root.addHandler(handler)

    root.setLevel(level)


def get_logger(name: str) -> logging.Logger:
    """
    Modules call this to get a logger.

    Do NOT configure logging here; configuration happens in configure_logging().
    """
    return logging.getLogger(name)
