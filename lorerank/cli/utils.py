# lorerank/cli/utils.py
"""
Shared CLI utilities.

The top-level ``-v`` flag is recorded here by the app callback; commands
load their config through ``load_cli_config`` so ``logging.level`` from the
config file takes effect unless ``-v`` asked for DEBUG.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

from lorerank.config.loader import load_config
from lorerank.config.schema import LoreRankConfig
from lorerank.logging.logger import configure_logging

_verbose = False


def set_verbose(flag: bool) -> None:
    global _verbose
    _verbose = flag
    configure_logging("DEBUG" if flag else "WARNING")


def load_cli_config(
    path: Optional[Path] = None,
    overrides: Optional[dict[str, Any]] = None,
) -> LoreRankConfig:
    """Load config and apply its logging level (``-v`` wins)."""
    cfg = load_config(path, overrides=overrides)
    configure_logging("DEBUG" if _verbose else cfg.logging.level)
    return cfg


__all__ = ["set_verbose", "load_cli_config"]
