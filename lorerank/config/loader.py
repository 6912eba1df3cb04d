# lorerank/config/loader.py
"""
Layered configuration loading for lorerank.

Layers, later ones winning:
    1. Package defaults shipped in lorerank/config/defaults/lorerank.yaml
    2. An optional user YAML file
    3. An optional overrides mapping (used by the CLI flags)

Usage:
    from lorerank.config.loader import load_config

    config = load_config()
    config = load_config("lorerank.yaml", overrides={"retrieval": {"top_k": 3}})
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import ValidationError

from lorerank.core.exceptions import (
    ConfigError,
    ConfigNotFoundError,
    ConfigParseError,
    ConfigValidationError,
)
from lorerank.logging.logger import get_logger

from .schema import LoreRankConfig

logger = get_logger(__name__)

ROOT_KEY = "lorerank"
DEFAULTS_FILE = Path(__file__).parent / "defaults" / "lorerank.yaml"


# =============================================================================
# Merging
# =============================================================================


def deep_merge(base: dict, override: dict) -> dict:
    """
    Return ``base`` updated with ``override``, recursing into nested mappings.

    Non-mapping values (lists included) from ``override`` replace the base
    value wholesale. Neither argument is mutated.

        >>> deep_merge({"a": 1, "b": {"c": 2, "d": 3}}, {"b": {"c": 10}})
        {'a': 1, 'b': {'c': 10, 'd': 3}}
    """
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


# =============================================================================
# Loading
# =============================================================================


def load_yaml(path: Union[str, Path]) -> dict[str, Any]:
    """Read one YAML mapping from ``path``."""
    source = Path(path)

    if not source.exists():
        raise ConfigNotFoundError("Config file not found", path=source)
    if source.is_dir():
        raise ConfigError("Expected a YAML file but got a directory", path=source)

    try:
        data = yaml.safe_load(source.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigParseError(f"Could not parse YAML: {e}", path=source) from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigParseError(
            f"Top level of the document is a {type(data).__name__}, expected a mapping",
            path=source,
        )

    logger.debug(f"Read {len(data)} top-level key(s) from {source}")
    return data


def _unwrap(raw: dict[str, Any]) -> dict[str, Any]:
    """Accept both ``lorerank: {...}`` documents and flat ones."""
    nested = raw.get(ROOT_KEY)
    return nested if isinstance(nested, dict) else raw


def load_defaults() -> dict[str, Any]:
    return _unwrap(load_yaml(DEFAULTS_FILE))


def load_config_dict(
    path: Optional[Union[str, Path]] = None,
    overrides: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    """Merge defaults, the user file and ``overrides`` into one plain dict."""
    merged = load_defaults()

    if path is not None:
        merged = deep_merge(merged, _unwrap(load_yaml(path)))
        logger.debug(f"Applied user config {path}")

    if overrides:
        merged = deep_merge(merged, overrides)

    return merged


def load_config(
    path: Optional[Union[str, Path]] = None,
    overrides: Optional[dict[str, Any]] = None,
) -> LoreRankConfig:
    """
    Load and validate lorerank configuration.

    Raises:
        ConfigNotFoundError: ``path`` was given but does not exist
        ConfigParseError: a document is not valid YAML or not a mapping
        ConfigValidationError: the merged values fail schema validation
    """
    data = load_config_dict(path, overrides)

    try:
        return LoreRankConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigValidationError(
            f"Invalid lorerank config: {e}",
            path=Path(path) if path is not None else None,
        ) from e


__all__ = [
    "deep_merge",
    "load_yaml",
    "load_defaults",
    "load_config_dict",
    "load_config",
]
