# lorerank/config/__init__.py
"""Configuration schema and layered loading."""

from .loader import deep_merge, load_config, load_config_dict
from .schema import (
    BoostConfig,
    ChunkConditionsConfig,
    CrosslinkConfig,
    DecayConfig,
    FallbackConfig,
    GroupConfig,
    ImportanceConfig,
    LinkConfig,
    LoggingConfig,
    LoreRankConfig,
    RetrievalConfig,
    SynthesisConfig,
)

__all__ = [
    "BoostConfig",
    "ChunkConditionsConfig",
    "CrosslinkConfig",
    "DecayConfig",
    "FallbackConfig",
    "GroupConfig",
    "ImportanceConfig",
    "LinkConfig",
    "LoggingConfig",
    "LoreRankConfig",
    "RetrievalConfig",
    "SynthesisConfig",
    "deep_merge",
    "load_config",
    "load_config_dict",
]
