# tests/unit/test_config_loader.py
"""Test config loading."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from lorerank.config.loader import deep_merge, load_config, load_config_dict
from lorerank.config.schema import LoggingConfig, LoreRankConfig, RetrievalConfig, SynthesisConfig
from lorerank.core.exceptions import (
    ConfigNotFoundError,
    ConfigParseError,
    ConfigValidationError,
)


def test_load_config_from_defaults():
    """Package defaults validate and match the schema defaults."""
    config = load_config()

    assert isinstance(config, LoreRankConfig)
    assert config.retrieval.top_k == 8
    assert config.crosslink.threshold == 0.25
    assert config.fallback.limit == 5
    assert config.synthesis.max_keywords == 12


def test_user_file_overrides_defaults(tmp_path):
    """Values from the user file win; unspecified values keep defaults."""
    path = tmp_path / "lorerank.yaml"
    path.write_text("lorerank:\n  retrieval:\n    top_k: 3\n", encoding="utf-8")

    config = load_config(path)

    assert config.retrieval.top_k == 3
    assert config.retrieval.max_workers == 4


def test_flat_user_file(tmp_path):
    """Documents without the root key are accepted."""
    path = tmp_path / "lorerank.yaml"
    path.write_text("fallback:\n  prioritize: true\n", encoding="utf-8")

    assert load_config(path).fallback.prioritize is True


def test_overrides_applied_last(tmp_path):
    path = tmp_path / "lorerank.yaml"
    path.write_text("retrieval:\n  top_k: 3\n", encoding="utf-8")

    config = load_config(path, overrides={"retrieval": {"top_k": 5}})

    assert config.retrieval.top_k == 5


def test_missing_file(tmp_path):
    with pytest.raises(ConfigNotFoundError):
        load_config(tmp_path / "missing.yaml")


def test_invalid_yaml(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("retrieval: [top_k\n", encoding="utf-8")

    with pytest.raises(ConfigParseError):
        load_config(path)


def test_unknown_key_rejected(tmp_path):
    path = tmp_path / "typo.yaml"
    path.write_text("retrieval:\n  topk: 3\n", encoding="utf-8")

    with pytest.raises(ConfigValidationError) as exc_info:
        load_config(path)

    assert exc_info.value.path == path


def test_load_config_dict():
    data = load_config_dict(overrides={"boost": {"default_weight": 40}})

    assert data["boost"]["default_weight"] == 40
    assert data["boost"]["custom_keyword_floor"] == 100


class TestDeepMerge:
    """Tests for deep_merge()."""

    def test_nested(self):
        assert deep_merge({"a": 1, "b": {"c": 2, "d": 3}}, {"b": {"c": 10}}) == {
            "a": 1,
            "b": {"c": 10, "d": 3},
        }

    def test_lists_replaced(self):
        assert deep_merge({"a": [1, 2]}, {"a": [3]}) == {"a": [3]}

    def test_base_not_mutated(self):
        base = {"a": {"b": 1}}

        deep_merge(base, {"a": {"b": 2}})

        assert base == {"a": {"b": 1}}


class TestSchema:
    """Tests for schema helpers and validation."""

    @pytest.mark.parametrize(
        "top_k,per_collection,expected",
        [(8, None, 16), (2, None, 10), (80, None, 100), (8, 7, 7)],
    )
    def test_collection_top_k(self, top_k, per_collection, expected):
        config = RetrievalConfig(top_k=top_k, per_collection_top_k=per_collection)

        assert config.collection_top_k() == expected

    def test_fallback_trigger_defaults_to_top_k(self):
        assert LoreRankConfig().fallback_trigger() == 8
        assert LoreRankConfig(fallback={"trigger_below": 2}).fallback_trigger() == 2

    def test_link_thresholds_ordered(self):
        with pytest.raises(ValidationError):
            SynthesisConfig(soft_link_mentions=9, force_link_mentions=7)

    def test_top_k_positive(self):
        with pytest.raises(ValidationError):
            RetrievalConfig(top_k=0)

    def test_logging_level_normalized(self):
        assert LoggingConfig(level="debug").level == "DEBUG"
        assert load_config().logging.level == "WARNING"

        with pytest.raises(ValidationError):
            LoggingConfig(level="chatty")

    def test_unknown_score_convention(self):
        with pytest.raises(ValidationError):
            RetrievalConfig(score_convention="dot_product")
