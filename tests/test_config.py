"""Tests for configuration loading and validation."""

import tempfile
from pathlib import Path

import pytest

from schema_atlas.config import AtlasConfig
from schema_atlas.errors import ConfigError


class TestAtlasConfig:
    """Tests for AtlasConfig."""

    def test_defaults(self):
        config = AtlasConfig()

        assert config.default_sample_size == 1000
        assert config.max_enum_values == 100
        assert config.high_null_threshold == 40.0
        assert config.name_similarity_threshold == 0.5
        assert config.auto_persist_threshold == 0.8
        assert config.review_threshold == 0.6
        assert config.overlap_workers == 1
        assert config.pattern_detectors == ["email-like", "url-like", "phone-like"]

    def test_threshold_out_of_range(self):
        with pytest.raises(ConfigError):
            AtlasConfig(auto_persist_threshold=1.5)

    def test_review_threshold_above_persist_threshold(self):
        with pytest.raises(ConfigError):
            AtlasConfig(auto_persist_threshold=0.7, review_threshold=0.75)

    def test_non_positive_sizes(self):
        with pytest.raises(ConfigError):
            AtlasConfig(overlap_workers=0)
        with pytest.raises(ConfigError):
            AtlasConfig(max_enum_values=0)

    def test_unknown_keys_rejected(self):
        with pytest.raises(ConfigError, match="sample_szie"):
            AtlasConfig.from_dict({"sample_szie": 10})

    def test_from_yaml(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "atlas.yaml"
            path.write_text(
                "auto_persist_threshold: 0.85\n"
                "review_threshold: 0.65\n"
                "overlap_workers: 4\n"
                "pattern_detectors:\n"
                "  - email-like\n"
            )

            config = AtlasConfig.from_yaml(path)

        assert config.auto_persist_threshold == 0.85
        assert config.review_threshold == 0.65
        assert config.overlap_workers == 4
        assert config.pattern_detectors == ["email-like"]
        assert config.max_enum_values == 100

    def test_from_yaml_missing_file(self):
        with pytest.raises(ConfigError):
            AtlasConfig.from_yaml(Path("/nonexistent/atlas.yaml"))

    def test_from_yaml_requires_mapping(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "atlas.yaml"
            path.write_text("- 1\n- 2\n")

            with pytest.raises(ConfigError):
                AtlasConfig.from_yaml(path)

    def test_round_trip(self):
        config = AtlasConfig(overlap_workers=3)
        assert AtlasConfig.from_dict(config.to_dict()) == config
