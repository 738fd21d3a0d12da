"""Tests for EngineConfig loading and validation."""

import pytest

from liftplan.config import EngineConfig
from liftplan.errors import ConfigurationError


class TestEngineConfig:

    def test_defaults(self):
        config = EngineConfig()
        assert config.max_accessories == 5
        assert config.superset_rest_multiplier == 0.6
        assert not config.revised_fat_loss_set_policy

    def test_min_over_max_rejected(self):
        with pytest.raises(ConfigurationError):
            EngineConfig(min_accessories=6, max_accessories=5)

    def test_from_dict_flattens_sections_and_ignores_unknown(self):
        config = EngineConfig.from_dict({
            "selection": {"max_accessories": 4},
            "volume": {"volume_cap_ratio": 1.5},
            "enforce_volume_caps": False,
            "mystery": 1,
        })
        assert config.max_accessories == 4
        assert config.volume_cap_ratio == 1.5
        assert not config.enforce_volume_caps


class TestLoaders:

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "engine.yaml"
        path.write_text("prescription:\n  revised_fat_loss_set_policy: true\n")
        assert EngineConfig.from_yaml(path).revised_fat_loss_set_policy

    def test_explicit_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            EngineConfig.from_yaml(tmp_path / "nope.yaml")

    def test_repo_default_matches_builtin(self):
        assert EngineConfig.from_yaml() == EngineConfig()

    def test_env_overrides(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("LIFTPLAN_MAX_ACCESSORIES", "4")
        monkeypatch.setenv("LIFTPLAN_ENFORCE_VOLUME_CAPS", "off")
        monkeypatch.setenv("LIFTPLAN_SUPERSET_REST_MULTIPLIER", "0.5")

        config = EngineConfig.from_env()
        assert config.max_accessories == 4
        assert not config.enforce_volume_caps
        assert config.superset_rest_multiplier == 0.5

    def test_env_bad_value(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("LIFTPLAN_REVISED_FAT_LOSS_SET_POLICY", "maybe")
        with pytest.raises(ConfigurationError):
            EngineConfig.from_env()

    def test_load_chains_yaml_then_env(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        path = tmp_path / "engine.yaml"
        path.write_text("selection:\n  max_accessories: 4\n  warmup_count: 1\n")
        monkeypatch.setenv("LIFTPLAN_MAX_ACCESSORIES", "3")

        config = EngineConfig.load(path)
        assert config.max_accessories == 3
        assert config.warmup_count == 1
