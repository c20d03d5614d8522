"""Tests for the YAML Config manager."""
import pytest

from backend.services.shared.config import (
    DEFAULT_CONFIG_PATH,
    Config,
    get_config,
    get_config_or_none,
    reset_config,
)


@pytest.fixture(autouse=True)
def reset_singleton():
    reset_config()
    yield
    reset_config()


class TestConfigDotNotation:
    def test_get_top_level_key(self, sample_settings):
        cfg = Config(str(sample_settings))
        assert cfg.get("providers") is not None

    def test_get_nested_key(self, sample_settings):
        cfg = Config(str(sample_settings))
        assert cfg.get("providers.backoff_sec") == 120

    def test_get_deeply_nested(self, sample_settings):
        cfg = Config(str(sample_settings))
        assert cfg.get("cost.base.quality") == 0.6

    def test_get_missing_key_returns_default(self, sample_settings):
        cfg = Config(str(sample_settings))
        assert cfg.get("nonexistent.key") is None
        assert cfg.get("nonexistent.key", "fallback") == "fallback"

    def test_get_partial_missing_returns_default(self, sample_settings):
        cfg = Config(str(sample_settings))
        assert cfg.get("providers.nonexistent", 99) == 99

    def test_get_float_converts(self, sample_settings):
        cfg = Config(str(sample_settings))
        value = cfg.get_float("providers.backoff_sec", 1.0)
        assert isinstance(value, float)
        assert value == 120.0

    def test_get_float_missing_uses_default(self, sample_settings):
        cfg = Config(str(sample_settings))
        assert cfg.get_float("providers.nothing_here", 7.5) == 7.5


class TestConfigEnv:
    def test_env_lookup(self, sample_settings, monkeypatch):
        monkeypatch.setenv("FAL_API_KEY", "test-key-abc")
        cfg = Config(str(sample_settings))
        assert cfg.get_env("FAL_API_KEY") == "test-key-abc"

    def test_get_env_missing_returns_none(self, sample_settings):
        cfg = Config(str(sample_settings))
        assert cfg.get_env("NONEXISTENT_ENV_VAR_XYZ") is None

    def test_get_env_with_default(self, sample_settings):
        cfg = Config(str(sample_settings))
        assert cfg.get_env("NONEXISTENT_ENV_VAR_XYZ", "default") == "default"


class TestConfigSingleton:
    def test_get_config_returns_same_instance(self, sample_settings):
        cfg1 = get_config(str(sample_settings))
        cfg2 = get_config()
        assert cfg1 is cfg2

    def test_reset_clears_singleton(self, sample_settings):
        cfg1 = get_config(str(sample_settings))
        reset_config()
        cfg2 = get_config(str(sample_settings))
        assert cfg1 is not cfg2

    def test_get_config_without_path_raises_if_not_initialized(self):
        with pytest.raises(RuntimeError):
            get_config()

    def test_get_config_or_none(self, sample_settings):
        assert get_config_or_none() is None
        cfg = get_config(str(sample_settings))
        assert get_config_or_none() is cfg


class TestConfigValidation:
    def test_missing_file_raises(self, tmp_dir):
        with pytest.raises(FileNotFoundError):
            Config(str(tmp_dir / "nonexistent.yaml"))

    def test_invalid_yaml_raises(self, tmp_dir):
        bad = tmp_dir / "bad.yaml"
        bad.write_text("key: [unclosed bracket\n")
        with pytest.raises(Exception):
            Config(str(bad))

    def test_non_mapping_raises(self, tmp_dir):
        bad = tmp_dir / "list.yaml"
        bad.write_text("- a\n- b\n")
        with pytest.raises(ValueError):
            Config(str(bad))

    def test_shipped_settings_load(self):
        cfg = Config(str(DEFAULT_CONFIG_PATH))
        assert cfg.get("providers.balanced_preference") == ["fal"]
        assert cfg.get_float("preparation.min_confidence", 0.0) == 0.4
