"""Tests for configuration loading."""

import json
from pathlib import Path

import pytest

from smelter.exceptions import ConfigurationFailure
from smelter.models.config import (
    CACHE_DIR_ENV,
    CacheConfig,
    Config,
    default_cache_dir,
    load_config,
    save_config,
)


class TestConfig:

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv(CACHE_DIR_ENV, raising=False)
        config = Config()

        assert config.cache.cache_dir == Path.home() / ".cache" / "smelter"
        assert config.cache.db_path.name == "smelter_cache.db"
        assert config.cache.enabled is True
        assert config.categories.catalog_prefix == "ES_"
        assert config.categories.misc_category == "SFX"
        assert config.categories.unknown_category == "Unknown"
        assert config.audio_extensions == (".mp3", ".wav")

    def test_cache_dir_from_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv(CACHE_DIR_ENV, str(tmp_path / "cache"))
        assert default_cache_dir() == tmp_path / "cache"
        assert CacheConfig().db_path == tmp_path / "cache" / "smelter_cache.db"

    def test_default_with_cache_dir(self, tmp_path):
        config = Config.default(cache_dir=tmp_path)
        assert config.cache.db_path == tmp_path / "smelter_cache.db"

    def test_save_and_load(self, tmp_path):
        config = Config.default(cache_dir=tmp_path / "cache")
        config.categories.misc_category = "Effects"
        config.audio_extensions = (".mp3", ".flac")
        config_path = tmp_path / "conf" / "smelter.json"

        save_config(config, config_path)
        loaded = load_config(config_path)

        assert loaded == config

    def test_partial_config(self, tmp_path):
        config_path = tmp_path / "smelter.json"
        config_path.write_text(json.dumps({
            "categories": {"unknown_category": "Untagged"},
            "audio_extensions": [".MP3", ".Wav", ".aiff"],
            "theme": "dark",
        }))

        config = load_config(config_path)

        assert config.categories.unknown_category == "Untagged"
        assert config.categories.catalog_prefix == "ES_"
        assert config.audio_extensions == (".mp3", ".wav", ".aiff")

    def test_cache_section(self, tmp_path):
        config_path = tmp_path / "smelter.json"
        config_path.write_text(json.dumps({
            "cache": {"cache_dir": str(tmp_path / "c"), "enabled": False},
        }))

        config = load_config(config_path)

        assert config.cache.cache_dir == tmp_path / "c"
        assert config.cache.enabled is False

    def test_malformed_json(self, tmp_path):
        config_path = tmp_path / "smelter.json"
        config_path.write_text("{not json")

        with pytest.raises(ConfigurationFailure, match="Malformed config file"):
            load_config(config_path)

    def test_section_must_be_object(self, tmp_path):
        config_path = tmp_path / "smelter.json"
        config_path.write_text(json.dumps({"cache": "somewhere"}))

        with pytest.raises(ConfigurationFailure):
            load_config(config_path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationFailure, match="Cannot read config file"):
            load_config(tmp_path / "missing.json")
