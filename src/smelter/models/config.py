"""Configuration model for smelter."""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

from ..exceptions import ConfigurationFailure

CACHE_DIR_ENV = "SMELTER_CACHE_DIR"


def default_cache_dir() -> Path:
    """Per-user directory holding the metadata cache."""
    override = os.environ.get(CACHE_DIR_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".cache" / "smelter"


@dataclass
class CacheConfig:
    """Configuration for the metadata cache."""
    cache_dir: Path = field(default_factory=default_cache_dir)
    db_name: str = "smelter_cache.db"
    enabled: bool = True

    @property
    def db_path(self) -> Path:
        return self.cache_dir / self.db_name


@dataclass
class CategoryConfig:
    """Configuration for category naming."""
    catalog_prefix: str = "ES_"
    misc_category: str = "SFX"
    unknown_category: str = "Unknown"


@dataclass
class Config:
    """Main configuration model."""
    cache: CacheConfig = field(default_factory=CacheConfig)
    categories: CategoryConfig = field(default_factory=CategoryConfig)
    audio_extensions: Tuple[str, ...] = (".mp3", ".wav")

    @classmethod
    def default(cls, cache_dir: Optional[Path] = None) -> "Config":
        config = cls()
        if cache_dir is not None:
            config.cache.cache_dir = Path(cache_dir)
        return config


def _dataclass_to_dict(obj):
    """Convert dataclass to dict recursively."""
    from dataclasses import is_dataclass, fields
    if is_dataclass(obj):
        return {f.name: _dataclass_to_dict(getattr(obj, f.name)) for f in fields(obj)}
    elif isinstance(obj, Path):
        return str(obj)
    elif isinstance(obj, (list, tuple)):
        return [_dataclass_to_dict(item) for item in obj]
    else:
        return obj


def _dict_to_dataclass(data, dataclass_type):
    """Convert dict to dataclass recursively, ignoring unknown keys."""
    from dataclasses import is_dataclass, fields
    if not is_dataclass(dataclass_type):
        return data
    if not isinstance(data, dict):
        raise ConfigurationFailure(
            f"Expected an object for {dataclass_type.__name__}, got {type(data).__name__}"
        )

    kwargs = {}
    for f in fields(dataclass_type):
        if f.name not in data:
            continue
        value = data[f.name]
        if hasattr(f.type, '__dataclass_fields__'):
            kwargs[f.name] = _dict_to_dataclass(value, f.type)
        elif f.name == "cache_dir":
            kwargs[f.name] = Path(value).expanduser()
        elif f.name == "audio_extensions":
            kwargs[f.name] = tuple(str(ext).lower() for ext in value)
        else:
            kwargs[f.name] = value

    return dataclass_type(**kwargs)


def load_config(config_path: Path) -> Config:
    """Load configuration from JSON file."""
    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            config_data = json.load(f)
    except OSError as e:
        raise ConfigurationFailure(f"Cannot read config file '{config_path}': {e}")
    except json.JSONDecodeError as e:
        raise ConfigurationFailure(f"Malformed config file '{config_path}': {e}")

    return _dict_to_dataclass(config_data, Config)


def save_config(config: Config, config_path: Path) -> None:
    """Save configuration to JSON file."""
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, 'w', encoding='utf-8') as f:
        json.dump(_dataclass_to_dict(config), f, indent=2)
