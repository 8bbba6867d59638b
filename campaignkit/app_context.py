"""Shared application context for Campaignkit CLI commands."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .cache import FileAssetCache
from .config import ConfigPaths, GlobalConfig, load_global_config


@dataclass
class AppContext:
    """Container for resolved configuration used by CLI commands."""

    paths: ConfigPaths
    global_config: GlobalConfig
    cache: FileAssetCache


def determine_paths(config_dir: Optional[Path]) -> ConfigPaths:
    """Resolve configuration paths based on optional CLI override."""

    return ConfigPaths.from_base_dir(config_dir) if config_dir else ConfigPaths.default()


def load_context(paths: ConfigPaths) -> AppContext:
    """Load global configuration and open the asset cache it points at."""

    global_config = load_global_config(paths.global_config)
    cache_root = Path(global_config.cache.root).expanduser()
    if not cache_root.is_absolute():
        cache_root = paths.base_dir / cache_root

    return AppContext(paths=paths, global_config=global_config, cache=FileAssetCache(cache_root))
