"""Configuration models and helpers for Campaignkit."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DEFAULT_RULES_ASSET_NAMESPACE = "campaignrules/assets"
DEFAULT_MESSAGE_CACHE_FOLDER = "messages"
DEFAULT_DOWNLOADABLE_EXTENSIONS = ["png", "jpg", "jpeg", "gif", "webp", "bmp", "svg"]


@dataclass(frozen=True)
class BootstrapReport:
    """Summary of files/directories created during initialisation."""

    base_created: bool
    cache_dir_created: bool
    global_config_created: bool
    global_config_overwritten: bool


class ConfigError(RuntimeError):
    """Raised when configuration files cannot be parsed or are invalid."""


@dataclass(frozen=True)
class ConfigPaths:
    """Resolved filesystem locations used by the application."""

    base_dir: Path
    global_config: Path

    @classmethod
    def default(cls) -> "ConfigPaths":
        """Return default locations under the user's home directory."""

        base = Path.home() / ".campaignkit"
        return cls.from_base_dir(base)

    @classmethod
    def from_base_dir(cls, base_dir: Path) -> "ConfigPaths":
        """Construct paths using ``base_dir`` as root."""

        base_dir = base_dir.expanduser()
        return cls(
            base_dir=base_dir,
            global_config=base_dir / "config.yml",
        )

    @property
    def cache_dir(self) -> Path:
        """Default directory holding the shared asset cache."""

        return self.base_dir / "cache"


class CacheSettings(BaseModel):
    """Location of the directory-backed asset cache."""

    root: Path = Field(default_factory=lambda: ConfigPaths.default().cache_dir)

    model_config = ConfigDict(extra="forbid")


class TagIds(BaseModel):
    """Tag identifiers recognised in the third segment of an interaction id."""

    button_1: str = "3"
    button_2: str = "4"
    button_x: str = "5"

    model_config = ConfigDict(extra="forbid")

    def recognized(self) -> Dict[str, str]:
        """Map each tag value to its button name."""

        return {self.button_1: "button_1", self.button_2: "button_2", self.button_x: "button_x"}


class MessagingSettings(BaseModel):
    """Cache namespaces and interaction parsing rules for campaign messages."""

    rules_asset_namespace: str = Field(default=DEFAULT_RULES_ASSET_NAMESPACE, min_length=1)
    message_cache_folder: str = Field(default=DEFAULT_MESSAGE_CACHE_FOLDER, min_length=1)
    tag_id_delimiter: str = Field(default=",", min_length=1)
    id_tokens_len: int = Field(default=3, ge=3)
    tag_ids: TagIds = Field(default_factory=TagIds)
    downloadable_extensions: List[str] = Field(
        default_factory=lambda: list(DEFAULT_DOWNLOADABLE_EXTENSIONS)
    )

    model_config = ConfigDict(extra="forbid")

    @field_validator("downloadable_extensions")
    @classmethod
    def normalise_extensions(cls, value: List[str]) -> List[str]:
        return [item.strip().lstrip(".").lower() for item in value if item and item.strip()]

    @field_validator("rules_asset_namespace", "message_cache_folder")
    @classmethod
    def strip_slashes(cls, value: str) -> str:
        stripped = value.strip("/")
        if not stripped:
            raise ValueError("Cache namespace cannot be empty.")
        return stripped

    def html_cache_key(self, html_key: str) -> str:
        """Cache key of the HTML body for a message."""

        return f"{self.rules_asset_namespace}/{html_key}"

    def asset_cache_key(self, message_id: str, url: str) -> str:
        """Cache key of a downloaded remote asset for a message."""

        return f"{self.message_cache_folder}/{message_id}/{url}"


class RuntimeSettings(BaseModel):
    """Runtime-level defaults."""

    log_level: str = Field(default="INFO")

    model_config = ConfigDict(extra="forbid")


class GlobalConfig(BaseModel):
    """Top-level configuration file model."""

    cache: CacheSettings = Field(default_factory=CacheSettings)
    messaging: MessagingSettings = Field(default_factory=MessagingSettings)
    runtime: RuntimeSettings = Field(default_factory=RuntimeSettings)

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def check_tag_ids(self) -> "GlobalConfig":
        tags = self.messaging.tag_ids
        if len({tags.button_1, tags.button_2, tags.button_x}) != 3:
            raise ValueError("Tag ids for button_1, button_2 and button_x must be distinct.")
        return self


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except FileNotFoundError as exc:
        raise ConfigError(f"Configuration file not found: {path}") from exc
    except yaml.YAMLError as exc:  # pragma: no cover - depends on invalid input
        raise ConfigError(f"Failed to parse YAML file: {path}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"Expected mapping at top level of {path}")
    return data


def load_global_config(path: Path) -> GlobalConfig:
    """Load and validate the global configuration file."""

    payload = _read_yaml(path)
    try:
        return GlobalConfig.model_validate(payload)
    except ValueError as exc:
        raise ConfigError(f"Invalid configuration in {path}: {exc}") from exc


def _default_global_config(paths: ConfigPaths) -> Dict[str, Any]:
    """Dictionary representing the starter global configuration."""

    return {
        "cache": {
            "root": str(paths.cache_dir),
        },
        "messaging": {
            "rules_asset_namespace": DEFAULT_RULES_ASSET_NAMESPACE,
            "message_cache_folder": DEFAULT_MESSAGE_CACHE_FOLDER,
            "tag_id_delimiter": ",",
            "id_tokens_len": 3,
            "tag_ids": {
                "button_1": "3",
                "button_2": "4",
                "button_x": "5",
            },
            "downloadable_extensions": list(DEFAULT_DOWNLOADABLE_EXTENSIONS),
        },
        "runtime": {
            "log_level": "INFO",
        },
    }


def _write_yaml(path: Path, data: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        yaml.safe_dump(data, handle, sort_keys=False)


def bootstrap(paths: ConfigPaths, overwrite: bool = False) -> BootstrapReport:
    """Ensure configuration directories/files exist.

    Parameters
    ----------
    paths:
        Target filesystem layout.
    overwrite:
        When ``True`` the global config file is re-written even if it already exists.
    """

    base_created = False
    cache_dir_created = False
    global_config_created = False
    global_config_overwritten = False

    if not paths.base_dir.exists():
        paths.base_dir.mkdir(parents=True, exist_ok=True)
        base_created = True

    if not paths.cache_dir.exists():
        paths.cache_dir.mkdir(parents=True, exist_ok=True)
        cache_dir_created = True

    existing_global = paths.global_config.exists()
    if not existing_global or overwrite:
        _write_yaml(paths.global_config, _default_global_config(paths))
        global_config_created = True
        global_config_overwritten = existing_global and overwrite

    return BootstrapReport(
        base_created=base_created,
        cache_dir_created=cache_dir_created,
        global_config_created=global_config_created,
        global_config_overwritten=global_config_overwritten,
    )
