"""Asset resolution for message asset groups.

A group is resolved in two passes over the same strings, token included:
cached remote assets win, bundled local asset names are the fallback.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Iterable, Literal, Optional, Set
from urllib.parse import unquote, urlsplit

from structlog.stdlib import BoundLogger

from ..cache import AssetCache, CacheError
from ..config import MessagingSettings
from .payload import AssetGroup

REMOTE_SCHEMES = {"http", "https"}
LOCAL_SCHEMES = {"", "file"}


@dataclass(frozen=True)
class AssetResolution:
    """Replacement chosen for one asset group."""

    token: str
    value: str
    source: Literal["remote", "local"]
    candidate: str


class AssetPolicy:
    """Classifies group strings as downloadable remote or bundled local assets."""

    def __init__(self, extensions: Iterable[str]) -> None:
        self._extensions: Set[str] = {ext.lower().lstrip(".") for ext in extensions}

    @classmethod
    def from_settings(cls, settings: MessagingSettings) -> "AssetPolicy":
        return cls(settings.downloadable_extensions)

    def _has_asset_extension(self, path: str) -> bool:
        suffix = PurePosixPath(unquote(path)).suffix
        return bool(suffix) and suffix[1:].lower() in self._extensions

    def is_remote_asset(self, candidate: str) -> bool:
        try:
            parts = urlsplit(candidate)
        except ValueError:
            return False
        if parts.scheme.lower() not in REMOTE_SCHEMES or not parts.netloc:
            return False
        return self._has_asset_extension(parts.path)

    def is_local_asset(self, candidate: str) -> bool:
        try:
            parts = urlsplit(candidate)
        except ValueError:
            return False
        if parts.scheme.lower() not in LOCAL_SCHEMES or parts.netloc:
            return False
        return self._has_asset_extension(parts.path)


class AssetResolver:
    """Picks the replacement value for asset groups of one message."""

    def __init__(
        self,
        cache: AssetCache,
        settings: MessagingSettings,
        logger: BoundLogger,
        policy: Optional[AssetPolicy] = None,
    ) -> None:
        self._cache = cache
        self._settings = settings
        self._logger = logger
        self._policy = policy or AssetPolicy.from_settings(settings)

    @property
    def policy(self) -> AssetPolicy:
        return self._policy

    def resolve(self, group: AssetGroup, message_id: str) -> Optional[AssetResolution]:
        if not len(group):
            self._logger.debug("asset.empty_group")
            return None

        for candidate in group:
            if not self._policy.is_remote_asset(candidate):
                continue
            cached = self._read_cached(message_id, candidate)
            if cached is not None:
                self._logger.debug("asset.resolved_remote", token=group.token, candidate=candidate)
                return AssetResolution(
                    token=group.token,
                    value=cached,
                    source="remote",
                    candidate=candidate,
                )

        for candidate in group:
            if self._policy.is_local_asset(candidate):
                self._logger.debug("asset.resolved_local", token=group.token, candidate=candidate)
                return AssetResolution(
                    token=group.token,
                    value=candidate,
                    source="local",
                    candidate=candidate,
                )

        self._logger.debug("asset.unresolved", token=group.token)
        return None

    def _read_cached(self, message_id: str, url: str) -> Optional[str]:
        key = self._settings.asset_cache_key(message_id, url)
        try:
            entry = self._cache.get(key)
        except CacheError as exc:
            self._logger.debug("asset.cache_key_rejected", key=key, error=str(exc))
            return None
        if entry is None:
            return None
        return entry.data.decode("utf-8", errors="replace")
