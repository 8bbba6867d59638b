"""Read-only asset cache contract and the adapters that satisfy it.

The cache is populated by the asset downloader; rendering only ever reads.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional, Protocol
from urllib.parse import quote


class CacheError(ValueError):
    """Raised when a cache key cannot be mapped onto the backing store."""


@dataclass(frozen=True)
class CacheEntry:
    """Immutable blob stored under a cache key."""

    key: str
    data: bytes


class AssetCache(Protocol):
    """Byte-blob store keyed by string."""

    def get(self, key: str) -> Optional[CacheEntry]:
        """Return the entry for ``key`` or ``None`` on a miss."""


class InMemoryAssetCache:
    """Dictionary-backed cache, used when entries are already in memory."""

    def __init__(self, entries: Optional[Mapping[str, bytes]] = None) -> None:
        self._entries: Dict[str, bytes] = dict(entries or {})

    def get(self, key: str) -> Optional[CacheEntry]:
        data = self._entries.get(key)
        if data is None:
            return None
        return CacheEntry(key=key, data=data)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class FileAssetCache:
    """Directory-backed cache.

    Each ``/``-separated key segment becomes one percent-encoded path
    component below ``root``; empty segments are skipped so URL keys such as
    ``messages/m1/https://host/a.png`` map to ``messages/m1/https%3A/host/a.png``.
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root).expanduser()

    def path_for(self, key: str) -> Path:
        segments = [segment for segment in key.split("/") if segment]
        if not segments:
            raise CacheError("Cache key cannot be empty")
        if any(segment in {".", ".."} for segment in segments):
            raise CacheError(f"Cache key cannot contain relative segments: {key}")
        return self.root.joinpath(*(quote(segment, safe="") for segment in segments))

    def get(self, key: str) -> Optional[CacheEntry]:
        path = self.path_for(key)
        if not path.is_file():
            return None
        return CacheEntry(key=key, data=path.read_bytes())
