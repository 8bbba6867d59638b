"""Parsing of fullscreen message payloads into immutable descriptors."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, List, Mapping, Optional, Sequence, Tuple

if TYPE_CHECKING:  # pragma: no cover - typing aid
    from .resolver import AssetPolicy

HTML_KEY = "html"
REMOTE_ASSETS_KEY = "remoteAssets"
TEMPLATE_KEY = "template"


class PayloadError(ValueError):
    """Raised when a consequence payload cannot describe a message."""


class MissingRequiredField(PayloadError):
    """Raised when a required payload field is absent or empty."""

    def __init__(self, field_name: str, message: str) -> None:
        super().__init__(message)
        self.field_name = field_name


@dataclass(frozen=True)
class AssetGroup:
    """A token followed by replacement candidates in priority order."""

    items: Tuple[str, ...]

    @property
    def token(self) -> str:
        return self.items[0]

    @property
    def candidates(self) -> Tuple[str, ...]:
        return self.items[1:]

    def __iter__(self):
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)


@dataclass(frozen=True)
class MessageDescriptor:
    """Validated description of a fullscreen message."""

    id: str
    html_key: str
    asset_groups: Tuple[AssetGroup, ...] = ()

    @property
    def has_assets(self) -> bool:
        return bool(self.asset_groups)

    def remote_asset_urls(self, policy: "AssetPolicy") -> List[str]:
        """Remote asset URLs a downloader should prefetch, in first-seen order."""

        urls: List[str] = []
        for group in self.asset_groups:
            for item in group:
                if item not in urls and policy.is_remote_asset(item):
                    urls.append(item)
        return urls


class MessageDescriptorBuilder:
    """Accumulates asset groups and produces one frozen descriptor."""

    def __init__(self, message_id: str, html_key: str) -> None:
        self._message_id = message_id
        self._html_key = html_key
        self._groups: List[AssetGroup] = []

    def add_group(self, raw_group: Sequence[Any]) -> Optional[AssetGroup]:
        items = tuple(item for item in raw_group if isinstance(item, str) and item)
        if not items:
            return None
        group = AssetGroup(items=items)
        self._groups.append(group)
        return group

    def build(self) -> MessageDescriptor:
        return MessageDescriptor(
            id=self._message_id,
            html_key=self._html_key,
            asset_groups=tuple(self._groups),
        )


def _is_group_list(value: Any) -> bool:
    if not isinstance(value, (list, tuple)):
        return False
    return all(isinstance(group, (list, tuple)) for group in value)


def parse_payload(message_id: str, details: Optional[Mapping[str, Any]]) -> MessageDescriptor:
    """Parse a consequence ``details`` mapping.

    Required fields:
        * ``html``: name of the cached HTML file for this message.
    Optional fields:
        * ``remoteAssets``: list of string lists; element 0 of each list is the
          token to replace, the rest are candidates (remote URLs first, bundled
          asset names last).

    Empty groups and empty strings are dropped. A malformed ``remoteAssets``
    value is treated as no assets.
    """

    if not details:
        raise MissingRequiredField(HTML_KEY, "The consequence details are empty.")

    html = details.get(HTML_KEY)
    if not isinstance(html, str) or not html:
        raise MissingRequiredField(HTML_KEY, "The html filename for a fullscreen message is required.")

    builder = MessageDescriptorBuilder(message_id, html)
    raw_assets = details.get(REMOTE_ASSETS_KEY)
    if raw_assets and _is_group_list(raw_assets):
        for raw_group in raw_assets:
            builder.add_group(raw_group)

    return builder.build()
