"""Fullscreen HTML campaign message."""

from __future__ import annotations

import weakref
from typing import Callable, List, Mapping, Optional
from urllib.parse import parse_qsl, urlsplit

from ..cache import CacheError
from ..display import Presentable
from ..logging import bind_message
from .base import EventSource, MessageContext, MessageListener, MessageState, RuleConsequence
from .payload import MessageDescriptor, PayloadError, parse_payload
from .resolver import AssetResolution, AssetResolver
from .template import build_token_map, expand_tokens

TEMPLATE = "fullscreen"
TAG_ID = "id"
INTERACTION_SCHEME = "adbinapp"


class FullscreenMessage(EventSource):
    """Renders cached HTML with resolved assets and handles its interactions."""

    def __init__(
        self,
        descriptor: MessageDescriptor,
        context: MessageContext,
        listener: Optional[MessageListener] = None,
    ) -> None:
        self.descriptor = descriptor
        self.message_id = descriptor.id
        self.context = context
        self.state = MessageState.PARSED
        self.is_local_image_used = False
        self._logger = bind_message(context.logger, descriptor.id, TEMPLATE)
        self._resolver = AssetResolver(context.cache, context.settings, self._logger)
        self._listener_ref: Optional[Callable[[], Optional[MessageListener]]] = (
            weakref.ref(listener) if listener is not None else None
        )
        self._presented: Optional[Presentable] = None

    @classmethod
    def create(
        cls,
        consequence: Optional[RuleConsequence],
        context: MessageContext,
        listener: Optional[MessageListener] = None,
    ) -> Optional["FullscreenMessage"]:
        """Return a message for ``consequence`` or ``None`` when it has no html."""

        if consequence is None:
            context.logger.debug("fullscreen.no_consequence")
            return None
        try:
            descriptor = parse_payload(consequence.id, consequence.details)
        except PayloadError as exc:
            context.logger.error(
                "fullscreen.invalid_payload",
                message_id=consequence.id,
                error=str(exc),
            )
            return None
        message = cls(descriptor, context, listener=listener)
        if not descriptor.has_assets:
            message._logger.debug("fullscreen.no_assets")
        return message

    # ------------------------------------------------------------------
    # Listener
    # ------------------------------------------------------------------
    @property
    def listener(self) -> MessageListener:
        if self._listener_ref is not None:
            listener = self._listener_ref()
            if listener is not None:
                return listener
        return self

    def on_show(self, message: Presentable) -> None:
        self._logger.debug("fullscreen.shown")

    def on_dismiss(self, message: Presentable) -> None:
        self._presented = None
        if not self.state.is_terminal:
            self.state = MessageState.DISMISSED
        self._logger.debug("fullscreen.dismissed")

    def on_interaction(self, query: Mapping[str, str]) -> None:
        self.process_interaction(query)

    def on_url_load(self, url: str) -> bool:
        """Route an ``adbinapp://`` link from the HTML to the listener.

        Returns ``True`` when the URL was handled and the message dismissed.
        """

        try:
            parts = urlsplit(url)
        except ValueError:
            self._logger.debug("fullscreen.invalid_url", url=url)
            return False
        if parts.scheme.lower() != INTERACTION_SCHEME:
            return False

        query = dict(parse_qsl(parts.query, keep_blank_values=True))
        if query:
            self.listener.on_interaction(query)
        self.dismiss()
        return True

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------
    def should_download_assets(self) -> bool:
        return True

    def remote_asset_urls(self) -> List[str]:
        return self.descriptor.remote_asset_urls(self._resolver.policy)

    def show(self) -> bool:
        """Read the cached HTML, expand assets and present it.

        Returns ``False`` without changing state when the HTML is not cached.
        """

        if self.state not in (MessageState.PARSED, MessageState.READY):
            self._logger.debug("fullscreen.show_ignored", state=self.state.value)
            return False

        html = self._read_html()
        if html is None:
            return False
        self.state = MessageState.READY

        if self.descriptor.has_assets:
            html = self.expanded_html(html)

        self._presented = self.context.display.present(
            html,
            self.listener,
            self.is_local_image_used,
        )
        self.state = MessageState.DISPLAYED
        self._presented.show()
        self._logger.info("fullscreen.displayed", local_images=self.is_local_image_used)
        return True

    def dismiss(self) -> None:
        presented = self._presented
        if presented is not None:
            presented.dismiss()
        self._presented = None
        if not self.state.is_terminal:
            self.state = MessageState.DISMISSED

    def preview_assets(self) -> List[AssetResolution]:
        """Resolve every asset group without touching message state."""

        resolutions: List[AssetResolution] = []
        for group in self.descriptor.asset_groups:
            resolution = self._resolver.resolve(group, self.message_id)
            if resolution is not None:
                resolutions.append(resolution)
        return resolutions

    def resolve_assets(self) -> List[AssetResolution]:
        """Resolve asset groups for rendering and record local image use."""

        resolutions = self.preview_assets()
        if any(resolution.source == "local" for resolution in resolutions):
            self.is_local_image_used = True
        return resolutions

    def expanded_html(self, source_html: str) -> str:
        """Replace asset tokens with cached or bundled references."""

        tokens = build_token_map(self.resolve_assets())
        self._logger.debug(
            "fullscreen.expanding",
            groups=len(self.descriptor.asset_groups),
            resolved=len(tokens),
        )
        return expand_tokens(source_html, tokens)

    def _read_html(self) -> Optional[str]:
        key = self.context.settings.html_cache_key(self.descriptor.html_key)
        try:
            entry = self.context.cache.get(key)
        except CacheError as exc:
            self._logger.debug("fullscreen.cache_key_rejected", key=key, error=str(exc))
            return None
        if entry is None:
            self._logger.debug("fullscreen.cache_miss", key=key)
            return None
        try:
            return entry.data.decode("utf-8")
        except UnicodeDecodeError:
            self._logger.debug("fullscreen.decode_failed", key=key)
            return None

    # ------------------------------------------------------------------
    # Interaction
    # ------------------------------------------------------------------
    def process_interaction(self, query: Mapping[str, str]) -> bool:
        """Handle a button press reported through the ``id`` query field.

        The id holds delimiter-separated tokens, e.g. ``h11901a,86f10d,3``;
        the third token names the button.
        """

        if self.state.is_terminal:
            self._logger.debug("fullscreen.interaction_ignored", state=self.state.value)
            return False

        settings = self.context.settings
        tag_value = query.get(TAG_ID) if query else None
        if not tag_value:
            self._logger.debug("fullscreen.interaction_missing_id")
            return False

        tokens = tag_value.split(settings.tag_id_delimiter)
        if len(tokens) != settings.id_tokens_len:
            self._logger.debug("fullscreen.interaction_bad_id", id=tag_value, tokens=len(tokens))
            return False

        tag_id = tokens[2]
        button = settings.tag_ids.recognized().get(tag_id)
        if button is None:
            self._logger.debug("fullscreen.interaction_unsupported_tag", tag_id=tag_id)
            return False

        self.state = MessageState.INTERACTED
        self.clicked_with_data(query)
        self.viewed()
        self._logger.info("fullscreen.interacted", button=button)
        return True
