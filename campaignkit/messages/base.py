"""Base interfaces for Campaignkit messages."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Protocol

from structlog.stdlib import BoundLogger

from ..cache import AssetCache
from ..config import MessagingSettings
from ..display import DisplaySurface, Presentable
from ..events import EventDispatcher, MessageEvent


@dataclass(frozen=True)
class RuleConsequence:
    """Consequence produced by the rules engine when a message should fire."""

    id: str
    type: str = "iam"
    details: Mapping[str, Any] = field(default_factory=dict)


class MessageState(str, enum.Enum):
    PARSED = "parsed"
    READY = "ready"
    DISPLAYED = "displayed"
    INTERACTED = "interacted"
    DISMISSED = "dismissed"

    @property
    def is_terminal(self) -> bool:
        return self in {MessageState.INTERACTED, MessageState.DISMISSED}


@dataclass
class MessageContext:
    """Collaborators shared with messages when they are created."""

    logger: BoundLogger
    cache: AssetCache
    dispatcher: EventDispatcher
    display: DisplaySurface
    settings: MessagingSettings = field(default_factory=MessagingSettings)


class MessageListener(Protocol):
    """Receives lifecycle and interaction callbacks from a display surface."""

    def on_show(self, message: Presentable) -> None:
        ...

    def on_dismiss(self, message: Presentable) -> None:
        ...

    def on_interaction(self, query: Mapping[str, str]) -> None:
        ...


class CampaignMessage(Protocol):
    """Protocol defining the behaviour shared by every campaign message."""

    message_id: str

    def show(self) -> bool:
        """Render and hand the message to the display surface."""

    def should_download_assets(self) -> bool:
        """Whether the downloader should prefetch this message's remote assets."""

    def process_interaction(self, query: Mapping[str, str]) -> bool:
        """Handle an interaction reported by the display surface."""


class MessageFactory(Protocol):
    """Factories create messages from rule consequences."""

    def __call__(
        self,
        consequence: Optional[RuleConsequence],
        context: MessageContext,
    ) -> Optional[CampaignMessage]:
        ...


class EventSource:
    """Mixin raising clicked/viewed events through the context dispatcher."""

    message_id: str
    context: MessageContext

    def clicked_with_data(self, data: Mapping[str, str]) -> None:
        payload: Dict[str, str] = {str(key): str(value) for key, value in data.items()}
        self.context.dispatcher.dispatch(
            MessageEvent(kind="clicked", message_id=self.message_id, data=payload)
        )

    def viewed(self) -> None:
        self.context.dispatcher.dispatch(MessageEvent(kind="viewed", message_id=self.message_id))
