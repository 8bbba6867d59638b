"""Message interfaces and registry for Campaignkit."""

from __future__ import annotations

from typing import Dict, Iterable, Optional

from .base import (
    CampaignMessage,
    MessageContext,
    MessageFactory,
    MessageListener,
    MessageState,
    RuleConsequence,
)
from .fullscreen import FullscreenMessage
from .payload import TEMPLATE_KEY

__all__ = [
    "CampaignMessage",
    "FullscreenMessage",
    "MessageContext",
    "MessageFactory",
    "MessageListener",
    "MessageState",
    "RuleConsequence",
    "MessageRegistry",
    "create_message",
    "default_registry",
]


class MessageRegistry:
    """Registry of message factories keyed by consequence template."""

    def __init__(self) -> None:
        self._registry: Dict[str, MessageFactory] = {}

    def register(self, template: str, factory: MessageFactory) -> None:
        if template in self._registry:
            raise ValueError(f"Message template already registered: {template}")
        self._registry[template] = factory

    def get(self, template: str) -> MessageFactory:
        try:
            return self._registry[template]
        except KeyError as exc:
            raise KeyError(f"Unknown message template: {template}") from exc

    def types(self) -> Iterable[str]:
        return self._registry.keys()


# Singleton registry used across the app for now.
default_registry = MessageRegistry()
default_registry.register("fullscreen", FullscreenMessage.create)


def create_message(
    consequence: Optional[RuleConsequence],
    context: MessageContext,
    registry: MessageRegistry = default_registry,
) -> Optional[CampaignMessage]:
    """Create the message described by ``consequence`` using its template."""

    if consequence is None:
        context.logger.debug("message.no_consequence")
        return None

    template = consequence.details.get(TEMPLATE_KEY) if consequence.details else None
    if not isinstance(template, str) or not template:
        context.logger.error("message.missing_template", message_id=consequence.id)
        return None

    try:
        factory = registry.get(template)
    except KeyError:
        context.logger.error("message.unknown_template", message_id=consequence.id, template=template)
        return None
    return factory(consequence, context)
