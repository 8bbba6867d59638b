"""Interaction events raised by campaign messages."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional, Protocol

from structlog.stdlib import BoundLogger

EventKind = Literal["clicked", "viewed"]


@dataclass(frozen=True)
class MessageEvent:
    """A single interaction event for a displayed message."""

    kind: EventKind
    message_id: str
    data: Dict[str, str] = field(default_factory=dict)


class EventDispatcher(Protocol):
    """Receives events raised by messages."""

    def dispatch(self, event: MessageEvent) -> None:
        ...


class RecordingDispatcher:
    """Dispatcher that keeps events in order and optionally logs them."""

    def __init__(self, logger: Optional[BoundLogger] = None) -> None:
        self.events: List[MessageEvent] = []
        self._logger = logger

    def dispatch(self, event: MessageEvent) -> None:
        self.events.append(event)
        if self._logger is not None:
            self._logger.info(
                "event.dispatched",
                kind=event.kind,
                message_id=event.message_id,
                data=event.data,
            )

    def kinds(self) -> List[str]:
        return [event.kind for event in self.events]
