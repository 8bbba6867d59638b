"""Display surface contract and a file-backed surface for the CLI."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional, Protocol

if TYPE_CHECKING:  # pragma: no cover - typing aid
    from .messages.base import MessageListener


class Presentable(Protocol):
    """Handle to a message created by a display surface."""

    def show(self) -> None:
        ...

    def dismiss(self) -> None:
        ...


class DisplaySurface(Protocol):
    """Creates presentable fullscreen messages from final HTML."""

    def present(
        self,
        html: str,
        listener: "MessageListener",
        is_local_image_used: bool,
    ) -> Presentable:
        ...


@dataclass
class HtmlFile:
    """Presentable that writes the HTML to disk when shown."""

    html: str
    listener: "MessageListener"
    is_local_image_used: bool
    path: Optional[Path] = None
    shown: bool = False
    dismissed: bool = False

    def show(self) -> None:
        if self.path is not None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(self.html, encoding="utf-8")
        self.shown = True
        self.listener.on_show(self)

    def dismiss(self) -> None:
        if self.dismissed:
            return
        self.dismissed = True
        self.listener.on_dismiss(self)


@dataclass
class HtmlFileSurface:
    """Surface that keeps every presented message and writes it to ``output``."""

    output: Optional[Path] = None
    presented: List[HtmlFile] = field(default_factory=list)

    def present(
        self,
        html: str,
        listener: "MessageListener",
        is_local_image_used: bool,
    ) -> HtmlFile:
        message = HtmlFile(
            html=html,
            listener=listener,
            is_local_image_used=is_local_image_used,
            path=self.output,
        )
        self.presented.append(message)
        return message

    @property
    def last(self) -> Optional[HtmlFile]:
        return self.presented[-1] if self.presented else None
