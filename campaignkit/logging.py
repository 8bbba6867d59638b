"""Structured logging for the CLI and for message rendering.

Events raised by a message carry its identity as ``message_id`` and
``template`` (see :func:`bind_message`). The configured chain folds the pair
into a single ``message`` field such as ``fullscreen:m1`` so every line from
one message can be grepped out of a console or file sink.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, List, MutableMapping, Optional, Union

import structlog

MESSAGE_FIELD = "message"


def add_message_scope(
    _: Any, __: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Fold ``template``/``message_id`` into one ``message`` field."""

    if "template" not in event_dict:
        return event_dict
    template = event_dict.pop("template")
    message_id = event_dict.pop("message_id", None) or "-"
    event_dict[MESSAGE_FIELD] = f"{template}:{message_id}"
    return event_dict


def _shared_processors() -> List[Any]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        add_message_scope,
        structlog.processors.format_exc_info,
    ]


def _formatter(renderer: Any) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        foreign_pre_chain=_shared_processors(),
    )


def _handlers(json_output: bool, log_file: Optional[Union[str, Path]]) -> List[logging.Handler]:
    console = logging.StreamHandler(sys.stderr)
    if json_output:
        console.setFormatter(_formatter(structlog.processors.JSONRenderer()))
    else:
        console.setFormatter(_formatter(structlog.dev.ConsoleRenderer(colors=False)))
    handlers: List[logging.Handler] = [console]

    if log_file:
        log_path = Path(log_file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        # The file sink is always JSON lines, whatever the console shows.
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(_formatter(structlog.processors.JSONRenderer()))
        handlers.append(file_handler)
    return handlers


def configure_logging(
    level: str = "INFO",
    json_output: bool = False,
    log_file: Optional[Union[str, Path]] = None,
) -> None:
    """Route structlog through the root logger to console and optional file.

    Calling it again replaces the previous handlers.
    """

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in _handlers(json_output, log_file):
        root.addHandler(handler)
    root.setLevel(level.upper())

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_shared_processors(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_message(
    logger: structlog.stdlib.BoundLogger,
    message_id: Optional[str],
    template: str,
) -> structlog.stdlib.BoundLogger:
    """Attach message identity; :func:`add_message_scope` renders it."""

    return logger.bind(message_id=message_id or "", template=template)
