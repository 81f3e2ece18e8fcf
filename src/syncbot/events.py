"""Event types and dispatcher (typed events, central dispatcher)."""

from __future__ import annotations

import functools
from dataclasses import dataclass, field
from typing import Any, Protocol

from syncbot.core.constants import PlatformOrigin


@dataclass
class MessageIn:
    """Inbound message event, normalized from either platform."""

    origin: PlatformOrigin
    channel_id: str  # Discord channel ID or GroupMe group ID
    username: str  # raw platform identity
    content: str
    message_id: str = ""
    is_edit: bool = False
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass
class MessageOut:
    """Outbound message event: text to deliver on one platform."""

    target_origin: PlatformOrigin
    channel_id: str  # Discord channel ID or GroupMe bot ID
    content: str
    raw: dict[str, Any] = field(default_factory=dict)


class EventTarget(Protocol):
    """Adapter interface: accept_event + push_event."""

    def accept_event(self, source: str, evt: object) -> bool:
        """Return True if this target wants the event."""
        ...

    def push_event(self, source: str, evt: object) -> None:
        """Handle the event (may be async via queue)."""
        ...


def event(type_name: str):
    """Decorator to mark a factory as producing an event with a given type."""

    def decorator(f: Any) -> Any:
        @functools.wraps(f)
        def wrapper(*args: Any, **kwargs: Any) -> tuple[str, object]:
            evt = f(*args, **kwargs)
            return (type_name, evt)

        wrapper.TYPE = type_name
        return wrapper

    return decorator


@event("message_in")
def message_in(
    origin: PlatformOrigin,
    channel_id: str,
    username: str,
    content: str,
    message_id: str = "",
    *,
    is_edit: bool = False,
    raw: dict[str, Any] | None = None,
) -> MessageIn:
    return MessageIn(
        origin=origin,
        channel_id=str(channel_id),
        username=username,
        content=content or "",
        message_id=str(message_id),
        is_edit=is_edit,
        raw=raw or {},
    )


@event("message_out")
def message_out(
    target_origin: PlatformOrigin,
    channel_id: str,
    content: str,
    *,
    raw: dict[str, Any] | None = None,
) -> MessageOut:
    return MessageOut(
        target_origin=target_origin,
        channel_id=str(channel_id),
        content=content,
        raw=raw or {},
    )


class Dispatcher:
    """Central event dispatcher; targets filter by type and receive events."""

    def __init__(self) -> None:
        self._targets: list[EventTarget] = []

    def register(self, target: EventTarget) -> None:
        """Register an event target (adapter)."""
        self._targets.append(target)

    def unregister(self, target: EventTarget) -> None:
        """Unregister an event target."""
        if target in self._targets:
            self._targets.remove(target)

    def dispatch(self, source: str, evt: object) -> None:
        """Dispatch event to all targets that accept it."""
        from loguru import logger

        for target in list(self._targets):
            try:
                if target.accept_event(source, evt):
                    target.push_event(source, evt)
            except Exception as exc:
                logger.exception("Failed to pass event to target {}: {}", target, exc)
