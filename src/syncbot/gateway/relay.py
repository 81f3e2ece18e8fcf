"""Relay: pause flag, outbound sends and hot config reload."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Protocol

from loguru import logger

from syncbot.config import Config, load_snapshot
from syncbot.core.constants import PlatformOrigin, opposite
from syncbot.core.errors import BridgeError
from syncbot.events import MessageIn, message_out
from syncbot.gateway.bus import Bus


class Session(Protocol):
    """A started Discord session (adapter) that can be registered on the bus."""

    def accept_event(self, source: str, evt: object) -> bool: ...
    def push_event(self, source: str, evt: object) -> None: ...
    async def stop(self) -> None: ...


SessionFactory = Callable[[Config], Awaitable[Session]]


def format_relay(display_name: str, content: str, *, is_edit: bool = False) -> str:
    """Text posted on the opposite platform for a relayed message."""
    if is_edit:
        return f"[{display_name}]*EDIT*: {content}"
    return f"[{display_name}]: {content}"


class Relay:
    """Owns the live config snapshot, the live Discord session and the pause flag.

    Every send is a ``MessageOut`` published on the bus; adapters queue and
    deliver it, so sends never block the caller.
    """

    def __init__(self, bus: Bus, config: Config, connect: SessionFactory | None = None) -> None:
        self._bus = bus
        self._config = config
        self._connect = connect
        self._session: Session | None = None
        self._paused = False

    @property
    def config(self) -> Config:
        return self._config

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def is_paused(self) -> bool:
        return self._paused

    def install(self, config: Config, session: Session | None) -> Session | None:
        """Publish a config + session pair in one step. Returns the replaced session."""
        old = self._session
        if old is not None:
            self._bus.unregister(old)
        if session is not None:
            self._bus.register(session)
        self._config = config
        self._session = session
        return old

    def send(self, origin: PlatformOrigin, text: str, *, channel_id: str | None = None) -> None:
        """Send text to a platform: Discord sync channel (or channel_id) or the GroupMe bot."""
        if not text:
            return
        if origin == "discord":
            target = channel_id or self._config.sync_channel_id
        else:
            target = self._config.groupme_bot_id
        _, evt = message_out(origin, target, text)
        self._bus.publish("relay", evt)

    def announce(self, text: str) -> None:
        """Send text to both platforms' sync endpoints."""
        self.send("discord", text)
        self.send("groupme", text)

    def troubleshoot(self, text: str) -> None:
        """Report an operator-visible error to the troubleshooting channel."""
        logger.error("Troubleshooting: {}", text)
        channel_id = self._config.troubleshooting_channel_id
        if not channel_id:
            return
        _, evt = message_out("discord", channel_id, text, raw={"troubleshooting": True})
        self._bus.publish("relay", evt)

    def relay(self, msg: MessageIn, display_name: str) -> None:
        """Forward a plain message to the opposite platform."""
        target = opposite(msg.origin)
        logger.debug("Relay: {} -> {} author={}", msg.origin, target, display_name)
        self.send(target, format_relay(display_name, msg.content, is_edit=msg.is_edit))

    def pause(self) -> str:
        if self._paused:
            return "Syncing already paused"
        self._paused = True
        text = "Syncing has been paused"
        logger.info(text)
        self.announce(text)
        return text

    def unpause(self) -> str:
        if not self._paused:
            return "Syncing already not paused"
        self._paused = False
        text = "Syncing has been unpaused"
        logger.info(text)
        self.announce(text)
        return text

    async def reload_config(self, filename: str | Path | None = None) -> str:
        """Re-read config, build a new Discord session, then swap both in.

        On any failure the live config and session are left untouched and the
        error text is returned as the reply.
        """
        path = filename or self._config.filename
        try:
            new_config = load_snapshot(path)
        except BridgeError as exc:
            logger.warning("Reload: failed to read config {}: {}", path, exc)
            return f"Failed to read config: {exc}"

        new_session: Session | None = None
        if self._connect is not None:
            try:
                new_session = await self._connect(new_config)
            except Exception as exc:
                logger.warning("Reload: failed to establish Discord session: {}", exc)
                return f"Failed to update config: {exc}"

        old = self.install(new_config, new_session if self._connect is not None else self._session)
        if old is not None and old is not self._session:
            try:
                await old.stop()
            except Exception as exc:
                logger.exception("Reload: failed to stop previous Discord session")
                self.troubleshoot(f"Failed to close previous Discord session: {exc}")

        logger.info("Config reloaded from {}", path)
        return "Updated config"
