"""Channel dispatcher: entry point for both adapters, picks sync/admin mode by origin channel."""

from __future__ import annotations

import asyncio

from loguru import logger

from syncbot.core.constants import RouteMode
from syncbot.events import MessageIn
from syncbot.gateway.commands import CommandRouter
from syncbot.gateway.relay import Relay
from syncbot.identity import NameDirectory


class ChannelDispatcher:
    """Decides what to do with each inbound message.

    All routing, state mutation and relaying happen under one lock, so events
    arriving concurrently from the Discord gateway and the GroupMe webhook are
    serialized and a config reload is never observed half-done.
    """

    def __init__(self, router: CommandRouter, relay: Relay, names: NameDirectory) -> None:
        self._router = router
        self._relay = relay
        self._names = names
        self._lock = asyncio.Lock()

    def _mode_for(self, msg: MessageIn) -> RouteMode | None:
        config = self._relay.config
        if msg.origin == "groupme":
            group_id = config.groupme_group_id
            if group_id and msg.channel_id != group_id:
                return None
            return "sync"
        if msg.channel_id == config.sync_channel_id:
            return "sync"
        if config.admin_channel_id and msg.channel_id == config.admin_channel_id:
            return "admin"
        return None

    async def dispatch(self, msg: MessageIn, *, session: object | None = None) -> None:
        """Handle one inbound message. ``session`` is the Discord session that delivered it."""
        async with self._lock:
            if msg.origin == "discord" and session is not None and session is not self._relay.session:
                logger.debug("Dropping event from retired Discord session")
                return

            mode = self._mode_for(msg)
            if mode is None:
                return

            if msg.is_edit:
                # Edits are never commands
                if mode == "sync" and not self._relay.is_paused:
                    self._relay.relay(msg, self._names.resolve(msg))
                return

            reply, handled = await self._router.route(mode, msg)
            if handled:
                if reply:
                    self._reply(msg, reply)
                return

            if mode == "sync" and not self._relay.is_paused:
                self._relay.relay(msg, self._names.resolve(msg))

    async def reload(self, filename: str | None = None) -> str:
        """Reload config outside of a chat command (SIGHUP)."""
        async with self._lock:
            return await self._relay.reload_config(filename)

    def _reply(self, msg: MessageIn, text: str) -> None:
        if msg.origin == "discord":
            self._relay.send("discord", text, channel_id=msg.channel_id)
        else:
            self._relay.send("groupme", text)
