"""Discord adapter: gateway session, inbound normalization, queued outbound sends."""

from __future__ import annotations

import asyncio
import contextlib
from typing import TYPE_CHECKING, Any

import discord
from discord import AllowedMentions, Intents, Message
from loguru import logger

from syncbot.adapters.base import FatalFn, QueuedAdapter, ReportFn
from syncbot.config import Config
from syncbot.core.constants import DISCORD_MAX_CONTENT
from syncbot.core.errors import BridgeConnectionError
from syncbot.events import MessageIn, MessageOut, message_in

if TYPE_CHECKING:
    from syncbot.gateway import ChannelDispatcher

_ALLOWED_MENTIONS = AllowedMentions(everyone=False, roles=False)


def discord_username(author: Any) -> str:
    """Server nickname when set, else the account name."""
    return getattr(author, "nick", None) or author.name


def to_message_in(message: Message, *, is_edit: bool = False) -> MessageIn:
    """Normalize a Discord message into a MessageIn."""
    content = getattr(message, "clean_content", None) or message.content or ""
    _, evt = message_in(
        origin="discord",
        channel_id=str(message.channel.id),
        username=discord_username(message.author),
        content=content,
        message_id=str(message.id),
        is_edit=is_edit,
    )
    return evt


class DiscordAdapter(QueuedAdapter):
    """One Discord gateway session bound to one config snapshot.

    A reload builds a brand-new adapter; the relay swaps it in once ``start``
    has returned, i.e. once the session is logged in and ready.
    """

    def __init__(
        self,
        config: Config,
        dispatcher: ChannelDispatcher,
        *,
        report: ReportFn | None = None,
        on_fatal: FatalFn | None = None,
    ) -> None:
        super().__init__(report=report, on_fatal=on_fatal)
        self._config = config
        self._dispatcher = dispatcher
        self._client: discord.Client | None = None
        self._client_task: asyncio.Task | None = None

    @property
    def name(self) -> str:
        return "discord"

    async def _deliver(self, evt: MessageOut) -> None:
        client = self._client
        if client is None:
            raise BridgeConnectionError("Discord session is not running", code="no_session")
        await client.wait_until_ready()
        channel_id = int(evt.channel_id)
        channel = client.get_channel(channel_id) or await client.fetch_channel(channel_id)
        if not isinstance(channel, discord.abc.Messageable):
            raise BridgeConnectionError(
                f"Discord channel {evt.channel_id} cannot receive messages",
                code="bad_channel",
                details={"channel_id": evt.channel_id},
            )
        await channel.send(evt.content[:DISCORD_MAX_CONTENT], allowed_mentions=_ALLOWED_MENTIONS)

    async def _on_message(self, message: Message) -> None:
        """Handle incoming Discord message; hand it to the dispatcher."""
        if getattr(message, "webhook_id", None):
            return
        if message.author.bot:
            return
        if not (message.content or "").strip():
            return
        await self._dispatcher.dispatch(to_message_in(message), session=self)

    async def _on_raw_message_edit(self, payload) -> None:
        """Handle Discord message edits via raw event (fires for cached and uncached messages)."""
        message = payload.message
        if getattr(message, "webhook_id", None) or message.author.bot:
            return
        cached = payload.cached_message
        if cached is not None and cached.content == message.content:
            # Embed/pin updates also fire edits
            return
        if not (message.content or "").strip():
            return
        logger.debug("Discord edit received: channel={} msg_id={}", payload.channel_id, payload.message_id)
        await self._dispatcher.dispatch(to_message_in(message, is_edit=True), session=self)

    async def start(self) -> None:
        """Log in, connect the gateway and wait until ready. Raises BridgeConnectionError."""
        intents = Intents.default()
        intents.message_content = True
        intents.messages = True
        intents.guilds = True
        intents.members = True

        client = discord.Client(intents=intents, allowed_mentions=_ALLOWED_MENTIONS)

        @client.event
        async def on_ready() -> None:
            logger.info("Discord session ready: {}", client.user)

        @client.event
        async def on_message(message: Message) -> None:
            await self._on_message(message)

        @client.event
        async def on_raw_message_edit(payload) -> None:
            await self._on_raw_message_edit(payload)

        self._client = client
        try:
            await client.login(self._config.discord_bot_token)
        except discord.LoginFailure as exc:
            await self.stop()
            raise BridgeConnectionError("invalid Discord bot token", code="login_failed", original_error=exc) from exc
        except discord.HTTPException as exc:
            await self.stop()
            raise BridgeConnectionError(f"Discord login failed: {exc}", original_error=exc) from exc

        self._client_task = asyncio.create_task(client.connect())
        try:
            await asyncio.wait_for(client.wait_until_ready(), timeout=self._config.discord_ready_timeout)
        except asyncio.TimeoutError as exc:
            task = self._client_task
            error = task.exception() if task.done() and not task.cancelled() else None
            await self.stop()
            raise BridgeConnectionError(
                f"Discord session not ready: {error or 'timed out'}",
                code="not_ready",
                original_error=error or exc,
            ) from exc
        except Exception:
            await self.stop()
            raise

        self._start_consumer()

    async def stop(self) -> None:
        """Flush queued sends, then close the Discord session."""
        await self._stop_consumer()
        if self._client:
            await self._client.close()
        if self._client_task:
            self._client_task.cancel()
            with contextlib.suppress(asyncio.CancelledError, Exception):
                await self._client_task
        self._client = None
        self._client_task = None
