"""GroupMe adapter: bot callback webhook (aiohttp) in, bot posts out."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from aiohttp import web
from loguru import logger

from syncbot.adapters.base import FatalFn, QueuedAdapter, ReportFn
from syncbot.adapters.groupme.client import GroupMeClient
from syncbot.config import Config
from syncbot.core.constants import GROUPME_MAX_TEXT
from syncbot.events import MessageIn, MessageOut, message_in

if TYPE_CHECKING:
    from syncbot.gateway import ChannelDispatcher


def parse_callback(payload: Any) -> MessageIn | None:
    """Normalize a GroupMe bot callback. Only messages sent by users are kept."""
    if not isinstance(payload, dict):
        return None
    if payload.get("sender_type") != "user":
        return None
    text = payload.get("text")
    if not isinstance(text, str) or not text.strip():
        return None
    name = payload.get("name")
    if not isinstance(name, str) or not name.strip():
        return None
    _, evt = message_in(
        origin="groupme",
        channel_id=str(payload.get("group_id") or ""),
        username=name,
        content=text,
        message_id=str(payload.get("id") or ""),
    )
    return evt


class GroupMeAdapter(QueuedAdapter):
    """Listens for GroupMe bot callbacks and posts outbound text as the bot."""

    def __init__(
        self,
        config: Config,
        dispatcher: ChannelDispatcher,
        client: GroupMeClient | None = None,
        *,
        report: ReportFn | None = None,
        on_fatal: FatalFn | None = None,
    ) -> None:
        super().__init__(report=report, on_fatal=on_fatal)
        self._config = config
        self._dispatcher = dispatcher
        self._client = client or GroupMeClient()
        self._runner: web.AppRunner | None = None

    @property
    def name(self) -> str:
        return "groupme"

    async def _deliver(self, evt: MessageOut) -> None:
        await self._client.post_bot_message(evt.channel_id, evt.content[:GROUPME_MAX_TEXT])

    async def handle_callback(self, request: web.Request) -> web.Response:
        """POST handler for GroupMe bot callbacks."""
        try:
            payload = await request.json()
        except ValueError as exc:
            logger.warning("GroupMe callback with invalid JSON: {}", exc)
            return web.Response(status=400, text="invalid JSON")

        evt = parse_callback(payload)
        if evt is None:
            return web.Response(status=200)
        logger.debug("GroupMe message received: group={} author={}", evt.channel_id, evt.username)
        await self._dispatcher.dispatch(evt)
        return web.Response(status=200)

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_post(self._config.webhook_path, self.handle_callback)
        return app

    async def start(self) -> None:
        """Start the callback listener and the outbound consumer."""
        runner = web.AppRunner(self.build_app())
        await runner.setup()
        site = web.TCPSite(runner, self._config.webhook_host, self._config.webhook_port)
        await site.start()
        self._runner = runner
        self._start_consumer()
        logger.info(
            "GroupMe callback listener on {}:{}{}",
            self._config.webhook_host,
            self._config.webhook_port,
            self._config.webhook_path,
        )

    async def stop(self) -> None:
        """Flush queued posts, then stop the listener."""
        await self._stop_consumer()
        if self._runner:
            await self._runner.cleanup()
        self._runner = None
