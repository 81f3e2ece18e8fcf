"""SyncBridge: wires state, gateway and adapters; start/stop lifecycle."""

from __future__ import annotations

import asyncio

from loguru import logger

from syncbot.adapters import DiscordAdapter, GroupMeAdapter
from syncbot.adapters.groupme import GroupMeClient
from syncbot.config import Config
from syncbot.gateway import Bus, ChannelDispatcher, CommandRouter, Relay
from syncbot.identity import LinkRegistry, NameDirectory


class SyncBridge:
    """The running bridge: one GroupMe listener, one live Discord session."""

    def __init__(self, config: Config, *, groupme_client: GroupMeClient | None = None) -> None:
        self.bus = Bus()
        self.relay = Relay(self.bus, config, connect=self.connect_discord)
        self.links = LinkRegistry(self.relay.send)
        self.names = NameDirectory(self.links)
        self.router = CommandRouter(self.names, self.links, self.relay)
        self.dispatcher = ChannelDispatcher(self.router, self.relay, self.names)
        self.groupme = GroupMeAdapter(
            config,
            self.dispatcher,
            groupme_client,
            report=self.relay.troubleshoot,
            on_fatal=self.fail,
        )
        self._finished = asyncio.Event()
        self._error: BaseException | None = None
        self._stopping = False

    @property
    def error(self) -> BaseException | None:
        """Fatal error that ended the run, if any."""
        return self._error

    async def connect_discord(self, config: Config) -> DiscordAdapter:
        """Build and start a Discord session for a config snapshot."""
        adapter = DiscordAdapter(
            config,
            self.dispatcher,
            report=self.relay.troubleshoot,
            on_fatal=self.fail,
        )
        await adapter.start()
        return adapter

    async def start(self) -> None:
        """Connect both platforms and announce startup. Raises on startup failure."""
        config = self.relay.config
        session = await self.connect_discord(config)
        self.relay.install(config, session)
        try:
            await self.groupme.start()
        except Exception:
            self.relay.install(config, None)
            await session.stop()
            raise
        self.bus.register(self.groupme)
        self.relay.announce(config.startup_message)
        logger.info("Bridge ready, syncing Discord channel {}", config.sync_channel_id)

    def fail(self, exc: BaseException) -> None:
        """Fatal error callback: end the run."""
        if self._error is None:
            self._error = exc
        logger.critical("Fatal bridge error: {}", exc)
        self._finished.set()

    def request_stop(self) -> None:
        self._finished.set()

    async def wait(self) -> None:
        await self._finished.wait()

    async def stop(self) -> None:
        """Announce shutdown, flush queues, release both connections."""
        if self._stopping:
            return
        self._stopping = True
        logger.info("Bridge shutting down")
        self.relay.announce(self.relay.config.shutdown_message)
        await self.groupme.stop()
        self.bus.unregister(self.groupme)
        session = self.relay.install(self.relay.config, None)
        if session is not None:
            await session.stop()
        self._finished.set()
