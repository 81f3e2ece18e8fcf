"""Gateway: event bus, command router, relay, channel dispatcher."""

from syncbot.gateway.bus import Bus
from syncbot.gateway.commands import CommandRouter
from syncbot.gateway.dispatcher import ChannelDispatcher
from syncbot.gateway.relay import Relay

__all__ = ["Bus", "ChannelDispatcher", "CommandRouter", "Relay"]
