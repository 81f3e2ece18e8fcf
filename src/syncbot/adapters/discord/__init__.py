"""Discord adapter package."""

from syncbot.adapters.discord.adapter import DiscordAdapter, to_message_in

__all__ = ["DiscordAdapter", "to_message_in"]
