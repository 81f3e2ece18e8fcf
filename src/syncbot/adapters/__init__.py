"""Platform adapters. Each implements base.AdapterBase."""

from syncbot.adapters.base import AdapterBase, QueuedAdapter
from syncbot.adapters.discord import DiscordAdapter
from syncbot.adapters.groupme import GroupMeAdapter

__all__ = ["AdapterBase", "DiscordAdapter", "GroupMeAdapter", "QueuedAdapter"]
