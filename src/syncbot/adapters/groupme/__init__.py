"""GroupMe adapter package."""

from syncbot.adapters.groupme.adapter import GroupMeAdapter, parse_callback
from syncbot.adapters.groupme.client import GroupMeClient

__all__ = ["GroupMeAdapter", "GroupMeClient", "parse_callback"]
