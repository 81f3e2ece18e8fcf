"""Display-name resolution: links, then per-platform overrides, then raw username."""

from __future__ import annotations

from syncbot.core.constants import ORIGINS, PlatformOrigin
from syncbot.events import MessageIn
from syncbot.identity.links import LinkRegistry


class NameDirectory:
    """Resolves the name a user's messages are relayed under."""

    def __init__(self, links: LinkRegistry) -> None:
        self._links = links
        self._overrides: dict[PlatformOrigin, dict[str, str]] = {origin: {} for origin in ORIGINS}

    def resolve(self, msg: MessageIn) -> str:
        link = self._links.active_link_for(msg)
        if link:
            return link.name
        return self._overrides[msg.origin].get(msg.username, msg.username)

    def set_override(self, msg: MessageIn, name: str) -> None:
        """Set the sender's display name. A linked user renames the shared link name."""
        link = self._links.active_link_for(msg)
        if link:
            link.name = name
            return
        self._overrides[msg.origin][msg.username] = name

    def overrides(self, origin: PlatformOrigin) -> dict[str, str]:
        """Copy of one platform's override table."""
        return dict(self._overrides[origin])
