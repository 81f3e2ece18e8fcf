"""Cross-platform account links: pending requests and confirmed pairings."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from syncbot.core.constants import PlatformOrigin, opposite
from syncbot.events import MessageIn

SendFn = Callable[[PlatformOrigin, str], None]


@dataclass
class Link:
    """One Discord username <-> GroupMe username pairing with a shared display name."""

    discord_username: str
    groupme_username: str
    name: str

    def username_for(self, origin: PlatformOrigin) -> str:
        return self.discord_username if origin == "discord" else self.groupme_username


class LinkRegistry:
    """Owns the pending and active link lists.

    Matching always takes the first entry in list order whose slot for the
    sender's platform equals the sender's username. ``init`` refuses to create
    a request for anyone already party to a pending or active link, so a
    username appears in at most one link per platform.

    Prompts and announcements go out through ``send(origin, text)``.
    """

    def __init__(self, send: SendFn) -> None:
        self._send = send
        self.pending: list[Link] = []
        self.active: list[Link] = []

    def _announce(self, text: str) -> None:
        self._send("discord", text)
        self._send("groupme", text)

    def _find(self, links: list[Link], origin: PlatformOrigin, username: str) -> int | None:
        for i, link in enumerate(links):
            if link.username_for(origin) == username:
                return i
        return None

    def is_linked(self, origin: PlatformOrigin, username: str) -> bool:
        """True if username is party to any pending or active link on origin."""
        return (
            self._find(self.active, origin, username) is not None
            or self._find(self.pending, origin, username) is not None
        )

    def active_link_for(self, msg: MessageIn) -> Link | None:
        """Active link covering the sender, if any."""
        i = self._find(self.active, msg.origin, msg.username)
        return self.active[i] if i is not None else None

    def init(self, msg: MessageIn, target: str, name: str) -> str:
        """Propose a link between the sender and ``target`` on the other platform."""
        other = opposite(msg.origin)
        for origin, username in ((msg.origin, msg.username), (other, target)):
            if self.is_linked(origin, username):
                return f"{username} already has a pending or active link"

        if msg.origin == "discord":
            link = Link(discord_username=msg.username, groupme_username=target, name=name)
        else:
            link = Link(discord_username=target, groupme_username=msg.username, name=name)
        self.pending.append(link)
        self._send(other, f"Link {msg.username} to {target} with name {name}?")
        return "Link request pending"

    def accept(self, msg: MessageIn) -> tuple[str, bool]:
        """Confirm the first pending request naming the sender."""
        i = self._find(self.pending, msg.origin, msg.username)
        if i is None:
            return f"There is no link request matching username {msg.username}", False

        link = self.pending.pop(i)
        self.active.append(link)
        self._announce(f"Linked account {link.username_for(opposite(msg.origin))} to {msg.username}")
        return "", True

    def remove(self, msg: MessageIn) -> tuple[str, bool]:
        """Drop the sender's link, active links first, then pending requests."""
        for links in (self.active, self.pending):
            i = self._find(links, msg.origin, msg.username)
            if i is None:
                continue
            link = links.pop(i)
            self._announce(f"Removed link between {link.username_for(opposite(msg.origin))} and {msg.username}")
            return "", True
        return f"There is no pending or active link matching username {msg.username}", False

    def snapshot(self) -> tuple[list[Link], list[Link]]:
        """Copies of (pending, active)."""
        return list(self.pending), list(self.active)
