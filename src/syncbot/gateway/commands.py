"""Command router: classify inbound text and run sync/admin commands."""

from __future__ import annotations

from syncbot.core.constants import COMMAND_PREFIX, ORIGINS, RouteMode
from syncbot.events import MessageIn
from syncbot.gateway.relay import Relay
from syncbot.identity import LinkRegistry, NameDirectory

INVALID_COMMAND = '😫  D\'oh! "{}" is not a valid command'

SYNC_HELP = """Try one of these if you do not know what to do!
	update:	let's you update your info
	link:	manage cross platform account connections
"""

UPDATE_HELP = "Available options: \n    name: Change the name that shows up on the other platform\n"

LINK_HELP = """Available options:
	init:	connect your discord and groupme accounts.
			Creates one shared name, and allows mentioning cross platform
	accept:	accept the pending account link
	remove: cancel a pending or active account link
"""

ADMIN_HELP = """Try one of these if you do not know what to do!
	pause: stops syncing messages between Discord and GroupMe
	unpause: resumes syncing messages between Discord and GroupMe
	reload: reloads the config file and reconnects the discord client
	status: shows the pause state and link counts
"""


def parse_command(text: str) -> list[str] | None:
    """Split ``!word arg ...`` into words; None when text is not a command."""
    if not text.startswith(COMMAND_PREFIX):
        return None
    return text[len(COMMAND_PREFIX) :].split(" ")


class CommandRouter:
    """Routes inbound messages: sync commands, admin commands, or plain text.

    ``route`` returns ``(reply, handled)``. ``handled=False`` means the message
    is not a command and should be relayed. An empty reply means nothing needs
    to be sent back.
    """

    def __init__(self, names: NameDirectory, links: LinkRegistry, relay: Relay) -> None:
        self._names = names
        self._links = links
        self._relay = relay

    async def route(self, mode: RouteMode, msg: MessageIn) -> tuple[str, bool]:
        words = parse_command(msg.content)
        if words is None:
            return "", False
        if mode == "admin":
            return await self._admin(words, msg), True
        return self._sync(words, msg), True

    # Sync channel

    def _sync(self, words: list[str], msg: MessageIn) -> str:
        cmd = words[0]
        if cmd == "update":
            return self._update(words[1:], msg)
        if cmd == "link":
            return self._link(words[1:], msg)
        if cmd == "":
            return SYNC_HELP
        return INVALID_COMMAND.format(cmd)

    def _update(self, args: list[str], msg: MessageIn) -> str:
        if not args:
            return UPDATE_HELP
        if args[0] != "name":
            return INVALID_COMMAND.format(args[0])
        new_name = " ".join(args[1:]).strip()
        if not new_name:
            return "Name cannot be empty"
        old_name = self._names.resolve(msg)
        self._names.set_override(msg, new_name)
        return f"'{old_name}' is now '{new_name}'"

    def _link(self, args: list[str], msg: MessageIn) -> str:
        if not args:
            return LINK_HELP
        sub = args[0]
        if sub == "init":
            params = [a for a in args[1:] if a]
            if len(params) < 2:
                return "Must specify the account name to link to and the new name\n"
            return self._links.init(msg, params[0], " ".join(params[1:]))
        if sub == "accept":
            reply, _ = self._links.accept(msg)
            return reply
        if sub == "remove":
            reply, _ = self._links.remove(msg)
            return reply
        return INVALID_COMMAND.format(sub)

    # Admin channel

    async def _admin(self, words: list[str], msg: MessageIn) -> str:
        cmd = words[0]
        if cmd == "pause":
            return self._relay.pause()
        if cmd == "unpause":
            return self._relay.unpause()
        if cmd == "reload":
            return await self._relay.reload_config()
        if cmd == "status":
            return self._status()
        if cmd == "":
            return ADMIN_HELP
        return INVALID_COMMAND.format(cmd)

    def _status(self) -> str:
        pending, active = self._links.snapshot()
        overrides = sum(len(self._names.overrides(o)) for o in ORIGINS)
        state = "paused" if self._relay.is_paused else "syncing"
        return f"Status: {state} | {overrides} name overrides | {len(pending)} pending links | {len(active)} active links"
