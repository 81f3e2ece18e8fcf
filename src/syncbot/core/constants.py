"""Platform and command constants."""

from __future__ import annotations

from typing import Literal

PlatformOrigin = Literal["discord", "groupme"]
ORIGINS: tuple[PlatformOrigin, ...] = ("discord", "groupme")

RouteMode = Literal["sync", "admin"]

COMMAND_PREFIX = "!"

DEFAULT_STARTUP_MESSAGE = "<--- Started listening --->"
DEFAULT_SHUTDOWN_MESSAGE = "<--- Stopped listening --->"

# Platform message length limits
DISCORD_MAX_CONTENT = 2000
GROUPME_MAX_TEXT = 1000


def opposite(origin: PlatformOrigin) -> PlatformOrigin:
    """Return the other platform of the bridge."""
    return "groupme" if origin == "discord" else "discord"
