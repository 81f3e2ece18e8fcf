"""Identity: display-name overrides and cross-platform account links."""

from syncbot.identity.links import Link, LinkRegistry
from syncbot.identity.names import NameDirectory

__all__ = ["Link", "LinkRegistry", "NameDirectory"]
