"""Config schema and accessor."""

from __future__ import annotations

import re
from typing import Any

from syncbot.core.constants import DEFAULT_SHUTDOWN_MESSAGE, DEFAULT_STARTUP_MESSAGE
from syncbot.core.errors import BridgeConfigurationError

_GROUPME_BOT_ID_RE = re.compile(r"^[A-Za-z0-9]+$")


class Config:
    """Read-only config snapshot with attribute-style access for nested keys.

    A reload never mutates a snapshot; it builds a new one and the relay swaps
    its reference.
    """

    def __init__(self, data: dict[str, Any] | None = None, *, filename: str = "") -> None:
        self._data = data or {}
        self._filename = filename

    def validate(self) -> None:
        """Validate config structure; raise BridgeConfigurationError on failure."""
        for section in ("discord", "groupme", "webhook"):
            value = self._data.get(section)
            if value is not None and not isinstance(value, dict):
                raise BridgeConfigurationError(
                    f"{section} must be a mapping",
                    code="invalid_section",
                    details={"section": section, "type": type(value).__name__},
                )
        if not self.discord_bot_token:
            raise BridgeConfigurationError("discord.bot_token is required", code="missing_bot_token")
        if not self.sync_channel_id:
            raise BridgeConfigurationError("discord.sync_channel_id is required", code="missing_sync_channel")
        bot_id = self.groupme_bot_id
        if not bot_id:
            raise BridgeConfigurationError("groupme.bot_id is required", code="missing_groupme_bot_id")
        if not _GROUPME_BOT_ID_RE.match(bot_id):
            raise BridgeConfigurationError(
                f"invalid GroupMe bot id: {bot_id}",
                code="invalid_groupme_bot_id",
                details={"bot_id": bot_id},
            )
        try:
            port = self.webhook_port
        except (TypeError, ValueError):
            port = 0
        if not 0 < port < 65536:
            raise BridgeConfigurationError(
                f"invalid webhook.port: {self.get('webhook.port')}",
                code="invalid_webhook_port",
                details={"port": self.get("webhook.port")},
            )
        try:
            timeout = self.discord_ready_timeout
        except (TypeError, ValueError):
            timeout = 0.0
        if not timeout > 0:
            raise BridgeConfigurationError(
                f"invalid discord_ready_timeout: {self._data.get('discord_ready_timeout')}",
                code="invalid_ready_timeout",
                details={"discord_ready_timeout": self._data.get("discord_ready_timeout")},
            )

    @property
    def raw(self) -> dict[str, Any]:
        """Raw config dict."""
        return self._data

    @property
    def filename(self) -> str:
        """Path the snapshot was loaded from (used by reload)."""
        return self._filename

    def get(self, key: str, default: Any = None) -> Any:
        """Get value by dot-separated path (e.g. 'discord.sync_channel_id')."""
        parts = key.split(".")
        obj: Any = self._data
        for part in parts:
            if isinstance(obj, dict) and part in obj:
                obj = obj[part]
            else:
                return default
        return obj

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def _str(self, key: str, default: str = "") -> str:
        val = self.get(key)
        return str(val).strip() if val is not None else default

    @property
    def discord_bot_token(self) -> str:
        return self._str("discord.bot_token")

    @property
    def sync_channel_id(self) -> str:
        """Discord channel mirrored to GroupMe."""
        return self._str("discord.sync_channel_id")

    @property
    def admin_channel_id(self) -> str:
        """Discord channel for pause/unpause/reload. Empty disables admin commands."""
        return self._str("discord.admin_channel_id")

    @property
    def troubleshooting_channel_id(self) -> str:
        """Discord channel receiving operator-visible error reports."""
        return self._str("discord.troubleshooting_channel_id")

    @property
    def groupme_bot_id(self) -> str:
        return self._str("groupme.bot_id")

    @property
    def groupme_group_id(self) -> str:
        """Optional: only accept callbacks for this group."""
        return self._str("groupme.group_id")

    @property
    def startup_message(self) -> str:
        return str(self._data.get("startup_message") or DEFAULT_STARTUP_MESSAGE)

    @property
    def shutdown_message(self) -> str:
        return str(self._data.get("shutdown_message") or DEFAULT_SHUTDOWN_MESSAGE)

    @property
    def webhook_host(self) -> str:
        return self._str("webhook.host", "0.0.0.0")

    @property
    def webhook_port(self) -> int:
        return int(self.get("webhook.port", 8000))

    @property
    def webhook_path(self) -> str:
        """Path GroupMe posts bot callbacks to."""
        path = self._str("webhook.path", "/GroupMeEvents")
        return path if path.startswith("/") else f"/{path}"

    @property
    def discord_ready_timeout(self) -> float:
        """Seconds to wait for a new Discord session to become ready."""
        return float(self._data.get("discord_ready_timeout", 30))
