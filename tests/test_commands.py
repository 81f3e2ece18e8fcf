"""Tests for command classification and the sync/admin command sets."""

from __future__ import annotations

import pytest

from syncbot.events import message_in
from syncbot.gateway.commands import ADMIN_HELP, LINK_HELP, SYNC_HELP, UPDATE_HELP, parse_command
from tests.harness import BridgeTestHarness, make_config


@pytest.fixture
def harness() -> BridgeTestHarness:
    return BridgeTestHarness()


def _msg(content: str, username: str = "bob", origin: str = "discord"):
    _, evt = message_in(origin, "100", username, content)
    return evt


class TestParseCommand:
    def test_plain_text_is_not_a_command(self) -> None:
        assert parse_command("hello !update") is None
        assert parse_command("") is None
        assert parse_command(" !pause") is None

    def test_splits_on_single_spaces(self) -> None:
        assert parse_command("!update name Alice B") == ["update", "name", "Alice", "B"]
        assert parse_command("!") == [""]


class TestSyncCommands:
    @pytest.mark.asyncio
    async def test_plain_message_is_not_handled(self, harness: BridgeTestHarness) -> None:
        for mode in ("sync", "admin"):
            reply, handled = await harness.router.route(mode, _msg("just chatting"))
            assert (reply, handled) == ("", False)

    @pytest.mark.asyncio
    async def test_update_name(self, harness: BridgeTestHarness) -> None:
        reply, handled = await harness.router.route("sync", _msg("!update name Alice B"))

        assert handled is True
        assert reply == "'bob' is now 'Alice B'"
        assert harness.names.overrides("discord") == {"bob": "Alice B"}

    @pytest.mark.asyncio
    async def test_update_name_reports_previous_override(self, harness: BridgeTestHarness) -> None:
        await harness.router.route("sync", _msg("!update name Bobby"))

        reply, _ = await harness.router.route("sync", _msg("!update name Rob"))

        assert reply == "'Bobby' is now 'Rob'"

    @pytest.mark.asyncio
    async def test_update_name_empty(self, harness: BridgeTestHarness) -> None:
        reply, handled = await harness.router.route("sync", _msg("!update name"))

        assert handled is True
        assert reply == "Name cannot be empty"
        assert harness.names.overrides("discord") == {}

    @pytest.mark.asyncio
    async def test_update_without_option_shows_help(self, harness: BridgeTestHarness) -> None:
        reply, _ = await harness.router.route("sync", _msg("!update"))
        assert reply == UPDATE_HELP

    @pytest.mark.asyncio
    async def test_update_unknown_option(self, harness: BridgeTestHarness) -> None:
        reply, _ = await harness.router.route("sync", _msg("!update avatar x"))
        assert reply == '😫  D\'oh! "avatar" is not a valid command'

    @pytest.mark.asyncio
    async def test_empty_command_shows_help(self, harness: BridgeTestHarness) -> None:
        reply, handled = await harness.router.route("sync", _msg("!"))
        assert handled is True
        assert reply == SYNC_HELP

    @pytest.mark.asyncio
    async def test_unknown_command(self, harness: BridgeTestHarness) -> None:
        reply, handled = await harness.router.route("sync", _msg("!dance now"))
        assert handled is True
        assert reply == '😫  D\'oh! "dance" is not a valid command'

    @pytest.mark.asyncio
    async def test_admin_commands_are_invalid_in_sync_mode(self, harness: BridgeTestHarness) -> None:
        reply, _ = await harness.router.route("sync", _msg("!pause"))

        assert reply == '😫  D\'oh! "pause" is not a valid command'
        assert harness.relay.is_paused is False

    @pytest.mark.asyncio
    async def test_link_help_and_invalid(self, harness: BridgeTestHarness) -> None:
        assert (await harness.router.route("sync", _msg("!link")))[0] == LINK_HELP
        assert (await harness.router.route("sync", _msg("!link merge")))[0] == '😫  D\'oh! "merge" is not a valid command'

    @pytest.mark.asyncio
    async def test_link_init_requires_target_and_name(self, harness: BridgeTestHarness) -> None:
        reply, _ = await harness.router.route("sync", _msg("!link init ag"))

        assert reply == "Must specify the account name to link to and the new name\n"
        assert harness.links.pending == []

    @pytest.mark.asyncio
    async def test_link_init_joins_name_words(self, harness: BridgeTestHarness) -> None:
        reply, _ = await harness.router.route("sync", _msg("!link init ag Bob  Jones", username="bob"))

        assert reply == "Link request pending"
        link = harness.links.pending[0]
        assert (link.discord_username, link.groupme_username, link.name) == ("bob", "ag", "Bob Jones")
        assert harness.groupme.texts == ["Link bob to ag with name Bob Jones?"]

    @pytest.mark.asyncio
    async def test_link_flow_accept_and_remove(self, harness: BridgeTestHarness) -> None:
        await harness.router.route("sync", _msg("!link init ag Bob", username="bob"))
        harness.clear()

        reply, handled = await harness.router.route("sync", _msg("!link accept", username="ag", origin="groupme"))
        assert (reply, handled) == ("", True)
        assert harness.discord.texts == ["Linked account bob to ag"]
        assert harness.groupme.texts == ["Linked account bob to ag"]

        reply, _ = await harness.router.route("sync", _msg("!link remove", username="bob"))
        assert reply == ""
        assert harness.links.active == []

    @pytest.mark.asyncio
    async def test_link_accept_without_request(self, harness: BridgeTestHarness) -> None:
        reply, handled = await harness.router.route("sync", _msg("!link accept", username="eve"))

        assert handled is True
        assert reply == "There is no link request matching username eve"


class TestAdminCommands:
    @pytest.mark.asyncio
    async def test_pause(self, harness: BridgeTestHarness) -> None:
        reply, handled = await harness.router.route("admin", _msg("!pause"))

        assert handled is True
        assert reply == "Syncing has been paused"
        assert harness.relay.is_paused is True
        assert harness.discord.texts == ["Syncing has been paused"]
        assert harness.groupme.texts == ["Syncing has been paused"]

    @pytest.mark.asyncio
    async def test_pause_twice(self, harness: BridgeTestHarness) -> None:
        await harness.router.route("admin", _msg("!pause"))
        harness.clear()

        reply, _ = await harness.router.route("admin", _msg("!pause"))

        assert reply == "Syncing already paused"
        assert harness.relay.is_paused is True
        assert harness.discord.texts == []
        assert harness.groupme.texts == []

    @pytest.mark.asyncio
    async def test_unpause(self, harness: BridgeTestHarness) -> None:
        reply, _ = await harness.router.route("admin", _msg("!unpause"))
        assert reply == "Syncing already not paused"

        await harness.router.route("admin", _msg("!pause"))
        reply, _ = await harness.router.route("admin", _msg("!unpause"))
        assert reply == "Syncing has been unpaused"
        assert harness.relay.is_paused is False

    @pytest.mark.asyncio
    async def test_admin_help_and_invalid(self, harness: BridgeTestHarness) -> None:
        assert (await harness.router.route("admin", _msg("!")))[0] == ADMIN_HELP
        assert (await harness.router.route("admin", _msg("!update name x")))[0] == (
            '😫  D\'oh! "update" is not a valid command'
        )

    @pytest.mark.asyncio
    async def test_status(self, harness: BridgeTestHarness) -> None:
        await harness.router.route("sync", _msg("!update name Bobby"))
        await harness.router.route("sync", _msg("!link init ag Bob", username="carol"))

        reply, _ = await harness.router.route("admin", _msg("!status"))

        assert reply == "Status: syncing | 1 name overrides | 1 pending links | 0 active links"

    @pytest.mark.asyncio
    async def test_reload_with_unparsable_file(self, tmp_path) -> None:
        bad = tmp_path / "config.yaml"
        bad.write_text("discord: [unclosed\n")
        harness = BridgeTestHarness(make_config(filename=str(bad)))
        live = harness.relay.config
        before_session = harness.relay.session

        reply, handled = await harness.router.route("admin", _msg("!reload"))

        assert handled is True
        assert reply.startswith("Failed to read config")
        assert harness.relay.config is live
        assert harness.relay.session is before_session

    @pytest.mark.asyncio
    async def test_reload_with_undecodable_file(self, tmp_path) -> None:
        bad = tmp_path / "config.yaml"
        bad.write_bytes(b"discord:\n  bot_token: \xff\xfe\x80bad\n")
        harness = BridgeTestHarness(make_config(filename=str(bad)))
        live = harness.relay.config

        reply, handled = await harness.router.route("admin", _msg("!reload"))

        assert handled is True
        assert reply.startswith("Failed to read config: ")
        assert harness.relay.config is live
        assert len(harness.sessions) == 1
