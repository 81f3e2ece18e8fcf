"""Tests for NameDirectory and LinkRegistry."""

from __future__ import annotations

import pytest

from syncbot.events import MessageIn, message_in
from syncbot.identity import Link, LinkRegistry, NameDirectory


class Outbox:
    """Collects (platform, text) sends."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []

    def __call__(self, origin: str, text: str) -> None:
        self.sent.append((origin, text))


def discord_msg(username: str, content: str = "hi") -> MessageIn:
    _, evt = message_in("discord", "100", username, content)
    return evt


def groupme_msg(username: str, content: str = "hi") -> MessageIn:
    _, evt = message_in("groupme", "g1", username, content)
    return evt


@pytest.fixture
def outbox() -> Outbox:
    return Outbox()


@pytest.fixture
def links(outbox: Outbox) -> LinkRegistry:
    return LinkRegistry(outbox)


@pytest.fixture
def names(links: LinkRegistry) -> NameDirectory:
    return NameDirectory(links)


class TestNameDirectory:
    def test_resolve_without_override_returns_raw_username(self, names: NameDirectory) -> None:
        assert names.resolve(discord_msg("alice")) == "alice"
        assert names.resolve(groupme_msg("Bob Smith")) == "Bob Smith"

    def test_override_is_per_platform(self, names: NameDirectory) -> None:
        names.set_override(discord_msg("alice"), "Al")

        assert names.resolve(discord_msg("alice")) == "Al"
        assert names.resolve(groupme_msg("alice")) == "alice"
        assert names.overrides("discord") == {"alice": "Al"}
        assert names.overrides("groupme") == {}

    def test_override_is_idempotent(self, names: NameDirectory) -> None:
        names.set_override(groupme_msg("bob"), "Robert")
        names.set_override(groupme_msg("bob"), "Robert")

        assert names.resolve(groupme_msg("bob")) == "Robert"
        assert names.overrides("groupme") == {"bob": "Robert"}

    def test_active_link_takes_precedence_over_override(self, names: NameDirectory, links: LinkRegistry) -> None:
        names.set_override(discord_msg("alice"), "Al")
        links.active.append(Link("alice", "Alice G", "Alice"))

        assert names.resolve(discord_msg("alice")) == "Alice"
        assert names.resolve(groupme_msg("Alice G")) == "Alice"

    def test_pending_link_does_not_affect_names(self, names: NameDirectory, links: LinkRegistry) -> None:
        links.pending.append(Link("alice", "Alice G", "Alice"))

        assert names.resolve(discord_msg("alice")) == "alice"

    def test_override_on_linked_user_renames_link(self, names: NameDirectory, links: LinkRegistry) -> None:
        links.active.append(Link("alice", "ag", "Alice"))

        names.set_override(groupme_msg("ag"), "Ally")

        assert links.active[0].name == "Ally"
        assert names.resolve(discord_msg("alice")) == "Ally"
        assert names.overrides("groupme") == {}


class TestLinkInit:
    def test_init_appends_pending_and_prompts_other_platform(self, links: LinkRegistry, outbox: Outbox) -> None:
        reply = links.init(discord_msg("alice"), "ag", "Alice")

        assert reply == "Link request pending"
        assert links.pending == [Link(discord_username="alice", groupme_username="ag", name="Alice")]
        assert links.active == []
        assert outbox.sent == [("groupme", "Link alice to ag with name Alice?")]

    def test_init_from_groupme_fills_groupme_slot(self, links: LinkRegistry, outbox: Outbox) -> None:
        links.init(groupme_msg("ag"), "alice", "Alice")

        assert links.pending == [Link(discord_username="alice", groupme_username="ag", name="Alice")]
        assert outbox.sent == [("discord", "Link ag to alice with name Alice?")]

    def test_init_refuses_initiator_with_pending_link(self, links: LinkRegistry, outbox: Outbox) -> None:
        links.init(discord_msg("alice"), "ag", "Alice")
        outbox.sent.clear()

        reply = links.init(discord_msg("alice"), "other", "Al")

        assert reply == "alice already has a pending or active link"
        assert len(links.pending) == 1
        assert outbox.sent == []

    def test_init_refuses_target_with_active_link(self, links: LinkRegistry) -> None:
        links.active.append(Link("carol", "ag", "Carol"))

        reply = links.init(discord_msg("alice"), "ag", "Alice")

        assert reply == "ag already has a pending or active link"
        assert links.pending == []

    def test_same_name_on_both_platforms_is_not_a_conflict(self, links: LinkRegistry) -> None:
        links.init(discord_msg("sam"), "sam", "Sam")

        assert links.pending == [Link("sam", "sam", "Sam")]


class TestLinkAccept:
    def test_accept_moves_pending_to_active_and_announces(self, links: LinkRegistry, outbox: Outbox) -> None:
        links.init(discord_msg("alice"), "ag", "Alice")
        outbox.sent.clear()

        reply, ok = links.accept(groupme_msg("ag"))

        assert ok is True
        assert reply == ""
        assert links.pending == []
        assert links.active == [Link("alice", "ag", "Alice")]
        assert outbox.sent == [
            ("discord", "Linked account alice to ag"),
            ("groupme", "Linked account alice to ag"),
        ]

    def test_accept_without_pending_request_fails(self, links: LinkRegistry, outbox: Outbox) -> None:
        links.init(discord_msg("alice"), "ag", "Alice")
        outbox.sent.clear()

        reply, ok = links.accept(groupme_msg("someone"))

        assert ok is False
        assert reply == "There is no link request matching username someone"
        assert links.pending == [Link("alice", "ag", "Alice")]
        assert outbox.sent == []

    def test_accept_matches_only_the_senders_platform_slot(self, links: LinkRegistry) -> None:
        links.init(discord_msg("alice"), "ag", "Alice")

        # "ag" on Discord is a different person from "ag" on GroupMe
        _, ok = links.accept(discord_msg("ag"))

        assert ok is False
        assert links.active == []

    def test_accept_takes_first_match(self, links: LinkRegistry) -> None:
        links.pending.extend([Link("a1", "x", "First"), Link("a2", "x", "Second")])

        links.accept(groupme_msg("x"))

        assert links.active == [Link("a1", "x", "First")]
        assert links.pending == [Link("a2", "x", "Second")]

    def test_linked_users_resolve_to_shared_name(self, links: LinkRegistry, names: NameDirectory) -> None:
        links.init(discord_msg("A"), "b", "shared")
        links.accept(groupme_msg("b"))

        assert names.resolve(discord_msg("A")) == "shared"
        assert names.resolve(groupme_msg("b")) == "shared"


class TestLinkRemove:
    def test_remove_unknown_user_fails_and_mutates_nothing(self, links: LinkRegistry, outbox: Outbox) -> None:
        links.pending.append(Link("alice", "ag", "Alice"))
        links.active.append(Link("carol", "cg", "Carol"))

        reply, ok = links.remove(discord_msg("nobody"))

        assert ok is False
        assert reply == "There is no pending or active link matching username nobody"
        assert links.pending == [Link("alice", "ag", "Alice")]
        assert links.active == [Link("carol", "cg", "Carol")]
        assert outbox.sent == []

    def test_remove_active_link(self, links: LinkRegistry, outbox: Outbox) -> None:
        links.active.append(Link("alice", "ag", "Alice"))

        reply, ok = links.remove(groupme_msg("ag"))

        assert ok is True
        assert reply == ""
        assert links.active == []
        assert outbox.sent == [
            ("discord", "Removed link between alice and ag"),
            ("groupme", "Removed link between alice and ag"),
        ]

    def test_remove_pending_request(self, links: LinkRegistry) -> None:
        links.init(discord_msg("alice"), "ag", "Alice")

        _, ok = links.remove(discord_msg("alice"))

        assert ok is True
        assert links.pending == []

    def test_remove_scans_active_before_pending(self, links: LinkRegistry) -> None:
        links.pending.append(Link("alice", "p", "Pending"))
        links.active.append(Link("alice", "a", "Active"))

        links.remove(discord_msg("alice"))

        assert links.active == []
        assert links.pending == [Link("alice", "p", "Pending")]

    def test_removed_link_no_longer_names_users(self, links: LinkRegistry, names: NameDirectory) -> None:
        names.set_override(discord_msg("alice"), "Al")
        links.active.append(Link("alice", "ag", "Alice"))
        assert names.resolve(discord_msg("alice")) == "Alice"

        links.remove(discord_msg("alice"))

        assert names.resolve(discord_msg("alice")) == "Al"
        assert names.resolve(groupme_msg("ag")) == "ag"
