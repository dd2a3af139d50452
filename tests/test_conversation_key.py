"""Tests for conversation keys."""

from __future__ import annotations

import itertools

import pytest

from pairchat.core.conversation_key import conversation_key, peer_of


class TestConversationKey:
    def test_commutative_for_every_pair(self) -> None:
        ids = ["alice", "bob", "Zed", "0001", "user-with-dash", "émile"]
        for a, b in itertools.permutations(ids, 2):
            assert conversation_key(a, b) == conversation_key(b, a)

    def test_sorted_and_joined(self) -> None:
        assert conversation_key("bob", "alice") == "alice_bob"

    def test_custom_separator(self) -> None:
        assert conversation_key("b", "a", separator=":") == "a:b"

    def test_distinct_pairs_get_distinct_keys(self) -> None:
        assert conversation_key("alice", "bob") != conversation_key("alice", "carol")

    def test_empty_identifier_rejected(self) -> None:
        with pytest.raises(ValueError):
            conversation_key("", "bob")

    def test_separator_in_identifier_rejected(self) -> None:
        # "a_b" + "c" and "a" + "b_c" would otherwise share the key "a_b_c".
        with pytest.raises(ValueError, match="separator"):
            conversation_key("a_b", "c")
        with pytest.raises(ValueError, match="separator"):
            conversation_key("a", "b_c")
        assert conversation_key("a_b", "c", separator=":") == "a_b:c"


class TestPeerOf:
    def test_both_positions(self) -> None:
        key = conversation_key("alice", "bob")
        assert peer_of(key, "alice") == "bob"
        assert peer_of(key, "bob") == "alice"

    def test_not_a_participant(self) -> None:
        with pytest.raises(ValueError, match="not a participant"):
            peer_of("alice_bob", "carol")
