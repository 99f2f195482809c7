"""Unit tests for FragmentReassembler."""

from __future__ import annotations

from typing import cast

import pytest

from be_rcon.protocol.fragment_reassembler import FragmentReassembler
from be_rcon.protocol.packet_types import FragmentPacket
from be_rcon.protocol.rcon_protocol import RconProtocol
from tests.fixtures.packets import fragment


def _frag(total: int, index: int, text: str) -> FragmentPacket:
    return cast("FragmentPacket", RconProtocol.decode_packet(fragment(total, index, text)))


def _feed(reassembler: FragmentReassembler, *fragments: FragmentPacket) -> list[str | None]:
    return [reassembler.accept(f) for f in fragments]


@pytest.fixture
def reassembler() -> FragmentReassembler:
    return FragmentReassembler()


class TestInOrder:
    def test_single_fragment_message(self, reassembler: FragmentReassembler):
        assert reassembler.accept(_frag(1, 0, "whole")) == "whole"
        assert reassembler.in_progress is False

    def test_three_fragments(self, reassembler: FragmentReassembler):
        results = _feed(reassembler, _frag(3, 0, "Players "), _frag(3, 1, "on "), _frag(3, 2, "server"))

        assert results == [None, None, "Players on server"]
        assert reassembler.pending is None


class TestOutOfOrder:
    def test_joined_in_index_order(self, reassembler: FragmentReassembler):
        results = _feed(reassembler, _frag(3, 0, "a"), _frag(3, 2, "c"), _frag(3, 1, "b"))

        assert results == [None, None, "abc"]

    def test_last_index_before_middle_waits_for_missing_slots(self, reassembler: FragmentReassembler):
        assert _feed(reassembler, _frag(3, 0, "head-"), _frag(3, 2, "tail")) == [None, None]
        assert reassembler.pending == [b"head-", None, b"tail"]
        assert reassembler.accept(_frag(3, 1, "mid-")) == "head-mid-tail"

    def test_index_zero_discards_fragments_buffered_before_it(self, reassembler: FragmentReassembler):
        _ = _feed(reassembler, _frag(3, 1, "b"), _frag(3, 2, "c"))
        assert reassembler.in_progress is True

        assert reassembler.accept(_frag(3, 0, "a")) is None
        assert reassembler.pending == [b"a", None, None]


class TestLostFragments:
    def test_lost_head_does_not_splice_into_next_message(self, reassembler: FragmentReassembler):
        lost_head = _feed(reassembler, _frag(3, 1, "A1|"), _frag(3, 2, "A2|"))
        next_message = _feed(reassembler, _frag(3, 0, "B0|"), _frag(3, 1, "B1|"), _frag(3, 2, "B2|"))

        assert lost_head == [None, None]
        assert next_message == [None, None, "B0|B1|B2|"]
        assert reassembler.pending is None

    def test_incomplete_messages_never_leak_into_next(self, reassembler: FragmentReassembler):
        _ = _feed(reassembler, _frag(2, 1, "A1|"))
        _ = _feed(reassembler, _frag(2, 0, "B0|"))
        results = _feed(reassembler, _frag(2, 0, "C0|"), _frag(2, 1, "C1|"))

        assert results == [None, "C0|C1|"]


class TestMismatches:
    def test_different_total_is_dropped(self, reassembler: FragmentReassembler):
        _ = reassembler.accept(_frag(3, 0, "a"))

        assert reassembler.accept(_frag(2, 1, "x")) is None
        assert reassembler.pending == [b"a", None, None]

        assert _feed(reassembler, _frag(3, 1, "b"), _frag(3, 2, "c")) == [None, "abc"]

    def test_new_index_zero_abandons_stale_message(self, reassembler: FragmentReassembler):
        _ = _feed(reassembler, _frag(3, 0, "old-a"), _frag(3, 1, "old-b"))

        assert reassembler.accept(_frag(2, 0, "new-a")) is None
        assert reassembler.pending == [b"new-a", None]
        assert reassembler.accept(_frag(2, 1, "new-b")) == "new-anew-b"

    def test_repeated_index_zero_restarts_same_size_message(self, reassembler: FragmentReassembler):
        _ = _feed(reassembler, _frag(3, 0, "old-a"), _frag(3, 1, "old-b"))

        assert reassembler.accept(_frag(3, 0, "a")) is None
        assert reassembler.pending == [b"a", None, None]

    def test_buffer_never_spans_two_messages(self, reassembler: FragmentReassembler):
        assert _feed(reassembler, _frag(2, 0, "a"), _frag(2, 1, "b")) == [None, "ab"]
        assert _feed(reassembler, _frag(2, 0, "c"), _frag(2, 1, "d")) == [None, "cd"]


class TestReset:
    def test_reset_discards_partial_message(self, reassembler: FragmentReassembler):
        _ = reassembler.accept(_frag(2, 0, "a"))
        reassembler.reset()

        assert reassembler.in_progress is False
        assert reassembler.accept(_frag(2, 1, "b")) is None
        assert reassembler.pending == [None, b"b"]

    def test_non_ascii_text_is_decoded(self, reassembler: FragmentReassembler):
        assert _feed(reassembler, _frag(2, 0, "Grüße "), _frag(2, 1, "aus Köln")) == [None, "Grüße aus Köln"]
