"""Reassembly of command responses split across several datagrams."""

from __future__ import annotations

import logging

from be_rcon.protocol.packet_types import FragmentPacket
from be_rcon.protocol.rcon_protocol import decode_text

logger = logging.getLogger(__name__)


class FragmentReassembler:
    """Collect indexed fragments of one message and join them in index order.

    ``pending`` is ``None`` while no message is being assembled, otherwise a
    list with one slot per declared fragment. The buffer is cleared as soon
    as a message completes, so it never spans two messages.

    Example:
        reassembler = FragmentReassembler()
        reassembler.accept(first_fragment)  # None, buffer allocated
        reassembler.accept(third_fragment)  # None, still waiting
        text = reassembler.accept(second_fragment)  # joined message

    """

    def __init__(self) -> None:
        self.pending: list[bytes | None] | None = None

    @property
    def in_progress(self) -> bool:
        return self.pending is not None

    def accept(self, fragment: FragmentPacket) -> str | None:
        """Store a fragment and return the full message once every slot is filled.

        Index 0 always starts a new message and abandons a stale incomplete
        one. The fragments after it may arrive in any order; one arriving with
        no buffer in progress allocates it. A fragment whose total differs
        from the buffer in progress is dropped.

        Args:
            fragment: Decoded fragment packet

        Returns:
            Reassembled message text, or None while fragments are missing

        """
        total = fragment.total
        index = fragment.index
        if not 0 <= index < total:
            logger.warning("Dropping fragment with index %d outside total %d", index, total)
            return None

        if index == 0:
            if self.pending is not None:
                logger.debug(
                    "Abandoning incomplete message (%d/%d fragments)",
                    sum(slot is not None for slot in self.pending),
                    len(self.pending),
                )
            self.pending = [None] * total
        elif self.pending is None:
            self.pending = [None] * total
        elif len(self.pending) != total:
            logger.warning(
                "Dropping fragment %d: total %d does not match message in progress (%d)",
                index,
                total,
                len(self.pending),
            )
            return None

        self.pending[index] = fragment.data

        if any(slot is None for slot in self.pending):
            return None

        message = b"".join(slot for slot in self.pending if slot is not None)
        self.pending = None
        logger.debug("Reassembled %d fragments into %d bytes", total, len(message))
        return decode_text(message)

    def reset(self) -> None:
        """Discard any partially assembled message."""
        self.pending = None
