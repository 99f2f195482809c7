"""Session state record and lifecycle phases."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from be_rcon.protocol.fragment_reassembler import FragmentReassembler


class ConnectionPhase(Enum):
    """Session lifecycle phase."""

    IDLE = "idle"
    CONNECTING = "connecting"
    AUTHENTICATED = "authenticated"
    ERRORED = "errored"
    CLOSED = "closed"


@dataclass
class ConnectionState:
    """Mutable record of one RCon session.

    Attributes:
        phase: Current lifecycle phase
        sequence_number: Last sequence number acknowledged (set by the server only)
        authenticated: True between a successful login and close
        terminal_error: Once set, every outbound send is suppressed
        last_inbound_at: Monotonic time of the last datagram received
        last_outbound_at: Monotonic time of the last datagram sent
        reassembler: Holds the fragments of a message being assembled

    """

    phase: ConnectionPhase = ConnectionPhase.IDLE
    sequence_number: int = 0
    authenticated: bool = False
    terminal_error: bool = False
    last_inbound_at: float | None = None
    last_outbound_at: float | None = None
    reassembler: FragmentReassembler = field(default_factory=FragmentReassembler)

    @property
    def pending_fragments(self) -> list[bytes | None] | None:
        return self.reassembler.pending

    @property
    def is_closed(self) -> bool:
        return self.phase is ConnectionPhase.CLOSED
